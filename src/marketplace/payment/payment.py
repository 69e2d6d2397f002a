"""Payment aggregate — one per order, backed by an append-only ledger.

Every authorization and refund appends a ``PaymentEntry``; entries are never
modified or removed. The payment's ``status`` always mirrors the latest
entry, so the current state is derived from the history rather than stored
beside it.

    AUTHORIZED → CAPTURED → REFUNDED
    AUTHORIZED → REFUNDED
    REFUNDED/FAILED → AUTHORIZED (a fresh authorization for the same order)
"""

from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from marketplace.domain import marketplace
from marketplace.payment.events import PaymentAuthorized, PaymentRefunded
from marketplace.shared.clock import now
from marketplace.shared.errors import StateTransitionError


class PaymentStatus(Enum):
    AUTHORIZED = "Authorized"
    CAPTURED = "Captured"
    REFUNDED = "Refunded"
    FAILED = "Failed"


ACTIVE_STATUSES = {PaymentStatus.AUTHORIZED, PaymentStatus.CAPTURED}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Payment")
class PaymentEntry:
    """One immutable line of the payment ledger."""

    sequence = Integer(required=True, min_value=1)
    status = String(required=True, choices=PaymentStatus)
    amount = Float(required=True, min_value=0.0)
    reason = String(max_length=500)
    reference = String(max_length=255)  # gateway transaction or refund id
    recorded_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Payment:
    order_id = Identifier(required=True, unique=True)
    customer_id = Identifier(required=True)
    amount = Float(required=True, min_value=0.0)
    method = String(required=True, max_length=50)
    transaction_id = String(max_length=255)
    status = String(choices=PaymentStatus)
    entries = HasMany(PaymentEntry)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def status_mirrors_latest_entry(self):
        if not self.entries:
            return
        if self.status != self.latest_entry.status:
            raise ValidationError({"status": ["Payment status must match the latest ledger entry"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def authorize(cls, order_id, customer_id, amount, method, transaction_id=None):
        """Open the ledger for an order with an AUTHORIZED entry."""
        created_at = now()
        payment = cls(
            order_id=order_id,
            customer_id=customer_id,
            amount=round(amount, 2),
            method=method,
            created_at=created_at,
            updated_at=created_at,
        )
        payment.record_authorization(method, transaction_id)
        return payment

    # -------------------------------------------------------------------
    # Ledger queries
    # -------------------------------------------------------------------
    @property
    def history(self) -> list:
        """Ledger entries, oldest first."""
        return sorted(self.entries, key=lambda entry: entry.sequence)

    @property
    def latest_entry(self):
        history = self.history
        return history[-1] if history else None

    @property
    def refund_reason(self) -> str | None:
        latest = self.latest_entry
        if latest is not None and latest.status == PaymentStatus.REFUNDED.value:
            return latest.reason
        return None

    def is_active(self) -> bool:
        return self.status is not None and PaymentStatus(self.status) in ACTIVE_STATUSES

    # -------------------------------------------------------------------
    # Ledger mutations (append only)
    # -------------------------------------------------------------------
    def _append(self, status: PaymentStatus, reason=None, reference=None):
        recorded_at = now()
        entry = PaymentEntry(
            sequence=len(self.entries) + 1,
            status=status.value,
            amount=self.amount,
            reason=reason,
            reference=reference,
            recorded_at=recorded_at,
        )
        with atomic_change(self):
            self.add_entries(entry)
            self.status = status.value
            self.updated_at = recorded_at
        return entry

    def record_authorization(self, method, transaction_id=None) -> None:
        if self.is_active():
            raise StateTransitionError({"status": [f"Payment is already {self.status}"]})

        self.method = method
        self.transaction_id = transaction_id
        entry = self._append(PaymentStatus.AUTHORIZED, reference=transaction_id)
        self.raise_(
            PaymentAuthorized(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                customer_id=str(self.customer_id),
                amount=self.amount,
                method=method,
                transaction_id=transaction_id,
                authorized_at=entry.recorded_at,
            )
        )

    def refund(self, reason: str, refund_reference=None) -> None:
        """Append a REFUNDED entry carrying the full authorized amount."""
        if not self.is_active():
            raise StateTransitionError(
                {"status": [f"Cannot refund a payment in {self.status or 'no'} state"]}
            )

        entry = self._append(PaymentStatus.REFUNDED, reason=reason, reference=refund_reference)
        self.raise_(
            PaymentRefunded(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                amount=self.amount,
                reason=reason,
                refunded_at=entry.recorded_at,
            )
        )
