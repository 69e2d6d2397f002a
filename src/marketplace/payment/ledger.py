"""Payment Ledger operations used by order placement and cancellation.

These functions talk to the payment gateway and return aggregates that are
not yet persisted; the calling command handler adds them inside its unit of
work. The gateway is always called before anything is written, so a decline
or an outage leaves no trace in the store.
"""

from datetime import datetime

import structlog
from protean.utils.globals import current_domain

from marketplace.payment.gateway import get_gateway
from marketplace.payment.gateway.port import GatewayError
from marketplace.payment.payment import Payment, PaymentStatus
from marketplace.shared.errors import ConflictError, NotFoundError, StateTransitionError, ValidationError

logger = structlog.get_logger(__name__)

DEFAULT_CURRENCY = "USD"


def validate_method(user, method: str | None) -> None:
    """Minimal gate in front of the gateway: a known payer and a named method."""
    errors = {}
    if user is None:
        errors["customer_id"] = ["A payer is required"]
    if method is None or not str(method).strip():
        errors["payment_method"] = ["Payment method is required"]
    if errors:
        raise ValidationError(errors)


def authorize(order, method: str, user) -> Payment:
    """Reserve ``order.total`` and return the AUTHORIZED payment.

    A previous, no longer active payment for the same order receives a new
    AUTHORIZED entry instead of being replaced.
    """
    validate_method(user, method)

    existing = current_domain.repository_for(Payment).find_by_order(order.id)
    if existing is not None and existing.is_active():
        raise ConflictError({"payment": [f"Order {order.id} already has an active payment"]})

    attempt = len(existing.entries) + 1 if existing else 1
    try:
        result = get_gateway().authorize_charge(
            amount=order.total,
            currency=DEFAULT_CURRENCY,
            method=method,
            idempotency_key=f"{order.id}:{attempt}",
        )
    except GatewayError as exc:
        logger.error("payment_gateway_unavailable", order_id=str(order.id), error=str(exc))
        raise ValidationError({"payment": [f"Payment could not be authorized: {exc}"]}) from exc

    if not result.success:
        logger.info("payment_declined", order_id=str(order.id), reason=result.failure_reason)
        raise ValidationError({"payment": [f"Payment declined: {result.failure_reason}"]})

    if existing is not None:
        existing.record_authorization(method, result.transaction_id)
        payment = existing
    else:
        payment = Payment.authorize(
            order_id=order.id,
            customer_id=order.customer_id,
            amount=order.total,
            method=method,
            transaction_id=result.transaction_id,
        )

    logger.info("payment_authorized", order_id=str(order.id), amount=payment.amount)
    return payment


def refund(payment: Payment | None, reason: str) -> Payment:
    """Append a REFUNDED entry after the gateway releases the funds."""
    if payment is None:
        raise NotFoundError({"payment": ["No payment exists for this order"]})

    if not payment.is_active():
        raise StateTransitionError({"status": [f"Cannot refund a payment in {payment.status} state"]})

    try:
        result = get_gateway().refund_charge(
            transaction_id=payment.transaction_id,
            amount=payment.amount,
            reason=reason,
        )
    except GatewayError as exc:
        logger.error("payment_gateway_unavailable", order_id=str(payment.order_id), error=str(exc))
        raise ValidationError({"payment": [f"Refund could not be processed: {exc}"]}) from exc

    if not result.success:
        raise ValidationError({"payment": [f"Refund failed: {result.failure_reason}"]})

    payment.refund(reason, refund_reference=result.refund_id)
    logger.info("payment_refunded", order_id=str(payment.order_id), amount=payment.amount)
    return payment


def compute_revenue(start: datetime, end: datetime) -> float:
    """Sum of payments currently AUTHORIZED whose authorization falls in ``[start, end]``."""
    payments = current_domain.repository_for(Payment).find_by_status(PaymentStatus.AUTHORIZED.value)
    total = sum(
        payment.amount
        for payment in payments
        if start <= payment.latest_entry.recorded_at <= end
    )
    return round(total, 2)
