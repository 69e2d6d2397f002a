"""Configurable fake payment gateway for development and testing.

Simulates a processor without any external calls. It can be told to
decline every request or to fail outright with a ``GatewayError``, and it
records every call it receives.
"""

from uuid import uuid4

from marketplace.payment.gateway.port import ChargeResult, GatewayError, PaymentGateway, RefundResult


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.unavailable: bool = False
        self.calls: list[dict] = []

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Card declined",
        unavailable: bool = False,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.unavailable = unavailable

    def authorize_charge(
        self,
        amount: float,
        currency: str,
        method: str,
        idempotency_key: str,
    ) -> ChargeResult:
        self.calls.append(
            {
                "method": "authorize_charge",
                "amount": amount,
                "currency": currency,
                "payment_method": method,
                "idempotency_key": idempotency_key,
            }
        )
        if self.unavailable:
            raise GatewayError("Payment gateway timed out")

        if self.should_succeed:
            return ChargeResult(
                success=True,
                transaction_id=f"fake_txn_{uuid4().hex[:12]}",
                gateway_status="authorized",
            )
        return ChargeResult(
            success=False,
            gateway_status="declined",
            failure_reason=self.failure_reason,
        )

    def refund_charge(
        self,
        transaction_id: str | None,
        amount: float,
        reason: str,
    ) -> RefundResult:
        self.calls.append(
            {
                "method": "refund_charge",
                "transaction_id": transaction_id,
                "amount": amount,
                "reason": reason,
            }
        )
        if self.unavailable:
            raise GatewayError("Payment gateway timed out")

        if self.should_succeed:
            return RefundResult(
                success=True,
                refund_id=f"fake_ref_{uuid4().hex[:12]}",
                gateway_status="refunded",
            )
        return RefundResult(
            success=False,
            gateway_status="failed",
            failure_reason=self.failure_reason,
        )
