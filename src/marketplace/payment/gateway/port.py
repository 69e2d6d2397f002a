"""Payment gateway port (abstract interface).

Defines the contract every payment gateway adapter implements, so the
ledger never depends on a concrete processor.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class GatewayError(Exception):
    """The gateway could not be reached or returned an unusable response."""


@dataclass(frozen=True)
class ChargeResult:
    """Result of an authorization attempt."""

    success: bool
    transaction_id: str | None = None
    gateway_status: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class RefundResult:
    """Result of a refund attempt."""

    success: bool
    refund_id: str | None = None
    gateway_status: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def authorize_charge(
        self,
        amount: float,
        currency: str,
        method: str,
        idempotency_key: str,
    ) -> ChargeResult:
        """Reserve ``amount`` against the payment method."""
        ...

    @abstractmethod
    def refund_charge(
        self,
        transaction_id: str | None,
        amount: float,
        reason: str,
    ) -> RefundResult:
        """Release or refund a previous authorization."""
        ...
