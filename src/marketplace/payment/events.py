"""Domain events for the Payment aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Payment")
class PaymentAuthorized:
    """Funds for an order were reserved with the payment gateway."""

    __version__ = 1

    payment_id: Identifier(required=True)
    order_id: Identifier(required=True)
    customer_id: Identifier(required=True)
    amount: Float(required=True)
    method: String(required=True)
    transaction_id: String()
    authorized_at: DateTime(required=True)


@marketplace.event(part_of="Payment")
class PaymentRefunded:
    """A refund entry was appended to the payment ledger."""

    __version__ = 1

    payment_id: Identifier(required=True)
    order_id: Identifier(required=True)
    amount: Float(required=True)
    reason: String(required=True)
    refunded_at: DateTime(required=True)
