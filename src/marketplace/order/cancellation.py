"""Order cancellation with refund — command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.access.guard import Operation, Resource, require
from marketplace.delivery.delivery import Delivery
from marketplace.domain import marketplace
from marketplace.order.order import Order
from marketplace.payment import ledger
from marketplace.payment.payment import Payment, PaymentStatus
from marketplace.shared.lookup import load

logger = structlog.get_logger(__name__)

DEFAULT_CANCELLATION_REASON = "Order cancelled by user"


@marketplace.command(part_of="Order")
class CancelOrder:
    order_id: Identifier(required=True)
    reason: String(max_length=500)


def cancel_order(order: Order, reason: str | None = None) -> None:
    """Cancel, refund and stop the delivery of one order, all in the caller's unit of work.

    The status check runs first, so a second cancellation fails before any
    refund is attempted.
    """
    reason = reason or DEFAULT_CANCELLATION_REASON
    order.cancel(reason)

    payment = current_domain.repository_for(Payment).find_by_order(order.id)
    if payment is not None and PaymentStatus(payment.status) == PaymentStatus.REFUNDED:
        # Already refunded by an administrator; the ledger takes no second refund
        logger.info("refund_skipped", order_id=str(order.id), reason="already_refunded")
    else:
        payment = ledger.refund(payment, reason)

    delivery = current_domain.repository_for(Delivery).find_by_order(order.id)
    if delivery is not None and not delivery.is_terminal():
        delivery.cancel(reason)
        current_domain.repository_for(Delivery).add(delivery)

    current_domain.repository_for(Order).add(order)
    current_domain.repository_for(Payment).add(payment)
    logger.info("order_cancelled", order_id=str(order.id), refunded=payment.amount)


@marketplace.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        require(Resource.ORDER, Operation.CANCEL, command.order_id)
        order = load(Order, command.order_id)
        cancel_order(order, command.reason)
