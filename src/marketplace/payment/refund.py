"""Administrative refund — command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.access.guard import Operation, Resource, require
from marketplace.domain import marketplace
from marketplace.payment import ledger
from marketplace.payment.payment import Payment


@marketplace.command(part_of="Payment")
class RefundPayment:
    """Refund an order's active payment without cancelling the order."""

    order_id: Identifier(required=True)
    reason: String(required=True, max_length=500)


@marketplace.command_handler(part_of=Payment)
class RefundPaymentHandler:
    @handle(RefundPayment)
    def refund_payment(self, command):
        repo = current_domain.repository_for(Payment)
        payment = repo.find_by_order(command.order_id)
        require(Resource.PAYMENT, Operation.REFUND, payment.id if payment else None)

        ledger.refund(payment, command.reason)
        repo.add(payment)
        return str(payment.id)
