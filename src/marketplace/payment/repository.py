"""Repository for the Payment aggregate."""

from marketplace.domain import marketplace
from marketplace.payment.payment import Payment


@marketplace.repository(part_of=Payment)
class PaymentRepository:
    def find_by_order(self, order_id) -> Payment | None:
        """The payment for an order. ``order_id`` is unique, so at most one."""
        payments = self._dao.query.filter(order_id=str(order_id)).limit(None).all().items
        return payments[0] if payments else None

    def find_by_status(self, status: str) -> list[Payment]:
        return self._dao.query.filter(status=status).limit(None).all().items
