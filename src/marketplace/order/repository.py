"""Repository for the Order aggregate."""

from marketplace.domain import marketplace
from marketplace.order.order import ASSIGNABLE_STATUSES, Order


@marketplace.repository(part_of=Order)
class OrderRepository:
    def find_by_customer(self, customer_id) -> list[Order]:
        return self._dao.query.filter(customer_id=str(customer_id)).limit(None).all().items

    def find_by_merchant(self, merchant_id) -> list[Order]:
        return self._dao.query.filter(merchant_id=str(merchant_id)).limit(None).all().items

    def find_by_driver(self, driver_id, status: str | None = None) -> list[Order]:
        filters = {"driver_id": str(driver_id)}
        if status is not None:
            filters["status"] = status
        return self._dao.query.filter(**filters).limit(None).all().items

    def find_assignable(self) -> list[Order]:
        """Orders in an assignable status that no driver has claimed yet."""
        orders = []
        for status in ASSIGNABLE_STATUSES:
            orders.extend(self._dao.query.filter(status=status.value).limit(None).all().items)
        return [order for order in orders if order.driver_id is None]
