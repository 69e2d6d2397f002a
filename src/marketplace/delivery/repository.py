"""Repository for the Delivery aggregate."""

from marketplace.delivery.delivery import Delivery
from marketplace.domain import marketplace


@marketplace.repository(part_of=Delivery)
class DeliveryRepository:
    def find_by_order(self, order_id) -> Delivery | None:
        """The delivery for an order. ``order_id`` is unique, so at most one."""
        deliveries = self._dao.query.filter(order_id=str(order_id)).limit(None).all().items
        return deliveries[0] if deliveries else None

    def find_by_driver(self, driver_id, status: str | None = None) -> list[Delivery]:
        filters = {"driver_id": str(driver_id)}
        if status is not None:
            filters["status"] = status
        return self._dao.query.filter(**filters).limit(None).all().items
