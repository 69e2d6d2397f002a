"""Delivery status progression and cancellation."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.access.guard import Operation, Resource, require
from marketplace.delivery.delivery import Delivery, DeliveryStatus
from marketplace.domain import marketplace
from marketplace.driver.driver import Driver
from marketplace.order.order import Order
from marketplace.shared.lookup import load


@marketplace.command(part_of="Delivery")
class UpdateDeliveryStatus:
    delivery_id: Identifier(required=True)
    status: String(required=True, choices=DeliveryStatus)


@marketplace.command(part_of="Delivery")
class CancelDelivery:
    delivery_id: Identifier(required=True)
    reason: String(max_length=500)


@marketplace.command_handler(part_of=Delivery)
class DeliveryProgressHandler:
    @handle(UpdateDeliveryStatus)
    def update_status(self, command):
        new_status = DeliveryStatus(command.status)
        if new_status == DeliveryStatus.CANCELLED:
            return self._cancel(command.delivery_id, reason=None)

        require(Resource.DELIVERY, Operation.UPDATE_STATUS, command.delivery_id)
        delivery = load(Delivery, command.delivery_id)
        delivery.update_status(new_status)
        current_domain.repository_for(Delivery).add(delivery)

        if new_status == DeliveryStatus.FAILED:
            self._release_order(delivery)

        if new_status == DeliveryStatus.DELIVERED and delivery.driver_id:
            driver = load(Driver, delivery.driver_id)
            driver.record_completed_delivery()
            current_domain.repository_for(Driver).add(driver)

    @handle(CancelDelivery)
    def cancel_delivery(self, command):
        self._cancel(command.delivery_id, reason=command.reason)

    def _cancel(self, delivery_id, reason):
        require(Resource.DELIVERY, Operation.CANCEL, delivery_id)
        delivery = load(Delivery, delivery_id)
        delivery.cancel(reason)
        current_domain.repository_for(Delivery).add(delivery)
        self._release_order(delivery)

    def _release_order(self, delivery):
        """An aborted delivery puts its order back on the dispatch board."""
        order = load(Order, delivery.order_id)
        order.release_driver()
        current_domain.repository_for(Order).add(order)
