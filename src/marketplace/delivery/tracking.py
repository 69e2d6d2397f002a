"""Live courier tracking, plus the customer-facing read of it."""

from protean import handle
from protean.fields import Float, Identifier
from protean.utils.globals import current_domain

from marketplace.access.guard import Operation, Resource, require
from marketplace.delivery.delivery import Delivery
from marketplace.domain import marketplace
from marketplace.shared.errors import NotFoundError
from marketplace.shared.geo import validate_coordinates
from marketplace.shared.lookup import load


@marketplace.command(part_of="Delivery")
class UpdateDeliveryLocation:
    delivery_id: Identifier(required=True)
    latitude: Float(required=True)
    longitude: Float(required=True)


@marketplace.command_handler(part_of=Delivery)
class DeliveryTrackingHandler:
    @handle(UpdateDeliveryLocation)
    def update_location(self, command):
        validate_coordinates(command.latitude, command.longitude)
        require(Resource.DELIVERY, Operation.UPDATE, command.delivery_id)
        delivery = load(Delivery, command.delivery_id)
        delivery.update_location(command.latitude, command.longitude)
        current_domain.repository_for(Delivery).add(delivery)


def delivery_for_order(order_id) -> Delivery:
    """The delivery of an order, as seen by the customer, the assigned driver or an admin."""
    delivery = current_domain.repository_for(Delivery).find_by_order(order_id)
    if delivery is None:
        raise NotFoundError({"delivery": [f"No delivery exists for order {order_id}"]})
    require(Resource.DELIVERY, Operation.READ, delivery.id)
    return delivery
