"""Order status changes and delivery estimates."""

from protean import handle
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from marketplace.access.guard import Operation, Resource, require
from marketplace.delivery.delivery import Delivery
from marketplace.domain import marketplace
from marketplace.order.cancellation import cancel_order
from marketplace.order.order import Order, OrderStatus
from marketplace.shared.lookup import load


@marketplace.command(part_of="Order")
class UpdateOrderStatus:
    order_id: Identifier(required=True)
    status: String(required=True, choices=OrderStatus)


@marketplace.command(part_of="Order")
class SetEstimatedDeliveryTime:
    order_id: Identifier(required=True)
    estimated_delivery_time: DateTime(required=True)


@marketplace.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        new_status = OrderStatus(command.status)
        if new_status == OrderStatus.CANCELLED:
            require(Resource.ORDER, Operation.CANCEL, command.order_id)
            cancel_order(load(Order, command.order_id))
            return

        require(Resource.ORDER, Operation.UPDATE_STATUS, command.order_id)
        order = load(Order, command.order_id)
        order.change_status(new_status)
        current_domain.repository_for(Order).add(order)

    @handle(SetEstimatedDeliveryTime)
    def set_estimated_delivery_time(self, command):
        require(Resource.ORDER, Operation.UPDATE_STATUS, command.order_id)
        order = load(Order, command.order_id)
        order.set_estimated_delivery_time(command.estimated_delivery_time)
        current_domain.repository_for(Order).add(order)

        delivery = current_domain.repository_for(Delivery).find_by_order(order.id)
        if delivery is not None and not delivery.is_terminal():
            delivery.set_estimated_delivery(command.estimated_delivery_time)
            current_domain.repository_for(Delivery).add(delivery)
