"""Domain events for the Order aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Order")
class OrderPlaced:
    """A customer placed an order; payment is authorized and a delivery is open."""

    __version__ = 1

    order_id: Identifier(required=True)
    customer_id: Identifier(required=True)
    merchant_id: Identifier(required=True)
    total: Float(required=True)
    item_count: Integer(required=True)
    contains_alcohol: Boolean(required=True)
    placed_at: DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id: Identifier(required=True)
    customer_id: Identifier(required=True)
    merchant_id: Identifier(required=True)
    previous_status: String(required=True)
    new_status: String(required=True)
    changed_at: DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled and its payment refunded."""

    __version__ = 1

    order_id: Identifier(required=True)
    customer_id: Identifier(required=True)
    merchant_id: Identifier(required=True)
    previous_status: String(required=True)
    reason: String()
    cancelled_at: DateTime(required=True)


@marketplace.event(part_of="Order")
class DriverAssignedToOrder:
    __version__ = 1

    order_id: Identifier(required=True)
    driver_id: Identifier(required=True)
    previous_driver_id: Identifier()
    assigned_at: DateTime(required=True)


@marketplace.event(part_of="Order")
class DriverReleasedFromOrder:
    """The order's delivery was aborted; the order is open for dispatch again."""

    __version__ = 1

    order_id: Identifier(required=True)
    driver_id: Identifier(required=True)
    released_at: DateTime(required=True)


@marketplace.event(part_of="Order")
class EstimatedDeliveryTimeSet:
    __version__ = 1

    order_id: Identifier(required=True)
    estimated_delivery_time: DateTime(required=True)
