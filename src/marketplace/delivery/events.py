"""Domain events for the Delivery aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Delivery")
class DeliveryCreated:
    """A delivery record was opened for an order."""

    __version__ = 1

    delivery_id: Identifier(required=True)
    order_id: Identifier(required=True)
    status: String(required=True)
    driver_id: Identifier()
    created_at: DateTime(required=True)


@marketplace.event(part_of="Delivery")
class DriverAssigned:
    """A driver claimed the delivery. ``previous_driver_id`` is set on re-dispatch."""

    __version__ = 1

    delivery_id: Identifier(required=True)
    order_id: Identifier(required=True)
    driver_id: Identifier(required=True)
    previous_driver_id: Identifier()
    assigned_at: DateTime(required=True)


@marketplace.event(part_of="Delivery")
class DeliveryStatusChanged:
    __version__ = 1

    delivery_id: Identifier(required=True)
    order_id: Identifier(required=True)
    driver_id: Identifier()
    previous_status: String(required=True)
    new_status: String(required=True)
    changed_at: DateTime(required=True)


@marketplace.event(part_of="Delivery")
class AgeVerificationRecorded:
    """The driver checked the recipient's ID. Only the last four characters are kept."""

    __version__ = 1

    delivery_id: Identifier(required=True)
    order_id: Identifier(required=True)
    verified: Boolean(required=True)
    id_type: String()
    id_last4: String()
    verified_at: DateTime(required=True)


@marketplace.event(part_of="Delivery")
class DeliveryLocationUpdated:
    __version__ = 1

    delivery_id: Identifier(required=True)
    latitude: Float(required=True)
    longitude: Float(required=True)
    updated_at: DateTime(required=True)


@marketplace.event(part_of="Delivery")
class DeliveryCancelled:
    __version__ = 1

    delivery_id: Identifier(required=True)
    order_id: Identifier(required=True)
    reason: String()
    cancelled_at: DateTime(required=True)
