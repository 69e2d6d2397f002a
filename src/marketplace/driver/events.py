"""Domain events for the Driver aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Driver")
class DriverRegistered:
    """A user with the Driver role created their courier profile."""

    __version__ = 1

    driver_id: Identifier(required=True)
    user_id: Identifier(required=True)
    name: String(required=True)
    vehicle_type: String()
    registered_at: DateTime(required=True)


@marketplace.event(part_of="Driver")
class CertificationReviewed:
    """An administrator approved or revoked the driver's alcohol-delivery certification."""

    __version__ = 1

    driver_id: Identifier(required=True)
    previous_status: String(required=True)
    new_status: String(required=True)
    reviewed_at: DateTime(required=True)


@marketplace.event(part_of="Driver")
class DriverAvailabilityChanged:
    __version__ = 1

    driver_id: Identifier(required=True)
    available: Boolean(required=True)
    changed_at: DateTime(required=True)


@marketplace.event(part_of="Driver")
class DriverLocationUpdated:
    __version__ = 1

    driver_id: Identifier(required=True)
    latitude: Float(required=True)
    longitude: Float(required=True)
    updated_at: DateTime(required=True)


@marketplace.event(part_of="Driver")
class DeliveryCompletedByDriver:
    __version__ = 1

    driver_id: Identifier(required=True)
    total_deliveries: Integer(required=True)
    completed_at: DateTime(required=True)


@marketplace.event(part_of="Driver")
class DriverRated:
    """A customer rated the driver who delivered their order."""

    __version__ = 1

    driver_id: Identifier(required=True)
    order_id: Identifier(required=True)
    stars: Integer(required=True)
    rating: Float(required=True)
    rating_count: Integer(required=True)
    rated_at: DateTime(required=True)
