"""Driver aggregate. Tracks a courier's availability and compliance state.

A driver can take work only when they are available, their certification
is APPROVED and their user account is active. The account lives on the
User aggregate, so ``can_accept_deliveries`` takes it as an argument.

Certification lifecycle:
    PENDING → APPROVED | REVOKED
    APPROVED → REVOKED
    REVOKED → APPROVED
"""

from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, Date, DateTime, Float, Identifier, Integer, String, ValueObject

from marketplace.domain import marketplace
from marketplace.driver.events import (
    CertificationReviewed,
    DeliveryCompletedByDriver,
    DriverAvailabilityChanged,
    DriverLocationUpdated,
    DriverRated,
    DriverRegistered,
)
from marketplace.shared.clock import now
from marketplace.shared.errors import StateTransitionError
from marketplace.shared.geo import GeoPoint


class CertificationStatus(Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REVOKED = "Revoked"


_VALID_TRANSITIONS = {
    CertificationStatus.PENDING: {CertificationStatus.APPROVED, CertificationStatus.REVOKED},
    CertificationStatus.APPROVED: {CertificationStatus.REVOKED},
    CertificationStatus.REVOKED: {CertificationStatus.APPROVED},
}

MIN_STARS = 1
MAX_STARS = 5


@marketplace.value_object(part_of="Driver")
class Certification:
    """The alcohol-delivery certificate presented by the driver."""

    number = String(max_length=100)
    certification_type = String(max_length=100)
    issue_date = Date()
    expiry_date = Date()


@marketplace.aggregate
class Driver:
    user_id = Identifier(required=True, unique=True)
    name = String(required=True, max_length=100)
    phone = String(max_length=20)
    vehicle_type = String(max_length=50)
    license_plate = String(max_length=20)
    available = Boolean(default=False)
    certification_status = String(
        choices=CertificationStatus,
        default=CertificationStatus.PENDING.value,
    )
    certification = ValueObject(Certification)
    location = ValueObject(GeoPoint)
    location_updated_at = DateTime()
    rating = Float(default=0.0, min_value=0.0, max_value=5.0)  # mean of rating_total / rating_count, one decimal
    rating_total = Integer(default=0, min_value=0)
    rating_count = Integer(default=0, min_value=0)
    total_deliveries = Integer(default=0, min_value=0)
    registered_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def register(cls, user_id, name, vehicle_type=None, license_plate=None, phone=None):
        """New drivers start unavailable with a PENDING certification."""
        registered_at = now()
        driver = cls(
            user_id=user_id,
            name=name,
            phone=phone,
            vehicle_type=vehicle_type,
            license_plate=license_plate,
            available=False,
            certification_status=CertificationStatus.PENDING.value,
            registered_at=registered_at,
            updated_at=registered_at,
        )
        driver.raise_(
            DriverRegistered(
                driver_id=str(driver.id),
                user_id=str(user_id),
                name=name,
                vehicle_type=vehicle_type,
                registered_at=registered_at,
            )
        )
        return driver

    def is_certified(self) -> bool:
        return self.certification_status == CertificationStatus.APPROVED.value

    def can_accept_deliveries(self, user_active: bool) -> bool:
        return bool(self.available and self.is_certified() and user_active)

    def review_certification(self, status: CertificationStatus, certification: Certification | None = None) -> None:
        current = CertificationStatus(self.certification_status)
        if status not in _VALID_TRANSITIONS[current]:
            raise StateTransitionError(
                {"certification_status": [f"Cannot move certification from {current.value} to {status.value}"]}
            )
        if status == CertificationStatus.APPROVED and certification is None and self.certification is None:
            raise ValidationError({"certification": ["Certificate details are required for approval"]})

        if certification is not None:
            self.certification = certification
        self.certification_status = status.value
        if status == CertificationStatus.REVOKED:
            self.available = False
        self.updated_at = now()

        self.raise_(
            CertificationReviewed(
                driver_id=str(self.id),
                previous_status=current.value,
                new_status=status.value,
                reviewed_at=self.updated_at,
            )
        )

    def set_availability(self, available: bool) -> None:
        if available and not self.is_certified():
            raise ValidationError({"available": ["Only certified drivers can go on duty"]})
        if self.available == available:
            return
        self.available = available
        self.updated_at = now()
        self.raise_(
            DriverAvailabilityChanged(
                driver_id=str(self.id),
                available=available,
                changed_at=self.updated_at,
            )
        )

    def move_to(self, latitude: float, longitude: float) -> None:
        self.location = GeoPoint(latitude=latitude, longitude=longitude)
        self.location_updated_at = now()
        self.updated_at = self.location_updated_at
        self.raise_(
            DriverLocationUpdated(
                driver_id=str(self.id),
                latitude=latitude,
                longitude=longitude,
                updated_at=self.location_updated_at,
            )
        )

    def distance_to(self, latitude: float, longitude: float) -> float | None:
        if self.location is None:
            return None
        return self.location.distance_to(latitude, longitude)

    def record_completed_delivery(self) -> None:
        self.total_deliveries = (self.total_deliveries or 0) + 1
        self.updated_at = now()
        self.raise_(
            DeliveryCompletedByDriver(
                driver_id=str(self.id),
                total_deliveries=self.total_deliveries,
                completed_at=self.updated_at,
            )
        )

    def record_rating(self, stars: int, order_id) -> None:
        """Fold one customer rating (1 to 5 stars) into the driver's average."""
        if stars is None or not MIN_STARS <= stars <= MAX_STARS:
            raise ValidationError({"rating": [f"Rating must be between {MIN_STARS} and {MAX_STARS}"]})

        self.rating_total = (self.rating_total or 0) + stars
        self.rating_count = (self.rating_count or 0) + 1
        self.rating = round(self.rating_total / self.rating_count, 1)
        self.updated_at = now()
        self.raise_(
            DriverRated(
                driver_id=str(self.id),
                order_id=str(order_id),
                stars=stars,
                rating=self.rating,
                rating_count=self.rating_count,
                rated_at=self.updated_at,
            )
        )
