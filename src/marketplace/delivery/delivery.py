"""Delivery aggregate: physical fulfilment of exactly one order.

State Machine:
    PENDING → ASSIGNED → PICKED_UP → IN_TRANSIT → DELIVERED
    PICKED_UP → DELIVERED
    CANCELLED and FAILED from every non-terminal state

Age verification is enforced here: an alcohol delivery cannot reach
DELIVERED until the recipient's ID was checked successfully.
"""

from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, ValueObject

from marketplace.delivery.events import (
    AgeVerificationRecorded,
    DeliveryCancelled,
    DeliveryCreated,
    DeliveryLocationUpdated,
    DeliveryStatusChanged,
    DriverAssigned,
)
from marketplace.domain import marketplace
from marketplace.shared.clock import now
from marketplace.shared.errors import ComplianceError, ConflictError, StateTransitionError
from marketplace.shared.geo import GeoPoint, validate_coordinates

ID_DIGITS_KEPT = 4


class DeliveryStatus(Enum):
    PENDING = "Pending"
    ASSIGNED = "Assigned"
    PICKED_UP = "Picked_Up"
    IN_TRANSIT = "In_Transit"
    DELIVERED = "Delivered"
    FAILED = "Failed"
    CANCELLED = "Cancelled"


TERMINAL_STATUSES = {DeliveryStatus.DELIVERED, DeliveryStatus.FAILED, DeliveryStatus.CANCELLED}

_ABORT = {DeliveryStatus.CANCELLED, DeliveryStatus.FAILED}

_VALID_TRANSITIONS = {
    DeliveryStatus.PENDING: {DeliveryStatus.ASSIGNED} | _ABORT,
    DeliveryStatus.ASSIGNED: {DeliveryStatus.PICKED_UP} | _ABORT,
    DeliveryStatus.PICKED_UP: {DeliveryStatus.IN_TRANSIT, DeliveryStatus.DELIVERED} | _ABORT,
    DeliveryStatus.IN_TRANSIT: {DeliveryStatus.DELIVERED} | _ABORT,
    DeliveryStatus.DELIVERED: set(),  # Terminal
    DeliveryStatus.FAILED: set(),  # Terminal
    DeliveryStatus.CANCELLED: set(),  # Terminal
}


def mask_id_number(id_number: str | None) -> str | None:
    """Keep only the last four characters of an ID number."""
    if id_number is None:
        return None
    id_number = id_number.strip()
    return id_number[-ID_DIGITS_KEPT:] if len(id_number) > ID_DIGITS_KEPT else id_number


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@marketplace.value_object(part_of="Delivery")
class AgeVerification:
    verified = Boolean(default=False)
    id_type = String(max_length=50)
    id_last4 = String(max_length=ID_DIGITS_KEPT)
    verified_at = DateTime()


@marketplace.value_object(part_of="Delivery")
class Tracking:
    """Last reported courier position, overwritten on every update."""

    latitude = Float(min_value=-90.0, max_value=90.0)
    longitude = Float(min_value=-180.0, max_value=180.0)
    updated_at = DateTime()


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Delivery:
    order_id = Identifier(required=True, unique=True)
    driver_id = Identifier()
    status = String(
        choices=DeliveryStatus,
        default=DeliveryStatus.PENDING.value,
    )
    delivery_address = String(max_length=500)
    destination = ValueObject(GeoPoint)
    contains_alcohol = Boolean(default=False)
    pickup_time = DateTime()
    delivered_time = DateTime()
    estimated_delivery_time = DateTime()
    age_verification = ValueObject(AgeVerification)
    tracking = ValueObject(Tracking)
    cancellation_reason = String(max_length=500)
    driver_rating = Integer(min_value=1, max_value=5)
    driver_review = String(max_length=1000)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def open_for(cls, order, driver_id=None):
        """Open the delivery for an order, PENDING or directly ASSIGNED to a driver."""
        created_at = now()
        status = DeliveryStatus.ASSIGNED if driver_id else DeliveryStatus.PENDING
        delivery = cls(
            order_id=order.id,
            driver_id=driver_id,
            status=status.value,
            delivery_address=order.delivery_address,
            destination=order.destination,
            contains_alcohol=order.contains_alcohol,
            estimated_delivery_time=order.estimated_delivery_time,
            created_at=created_at,
            updated_at=created_at,
        )
        delivery.raise_(
            DeliveryCreated(
                delivery_id=str(delivery.id),
                order_id=str(order.id),
                status=status.value,
                driver_id=str(driver_id) if driver_id else None,
                created_at=created_at,
            )
        )
        if driver_id:
            delivery.raise_(
                DriverAssigned(
                    delivery_id=str(delivery.id),
                    order_id=str(order.id),
                    driver_id=str(driver_id),
                    assigned_at=created_at,
                )
            )
        return delivery

    # -------------------------------------------------------------------
    # State helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status: DeliveryStatus) -> None:
        current = DeliveryStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise StateTransitionError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def is_terminal(self) -> bool:
        return DeliveryStatus(self.status) in TERMINAL_STATUSES

    def is_age_verified(self) -> bool:
        return self.age_verification is not None and bool(self.age_verification.verified)

    def _assert_open(self) -> None:
        if self.is_terminal():
            raise StateTransitionError({"status": [f"Delivery is already {self.status}"]})

    # -------------------------------------------------------------------
    # Assignment
    # -------------------------------------------------------------------
    def claim(self, driver_id, allow_reassignment: bool = False) -> None:
        """Hand the delivery to a driver.

        A PENDING delivery is claimed outright. An ASSIGNED delivery that has
        not been picked up can be re-dispatched only when the policy allows it.
        A CANCELLED or FAILED delivery starts a fresh attempt: hand-over
        stamps, the age check and tracking from the aborted run are dropped.
        The caller checks that the order itself is still assignable.
        """
        current = DeliveryStatus(self.status)
        previous_driver_id = self.driver_id

        if current == DeliveryStatus.ASSIGNED:
            if str(previous_driver_id) == str(driver_id):
                raise ConflictError({"driver_id": ["Driver is already assigned to this delivery"]})
            if not allow_reassignment:
                raise ConflictError({"delivery": ["Delivery has already been claimed by another driver"]})
        elif current == DeliveryStatus.PENDING:
            previous_driver_id = None
        elif current in _ABORT:
            self.pickup_time = None
            self.delivered_time = None
            self.age_verification = None
            self.tracking = None
            self.cancellation_reason = None
        else:
            raise ConflictError({"delivery": [f"Delivery in {current.value} state cannot be assigned"]})

        self.driver_id = driver_id
        self.status = DeliveryStatus.ASSIGNED.value
        self.updated_at = now()
        self.raise_(
            DriverAssigned(
                delivery_id=str(self.id),
                order_id=str(self.order_id),
                driver_id=str(driver_id),
                previous_driver_id=str(previous_driver_id) if previous_driver_id else None,
                assigned_at=self.updated_at,
            )
        )

    # -------------------------------------------------------------------
    # Status progression
    # -------------------------------------------------------------------
    def update_status(self, new_status: DeliveryStatus) -> None:
        self._assert_can_transition(new_status)

        if new_status == DeliveryStatus.DELIVERED and self.contains_alcohol and not self.is_age_verified():
            raise ComplianceError(
                {"age_verification": ["Recipient age must be verified before an alcohol delivery is completed"]}
            )

        previous = self.status
        changed_at = now()
        self.status = new_status.value
        if new_status == DeliveryStatus.PICKED_UP and self.pickup_time is None:
            self.pickup_time = changed_at
        if new_status == DeliveryStatus.DELIVERED and self.delivered_time is None:
            self.delivered_time = changed_at
        self.updated_at = changed_at

        self.raise_(
            DeliveryStatusChanged(
                delivery_id=str(self.id),
                order_id=str(self.order_id),
                driver_id=str(self.driver_id) if self.driver_id else None,
                previous_status=previous,
                new_status=new_status.value,
                changed_at=changed_at,
            )
        )

    def cancel(self, reason: str | None) -> None:
        self._assert_can_transition(DeliveryStatus.CANCELLED)

        self.status = DeliveryStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.updated_at = now()
        self.raise_(
            DeliveryCancelled(
                delivery_id=str(self.id),
                order_id=str(self.order_id),
                reason=reason,
                cancelled_at=self.updated_at,
            )
        )

    # -------------------------------------------------------------------
    # Compliance and tracking
    # -------------------------------------------------------------------
    def verify_age(self, verified: bool, id_type: str | None, id_number: str | None) -> None:
        self._assert_open()
        if verified and not (id_number and id_number.strip()):
            raise ValidationError({"id_number": ["An ID number is required to verify age"]})

        verified_at = now()
        self.age_verification = AgeVerification(
            verified=verified,
            id_type=id_type,
            id_last4=mask_id_number(id_number),
            verified_at=verified_at,
        )
        self.updated_at = verified_at
        self.raise_(
            AgeVerificationRecorded(
                delivery_id=str(self.id),
                order_id=str(self.order_id),
                verified=verified,
                id_type=id_type,
                id_last4=self.age_verification.id_last4,
                verified_at=verified_at,
            )
        )

    def update_location(self, latitude: float, longitude: float) -> None:
        validate_coordinates(latitude, longitude)
        self._assert_open()

        updated_at = now()
        self.tracking = Tracking(latitude=latitude, longitude=longitude, updated_at=updated_at)
        self.updated_at = updated_at
        self.raise_(
            DeliveryLocationUpdated(
                delivery_id=str(self.id),
                latitude=latitude,
                longitude=longitude,
                updated_at=updated_at,
            )
        )

    def set_estimated_delivery(self, estimated_delivery_time) -> None:
        self._assert_open()
        self.estimated_delivery_time = estimated_delivery_time
        self.updated_at = now()

    # -------------------------------------------------------------------
    # Rating
    # -------------------------------------------------------------------
    def rate_driver(self, stars: int, review: str | None = None) -> None:
        """Record the customer's rating of the driver. One rating per delivery."""
        if DeliveryStatus(self.status) != DeliveryStatus.DELIVERED or self.driver_id is None:
            raise StateTransitionError({"status": ["Only a delivered delivery can be rated"]})
        if self.driver_rating is not None:
            raise ConflictError({"driver_rating": ["This delivery has already been rated"]})

        self.driver_rating = stars
        self.driver_review = review.strip() if review and review.strip() else None
        self.updated_at = now()
