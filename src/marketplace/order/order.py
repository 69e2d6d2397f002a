"""Order aggregate — a customer's purchase from one merchant.

Items are snapshots of the catalogue at order time: name, unit price and
alcohol flag never change afterwards. The total is always the sum of the
item subtotals.

State Machine:
    PENDING → CONFIRMED → PREPARING → READY_FOR_PICKUP → IN_TRANSIT → COMPLETED
    CANCELLED (from PENDING, CONFIRMED)
"""

from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from marketplace.domain import marketplace
from marketplace.order.events import (
    DriverAssignedToOrder,
    DriverReleasedFromOrder,
    EstimatedDeliveryTimeSet,
    OrderCancelled,
    OrderPlaced,
    OrderStatusChanged,
)
from marketplace.shared.clock import now
from marketplace.shared.errors import ComplianceError, ConflictError, StateTransitionError
from marketplace.shared.geo import GeoPoint

_CENT = 0.005


class OrderStatus(Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    PREPARING = "Preparing"
    READY_FOR_PICKUP = "Ready_For_Pickup"
    IN_TRANSIT = "In_Transit"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.READY_FOR_PICKUP},
    OrderStatus.READY_FOR_PICKUP: {OrderStatus.IN_TRANSIT},
    OrderStatus.IN_TRANSIT: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

# Orders a driver may still pick up
ASSIGNABLE_STATUSES = {
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY_FOR_PICKUP,
}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Order")
class OrderItem:
    """A numbered line of the order, frozen at purchase time."""

    line_no = Integer(required=True, min_value=1)
    product_id = Identifier()  # cleared if the product is later removed from the catalogue
    name = String(required=True, max_length=200)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    subtotal = Float(required=True, min_value=0.0)
    is_alcohol = Boolean(default=False)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Order:
    customer_id = Identifier(required=True)
    merchant_id = Identifier(required=True)
    driver_id = Identifier()
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    total = Float(default=0.0, min_value=0.0)
    delivery_address = String(required=True, max_length=500)
    destination = ValueObject(GeoPoint)
    special_instructions = Text()
    items = HasMany(OrderItem)
    age_verified = Boolean(default=False)
    contains_alcohol = Boolean(default=False)
    estimated_delivery_time = DateTime()
    cancellation_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_matches_item_subtotals(self):
        if not self.items:
            return
        if abs(self.total - round(sum(item.subtotal for item in self.items), 2)) > _CENT:
            raise ValidationError({"total": ["Order total must equal the sum of item subtotals"]})

    @invariant.post
    def item_subtotals_match_price_and_quantity(self):
        for item in self.items:
            if abs(item.subtotal - round(item.unit_price * item.quantity, 2)) > _CENT:
                raise ValidationError({"items": [f"Line {item.line_no} subtotal does not match price and quantity"]})

    @invariant.post
    def line_numbers_are_contiguous(self):
        if not self.items:
            return
        if sorted(item.line_no for item in self.items) != list(range(1, len(self.items) + 1)):
            raise ValidationError({"items": ["Line numbers must run from 1 without gaps"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id,
        merchant_id,
        delivery_address,
        lines,
        customer_age_verified=False,
        destination=None,
        special_instructions=None,
    ):
        """Build a PENDING order from resolved lines.

        Args:
            lines: List of dicts with product_id, name, unit_price, quantity
                   and is_alcohol, already resolved against the catalogue.
            customer_age_verified: The customer's verification flag at order time.
        """
        if not lines:
            raise ValidationError({"items": ["Order must contain at least one item"]})

        items = []
        for line_no, line in enumerate(lines, start=1):
            quantity = line.get("quantity")
            if quantity is None or quantity <= 0:
                raise ValidationError({"quantity": [f"Quantity for line {line_no} must be greater than zero"]})
            unit_price = round(line["unit_price"], 2)
            items.append(
                OrderItem(
                    line_no=line_no,
                    product_id=line.get("product_id"),
                    name=line["name"],
                    unit_price=unit_price,
                    quantity=quantity,
                    subtotal=round(unit_price * quantity, 2),
                    is_alcohol=bool(line.get("is_alcohol")),
                )
            )

        contains_alcohol = any(item.is_alcohol for item in items)
        if contains_alcohol and not customer_age_verified:
            raise ComplianceError(
                {"age_verified": ["Customer must be age verified to order alcohol"]}
            )

        placed_at = now()
        order = cls(
            customer_id=customer_id,
            merchant_id=merchant_id,
            delivery_address=delivery_address,
            destination=destination,
            special_instructions=special_instructions,
            items=items,
            total=round(sum(item.subtotal for item in items), 2),
            age_verified=bool(customer_age_verified),
            contains_alcohol=contains_alcohol,
            created_at=placed_at,
            updated_at=placed_at,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=str(customer_id),
                merchant_id=str(merchant_id),
                total=order.total,
                item_count=len(items),
                contains_alcohol=contains_alcohol,
                placed_at=placed_at,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def lines(self) -> list:
        """Items in line-number order."""
        return sorted(self.items, key=lambda item: item.line_no)

    def is_assignable(self) -> bool:
        return OrderStatus(self.status) in ASSIGNABLE_STATUSES and self.driver_id is None

    # -------------------------------------------------------------------
    # Lifecycle transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status: OrderStatus) -> None:
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise StateTransitionError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def change_status(self, new_status: OrderStatus) -> None:
        """Move along the lifecycle. Cancellation goes through ``cancel()``."""
        if new_status == OrderStatus.CANCELLED:
            raise StateTransitionError({"status": ["Use cancel() to cancel an order"]})
        self._assert_can_transition(new_status)

        previous = self.status
        self.status = new_status.value
        self.updated_at = now()
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                merchant_id=str(self.merchant_id),
                previous_status=previous,
                new_status=new_status.value,
                changed_at=self.updated_at,
            )
        )

    def cancel(self, reason: str | None = None) -> None:
        self._assert_can_transition(OrderStatus.CANCELLED)

        previous = self.status
        self.status = OrderStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.updated_at = now()
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                merchant_id=str(self.merchant_id),
                previous_status=previous,
                reason=reason,
                cancelled_at=self.updated_at,
            )
        )

    def assign_driver(self, driver_id, allow_reassignment: bool = False) -> None:
        if OrderStatus(self.status) not in ASSIGNABLE_STATUSES:
            raise StateTransitionError({"status": [f"Cannot assign a driver to a {self.status} order"]})
        if self.driver_id is not None and not allow_reassignment:
            raise ConflictError({"driver_id": ["Order already has a driver assigned"]})

        previous_driver_id = self.driver_id
        self.driver_id = driver_id
        self.updated_at = now()
        self.raise_(
            DriverAssignedToOrder(
                order_id=str(self.id),
                driver_id=str(driver_id),
                previous_driver_id=str(previous_driver_id) if previous_driver_id else None,
                assigned_at=self.updated_at,
            )
        )

    def release_driver(self) -> None:
        """Drop the driver after the delivery was aborted, so the order can be dispatched again."""
        if self.driver_id is None or OrderStatus(self.status) not in ASSIGNABLE_STATUSES:
            return

        released_driver_id = self.driver_id
        self.driver_id = None
        self.updated_at = now()
        self.raise_(
            DriverReleasedFromOrder(
                order_id=str(self.id),
                driver_id=str(released_driver_id),
                released_at=self.updated_at,
            )
        )

    def set_estimated_delivery_time(self, estimated_delivery_time) -> None:
        if OrderStatus(self.status) in (OrderStatus.COMPLETED, OrderStatus.CANCELLED):
            raise StateTransitionError({"status": [f"Order is already {self.status}"]})
        self.estimated_delivery_time = estimated_delivery_time
        self.updated_at = now()
        self.raise_(
            EstimatedDeliveryTimeSet(
                order_id=str(self.id),
                estimated_delivery_time=estimated_delivery_time,
            )
        )
