"""Driver assignment: the claim operation plus its command and handler.

Assignment is a claim on the order's delivery. The explicit checks below
report contention as ``ConflictError``; the unique ``order_id`` on Delivery
backs them at the storage level.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from marketplace.access.guard import Operation, Resource, require
from marketplace.delivery.delivery import Delivery
from marketplace.delivery.policy import get_policy
from marketplace.domain import marketplace
from marketplace.driver.driver import Driver
from marketplace.identity.user import User
from marketplace.order.order import ASSIGNABLE_STATUSES, Order, OrderStatus
from marketplace.shared.errors import ConflictError, StateTransitionError, ValidationError
from marketplace.shared.lookup import load

logger = structlog.get_logger(__name__)


def driver_is_eligible(driver: Driver) -> bool:
    """Available, certified and backed by an active user account."""
    try:
        user = current_domain.repository_for(User).get(driver.user_id)
    except ObjectNotFoundError:
        return False
    return driver.can_accept_deliveries(bool(user.active))


def assign_driver_to_order(order: Order, driver: Driver) -> Delivery:
    """Claim the order's delivery for ``driver``.

    Returns the delivery; the caller persists it together with the order.
    """
    if not driver_is_eligible(driver):
        raise ValidationError({"driver_id": [f"Driver {driver.id} cannot accept deliveries"]})
    if OrderStatus(order.status) not in ASSIGNABLE_STATUSES:
        raise StateTransitionError({"status": [f"Cannot assign a driver to a {order.status} order"]})

    policy = get_policy()
    if order.driver_id is not None and not policy.allow_reassignment:
        raise ConflictError({"driver_id": ["Order already has a driver assigned"]})

    delivery = current_domain.repository_for(Delivery).find_by_order(order.id)
    if delivery is None:
        delivery = Delivery.open_for(order, driver_id=driver.id)
    else:
        delivery.claim(driver.id, allow_reassignment=policy.allow_reassignment)
    order.assign_driver(driver.id, allow_reassignment=policy.allow_reassignment)

    logger.info(
        "driver_assigned",
        order_id=str(order.id),
        delivery_id=str(delivery.id),
        driver_id=str(driver.id),
    )
    return delivery


@marketplace.command(part_of="Delivery")
class AssignDriver:
    order_id: Identifier(required=True)
    driver_id: Identifier(required=True)


@marketplace.command_handler(part_of=Delivery)
class AssignDriverHandler:
    @handle(AssignDriver)
    def assign_driver(self, command):
        order = load(Order, command.order_id)
        delivery = current_domain.repository_for(Delivery).find_by_order(order.id)
        require(Resource.DELIVERY, Operation.ASSIGN, delivery.id if delivery else None)

        driver = load(Driver, command.driver_id)
        delivery = assign_driver_to_order(order, driver)

        current_domain.repository_for(Delivery).add(delivery)
        current_domain.repository_for(Order).add(order)
        return str(delivery.id)
