"""Capability Guard: one table decides who may do what to which resource.

``_CAPABILITIES`` maps ``Role -> Resource -> Operation -> Scope``. A scope
names how the resource must relate to the actor (their own order, an order
of the merchant they administer, a delivery they are assigned to, ...) and
``_SCOPE_PREDICATES`` maps each (scope, resource) pair to the named predicate
that checks it. ADMIN holds ``ANY`` on every resource and operation.

Predicates return False for a missing actor, an unknown or inactive user, a
missing resource id or a missing resource. Only ``require`` raises.
"""

from enum import Enum

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.access.principal import Principal, current_principal, resolve_actor
from marketplace.delivery.delivery import Delivery
from marketplace.identity.user import Role, User
from marketplace.order.order import Order
from marketplace.payment.payment import Payment
from marketplace.shared.errors import AuthorizationError

logger = structlog.get_logger(__name__)


class Resource(Enum):
    ORDER = "Order"
    DELIVERY = "Delivery"
    PAYMENT = "Payment"
    DRIVER_PROFILE = "Driver_Profile"
    MERCHANT_CATALOG = "Merchant_Catalog"
    USER_ACCOUNT = "User_Account"


class Operation(Enum):
    READ = "Read"
    CREATE = "Create"
    UPDATE = "Update"
    UPDATE_STATUS = "Update_Status"
    CANCEL = "Cancel"
    ASSIGN = "Assign"
    REFUND = "Refund"
    CERTIFY = "Certify"
    RATE = "Rate"
    ADMINISTER = "Administer"


class Scope(Enum):
    ANY = "Any"
    SELF = "Self"
    OWN = "Own"
    OWNED_MERCHANT = "Owned_Merchant"
    ASSIGNED = "Assigned"
    PROFILE = "Profile"


_SELF_SERVICE_ACCOUNT = {
    Operation.READ: Scope.SELF,
    Operation.UPDATE: Scope.SELF,
}

_CAPABILITIES: dict[Role, dict[Resource, dict[Operation, Scope]]] = {
    Role.ADMIN: {resource: {operation: Scope.ANY for operation in Operation} for resource in Resource},
    Role.CUSTOMER: {
        Resource.ORDER: {
            Operation.READ: Scope.OWN,
            Operation.CREATE: Scope.SELF,
            Operation.CANCEL: Scope.OWN,
        },
        Resource.DELIVERY: {Operation.READ: Scope.OWN, Operation.RATE: Scope.OWN},
        Resource.PAYMENT: {Operation.READ: Scope.OWN},
        Resource.MERCHANT_CATALOG: {Operation.READ: Scope.ANY},
        Resource.USER_ACCOUNT: _SELF_SERVICE_ACCOUNT,
    },
    Role.MERCHANT_ADMIN: {
        Resource.ORDER: {
            Operation.READ: Scope.OWNED_MERCHANT,
            Operation.UPDATE_STATUS: Scope.OWNED_MERCHANT,
        },
        Resource.MERCHANT_CATALOG: {
            Operation.READ: Scope.OWNED_MERCHANT,
            Operation.CREATE: Scope.OWNED_MERCHANT,
            Operation.UPDATE: Scope.OWNED_MERCHANT,
        },
        Resource.USER_ACCOUNT: _SELF_SERVICE_ACCOUNT,
    },
    Role.DRIVER: {
        Resource.ORDER: {
            Operation.READ: Scope.ASSIGNED,
            Operation.UPDATE_STATUS: Scope.ASSIGNED,
        },
        Resource.DELIVERY: {
            Operation.READ: Scope.ASSIGNED,
            Operation.UPDATE: Scope.ASSIGNED,
            Operation.UPDATE_STATUS: Scope.ASSIGNED,
        },
        Resource.DRIVER_PROFILE: {
            Operation.CREATE: Scope.SELF,
            Operation.READ: Scope.PROFILE,
            Operation.UPDATE: Scope.PROFILE,
        },
        Resource.USER_ACCOUNT: _SELF_SERVICE_ACCOUNT,
    },
}


# ---------------------------------------------------------------------------
# Named predicates
# ---------------------------------------------------------------------------
def _load(aggregate_cls, identifier):
    if identifier is None:
        return None
    try:
        return current_domain.repository_for(aggregate_cls).get(identifier)
    except ObjectNotFoundError:
        return None


def _active(actor) -> User | None:
    user = resolve_actor(actor)
    if user is None or not user.active:
        return None
    return user


def _same(left, right) -> bool:
    return left is not None and right is not None and str(left) == str(right)


def has_role(actor, role: Role) -> bool:
    user = _active(actor)
    return user is not None and user.has_role(role)


def is_self(actor, user_id) -> bool:
    user = _active(actor)
    return user is not None and _same(user.id, user_id)


def owns_merchant(actor, merchant_id) -> bool:
    user = _active(actor)
    return user is not None and merchant_id is not None and user.owns_merchant(merchant_id)


def is_driver_profile(actor, driver_id) -> bool:
    user = _active(actor)
    return user is not None and user.is_driver() and _same(user.driver_id, driver_id)


def owns_order(actor, order_id) -> bool:
    user = _active(actor)
    order = _load(Order, order_id) if user else None
    return order is not None and _same(order.customer_id, user.id)


def merchant_can_access_order(actor, order_id) -> bool:
    user = _active(actor)
    if user is None or not user.is_merchant_admin():
        return False
    order = _load(Order, order_id)
    return order is not None and _same(order.merchant_id, user.merchant_id)


def driver_can_access_order(actor, order_id) -> bool:
    user = _active(actor)
    if user is None or not user.is_driver():
        return False
    order = _load(Order, order_id)
    return order is not None and _same(order.driver_id, user.driver_id)


def driver_can_access_delivery(actor, delivery_id) -> bool:
    user = _active(actor)
    if user is None or not user.is_driver():
        return False
    delivery = _load(Delivery, delivery_id)
    return delivery is not None and _same(delivery.driver_id, user.driver_id)


def owns_delivery(actor, delivery_id) -> bool:
    """The delivery fulfils one of the actor's own orders."""
    delivery = _load(Delivery, delivery_id)
    return delivery is not None and owns_order(actor, delivery.order_id)


def owns_payment(actor, payment_id) -> bool:
    user = _active(actor)
    payment = _load(Payment, payment_id) if user else None
    return payment is not None and _same(payment.customer_id, user.id)


def _any(actor, resource_id) -> bool:  # noqa: ARG001
    return _active(actor) is not None


_SCOPE_PREDICATES = {
    (Scope.SELF, Resource.ORDER): is_self,
    (Scope.SELF, Resource.DRIVER_PROFILE): is_self,
    (Scope.SELF, Resource.USER_ACCOUNT): is_self,
    (Scope.OWN, Resource.ORDER): owns_order,
    (Scope.OWN, Resource.DELIVERY): owns_delivery,
    (Scope.OWN, Resource.PAYMENT): owns_payment,
    (Scope.OWNED_MERCHANT, Resource.ORDER): merchant_can_access_order,
    (Scope.OWNED_MERCHANT, Resource.MERCHANT_CATALOG): owns_merchant,
    (Scope.ASSIGNED, Resource.ORDER): driver_can_access_order,
    (Scope.ASSIGNED, Resource.DELIVERY): driver_can_access_delivery,
    (Scope.PROFILE, Resource.DRIVER_PROFILE): is_driver_profile,
}


def scope_for(role: Role, resource: Resource, operation: Operation) -> Scope | None:
    return _CAPABILITIES.get(role, {}).get(resource, {}).get(operation)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------
def can_access(
    actor: Principal | User | None,
    resource: Resource,
    operation: Operation,
    resource_id=None,
) -> bool:
    """True when any of the actor's roles grants ``operation`` on the resource."""
    user = _active(actor)
    if user is None:
        return False

    for role in user.role_set:
        scope = scope_for(role, resource, operation)
        if scope is None:
            continue
        predicate = _any if scope == Scope.ANY else _SCOPE_PREDICATES[(scope, resource)]
        if predicate(user, resource_id):
            return True
    return False


def require(
    resource: Resource,
    operation: Operation,
    resource_id=None,
    actor: Principal | User | None = None,
) -> User:
    """Raise ``AuthorizationError`` unless the actor may perform the operation.

    Defaults to the principal installed by ``acting_as``. Returns the
    resolved user so handlers can use it without a second lookup.
    """
    if actor is None:
        actor = current_principal()

    if not can_access(actor, resource, operation, resource_id):
        logger.warning(
            "access_denied",
            resource=resource.value,
            operation=operation.value,
            resource_id=str(resource_id) if resource_id is not None else None,
            email=getattr(actor, "email", None),
        )
        raise AuthorizationError(
            {"authorization": [f"Not permitted to {operation.value.lower()} {resource.value.lower()}"]}
        )
    return resolve_actor(actor)
