"""Order lookups, filtered to what the current principal may read."""

from protean.utils.globals import current_domain

from marketplace.access.guard import Operation, Resource, can_access, has_role, require
from marketplace.access.principal import current_principal
from marketplace.dispatch.matching import OrderMatch, find_assignable_orders_near
from marketplace.identity.user import Role
from marketplace.order.order import Order
from marketplace.shared.errors import AuthorizationError
from marketplace.shared.lookup import load


def _readable(orders: list[Order]) -> list[Order]:
    principal = current_principal()
    return [order for order in orders if can_access(principal, Resource.ORDER, Operation.READ, order.id)]


def get_order(order_id) -> Order:
    require(Resource.ORDER, Operation.READ, order_id)
    return load(Order, order_id)


def orders_for_customer(customer_id) -> list[Order]:
    return _readable(current_domain.repository_for(Order).find_by_customer(customer_id))


def orders_for_merchant(merchant_id) -> list[Order]:
    return _readable(current_domain.repository_for(Order).find_by_merchant(merchant_id))


def orders_for_driver(driver_id, status: str | None = None) -> list[Order]:
    return _readable(current_domain.repository_for(Order).find_by_driver(driver_id, status))


def nearby_work(latitude: float, longitude: float, radius_km: float) -> list[OrderMatch]:
    """Unclaimed orders around a point. Open to drivers and administrators."""
    principal = current_principal()
    if not (has_role(principal, Role.DRIVER) or has_role(principal, Role.ADMIN)):
        raise AuthorizationError({"authorization": ["Only drivers can browse nearby orders"]})
    return find_assignable_orders_near(latitude, longitude, radius_km)
