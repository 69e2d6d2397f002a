"""Driver Matcher: proximity search over drivers and unclaimed orders.

Both searches use ``distance_km`` and return the closest candidates first.
Drivers are searched by a radius in metres, orders by a radius in
kilometres measured from the merchant's location. Candidates without
coordinates are skipped.
"""

from dataclasses import dataclass

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.catalogue.merchant import Merchant
from marketplace.driver.driver import Driver
from marketplace.identity.user import User
from marketplace.order.order import Order
from marketplace.shared.geo import validate_coordinates


@dataclass(frozen=True)
class DriverMatch:
    driver: Driver
    distance_km: float


@dataclass(frozen=True)
class OrderMatch:
    order: Order
    merchant_id: str
    distance_km: float


def _user_is_active(user_id) -> bool:
    try:
        return bool(current_domain.repository_for(User).get(user_id).active)
    except ObjectNotFoundError:
        return False


def find_nearby_available_drivers(latitude: float, longitude: float, radius_meters: float) -> list[DriverMatch]:
    """Available, certified drivers with an active account within ``radius_meters``."""
    validate_coordinates(latitude, longitude)
    radius_km = radius_meters / 1000.0

    matches = []
    for driver in current_domain.repository_for(Driver).find_available_certified():
        distance = driver.distance_to(latitude, longitude)
        if distance is None or distance > radius_km:
            continue
        if not _user_is_active(driver.user_id):
            continue
        matches.append(DriverMatch(driver=driver, distance_km=distance))

    return sorted(matches, key=lambda match: match.distance_km)


def find_assignable_orders_near(latitude: float, longitude: float, radius_km: float) -> list[OrderMatch]:
    """Unclaimed orders in an assignable status whose merchant is within ``radius_km``."""
    validate_coordinates(latitude, longitude)
    merchants = current_domain.repository_for(Merchant)

    distances: dict[str, float | None] = {}
    matches = []
    for order in current_domain.repository_for(Order).find_assignable():
        merchant_id = str(order.merchant_id)
        if merchant_id not in distances:
            try:
                distances[merchant_id] = merchants.get(merchant_id).distance_to(latitude, longitude)
            except ObjectNotFoundError:
                distances[merchant_id] = None

        distance = distances[merchant_id]
        if distance is None or distance > radius_km:
            continue
        matches.append(OrderMatch(order=order, merchant_id=merchant_id, distance_km=distance))

    return sorted(matches, key=lambda match: match.distance_km)
