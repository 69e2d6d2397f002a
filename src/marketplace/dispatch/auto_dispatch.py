"""Nearest-driver dispatch, available to administrators only."""

import structlog
from protean import handle
from protean.fields import Float, Identifier
from protean.utils.globals import current_domain

from marketplace.access.guard import Operation, Resource, require
from marketplace.catalogue.merchant import Merchant
from marketplace.delivery.assignment import assign_driver_to_order
from marketplace.delivery.delivery import Delivery
from marketplace.dispatch.matching import find_nearby_available_drivers
from marketplace.domain import marketplace
from marketplace.order.order import Order
from marketplace.shared.errors import NotFoundError, ValidationError
from marketplace.shared.lookup import load

logger = structlog.get_logger(__name__)

DEFAULT_RADIUS_KM = 5.0


@marketplace.command(part_of="Delivery")
class DispatchNearestDriver:
    order_id: Identifier(required=True)
    radius_km: Float(default=DEFAULT_RADIUS_KM, min_value=0.0)


@marketplace.command_handler(part_of=Delivery)
class DispatchNearestDriverHandler:
    @handle(DispatchNearestDriver)
    def dispatch(self, command):
        require(Resource.DELIVERY, Operation.ASSIGN)

        order = load(Order, command.order_id)
        merchant = load(Merchant, order.merchant_id)
        if merchant.location is None:
            raise ValidationError({"merchant_id": ["Merchant has no location to dispatch from"]})

        radius_km = command.radius_km if command.radius_km is not None else DEFAULT_RADIUS_KM
        matches = find_nearby_available_drivers(
            merchant.location.latitude,
            merchant.location.longitude,
            radius_km * 1000.0,
        )
        if not matches:
            raise NotFoundError({"driver_id": [f"No available driver within {radius_km} km"]})

        nearest = matches[0]
        delivery = assign_driver_to_order(order, nearest.driver)
        current_domain.repository_for(Delivery).add(delivery)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "nearest_driver_dispatched",
            order_id=str(order.id),
            driver_id=str(nearest.driver.id),
            distance_km=round(nearest.distance_km, 3),
        )
        return str(nearest.driver.id)
