"""Customer ratings of the driver who delivered an order."""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from marketplace.access.guard import Operation, Resource, require
from marketplace.delivery.delivery import Delivery
from marketplace.domain import marketplace
from marketplace.driver.driver import Driver
from marketplace.order.order import Order
from marketplace.shared.errors import NotFoundError
from marketplace.shared.lookup import load

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Driver")
class RateDriver:
    order_id: Identifier(required=True)
    rating: Integer(required=True)
    review: String(max_length=1000)


@marketplace.command_handler(part_of=Driver)
class RateDriverHandler:
    @handle(RateDriver)
    def rate_driver(self, command):
        order = load(Order, command.order_id)
        delivery = current_domain.repository_for(Delivery).find_by_order(order.id)
        if delivery is None:
            raise NotFoundError({"delivery": [f"Order {order.id} has no delivery"]})

        require(Resource.DELIVERY, Operation.RATE, delivery.id)

        driver = load(Driver, delivery.driver_id) if delivery.driver_id else None
        # Stars are range-checked before the delivery is marked as rated
        if driver is not None:
            driver.record_rating(command.rating, order.id)
        delivery.rate_driver(command.rating, command.review)

        current_domain.repository_for(Delivery).add(delivery)
        current_domain.repository_for(Driver).add(driver)
        logger.info(
            "driver_rated",
            order_id=str(order.id),
            driver_id=str(driver.id),
            stars=command.rating,
            rating=driver.rating,
        )
