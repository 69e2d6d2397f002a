"""Driver notification when a delivery is handed to them."""

import structlog
from protean.utils.mixins import handle

from marketplace.delivery.delivery import Delivery
from marketplace.delivery.events import DriverAssigned
from marketplace.domain import marketplace
from marketplace.notifier import get_notifier

logger = structlog.get_logger(__name__)


@marketplace.event_handler(part_of=Delivery)
class DeliveryNotificationHandler:
    @handle(DriverAssigned)
    def on_driver_assigned(self, event: DriverAssigned) -> None:
        try:
            get_notifier().notify_driver(
                event.driver_id,
                event.delivery_id,
                "You have been assigned a new delivery.",
            )
        except Exception as exc:
            logger.warning(
                "notification_failed",
                notification="DriverAssigned",
                delivery_id=str(event.delivery_id),
                error=str(exc),
            )
