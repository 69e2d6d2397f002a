"""Customer and merchant notifications for order events.

Runs after the originating unit of work has committed. A notifier failure
is logged and dropped; it never undoes the order change.
"""

import structlog
from protean.utils.mixins import handle

from marketplace.domain import marketplace
from marketplace.notifier import get_notifier
from marketplace.order.events import OrderCancelled, OrderPlaced, OrderStatusChanged
from marketplace.order.order import Order, OrderStatus

logger = structlog.get_logger(__name__)


def _best_effort(event_name: str, order_id: str, send) -> None:
    try:
        send(get_notifier())
    except Exception as exc:
        logger.warning(
            "notification_failed",
            notification=event_name,
            order_id=str(order_id),
            error=str(exc),
        )


@marketplace.event_handler(part_of=Order)
class OrderNotificationHandler:
    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        def send(notifier):
            notifier.notify_user(event.customer_id, "Your order has been confirmed!")
            notifier.notify_merchant(event.merchant_id, "A new order has been placed.")

        _best_effort("OrderPlaced", event.order_id, send)

    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        def send(notifier):
            notifier.notify_user(event.customer_id, "Your order has been cancelled.")
            notifier.notify_merchant(event.merchant_id, "An order has been cancelled.")

        _best_effort("OrderCancelled", event.order_id, send)

    @handle(OrderStatusChanged)
    def on_order_status_changed(self, event: OrderStatusChanged) -> None:
        """Only confirmation is announced; other transitions are silent for now."""
        if event.new_status != OrderStatus.CONFIRMED.value:
            return

        def send(notifier):
            notifier.notify_user(
                event.customer_id,
                f"Order {event.order_id} status update: {event.new_status}",
            )

        _best_effort("OrderStatusChanged", event.order_id, send)
