"""Notifier that writes every message as a structured log line.

Useful in development and staging where no push/email provider is wired.
"""

import structlog

from marketplace.notifier.port import Notifier

logger = structlog.get_logger(__name__)


class LoggingNotifier(Notifier):
    def notify_user(self, user_id: str, message: str) -> None:
        logger.info("notify_user", user_id=str(user_id), message=message)

    def notify_driver(self, driver_id: str, delivery_id: str | None, message: str) -> None:
        logger.info(
            "notify_driver",
            driver_id=str(driver_id),
            delivery_id=str(delivery_id) if delivery_id else None,
            message=message,
        )

    def notify_merchant(self, merchant_id: str, message: str) -> None:
        logger.info("notify_merchant", merchant_id=str(merchant_id), message=message)

    def broadcast_system_message(self, message: str) -> None:
        logger.info("system_broadcast", message=message)
