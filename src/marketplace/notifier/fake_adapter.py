"""Fake notifier: records messages in memory for test assertions."""

from marketplace.notifier.port import NotificationError, Notifier


class FakeNotifier(Notifier):
    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Notification channel unavailable"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Notification channel unavailable") -> None:
        """Configure the fake adapter behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def _record(self, **message) -> None:
        if not self.should_succeed:
            raise NotificationError(self.failure_reason)
        self.sent.append(message)

    def notify_user(self, user_id: str, message: str) -> None:
        self._record(recipient="user", recipient_id=str(user_id), message=message)

    def notify_driver(self, driver_id: str, delivery_id: str | None, message: str) -> None:
        self._record(
            recipient="driver",
            recipient_id=str(driver_id),
            delivery_id=str(delivery_id) if delivery_id else None,
            message=message,
        )

    def notify_merchant(self, merchant_id: str, message: str) -> None:
        self._record(recipient="merchant", recipient_id=str(merchant_id), message=message)

    def broadcast_system_message(self, message: str) -> None:
        self._record(recipient="system", recipient_id=None, message=message)

    def messages_for(self, recipient: str, recipient_id=None) -> list[str]:
        return [
            sent["message"]
            for sent in self.sent
            if sent["recipient"] == recipient
            and (recipient_id is None or sent["recipient_id"] == str(recipient_id))
        ]
