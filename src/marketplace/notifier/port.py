"""Notifier port: abstract interface for outbound messages to actors."""

from abc import ABC, abstractmethod


class NotificationError(Exception):
    """A message could not be handed to the delivery channel."""


class Notifier(ABC):
    """Abstract interface for notification adapters."""

    @abstractmethod
    def notify_user(self, user_id: str, message: str) -> None: ...

    @abstractmethod
    def notify_driver(self, driver_id: str, delivery_id: str | None, message: str) -> None: ...

    @abstractmethod
    def notify_merchant(self, merchant_id: str, message: str) -> None: ...

    @abstractmethod
    def broadcast_system_message(self, message: str) -> None: ...
