"""Notifier registry.

``get_notifier()`` returns the FakeNotifier unless ``MARKETPLACE_NOTIFIER``
is set to ``logging``. Tests and deployments swap adapters with
``set_notifier()``.
"""

import os

from marketplace.notifier.port import Notifier

_current_notifier: Notifier | None = None


def get_notifier() -> Notifier:
    global _current_notifier
    if _current_notifier is None:
        if os.getenv("MARKETPLACE_NOTIFIER", "fake").lower() == "logging":
            from marketplace.notifier.logging_adapter import LoggingNotifier

            _current_notifier = LoggingNotifier()
        else:
            from marketplace.notifier.fake_adapter import FakeNotifier

            _current_notifier = FakeNotifier()
    return _current_notifier


def set_notifier(notifier: Notifier) -> None:
    global _current_notifier
    _current_notifier = notifier


def reset_notifier() -> None:
    global _current_notifier
    _current_notifier = None
