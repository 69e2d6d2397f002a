"""Clock port: the single source of "now" for every timestamp.

Follows the same swap-in pattern as the payment gateway registry:
``get_clock()`` returns a ``SystemClock`` unless a test installs a
``FixedClock`` through ``set_clock()``.
"""

from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Current time as an aware UTC datetime."""
        ...


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock(Clock):
    """Clock frozen at a given instant; ``advance()`` moves it forward."""

    def __init__(self, instant: datetime) -> None:
        self.instant = instant

    def now(self) -> datetime:
        return self.instant

    def advance(self, **kwargs) -> datetime:
        self.instant = self.instant + timedelta(**kwargs)
        return self.instant


_current_clock: Clock | None = None


def get_clock() -> Clock:
    global _current_clock
    if _current_clock is None:
        _current_clock = SystemClock()
    return _current_clock


def set_clock(clock: Clock) -> None:
    global _current_clock
    _current_clock = clock


def reset_clock() -> None:
    global _current_clock
    _current_clock = None


def now() -> datetime:
    """Shortcut for ``get_clock().now()``."""
    return get_clock().now()
