from datetime import UTC, datetime

from marketplace.shared.clock import FixedClock, SystemClock, get_clock, now, reset_clock, set_clock


def test_system_clock_is_the_default():
    reset_clock()
    assert isinstance(get_clock(), SystemClock)
    assert now().tzinfo is not None


def test_fixed_clock_freezes_and_advances():
    clock = FixedClock(datetime(2026, 1, 1, 12, 0, tzinfo=UTC))
    set_clock(clock)

    assert now() == datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
    clock.advance(minutes=30)
    assert now() == datetime(2026, 1, 1, 12, 30, tzinfo=UTC)
