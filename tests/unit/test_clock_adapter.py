from datetime import UTC, datetime

from cutroom.adapters.clock import SystemClock


def test_system_clock_is_utc_aware():
    now = SystemClock().now_utc()
    assert now.tzinfo is not None
    assert now.utcoffset().total_seconds() == 0
    assert abs((datetime.now(UTC) - now).total_seconds()) < 1.0
