"""Wall-clock time source."""

from datetime import UTC, datetime


class SystemClock:
    """Clock backed by the system time, always in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)
