"""Protocol for business-day arithmetic."""

from datetime import datetime
from typing import Protocol


class CalendarProtocol(Protocol):
    def add_business_days(self, start: datetime, days: int) -> datetime:
        """Move ``start`` by ``days`` business days, skipping weekends and holidays."""
        ...
