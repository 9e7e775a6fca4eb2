"""Protocol for the time source used by use cases."""

from datetime import datetime
from typing import Protocol


class ClockProtocol(Protocol):
    """Injected so tests can pin the current time."""

    def now(self) -> datetime:
        """Return the current time as an aware UTC datetime."""
        ...
