"""Base for events recorded by the Assignment aggregate."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4


@dataclass(frozen=True)
class DomainEvent:
    """
    An assignment transition handed to the lifecycle event handlers after save.

    Subclasses are declared with ``@dataclass(frozen=True, kw_only=True)``.
    """

    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def event_type(self) -> str:
        return self.__class__.__name__
