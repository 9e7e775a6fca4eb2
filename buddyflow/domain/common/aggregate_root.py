"""
Base class for Aggregate Roots.

Aggregate Roots are the entry point to an aggregate - a cluster of domain
objects that are treated as a single unit. All external references should
go through the aggregate root, and all invariants are enforced here.

Example:
    @dataclass
    class Assignment(AggregateRoot[AssignmentId]):
        id: AssignmentId
        status: AssignmentStatus

        def start(self, actor_id: UserId, now: datetime) -> None:
            self.status = "in_progress"
            self._record_event(AssignmentStarted(assignment_id=self.id))
"""

from dataclasses import dataclass, field
from typing import Generic

from .domain_event import DomainEvent
from .entity import Entity, IdType


@dataclass
class AggregateRoot(Entity[IdType], Generic[IdType]):
    """
    Base class for Aggregate Roots in the domain model.

    Aggregate Roots are:
    - Entry point to an aggregate (cluster of related entities)
    - Responsible for maintaining invariants
    - The only entity referenced from outside the aggregate
    - Can record domain events for later dispatch

    Domain events are collected and dispatched after
    the aggregate is persisted.
    """

    _events: list[DomainEvent] = field(
        default_factory=list, repr=False, compare=False, kw_only=True
    )

    def _record_event(self, event: DomainEvent) -> None:
        """
        Record a domain event to be dispatched later.

        Events are dispatched by the application service
        after the aggregate is successfully persisted.
        """
        self._events.append(event)

    def collect_events(self) -> list[DomainEvent]:
        """Collect and clear all recorded domain events."""
        events = self._events.copy()
        self._events.clear()
        return events

    @property
    def pending_events(self) -> list[DomainEvent]:
        """Return pending events without clearing them."""
        return self._events.copy()
