"""Protocol for assignment persistence."""

from datetime import datetime
from typing import Protocol

from buddyflow.domain.assignment.entities.assignment import Assignment
from buddyflow.domain.common.value_objects import AssignmentId


class AssignmentStoreProtocol(Protocol):
    def find_by_id(self, assignment_id: AssignmentId) -> Assignment | None: ...

    def create(self, assignment: Assignment) -> Assignment:
        """Insert a new assignment and return it with its database ID."""
        ...

    def update(self, assignment: Assignment) -> Assignment:
        """
        Compare-and-swap update on ``assignment.version``.

        New deadline adjustments are inserted in the same transaction.

        Raises:
            ConcurrentUpdateError: If the stored version has moved on
        """
        ...

    def mark_overdue(self, now: datetime) -> int:
        """Flag active assignments whose deadline has passed. Returns rows changed."""
        ...

    def clear_overdue(self, now: datetime) -> int:
        """Unflag assignments that are no longer overdue. Returns rows changed."""
        ...
