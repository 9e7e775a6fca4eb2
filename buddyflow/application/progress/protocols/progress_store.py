"""Protocol for component progress persistence."""

from typing import Protocol

from buddyflow.domain.common.value_objects import AssignmentId, ComponentSnapshotId, UserId
from buddyflow.domain.progress.entities.component_progress import ComponentProgress


class ProgressStoreProtocol(Protocol):
    """
    Protocol for ComponentProgress storage.

    Writes are optimistic: ``update`` only succeeds if the stored version
    still equals the version the caller read.
    """

    def find(
        self,
        learner_id: UserId,
        assignment_id: AssignmentId,
        component_snapshot_id: ComponentSnapshotId,
    ) -> ComponentProgress | None: ...

    def create(self, progress: ComponentProgress) -> ComponentProgress:
        """
        Insert a new progress record.

        Raises:
            ConcurrentUpdateError: If a record for the same learner, assignment
                and component already exists
        """
        ...

    def update(self, progress: ComponentProgress) -> ComponentProgress:
        """
        Compare-and-swap update on ``progress.version``.

        Returns:
            The record with its version incremented

        Raises:
            ConcurrentUpdateError: If the stored version has moved on
        """
        ...

    def find_all_by_assignment(self, assignment_id: AssignmentId) -> list[ComponentProgress]: ...
