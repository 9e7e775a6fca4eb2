"""Protocol for snapshot persistence."""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from buddyflow.domain.common.value_objects import (
    ComponentSnapshotId,
    FlowSnapshotId,
    StepSnapshotId,
)
from buddyflow.domain.snapshot.entities import (
    ComponentSnapshot,
    FlowSnapshot,
    SnapshotTree,
    StepSnapshot,
)


class SnapshotStoreProtocol(Protocol):
    """Protocol for snapshot tree storage."""

    def create_snapshot_tree(self, tree: SnapshotTree) -> SnapshotTree:
        """
        Persist all three levels of a tree in one transaction.

        Args:
            tree: The tree to store

        Returns:
            The stored tree

        Raises:
            StorageError: If any write fails; nothing of the tree is kept
        """
        ...

    def get_flow_snapshot(self, snapshot_id: FlowSnapshotId) -> FlowSnapshot | None: ...

    def get_step_snapshots(self, snapshot_id: FlowSnapshotId) -> list[StepSnapshot]:
        """Steps of a flow snapshot ordered by step order."""
        ...

    def get_component_snapshots(
        self, step_ids: Sequence[StepSnapshotId]
    ) -> list[ComponentSnapshot]:
        """Components of the given steps ordered by step, then component order."""
        ...

    def get_component_snapshot(self, component_id: ComponentSnapshotId) -> ComponentSnapshot | None:
        ...

    def get_snapshot_tree(self, snapshot_id: FlowSnapshotId) -> SnapshotTree | None:
        """Load a complete tree, or None if the flow snapshot does not exist."""
        ...

    def update_context(self, snapshot_id: FlowSnapshotId, context: Mapping[str, Any]) -> None:
        """Replace the stored context map. No other column may change."""
        ...

    def delete_snapshot_tree(self, snapshot_id: FlowSnapshotId) -> bool:
        """Delete a tree with every assignment and progress row bound to it."""
        ...
