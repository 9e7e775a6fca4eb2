"""DTOs for snapshot use cases."""

from buddyflow.application.snapshot.use_cases.dtos.snapshot_dtos import (
    SnapshotContext,
    SnapshotCreationResult,
    SnapshotStats,
)

__all__ = ["SnapshotContext", "SnapshotCreationResult", "SnapshotStats"]
