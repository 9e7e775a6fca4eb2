"""DTOs for snapshot use cases."""

from dataclasses import dataclass, field
from typing import Any

from buddyflow.domain.snapshot.entities import SnapshotTree


@dataclass
class SnapshotContext:
    """Who is taking the snapshot and what to attach to it."""

    created_by: int
    assignment_id: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SnapshotStats:
    total_steps: int
    total_components: int
    creation_duration_ms: float
    size_bytes: int


@dataclass(frozen=True)
class SnapshotCreationResult:
    """DTO for a freshly created snapshot tree and its statistics."""

    tree: SnapshotTree
    stats: SnapshotStats
    warnings: tuple[str, ...] = ()
