"""
FlowSnapshot entity.

The root of a snapshot tree. Nothing on it changes after creation; merging
extra context produces a new value via ``with_context``.
"""

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from types import MappingProxyType
from typing import Any

from buddyflow.domain.common.entity import Entity
from buddyflow.domain.common.exceptions import InvariantViolationError
from buddyflow.domain.common.value_objects import (
    AssignmentId,
    ContentHash,
    FlowSnapshotId,
    StepSnapshotId,
    TemplateId,
    UserId,
)


@dataclass(frozen=True)
class FlowSnapshotMetadata:
    created_at: datetime
    created_by: UserId
    snapshot_version: str
    total_steps: int
    total_components: int
    size_bytes: int
    content_hash: ContentHash


@dataclass(frozen=True, eq=False)
class FlowSnapshot(Entity[FlowSnapshotId]):
    """
    Immutable copy of a flow template.

    Business Rules:
    - metadata.total_steps equals the number of step ids
    - context is read-only; merges return a new snapshot
    """

    id: FlowSnapshotId
    template_id: TemplateId
    template_version: int
    title: str
    step_ids: tuple[StepSnapshotId, ...]
    metadata: FlowSnapshotMetadata
    description: str | None = None
    assignment_id: AssignmentId | None = None
    context: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate invariants and freeze the context map."""
        if self.metadata.total_steps != len(self.step_ids):
            raise InvariantViolationError(
                "FlowSnapshot",
                f"total_steps is {self.metadata.total_steps} "
                f"but flow holds {len(self.step_ids)} steps",
            )
        if not isinstance(self.context, MappingProxyType):
            object.__setattr__(self, "context", MappingProxyType(copy.deepcopy(dict(self.context))))

    def with_context(self, extra: Mapping[str, Any]) -> "FlowSnapshot":
        """
        Return a copy of this snapshot with ``extra`` merged into its context.

        Keys in ``extra`` win over existing keys. The receiver is unchanged.
        """
        merged = {**copy.deepcopy(dict(self.context)), **copy.deepcopy(dict(extra))}
        return replace(self, context=merged)

    def context_dict(self) -> dict[str, Any]:
        """Detached, mutable copy of the context map."""
        return copy.deepcopy(dict(self.context))
