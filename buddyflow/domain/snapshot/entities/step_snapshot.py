"""
StepSnapshot entity.
"""

from dataclasses import dataclass

from buddyflow.domain.common.entity import Entity
from buddyflow.domain.common.exceptions import InvariantViolationError
from buddyflow.domain.common.value_objects import (
    ComponentSnapshotId,
    FlowSnapshotId,
    StepSnapshotId,
)


@dataclass(frozen=True)
class StepAccessRules:
    requires_previous_step_completed: bool = True
    skippable: bool = False
    max_attempts: int | None = None
    time_limit_minutes: int | None = None


@dataclass(frozen=True)
class OriginalStepReference:
    id: int
    title: str
    order: int
    description: str | None = None


@dataclass(frozen=True)
class StepSnapshotMetadata:
    total_components: int
    required_components: int
    estimated_duration_minutes: int


@dataclass(frozen=True, eq=False)
class StepSnapshot(Entity[StepSnapshotId]):
    """
    Immutable copy of a template step.

    Business Rules:
    - metadata.total_components equals the number of component ids
    - metadata.required_components never exceeds total_components
    - Order is 1-based
    """

    id: StepSnapshotId
    flow_snapshot_id: FlowSnapshotId
    component_ids: tuple[ComponentSnapshotId, ...]
    order: int
    is_required: bool
    access: StepAccessRules
    original: OriginalStepReference
    metadata: StepSnapshotMetadata

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.order < 1:
            raise InvariantViolationError("StepSnapshot", "order must be 1-based")
        if self.metadata.total_components != len(self.component_ids):
            raise InvariantViolationError(
                "StepSnapshot",
                f"total_components is {self.metadata.total_components} "
                f"but step holds {len(self.component_ids)} components",
            )
        if self.metadata.required_components > self.metadata.total_components:
            raise InvariantViolationError(
                "StepSnapshot", "required_components cannot exceed total_components"
            )

    @property
    def title(self) -> str:
        return self.original.title
