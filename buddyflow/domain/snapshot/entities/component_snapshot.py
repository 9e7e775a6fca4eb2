"""
ComponentSnapshot entity.

The leaf of a snapshot tree: one frozen content unit plus the rules a
learner is held to while working through it.
"""

from dataclasses import dataclass

from buddyflow.domain.common.entity import Entity
from buddyflow.domain.common.exceptions import InvariantViolationError
from buddyflow.domain.common.value_objects import ComponentSnapshotId, StepSnapshotId
from buddyflow.domain.snapshot.content import ComponentContent, ComponentType, content_type_of


@dataclass(frozen=True)
class OriginalComponentReference:
    """Where the component came from, kept for traceability only."""

    id: int
    title: str
    description: str | None = None


@dataclass(frozen=True)
class ComponentSnapshotMetadata:
    snapshot_version: str
    content_size: int
    estimated_duration_minutes: int
    tags: tuple[str, ...] = ()


@dataclass(frozen=True, eq=False)
class ComponentSnapshot(Entity[ComponentSnapshotId]):
    """
    Immutable copy of a template component.

    Business Rules:
    - The content payload must match the ``component_type`` discriminant
    - Order is 1-based
    - max_attempts, when set, is positive
    """

    id: ComponentSnapshotId
    step_snapshot_id: StepSnapshotId
    component_type: ComponentType
    content: ComponentContent
    order: int
    is_required: bool
    original: OriginalComponentReference
    metadata: ComponentSnapshotMetadata
    max_attempts: int | None = None

    def __post_init__(self) -> None:
        """Validate invariants."""
        actual = content_type_of(self.content)
        if actual != self.component_type:
            raise InvariantViolationError(
                "ComponentSnapshot",
                f"content is {actual} but component type is {self.component_type}",
            )
        if self.order < 1:
            raise InvariantViolationError("ComponentSnapshot", "order must be 1-based")
        if self.max_attempts is not None and self.max_attempts <= 0:
            raise InvariantViolationError("ComponentSnapshot", "max_attempts must be positive")

    @property
    def title(self) -> str:
        return self.original.title

    @property
    def is_evaluated(self) -> bool:
        """Whether completion is decided by checking a submitted answer."""
        return self.component_type in ("task", "quiz")
