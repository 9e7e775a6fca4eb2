from dataclasses import dataclass
from typing import Self
from uuid import UUID, uuid4

from ..entity import EntityId


@dataclass(frozen=True)
class UserId(EntityId):
    """Strongly-typed user identifier (learners and mentors alike)."""

    value: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError("UserId must be non-negative")


@dataclass(frozen=True)
class TemplateId(EntityId):
    """Strongly-typed flow template identifier."""

    value: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError("TemplateId must be non-negative")


@dataclass(frozen=True)
class TemplateStepId(EntityId):
    """Strongly-typed template step identifier."""

    value: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError("TemplateStepId must be non-negative")


@dataclass(frozen=True)
class TemplateComponentId(EntityId):
    """Strongly-typed template component identifier."""

    value: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError("TemplateComponentId must be non-negative")


@dataclass(frozen=True)
class AssignmentId(EntityId):
    """Strongly-typed assignment identifier."""

    value: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError("AssignmentId must be non-negative")


@dataclass(frozen=True)
class ComponentProgressId(EntityId):
    """Strongly-typed component progress identifier."""

    value: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError("ComponentProgressId must be non-negative")


@dataclass(frozen=True)
class FlowSnapshotId(EntityId):
    """Flow snapshot identifier. Assigned in memory so a tree can be built before it is stored."""

    value: UUID

    def __post_init__(self) -> None:
        if not isinstance(self.value, UUID):
            raise ValueError("FlowSnapshotId must be a UUID")

    @classmethod
    def generate(cls) -> Self:
        return cls(uuid4())


@dataclass(frozen=True)
class StepSnapshotId(EntityId):
    """Step snapshot identifier."""

    value: UUID

    def __post_init__(self) -> None:
        if not isinstance(self.value, UUID):
            raise ValueError("StepSnapshotId must be a UUID")

    @classmethod
    def generate(cls) -> Self:
        return cls(uuid4())


@dataclass(frozen=True)
class ComponentSnapshotId(EntityId):
    """Component snapshot identifier."""

    value: UUID

    def __post_init__(self) -> None:
        if not isinstance(self.value, UUID):
            raise ValueError("ComponentSnapshotId must be a UUID")

    @classmethod
    def generate(cls) -> Self:
        return cls(uuid4())
