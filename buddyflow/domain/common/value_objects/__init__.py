"""Common value objects shared across all domain modules."""

from .content_hash import ContentHash
from .ids import (
    AssignmentId,
    ComponentProgressId,
    ComponentSnapshotId,
    FlowSnapshotId,
    StepSnapshotId,
    TemplateComponentId,
    TemplateId,
    TemplateStepId,
    UserId,
)

__all__ = [
    "AssignmentId",
    "ContentHash",
    "ComponentProgressId",
    "ComponentSnapshotId",
    "FlowSnapshotId",
    "StepSnapshotId",
    "TemplateComponentId",
    "TemplateId",
    "TemplateStepId",
    "UserId",
]
