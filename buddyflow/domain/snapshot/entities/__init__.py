from .component_snapshot import (
    ComponentSnapshot,
    ComponentSnapshotMetadata,
    OriginalComponentReference,
)
from .flow_snapshot import FlowSnapshot, FlowSnapshotMetadata
from .snapshot_tree import SnapshotTree
from .step_snapshot import (
    OriginalStepReference,
    StepAccessRules,
    StepSnapshot,
    StepSnapshotMetadata,
)

__all__ = [
    "ComponentSnapshot",
    "ComponentSnapshotMetadata",
    "FlowSnapshot",
    "FlowSnapshotMetadata",
    "OriginalComponentReference",
    "OriginalStepReference",
    "SnapshotTree",
    "StepAccessRules",
    "StepSnapshot",
    "StepSnapshotMetadata",
]
