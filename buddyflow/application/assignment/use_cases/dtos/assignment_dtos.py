"""DTOs for assignment use cases."""

from dataclasses import dataclass

from buddyflow.application.snapshot.use_cases.dtos import SnapshotCreationResult
from buddyflow.domain.assignment.entities.assignment import Assignment
from buddyflow.domain.assignment.entities.deadline_adjustment import DeadlineAdjustment


@dataclass(frozen=True)
class AssignFlowResult:
    """A new assignment together with the snapshot it was given."""

    assignment: Assignment
    snapshot: SnapshotCreationResult


@dataclass(frozen=True)
class ResumeResult:
    assignment: Assignment
    adjustment: DeadlineAdjustment | None = None


@dataclass(frozen=True)
class OverdueRecomputeResult:
    marked: int
    cleared: int

    @property
    def changed(self) -> int:
        return self.marked + self.cleared
