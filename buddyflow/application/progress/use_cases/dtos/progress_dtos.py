"""DTOs for progress use cases."""

from dataclasses import dataclass
from typing import Literal

from buddyflow.domain.common.value_objects import ComponentSnapshotId, StepSnapshotId
from buddyflow.domain.progress.entities.component_progress import ComponentProgress, ProgressStatus
from buddyflow.domain.progress.services.answer_validators import MatchedBy
from buddyflow.domain.snapshot.content import ComponentType

StepProgressStatus = Literal["locked", "available", "in_progress", "completed"]


@dataclass(frozen=True)
class UnlockResult:
    """Steps and components opened by an update. Never lists anything newly locked."""

    new_unlocked_step_ids: tuple[StepSnapshotId, ...] = ()
    new_unlocked_component_ids: tuple[ComponentSnapshotId, ...] = ()
    messages: tuple[str, ...] = ()

    @property
    def has_new_unlocks(self) -> bool:
        return bool(self.new_unlocked_step_ids)


@dataclass(frozen=True)
class UnlockFailure:
    reason: Literal["assignment_not_found", "snapshot_not_found", "not_assignment_learner"]
    message: str


@dataclass(frozen=True)
class AnswerFeedback:
    is_correct: bool
    attempt_number: int
    attempts_left: int | None = None
    matched_by: MatchedBy | None = None
    score: int | None = None
    hint: str | None = None


@dataclass(frozen=True)
class ProgressUpdateResult:
    progress: ComponentProgress
    unlock_result: UnlockResult
    feedback: AnswerFeedback | None = None


@dataclass(frozen=True)
class ComponentProgressSummary:
    component_snapshot_id: ComponentSnapshotId
    step_snapshot_id: StepSnapshotId
    title: str
    component_type: ComponentType
    order: int
    is_required: bool
    is_unlocked: bool
    status: ProgressStatus
    percent: int
    attempt_count: int
    time_spent_seconds: int


@dataclass(frozen=True)
class StepProgressSummary:
    step_snapshot_id: StepSnapshotId
    title: str
    order: int
    status: StepProgressStatus
    percent: int
    component_count: int
    completed_components: int


@dataclass(frozen=True)
class ProgressStats:
    total_time_spent_seconds: int
    total_attempts: int
    completed_components: int
    total_components: int
    completed_steps: int
    total_steps: int


@dataclass(frozen=True)
class ProgressSummary:
    flow_percent: int
    steps: tuple[StepProgressSummary, ...]
    components: tuple[ComponentProgressSummary, ...]
    unlocked_step_ids: tuple[StepSnapshotId, ...]
    next_component: ComponentProgressSummary | None
    stats: ProgressStats


@dataclass(frozen=True)
class ProgressAnalytics:
    completion_rate: int
    average_time_per_component_seconds: int
    struggling_component_ids: tuple[ComponentSnapshotId, ...]
    total_time_spent_seconds: int
    total_attempts: int
