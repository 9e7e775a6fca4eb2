"""
ComponentProgress entity.

One record per (learner, assignment, component snapshot). Status moves
not_started -> in_progress -> completed, with failed and skipped as the
other terminal states, each reachable only from in_progress.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from buddyflow.domain.common.entity import Entity
from buddyflow.domain.common.exceptions import (
    BusinessRuleViolationError,
    InvariantViolationError,
    ValidationError,
)
from buddyflow.domain.common.value_objects import (
    AssignmentId,
    ComponentProgressId,
    ComponentSnapshotId,
    UserId,
)
from buddyflow.domain.progress.payloads import (
    ProgressPayload,
    QuizAttempt,
    QuizProgress,
    TaskAttempt,
    TaskProgress,
    empty_payload,
)
from buddyflow.domain.snapshot.content import ComponentType

ProgressStatus = Literal["not_started", "in_progress", "completed", "failed", "skipped"]
TERMINAL_STATUSES: tuple[ProgressStatus, ...] = ("completed", "failed", "skipped")


class InvalidProgressTransitionError(ValidationError):
    """Raised when an action is not allowed from the component's current status."""

    def __init__(self, status: ProgressStatus, action: str) -> None:
        super().__init__(
            f"Cannot {action} a component that is {status}", field="status", value=status
        )
        self.status = status
        self.action = action


@dataclass(frozen=True)
class ProgressReset:
    """What a reset discarded. Kept so resets never erase attempt history."""

    reset_at: datetime
    previous_status: ProgressStatus
    attempt_count: int
    time_spent_seconds: int
    payload: ProgressPayload


@dataclass
class ComponentProgress(Entity[ComponentProgressId]):
    """
    A learner's progress on one component.

    Business Rules:
    - attempt_count and time_spent_seconds never go negative
    - The payload variant matches the component type
    - A completed component accepts no further answers
    - Reset archives the discarded payload in reset_history
    """

    id: ComponentProgressId
    learner_id: UserId
    assignment_id: AssignmentId
    component_snapshot_id: ComponentSnapshotId
    component_type: ComponentType
    payload: ProgressPayload
    status: ProgressStatus = "not_started"
    attempt_count: int = 0
    time_spent_seconds: int = 0
    started_at: datetime | None = None
    completed_at: datetime | None = None
    last_activity_at: datetime | None = None
    reset_history: list[ProgressReset] = field(default_factory=list)
    version: int = 0

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.attempt_count < 0:
            raise InvariantViolationError("ComponentProgress", "attempt_count cannot be negative")
        if self.time_spent_seconds < 0:
            raise InvariantViolationError(
                "ComponentProgress", "time_spent_seconds cannot be negative"
            )
        if type(self.payload) is not type(empty_payload(self.component_type)):
            raise InvariantViolationError(
                "ComponentProgress",
                f"{type(self.payload).__name__} does not fit a {self.component_type} component",
            )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    @property
    def has_been_completed(self) -> bool:
        """Completed now, or completed at some point before a reset."""
        return self.is_completed or any(
            r.previous_status == "completed" for r in self.reset_history
        )

    @property
    def has_been_skipped(self) -> bool:
        return self.status == "skipped" or any(
            r.previous_status == "skipped" for r in self.reset_history
        )

    def start(self, now: datetime) -> bool:
        """
        Move from not_started to in_progress.

        Returns:
            True if the status changed, False if already in progress

        Raises:
            InvalidProgressTransitionError: If the component is in a terminal state
        """
        if self.status == "in_progress":
            return False
        if self.status != "not_started":
            raise InvalidProgressTransitionError(self.status, "start")
        self.status = "in_progress"
        self.started_at = now
        self.last_activity_at = now
        return True

    def update_payload(self, payload: ProgressPayload, now: datetime, time_spent: int = 0) -> None:
        """Replace the payload with a newer one, starting the component if needed."""
        self._ensure_in_progress(now, "update")
        if type(payload) is not type(self.payload):
            raise ValidationError(
                f"{type(payload).__name__} does not fit a {self.component_type} component"
            )
        self.payload = payload
        self.add_time(time_spent, now)

    def record_task_attempt(
        self, answer: str, is_correct: bool, now: datetime, time_spent: int = 0
    ) -> TaskAttempt:
        """Append a task attempt; a correct answer completes the component."""
        self._ensure_can_answer(now)
        if not isinstance(self.payload, TaskProgress):
            raise ValidationError(f"Cannot record a task attempt on a {self.component_type}")
        attempt = TaskAttempt(
            attempt_number=len(self.payload.attempts) + 1,
            answer=answer,
            is_correct=is_correct,
            submitted_at=now,
            time_spent_seconds=time_spent,
        )
        self.payload = self.payload.with_attempt(attempt)
        self.attempt_count += 1
        self.add_time(time_spent, now)
        if is_correct:
            self.complete(now)
        return attempt

    def record_quiz_attempt(
        self,
        score: int,
        correct_answers: int,
        total_questions: int,
        passed: bool,
        answers: tuple[tuple[str, tuple[str, ...]], ...],
        started_at: datetime,
        now: datetime,
        time_spent: int = 0,
    ) -> QuizAttempt:
        """Append a quiz attempt; a passing score completes the component."""
        self._ensure_can_answer(now)
        if not isinstance(self.payload, QuizProgress):
            raise ValidationError(f"Cannot record a quiz attempt on a {self.component_type}")
        attempt = QuizAttempt(
            attempt_number=len(self.payload.attempts) + 1,
            score=score,
            correct_answers=correct_answers,
            total_questions=total_questions,
            passed=passed,
            started_at=started_at,
            completed_at=now,
            time_spent_seconds=time_spent,
            answers=answers,
        )
        self.payload = self.payload.with_attempt(attempt)
        self.attempt_count += 1
        self.add_time(time_spent, now)
        if passed:
            self.complete(now)
        return attempt

    def ensure_attempts_remaining(self, max_attempts: int | None) -> None:
        if max_attempts is not None and self.attempt_count >= max_attempts:
            raise BusinessRuleViolationError(
                "max_attempts_reached",
                f"No attempts left ({self.attempt_count} of {max_attempts} used)",
            )

    def complete(self, now: datetime) -> bool:
        """
        Mark the component completed.

        Returns:
            True if the status changed, False if it was already completed
        """
        if self.status == "completed":
            return False
        if self.status == "not_started":
            self.start(now)
        if self.status != "in_progress":
            raise InvalidProgressTransitionError(self.status, "complete")
        self.status = "completed"
        self.completed_at = now
        self.last_activity_at = now
        return True

    def skip(self, now: datetime) -> None:
        if self.status != "in_progress":
            raise InvalidProgressTransitionError(self.status, "skip")
        self.status = "skipped"
        self.last_activity_at = now

    def fail(self, now: datetime) -> None:
        if self.status != "in_progress":
            raise InvalidProgressTransitionError(self.status, "fail")
        self.status = "failed"
        self.last_activity_at = now

    def add_time(self, seconds: int, now: datetime) -> None:
        if seconds < 0:
            raise ValidationError(
                "Time spent cannot be negative", field="time_spent", value=seconds
            )
        self.time_spent_seconds += seconds
        self.last_activity_at = now

    def reset(self, now: datetime) -> ProgressReset:
        """
        Start the component over with a fresh payload.

        The discarded state is archived in reset_history rather than
        deleted, so attempt records survive the reset.
        """
        record = ProgressReset(
            reset_at=now,
            previous_status=self.status,
            attempt_count=self.attempt_count,
            time_spent_seconds=self.time_spent_seconds,
            payload=self.payload,
        )
        self.reset_history.append(record)
        self.payload = empty_payload(self.component_type)
        self.status = "not_started"
        self.attempt_count = 0
        self.time_spent_seconds = 0
        self.started_at = None
        self.completed_at = None
        self.last_activity_at = now
        return record

    def _ensure_in_progress(self, now: datetime, action: str) -> None:
        if self.status == "not_started":
            self.start(now)
        elif self.status != "in_progress":
            raise InvalidProgressTransitionError(self.status, action)

    def _ensure_can_answer(self, now: datetime) -> None:
        if self.status == "completed":
            raise BusinessRuleViolationError(
                "answer_after_completion", "Component is already completed"
            )
        self._ensure_in_progress(now, "submit an answer to")

    @classmethod
    def create(
        cls,
        learner_id: UserId,
        assignment_id: AssignmentId,
        component_snapshot_id: ComponentSnapshotId,
        component_type: ComponentType,
    ) -> "ComponentProgress":
        """Create a new progress record (ID will be 0 until persisted)."""
        return cls(
            id=ComponentProgressId.generate(),
            learner_id=learner_id,
            assignment_id=assignment_id,
            component_snapshot_id=component_snapshot_id,
            component_type=component_type,
            payload=empty_payload(component_type),
        )
