"""
Assignment aggregate root.

States: not_started -> in_progress <-> paused, in_progress -> completed,
and any non-terminal state -> cancelled. Completed and cancelled are
terminal. The overdue flag is maintained by a batch job, not by these
transitions.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from buddyflow.domain.common.aggregate_root import AggregateRoot
from buddyflow.domain.common.exceptions import (
    AuthorizationError,
    BusinessRuleViolationError,
    InvariantViolationError,
    ValidationError,
)
from buddyflow.domain.common.value_objects import AssignmentId, FlowSnapshotId, UserId
from buddyflow.domain.assignment.entities.deadline_adjustment import (
    DeadlineAdjustment,
    ceil_days,
)
from buddyflow.domain.assignment.events import (
    AssignmentCancelled,
    AssignmentCompleted,
    AssignmentPaused,
    AssignmentResumed,
    AssignmentStarted,
    DeadlineExtended,
)

AssignmentStatus = Literal["not_started", "in_progress", "paused", "completed", "cancelled"]
TERMINAL_STATUSES: tuple[AssignmentStatus, ...] = ("completed", "cancelled")
OVERDUE_ELIGIBLE_STATUSES: tuple[AssignmentStatus, ...] = ("not_started", "in_progress")

MAX_MENTORS = 5
DEFAULT_PAUSE_REASON = "learner request"
AT_RISK_DAYS = 2
CRITICAL_DAYS = 1


class InvalidStateTransitionError(ValidationError):
    """Raised when a lifecycle action is not allowed from the current status."""

    def __init__(self, status: AssignmentStatus, action: str) -> None:
        super().__init__(
            f"Cannot {action} an assignment that is {status}", field="status", value=status
        )
        self.status = status
        self.action = action


@dataclass(frozen=True)
class DeadlineStatus:
    days_remaining: int
    is_overdue: bool
    is_at_risk: bool
    is_critical: bool


def validate_mentors(
    learner_id: UserId, mentor_ids: Sequence[UserId], max_mentors: int = MAX_MENTORS
) -> None:
    if not mentor_ids:
        raise ValidationError("An assignment needs at least one mentor", field="mentor_ids")
    if len(mentor_ids) > max_mentors:
        raise ValidationError(
            f"An assignment can have at most {max_mentors} mentors",
            field="mentor_ids",
            value=len(mentor_ids),
        )
    if learner_id in mentor_ids:
        raise ValidationError("A learner cannot mentor themselves", field="mentor_ids")
    if len(set(mentor_ids)) != len(mentor_ids):
        raise ValidationError("Mentor list contains duplicates", field="mentor_ids")


@dataclass
class Assignment(AggregateRoot[AssignmentId]):
    """
    A learner's assignment to one flow snapshot.

    Business Rules:
    - The snapshot is fixed at creation
    - 1 to 5 mentors, never including the learner
    - Only the learner starts; only mentors cancel or extend the deadline
    - Extensions must move the deadline strictly later
    - Deadline changes are recorded as immutable adjustments
    """

    id: AssignmentId
    learner_id: UserId
    snapshot_id: FlowSnapshotId
    mentor_ids: tuple[UserId, ...]
    deadline: datetime
    assigned_at: datetime
    status: AssignmentStatus = "not_started"
    started_at: datetime | None = None
    completed_at: datetime | None = None
    last_activity_at: datetime | None = None
    paused_at: datetime | None = None
    paused_by: UserId | None = None
    pause_reason: str | None = None
    cancelled_at: datetime | None = None
    cancelled_by: UserId | None = None
    cancel_reason: str | None = None
    time_spent_seconds: int = 0
    is_overdue: bool = False
    adjustments: list[DeadlineAdjustment] = field(default_factory=list)
    version: int = 0

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.time_spent_seconds < 0:
            raise InvariantViolationError("Assignment", "time_spent_seconds cannot be negative")
        if self.status == "paused" and self.paused_at is None:
            raise InvariantViolationError("Assignment", "a paused assignment needs paused_at")

    # Roles

    def is_learner(self, user_id: UserId) -> bool:
        return user_id == self.learner_id

    def is_mentor(self, user_id: UserId) -> bool:
        return user_id in self.mentor_ids

    def _require_learner(self, actor_id: UserId, action: str) -> None:
        if not self.is_learner(actor_id):
            raise AuthorizationError(f"Only the learner can {action} this assignment")

    def _require_mentor(self, actor_id: UserId, action: str) -> None:
        if not self.is_mentor(actor_id):
            raise AuthorizationError(f"Only a mentor can {action} this assignment")

    def _require_participant(self, actor_id: UserId, action: str) -> None:
        if not (self.is_learner(actor_id) or self.is_mentor(actor_id)):
            raise AuthorizationError(f"Only the learner or a mentor can {action} this assignment")

    # Lifecycle

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def start(self, actor_id: UserId, now: datetime) -> None:
        self._require_learner(actor_id, "start")
        if self.status != "not_started":
            raise InvalidStateTransitionError(self.status, "start")
        self.status = "in_progress"
        self.started_at = now
        self.last_activity_at = now
        self._record_event(AssignmentStarted(assignment_id=self.id, learner_id=self.learner_id))

    def pause(self, actor_id: UserId, now: datetime, reason: str | None = None) -> None:
        self._require_participant(actor_id, "pause")
        if self.status != "in_progress":
            raise InvalidStateTransitionError(self.status, "pause")
        self.status = "paused"
        self.paused_at = now
        self.paused_by = actor_id
        self.pause_reason = (reason or "").strip() or DEFAULT_PAUSE_REASON
        self.last_activity_at = now
        self._record_event(
            AssignmentPaused(assignment_id=self.id, paused_by=actor_id, reason=self.pause_reason)
        )

    def pause_days(self, now: datetime) -> int:
        """Length of the current pause in calendar days, rounded up."""
        if self.paused_at is None:
            return 0
        return max(0, ceil_days(now - self.paused_at))

    def resume(
        self,
        actor_id: UserId,
        now: datetime,
        add_business_days: Callable[[datetime, int], datetime] | None = None,
    ) -> DeadlineAdjustment | None:
        """
        Resume a paused assignment.

        Args:
            actor_id: Learner or mentor resuming the assignment
            now: Current time
            add_business_days: When given, the deadline is pushed back by the
                pause length (calendar days, rounded up) counted as business days

        Returns:
            The pause compensation adjustment, or None if the deadline did not move
        """
        self._require_participant(actor_id, "resume")
        if self.status != "paused":
            raise InvalidStateTransitionError(self.status, "resume")

        adjustment: DeadlineAdjustment | None = None
        pause_days = self.pause_days(now)
        if add_business_days is not None and pause_days > 0:
            new_deadline = add_business_days(self.deadline, pause_days)
            adjustment = DeadlineAdjustment(
                kind="pause_compensation",
                previous_deadline=self.deadline,
                new_deadline=new_deadline,
                delta_days=pause_days,
                reason=f"Paused for {pause_days} day(s)",
                adjusted_by=actor_id,
                created_at=now,
            )
            self.adjustments.append(adjustment)
            self.deadline = new_deadline
            if self.deadline > now:
                self.is_overdue = False

        self.status = "in_progress"
        self._clear_pause()
        self.last_activity_at = now
        self._record_event(
            AssignmentResumed(
                assignment_id=self.id,
                resumed_by=actor_id,
                deadline=self.deadline,
                deadline_shift_days=adjustment.delta_days if adjustment else 0,
            )
        )
        return adjustment

    def complete(self, actor_id: UserId, now: datetime) -> None:
        self._require_participant(actor_id, "complete")
        if self.status != "in_progress":
            raise InvalidStateTransitionError(self.status, "complete")
        self.status = "completed"
        self.completed_at = now
        self.last_activity_at = now
        self.is_overdue = False
        self._clear_pause()
        self._record_event(AssignmentCompleted(assignment_id=self.id, completed_by=actor_id))

    def cancel(self, actor_id: UserId, now: datetime, reason: str) -> None:
        self._require_mentor(actor_id, "cancel")
        if self.is_terminal:
            raise InvalidStateTransitionError(self.status, "cancel")
        if not reason or not reason.strip():
            raise ValidationError("A cancellation reason is required", field="reason")
        self.status = "cancelled"
        self.cancelled_at = now
        self.cancelled_by = actor_id
        self.cancel_reason = reason.strip()
        self.is_overdue = False
        self._clear_pause()
        self._record_event(
            AssignmentCancelled(assignment_id=self.id, cancelled_by=actor_id, reason=reason.strip())
        )

    def extend_deadline(
        self, actor_id: UserId, new_deadline: datetime, reason: str, now: datetime
    ) -> DeadlineAdjustment:
        """
        Move the deadline later and record why.

        Raises:
            AuthorizationError: If the actor is not a mentor
            ValidationError: If new_deadline is not after the current deadline
        """
        self._require_mentor(actor_id, "extend the deadline of")
        if self.is_terminal:
            raise InvalidStateTransitionError(self.status, "extend the deadline of")
        if new_deadline <= self.deadline:
            raise ValidationError(
                "New deadline must be after the current deadline",
                field="new_deadline",
                value=new_deadline.isoformat(),
            )
        if not reason or not reason.strip():
            raise ValidationError("An extension reason is required", field="reason")

        adjustment = DeadlineAdjustment(
            kind="extension",
            previous_deadline=self.deadline,
            new_deadline=new_deadline,
            delta_days=ceil_days(new_deadline - self.deadline),
            reason=reason.strip(),
            adjusted_by=actor_id,
            created_at=now,
        )
        self.adjustments.append(adjustment)
        self.deadline = new_deadline
        if new_deadline > now:
            self.is_overdue = False
        self._record_event(
            DeadlineExtended(
                assignment_id=self.id,
                extended_by=actor_id,
                previous_deadline=adjustment.previous_deadline,
                new_deadline=new_deadline,
                reason=adjustment.reason,
            )
        )
        return adjustment

    def update_mentors(
        self, actor_id: UserId, mentor_ids: Sequence[UserId], max_mentors: int = MAX_MENTORS
    ) -> None:
        self._require_mentor(actor_id, "change the mentors of")
        if self.is_terminal:
            raise InvalidStateTransitionError(self.status, "change the mentors of")
        validate_mentors(self.learner_id, mentor_ids, max_mentors)
        self.mentor_ids = tuple(mentor_ids)

    def add_time_spent(self, seconds: int, now: datetime) -> None:
        if seconds < 0:
            raise ValidationError("Time spent cannot be negative", field="seconds", value=seconds)
        if self.is_terminal:
            raise BusinessRuleViolationError(
                "no_time_on_closed_assignment", "Cannot log time on a closed assignment"
            )
        self.time_spent_seconds += seconds
        self.last_activity_at = now

    # Deadline

    def is_overdue_at(self, now: datetime) -> bool:
        return self.deadline < now and self.status in OVERDUE_ELIGIBLE_STATUSES

    def check_deadline(self, now: datetime, at_risk_days: int = AT_RISK_DAYS) -> DeadlineStatus:
        days_remaining = ceil_days(self.deadline - now)
        open_window = days_remaining > 0 and not self.is_terminal
        return DeadlineStatus(
            days_remaining=max(0, days_remaining),
            is_overdue=self.is_overdue_at(now),
            is_at_risk=open_window and days_remaining <= at_risk_days,
            is_critical=open_window and days_remaining <= CRITICAL_DAYS,
        )

    def _clear_pause(self) -> None:
        self.paused_at = None
        self.paused_by = None
        self.pause_reason = None

    @classmethod
    def create(
        cls,
        learner_id: UserId,
        snapshot_id: FlowSnapshotId,
        mentor_ids: Sequence[UserId],
        deadline: datetime,
        now: datetime,
        max_mentors: int = MAX_MENTORS,
    ) -> "Assignment":
        """Create a new assignment (ID will be 0 until persisted)."""
        validate_mentors(learner_id, mentor_ids, max_mentors)
        if deadline <= now:
            raise ValidationError(
                "Deadline must be in the future", field="deadline", value=deadline.isoformat()
            )
        return cls(
            id=AssignmentId.generate(),
            learner_id=learner_id,
            snapshot_id=snapshot_id,
            mentor_ids=tuple(mentor_ids),
            deadline=deadline,
            assigned_at=now,
            last_activity_at=now,
        )
