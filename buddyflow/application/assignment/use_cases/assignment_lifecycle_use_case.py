"""Use case for moving assignments through their lifecycle."""

from collections.abc import Callable, Sequence
from datetime import datetime

import structlog

from buddyflow.application.assignment.protocols.assignment_store import AssignmentStoreProtocol
from buddyflow.application.assignment.protocols.calendar import CalendarProtocol
from buddyflow.application.assignment.use_cases.dtos import OverdueRecomputeResult, ResumeResult
from buddyflow.application.assignment.use_cases.exceptions import AssignmentNotFoundError
from buddyflow.application.common.clock import ClockProtocol
from buddyflow.domain.assignment.entities.assignment import (
    AT_RISK_DAYS,
    MAX_MENTORS,
    Assignment,
    DeadlineStatus,
)
from buddyflow.domain.assignment.entities.deadline_adjustment import DeadlineAdjustment
from buddyflow.domain.common import DomainEvent
from buddyflow.domain.common.value_objects import AssignmentId, UserId

EventHandler = Callable[[DomainEvent], None]


class AssignmentLifecycleUseCase:
    """
    Use case for assignment state transitions and deadline upkeep.

    Every mutating method loads the assignment, applies the transition on
    the aggregate, saves it with a compare-and-swap on its version and
    then hands the recorded events to the registered handlers.
    """

    def __init__(
        self,
        assignment_store: AssignmentStoreProtocol,
        calendar: CalendarProtocol,
        clock: ClockProtocol,
        event_handlers: Sequence[EventHandler] = (),
        at_risk_days: int = AT_RISK_DAYS,
        max_mentors: int = MAX_MENTORS,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """Initialize use case with its collaborators."""
        self.assignment_store = assignment_store
        self.calendar = calendar
        self.clock = clock
        self.event_handlers = tuple(event_handlers)
        self.at_risk_days = at_risk_days
        self.max_mentors = max_mentors
        self.logger = logger or structlog.get_logger(__name__)

    def start(self, assignment_id: int, actor_id: int) -> Assignment:
        """
        Start an assignment. Only its learner may do this.

        Raises:
            AssignmentNotFoundError: If the assignment does not exist
            AuthorizationError: If the actor is not the learner
            InvalidStateTransitionError: If the assignment was already started
        """
        assignment = self._load(assignment_id)
        assignment.start(UserId(actor_id), self.clock.now())
        return self._save(assignment, "started_assignment", actor_id=actor_id)

    def pause(self, assignment_id: int, actor_id: int, reason: str | None = None) -> Assignment:
        assignment = self._load(assignment_id)
        assignment.pause(UserId(actor_id), self.clock.now(), reason)
        return self._save(
            assignment, "paused_assignment", actor_id=actor_id, reason=assignment.pause_reason
        )

    def resume(
        self, assignment_id: int, actor_id: int, adjust_deadline: bool = False
    ) -> ResumeResult:
        """
        Resume a paused assignment.

        With ``adjust_deadline`` the deadline moves back by the pause length,
        counted in calendar days rounded up and applied as business days.
        """
        assignment = self._load(assignment_id)
        now = self.clock.now()
        pause_days = assignment.pause_days(now)
        adjustment = assignment.resume(
            UserId(actor_id),
            now,
            self.calendar.add_business_days if adjust_deadline else None,
        )
        assignment = self._save(
            assignment,
            "resumed_assignment",
            actor_id=actor_id,
            pause_days=pause_days,
            deadline_shift_days=adjustment.delta_days if adjustment else 0,
        )
        return ResumeResult(assignment=assignment, adjustment=adjustment)

    def complete(self, assignment_id: int, actor_id: int) -> Assignment:
        assignment = self._load(assignment_id)
        assignment.complete(UserId(actor_id), self.clock.now())
        return self._save(assignment, "completed_assignment", actor_id=actor_id)

    def cancel(self, assignment_id: int, actor_id: int, reason: str) -> Assignment:
        assignment = self._load(assignment_id)
        assignment.cancel(UserId(actor_id), self.clock.now(), reason)
        return self._save(assignment, "cancelled_assignment", actor_id=actor_id, reason=reason)

    def extend_deadline(
        self, assignment_id: int, actor_id: int, new_deadline: datetime, reason: str
    ) -> DeadlineAdjustment:
        """
        Move the deadline later.

        Raises:
            AssignmentNotFoundError: If the assignment does not exist
            AuthorizationError: If the actor is not a mentor
            ValidationError: If the new deadline is not after the current one
                or no reason is given
        """
        assignment = self._load(assignment_id)
        adjustment = assignment.extend_deadline(
            UserId(actor_id), new_deadline, reason, self.clock.now()
        )
        self._save(
            assignment,
            "extended_assignment_deadline",
            actor_id=actor_id,
            previous_deadline=adjustment.previous_deadline.isoformat(),
            new_deadline=adjustment.new_deadline.isoformat(),
            delta_days=adjustment.delta_days,
        )
        return adjustment

    def update_mentors(
        self, assignment_id: int, actor_id: int, mentor_ids: Sequence[int]
    ) -> Assignment:
        assignment = self._load(assignment_id)
        assignment.update_mentors(
            UserId(actor_id), [UserId(m) for m in mentor_ids], self.max_mentors
        )
        return self._save(
            assignment, "updated_assignment_mentors", actor_id=actor_id, mentors=len(mentor_ids)
        )

    def add_time_spent(self, assignment_id: int, seconds: int) -> Assignment:
        assignment = self._load(assignment_id)
        assignment.add_time_spent(seconds, self.clock.now())
        return self._save(assignment, "added_assignment_time", seconds=seconds)

    def check_deadline(self, assignment_id: int) -> DeadlineStatus:
        """Days remaining and at-risk, critical and overdue flags as of now."""
        assignment = self._load(assignment_id)
        return assignment.check_deadline(self.clock.now(), self.at_risk_days)

    def recompute_overdue_flags(self) -> OverdueRecomputeResult:
        """
        Batch-refresh the overdue flag on every assignment.

        Active assignments past their deadline are flagged and assignments
        that no longer qualify are unflagged.
        """
        now = self.clock.now()
        result = OverdueRecomputeResult(
            marked=self.assignment_store.mark_overdue(now),
            cleared=self.assignment_store.clear_overdue(now),
        )
        self.logger.info(
            "recomputed_overdue_flags", marked=result.marked, cleared=result.cleared
        )
        return result

    def _load(self, assignment_id: int) -> Assignment:
        assignment = self.assignment_store.find_by_id(AssignmentId(assignment_id))
        if assignment is None:
            raise AssignmentNotFoundError(assignment_id)
        return assignment

    def _save(self, assignment: Assignment, event: str, **context: object) -> Assignment:
        events = assignment.collect_events()
        saved = self.assignment_store.update(assignment)
        self.logger.info(event, assignment_id=saved.id.value, status=saved.status, **context)
        self._dispatch(events)
        return saved

    def _dispatch(self, events: list[DomainEvent]) -> None:
        for event in events:
            self.logger.debug(
                "dispatching_assignment_event",
                event_type=event.event_type,
                event_id=str(event.event_id),
            )
            for handler in self.event_handlers:
                handler(event)
