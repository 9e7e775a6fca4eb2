"""Use case for assigning a flow template to a learner."""

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

import structlog

from buddyflow.application.assignment.protocols.assignment_store import AssignmentStoreProtocol
from buddyflow.application.assignment.protocols.calendar import CalendarProtocol
from buddyflow.application.assignment.use_cases.dtos import AssignFlowResult
from buddyflow.application.common.clock import ClockProtocol
from buddyflow.application.snapshot.use_cases.dtos import SnapshotContext
from buddyflow.application.snapshot.use_cases.snapshot_use_case import SnapshotUseCase
from buddyflow.domain.assignment.entities.assignment import (
    MAX_MENTORS,
    Assignment,
    validate_mentors,
)
from buddyflow.domain.common.exceptions import ValidationError
from buddyflow.domain.common.value_objects import UserId
from buddyflow.exceptions import StorageError

DEFAULT_DEADLINE_BUSINESS_DAYS = 7


class AssignFlowUseCase:
    """Use case for freezing a template and creating the assignment that owns it."""

    def __init__(
        self,
        snapshot_use_case: SnapshotUseCase,
        assignment_store: AssignmentStoreProtocol,
        calendar: CalendarProtocol,
        clock: ClockProtocol,
        default_deadline_business_days: int = DEFAULT_DEADLINE_BUSINESS_DAYS,
        max_mentors: int = MAX_MENTORS,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """Initialize use case with its collaborators."""
        self.snapshot_use_case = snapshot_use_case
        self.assignment_store = assignment_store
        self.calendar = calendar
        self.clock = clock
        self.default_deadline_business_days = default_deadline_business_days
        self.max_mentors = max_mentors
        self.logger = logger or structlog.get_logger(__name__)

    def assign_flow(
        self,
        template_id: int,
        learner_id: int,
        mentor_ids: Sequence[int],
        created_by: int,
        deadline: datetime | None = None,
        deadline_business_days: int | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> AssignFlowResult:
        """
        Snapshot a template and assign it to a learner.

        Mentors and the deadline are checked before anything is written. If
        storing the assignment fails, the snapshot created for it is purged.

        Args:
            template_id: ID of the template to assign
            learner_id: ID of the learner receiving the flow
            mentor_ids: One to max_mentors mentor IDs, excluding the learner
            created_by: ID of the user making the assignment
            deadline: Explicit deadline; takes precedence over business days
            deadline_business_days: Business days from now until the deadline
            context: Free-form context stored on the snapshot

        Returns:
            The new assignment and the snapshot creation result

        Raises:
            ValidationError: If the mentors or deadline are invalid, or the
                template fails validation
            TemplateNotFoundError: If the template does not exist
            StorageError: If the snapshot or assignment could not be stored
        """
        now = self.clock.now()
        learner = UserId(learner_id)
        mentors = [UserId(m) for m in mentor_ids]
        validate_mentors(learner, mentors, self.max_mentors)

        if deadline is None:
            days = (
                self.default_deadline_business_days
                if deadline_business_days is None
                else deadline_business_days
            )
            if days <= 0:
                raise ValidationError(
                    "Deadline must be at least one business day away",
                    field="deadline_business_days",
                    value=days,
                )
            deadline = self.calendar.add_business_days(now, days)
        elif deadline <= now:
            raise ValidationError(
                "Deadline must be in the future", field="deadline", value=deadline.isoformat()
            )

        snapshot = self.snapshot_use_case.create_flow_snapshot(
            template_id, SnapshotContext(created_by=created_by, extra=dict(context or {}))
        )
        assignment = Assignment.create(
            learner_id=learner,
            snapshot_id=snapshot.tree.flow.id,
            mentor_ids=mentors,
            deadline=deadline,
            now=now,
            max_mentors=self.max_mentors,
        )
        try:
            assignment = self.assignment_store.create(assignment)
        except StorageError:
            self.logger.exception(
                "assignment_persist_failed",
                template_id=template_id,
                snapshot_id=str(snapshot.tree.flow.id),
            )
            self.snapshot_use_case.purge_snapshot(snapshot.tree.flow.id.value)
            raise

        self.logger.info(
            "assigned_flow",
            assignment_id=assignment.id.value,
            template_id=template_id,
            snapshot_id=str(snapshot.tree.flow.id),
            learner_id=learner_id,
            mentors=len(mentors),
            deadline=deadline.isoformat(),
        )
        return AssignFlowResult(assignment=assignment, snapshot=snapshot)
