"""Mapper for Assignment ORM ↔ Domain conversion."""

from typing import Any, cast

from buddyflow.domain.assignment.entities.assignment import Assignment, AssignmentStatus
from buddyflow.domain.assignment.entities.deadline_adjustment import (
    AdjustmentKind,
    DeadlineAdjustment,
)
from buddyflow.domain.common.value_objects import AssignmentId, FlowSnapshotId, UserId
from buddyflow.models import Assignment as AssignmentORM
from buddyflow.models import AssignmentMentor as AssignmentMentorORM
from buddyflow.models import DeadlineAdjustment as DeadlineAdjustmentORM


class AssignmentMapper:
    """Mapper for Assignment ORM ↔ Domain conversion."""

    def to_domain(self, orm_model: AssignmentORM) -> Assignment:
        """Convert ORM model, with mentors and adjustments loaded, to the aggregate."""
        return Assignment(
            id=AssignmentId(orm_model.id),
            learner_id=UserId(orm_model.learner_id),
            snapshot_id=FlowSnapshotId(orm_model.snapshot_id),
            mentor_ids=tuple(
                UserId(m.mentor_id) for m in sorted(orm_model.mentors, key=lambda m: m.position)
            ),
            deadline=orm_model.deadline,
            assigned_at=orm_model.assigned_at,
            status=cast(AssignmentStatus, orm_model.status),
            started_at=orm_model.started_at,
            completed_at=orm_model.completed_at,
            last_activity_at=orm_model.last_activity_at,
            paused_at=orm_model.paused_at,
            paused_by=UserId(orm_model.paused_by) if orm_model.paused_by is not None else None,
            pause_reason=orm_model.pause_reason,
            cancelled_at=orm_model.cancelled_at,
            cancelled_by=(
                UserId(orm_model.cancelled_by) if orm_model.cancelled_by is not None else None
            ),
            cancel_reason=orm_model.cancel_reason,
            time_spent_seconds=orm_model.time_spent_seconds,
            is_overdue=orm_model.is_overdue,
            adjustments=[
                self.adjustment_to_domain(a)
                for a in sorted(orm_model.adjustments, key=lambda a: a.id)
            ],
            version=orm_model.version,
        )

    def adjustment_to_domain(self, orm_model: DeadlineAdjustmentORM) -> DeadlineAdjustment:
        return DeadlineAdjustment(
            kind=cast(AdjustmentKind, orm_model.kind),
            previous_deadline=orm_model.previous_deadline,
            new_deadline=orm_model.new_deadline,
            delta_days=orm_model.delta_days,
            reason=orm_model.reason,
            adjusted_by=UserId(orm_model.adjusted_by),
            created_at=orm_model.created_at,
        )

    def to_values(self, domain_entity: Assignment) -> dict[str, Any]:
        """Column values for everything a lifecycle transition may change."""
        return {
            "status": domain_entity.status,
            "deadline": domain_entity.deadline,
            "started_at": domain_entity.started_at,
            "completed_at": domain_entity.completed_at,
            "last_activity_at": domain_entity.last_activity_at,
            "paused_at": domain_entity.paused_at,
            "paused_by": domain_entity.paused_by.value if domain_entity.paused_by else None,
            "pause_reason": domain_entity.pause_reason,
            "cancelled_at": domain_entity.cancelled_at,
            "cancelled_by": (
                domain_entity.cancelled_by.value if domain_entity.cancelled_by else None
            ),
            "cancel_reason": domain_entity.cancel_reason,
            "time_spent_seconds": domain_entity.time_spent_seconds,
            "is_overdue": domain_entity.is_overdue,
        }

    def mentor_rows(self, domain_entity: Assignment) -> list[dict[str, Any]]:
        return [
            {"assignment_id": domain_entity.id.value, "mentor_id": m.value, "position": i}
            for i, m in enumerate(domain_entity.mentor_ids)
        ]

    def adjustment_row(self, assignment_id: int, adjustment: DeadlineAdjustment) -> dict[str, Any]:
        return {
            "assignment_id": assignment_id,
            "kind": adjustment.kind,
            "previous_deadline": adjustment.previous_deadline,
            "new_deadline": adjustment.new_deadline,
            "delta_days": adjustment.delta_days,
            "reason": adjustment.reason,
            "adjusted_by": adjustment.adjusted_by.value,
            "created_at": adjustment.created_at,
        }

    def to_orm(self, domain_entity: Assignment) -> AssignmentORM:
        """Build a new ORM row, with mentor and adjustment rows, for an unsaved assignment."""
        orm_model = AssignmentORM(
            id=domain_entity.id.value if domain_entity.id.value != 0 else None,
            learner_id=domain_entity.learner_id.value,
            snapshot_id=domain_entity.snapshot_id.value,
            assigned_at=domain_entity.assigned_at,
            version=domain_entity.version,
            **self.to_values(domain_entity),
        )
        orm_model.mentors = [
            AssignmentMentorORM(mentor_id=m.value, position=i)
            for i, m in enumerate(domain_entity.mentor_ids)
        ]
        orm_model.adjustments = [
            DeadlineAdjustmentORM(
                kind=a.kind,
                previous_deadline=a.previous_deadline,
                new_deadline=a.new_deadline,
                delta_days=a.delta_days,
                reason=a.reason,
                adjusted_by=a.adjusted_by.value,
                created_at=a.created_at,
            )
            for a in domain_entity.adjustments
        ]
        return orm_model
