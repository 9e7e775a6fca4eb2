"""Repository for Assignment aggregates."""

from datetime import datetime

from sqlalchemy import Update, delete, func, insert, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from buddyflow.domain.assignment.entities.assignment import OVERDUE_ELIGIBLE_STATUSES, Assignment
from buddyflow.domain.common.value_objects import AssignmentId
from buddyflow.exceptions import ConcurrentUpdateError, StorageError
from buddyflow.infrastructure.assignment.mappers.assignment_mapper import AssignmentMapper
from buddyflow.models import Assignment as AssignmentORM
from buddyflow.models import AssignmentMentor as AssignmentMentorORM
from buddyflow.models import DeadlineAdjustment as DeadlineAdjustmentORM


class AssignmentRepository:
    """Repository for Assignment aggregates with optimistic version checks."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.mapper = AssignmentMapper()

    def find_by_id(self, assignment_id: AssignmentId) -> Assignment | None:
        """
        Find an assignment with its mentors and deadline adjustments.

        Returns:
            Assignment aggregate if found, None otherwise
        """
        stmt = (
            select(AssignmentORM)
            .where(AssignmentORM.id == assignment_id.value)
            .options(selectinload(AssignmentORM.mentors), selectinload(AssignmentORM.adjustments))
            .execution_options(populate_existing=True)
        )
        orm_model = self.db.execute(stmt).scalar_one_or_none()
        return self.mapper.to_domain(orm_model) if orm_model else None

    def create(self, assignment: Assignment) -> Assignment:
        """
        Insert a new assignment with its mentor rows.

        Raises:
            StorageError: If the insert fails
        """
        orm_model = self.mapper.to_orm(assignment)
        try:
            self.db.add(orm_model)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Failed to create assignment: {e}") from e
        return self._reload(orm_model.id)

    def update(self, assignment: Assignment) -> Assignment:
        """
        Write an assignment if nobody else has written it since it was read.

        Mentor rows are replaced when they changed, and adjustments not yet
        stored are appended, all in the same transaction as the row update.

        Returns:
            The stored aggregate with its version incremented

        Raises:
            ConcurrentUpdateError: If the stored version no longer matches
            StorageError: If the update fails for any other reason
        """
        assignment_id = assignment.id.value
        stmt = (
            update(AssignmentORM)
            .where(AssignmentORM.id == assignment_id, AssignmentORM.version == assignment.version)
            .values(**self.mapper.to_values(assignment), version=assignment.version + 1)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
            if result.rowcount == 0:
                self.db.rollback()
                raise ConcurrentUpdateError("Assignment", assignment.id, assignment.version)

            stored_mentors = self.db.execute(
                select(AssignmentMentorORM.mentor_id)
                .where(AssignmentMentorORM.assignment_id == assignment_id)
                .order_by(AssignmentMentorORM.position)
            ).scalars().all()
            if list(stored_mentors) != [m.value for m in assignment.mentor_ids]:
                self.db.execute(
                    delete(AssignmentMentorORM)
                    .where(AssignmentMentorORM.assignment_id == assignment_id)
                    .execution_options(synchronize_session=False)
                )
                self.db.execute(insert(AssignmentMentorORM), self.mapper.mentor_rows(assignment))

            stored_adjustments = self.db.execute(
                select(func.count(DeadlineAdjustmentORM.id)).where(
                    DeadlineAdjustmentORM.assignment_id == assignment_id
                )
            ).scalar() or 0
            new_adjustments = assignment.adjustments[stored_adjustments:]
            if new_adjustments:
                self.db.execute(
                    insert(DeadlineAdjustmentORM),
                    [self.mapper.adjustment_row(assignment_id, a) for a in new_adjustments],
                )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Failed to update assignment {assignment.id}: {e}") from e
        return self._reload(assignment_id)

    def mark_overdue(self, now: datetime) -> int:
        """
        Flag active assignments whose deadline has passed.

        Returns:
            Number of assignments newly flagged
        """
        stmt = (
            update(AssignmentORM)
            .where(
                AssignmentORM.deadline < now,
                AssignmentORM.status.in_(OVERDUE_ELIGIBLE_STATUSES),
                AssignmentORM.is_overdue.is_(False),
            )
            .values(is_overdue=True, version=AssignmentORM.version + 1)
            .execution_options(synchronize_session=False)
        )
        return self._bulk(stmt, "mark")

    def clear_overdue(self, now: datetime) -> int:
        """
        Unflag assignments that were extended, paused, or closed since being flagged.

        Returns:
            Number of assignments unflagged
        """
        stmt = (
            update(AssignmentORM)
            .where(
                AssignmentORM.is_overdue.is_(True),
                or_(
                    AssignmentORM.deadline >= now,
                    AssignmentORM.status.not_in(OVERDUE_ELIGIBLE_STATUSES),
                ),
            )
            .values(is_overdue=False, version=AssignmentORM.version + 1)
            .execution_options(synchronize_session=False)
        )
        return self._bulk(stmt, "clear")

    def _bulk(self, stmt: Update, action: str) -> int:
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Failed to {action} overdue assignments: {e}") from e
        return result.rowcount or 0

    def _reload(self, assignment_id: int) -> Assignment:
        assignment = self.find_by_id(AssignmentId(assignment_id))
        if assignment is None:
            raise StorageError(f"Assignment {assignment_id} vanished after commit")
        return assignment
