"""Repository for ComponentProgress domain entities."""

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from buddyflow.domain.common.value_objects import AssignmentId, ComponentSnapshotId, UserId
from buddyflow.domain.progress.entities.component_progress import ComponentProgress
from buddyflow.exceptions import ConcurrentUpdateError, StorageError
from buddyflow.infrastructure.progress.mappers.component_progress_mapper import (
    ComponentProgressMapper,
)
from buddyflow.models import ComponentProgress as ComponentProgressORM


class ComponentProgressRepository:
    """Repository for ComponentProgress with optimistic version checks."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.mapper = ComponentProgressMapper()

    def find(
        self,
        learner_id: UserId,
        assignment_id: AssignmentId,
        component_snapshot_id: ComponentSnapshotId,
    ) -> ComponentProgress | None:
        """
        Find the progress record for one component of an assignment.

        Returns:
            ComponentProgress entity if found, None otherwise
        """
        stmt = select(ComponentProgressORM).where(
            ComponentProgressORM.learner_id == learner_id.value,
            ComponentProgressORM.assignment_id == assignment_id.value,
            ComponentProgressORM.component_snapshot_id == component_snapshot_id.value,
        )
        orm_model = self.db.execute(stmt).scalar_one_or_none()
        return self.mapper.to_domain(orm_model) if orm_model else None

    def find_all_by_assignment(self, assignment_id: AssignmentId) -> list[ComponentProgress]:
        stmt = (
            select(ComponentProgressORM)
            .where(ComponentProgressORM.assignment_id == assignment_id.value)
            .order_by(ComponentProgressORM.id)
        )
        orm_models = self.db.execute(stmt).scalars().all()
        return [self.mapper.to_domain(orm) for orm in orm_models]

    def create(self, progress: ComponentProgress) -> ComponentProgress:
        """
        Insert a new progress record.

        Raises:
            ConcurrentUpdateError: If another writer created the same record first
            StorageError: If the insert fails for any other reason
        """
        orm_model = self.mapper.to_orm(progress)
        try:
            self.db.add(orm_model)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConcurrentUpdateError(
                "ComponentProgress", progress.component_snapshot_id, progress.version
            ) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Failed to create progress: {e}") from e
        self.db.refresh(orm_model)
        return self.mapper.to_domain(orm_model)

    def update(self, progress: ComponentProgress) -> ComponentProgress:
        """
        Write a progress record if nobody else has written it since it was read.

        Returns:
            The stored record with its version incremented

        Raises:
            ConcurrentUpdateError: If the stored version no longer matches
            StorageError: If the update fails for any other reason
        """
        stmt = (
            update(ComponentProgressORM)
            .where(
                ComponentProgressORM.id == progress.id.value,
                ComponentProgressORM.version == progress.version,
            )
            .values(**self.mapper.to_values(progress), version=progress.version + 1)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
            if result.rowcount == 0:
                self.db.rollback()
                raise ConcurrentUpdateError("ComponentProgress", progress.id, progress.version)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Failed to update progress {progress.id}: {e}") from e

        orm_model = self.db.execute(
            select(ComponentProgressORM)
            .where(ComponentProgressORM.id == progress.id.value)
            .execution_options(populate_existing=True)
        ).scalar_one()
        return self.mapper.to_domain(orm_model)
