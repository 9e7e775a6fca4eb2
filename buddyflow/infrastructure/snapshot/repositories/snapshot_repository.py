"""Repository for snapshot trees."""

from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from buddyflow.domain.common.value_objects import (
    ComponentSnapshotId,
    FlowSnapshotId,
    StepSnapshotId,
)
from buddyflow.domain.snapshot.entities import (
    ComponentSnapshot,
    FlowSnapshot,
    SnapshotTree,
    StepSnapshot,
)
from buddyflow.exceptions import StorageError
from buddyflow.infrastructure.snapshot.mappers.snapshot_mapper import SnapshotMapper
from buddyflow.models import Assignment as AssignmentORM
from buddyflow.models import ComponentProgress as ComponentProgressORM
from buddyflow.models import ComponentSnapshot as ComponentSnapshotORM
from buddyflow.models import FlowSnapshot as FlowSnapshotORM
from buddyflow.models import StepSnapshot as StepSnapshotORM


class SnapshotRepository:
    """Repository for snapshot trees. Rows are written once; only context may change."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.mapper = SnapshotMapper()

    def create_snapshot_tree(self, tree: SnapshotTree) -> SnapshotTree:
        """
        Insert the flow, its steps and their components in one transaction.

        Args:
            tree: The tree to store

        Returns:
            The tree as read back from the database

        Raises:
            StorageError: If any insert fails; the transaction is rolled back
        """
        orm_model = self.mapper.tree_to_orm(tree)
        try:
            self.db.add(orm_model)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Failed to store snapshot {tree.flow.id}: {e}") from e

        stored = self.get_snapshot_tree(tree.flow.id)
        if stored is None:
            raise StorageError(f"Snapshot {tree.flow.id} vanished after commit")
        return stored

    def get_flow_snapshot(self, snapshot_id: FlowSnapshotId) -> FlowSnapshot | None:
        stmt = (
            select(FlowSnapshotORM)
            .where(FlowSnapshotORM.id == snapshot_id.value)
            .options(selectinload(FlowSnapshotORM.steps))
        )
        orm_model = self.db.execute(stmt).scalar_one_or_none()
        return self.mapper.flow_to_domain(orm_model) if orm_model else None

    def get_step_snapshots(self, snapshot_id: FlowSnapshotId) -> list[StepSnapshot]:
        """
        Get the steps of a flow snapshot.

        Returns:
            List of step snapshots ordered by step order
        """
        stmt = (
            select(StepSnapshotORM)
            .where(StepSnapshotORM.flow_snapshot_id == snapshot_id.value)
            .options(selectinload(StepSnapshotORM.components))
            .order_by(StepSnapshotORM.order)
        )
        orm_models = self.db.execute(stmt).scalars().all()
        return [self.mapper.step_to_domain(orm) for orm in orm_models]

    def get_component_snapshots(
        self, step_ids: Sequence[StepSnapshotId]
    ) -> list[ComponentSnapshot]:
        """
        Get the components of several steps.

        Returns:
            Components ordered by their step's order, then by component order
        """
        if not step_ids:
            return []
        stmt = (
            select(ComponentSnapshotORM)
            .join(StepSnapshotORM, ComponentSnapshotORM.step_snapshot_id == StepSnapshotORM.id)
            .where(ComponentSnapshotORM.step_snapshot_id.in_([s.value for s in step_ids]))
            .order_by(StepSnapshotORM.order, ComponentSnapshotORM.order)
        )
        orm_models = self.db.execute(stmt).scalars().all()
        return [self.mapper.component_to_domain(orm) for orm in orm_models]

    def get_component_snapshot(self, component_id: ComponentSnapshotId) -> ComponentSnapshot | None:
        orm_model = self.db.get(ComponentSnapshotORM, component_id.value)
        return self.mapper.component_to_domain(orm_model) if orm_model else None

    def get_snapshot_tree(self, snapshot_id: FlowSnapshotId) -> SnapshotTree | None:
        """Load all three levels of a snapshot, or None if the flow does not exist."""
        stmt = (
            select(FlowSnapshotORM)
            .where(FlowSnapshotORM.id == snapshot_id.value)
            .options(
                selectinload(FlowSnapshotORM.steps).selectinload(StepSnapshotORM.components)
            )
        )
        orm_model = self.db.execute(stmt).scalar_one_or_none()
        return self.mapper.tree_to_domain(orm_model) if orm_model else None

    def update_context(self, snapshot_id: FlowSnapshotId, context: Mapping[str, Any]) -> None:
        """Replace the context map. No other column is touched."""
        stmt = (
            update(FlowSnapshotORM)
            .where(FlowSnapshotORM.id == snapshot_id.value)
            .values(context=dict(context))
        )
        try:
            self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Failed to update context of snapshot {snapshot_id}: {e}") from e

    def delete_snapshot_tree(self, snapshot_id: FlowSnapshotId) -> bool:
        """
        Delete a snapshot with its steps, components, assignments and progress.

        Returns:
            True if deleted, False if not found
        """
        orm_model = self.db.get(FlowSnapshotORM, snapshot_id.value)
        if not orm_model:
            return False

        component_ids = (
            select(ComponentSnapshotORM.id)
            .join(StepSnapshotORM, ComponentSnapshotORM.step_snapshot_id == StepSnapshotORM.id)
            .where(StepSnapshotORM.flow_snapshot_id == snapshot_id.value)
        )
        assignments_stmt = select(AssignmentORM).where(
            AssignmentORM.snapshot_id == snapshot_id.value
        )
        assignments = self.db.execute(assignments_stmt).scalars().all()
        try:
            self.db.execute(
                delete(ComponentProgressORM).where(
                    ComponentProgressORM.component_snapshot_id.in_(component_ids)
                )
            )
            for assignment in assignments:
                self.db.delete(assignment)
            self.db.delete(orm_model)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Failed to delete snapshot {snapshot_id}: {e}") from e
        return True
