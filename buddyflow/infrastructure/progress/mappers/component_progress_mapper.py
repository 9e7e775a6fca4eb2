"""Mapper for ComponentProgress ORM ↔ Domain conversion."""

from datetime import datetime
from typing import Any, cast

from buddyflow.domain.common.value_objects import (
    AssignmentId,
    ComponentProgressId,
    ComponentSnapshotId,
    UserId,
)
from buddyflow.domain.progress.entities.component_progress import (
    ComponentProgress,
    ProgressReset,
    ProgressStatus,
)
from buddyflow.domain.progress.payloads import payload_from_dict, payload_to_dict
from buddyflow.domain.snapshot.content import ComponentType
from buddyflow.models import ComponentProgress as ComponentProgressORM


class ComponentProgressMapper:
    """Mapper for ComponentProgress ORM ↔ Domain conversion."""

    def to_domain(self, orm_model: ComponentProgressORM) -> ComponentProgress:
        """Convert ORM model to domain entity."""
        component_type = cast(ComponentType, orm_model.component_type)
        return ComponentProgress(
            id=ComponentProgressId(orm_model.id),
            learner_id=UserId(orm_model.learner_id),
            assignment_id=AssignmentId(orm_model.assignment_id),
            component_snapshot_id=ComponentSnapshotId(orm_model.component_snapshot_id),
            component_type=component_type,
            payload=payload_from_dict(component_type, orm_model.payload or {}),
            status=cast(ProgressStatus, orm_model.status),
            attempt_count=orm_model.attempt_count,
            time_spent_seconds=orm_model.time_spent_seconds,
            started_at=orm_model.started_at,
            completed_at=orm_model.completed_at,
            last_activity_at=orm_model.last_activity_at,
            reset_history=[
                self._reset_from_dict(component_type, record)
                for record in orm_model.reset_history or []
            ],
            version=orm_model.version,
        )

    def to_values(self, domain_entity: ComponentProgress) -> dict[str, Any]:
        """Column values for everything a progress update may change."""
        return {
            "status": domain_entity.status,
            "attempt_count": domain_entity.attempt_count,
            "time_spent_seconds": domain_entity.time_spent_seconds,
            "started_at": domain_entity.started_at,
            "completed_at": domain_entity.completed_at,
            "last_activity_at": domain_entity.last_activity_at,
            "payload": payload_to_dict(domain_entity.payload),
            "reset_history": [self._reset_to_dict(r) for r in domain_entity.reset_history],
        }

    def to_orm(self, domain_entity: ComponentProgress) -> ComponentProgressORM:
        """Build a new ORM row for a progress record that has not been stored yet."""
        return ComponentProgressORM(
            id=domain_entity.id.value if domain_entity.id.value != 0 else None,
            learner_id=domain_entity.learner_id.value,
            assignment_id=domain_entity.assignment_id.value,
            component_snapshot_id=domain_entity.component_snapshot_id.value,
            component_type=domain_entity.component_type,
            version=domain_entity.version,
            **self.to_values(domain_entity),
        )

    @staticmethod
    def _reset_to_dict(record: ProgressReset) -> dict[str, Any]:
        return {
            "reset_at": record.reset_at.isoformat(),
            "previous_status": record.previous_status,
            "attempt_count": record.attempt_count,
            "time_spent_seconds": record.time_spent_seconds,
            "payload": payload_to_dict(record.payload),
        }

    @staticmethod
    def _reset_from_dict(component_type: ComponentType, data: dict[str, Any]) -> ProgressReset:
        return ProgressReset(
            reset_at=datetime.fromisoformat(data["reset_at"]),
            previous_status=cast(ProgressStatus, data["previous_status"]),
            attempt_count=data["attempt_count"],
            time_spent_seconds=data["time_spent_seconds"],
            payload=payload_from_dict(component_type, data.get("payload") or {}),
        )
