"""Mapper for snapshot tree ORM ↔ Domain conversion."""

from typing import cast

from buddyflow.domain.common.value_objects import (
    AssignmentId,
    ComponentSnapshotId,
    ContentHash,
    FlowSnapshotId,
    StepSnapshotId,
    TemplateId,
    UserId,
)
from buddyflow.domain.snapshot.content import ComponentType, content_from_dict, content_to_dict
from buddyflow.domain.snapshot.entities import (
    ComponentSnapshot,
    ComponentSnapshotMetadata,
    FlowSnapshot,
    FlowSnapshotMetadata,
    OriginalComponentReference,
    OriginalStepReference,
    SnapshotTree,
    StepAccessRules,
    StepSnapshot,
    StepSnapshotMetadata,
)
from buddyflow.models import ComponentSnapshot as ComponentSnapshotORM
from buddyflow.models import FlowSnapshot as FlowSnapshotORM
from buddyflow.models import StepSnapshot as StepSnapshotORM


class SnapshotMapper:
    """
    Mapper for snapshot ORM ↔ Domain conversion.

    Snapshot rows are insert-only, so ``tree_to_orm`` only ever builds new rows.
    Ordering lives in the ``order`` columns; id lists on the domain side are
    rebuilt from them.
    """

    def tree_to_domain(self, orm_model: FlowSnapshotORM) -> SnapshotTree:
        """Convert a flow row with loaded steps and components to a tree."""
        steps = sorted(orm_model.steps, key=lambda s: s.order)
        return SnapshotTree(
            flow=self.flow_to_domain(orm_model, steps),
            steps=tuple(self.step_to_domain(step) for step in steps),
            components=tuple(
                self.component_to_domain(component)
                for step in steps
                for component in step.components
            ),
        )

    def flow_to_domain(
        self, orm_model: FlowSnapshotORM, steps: list[StepSnapshotORM] | None = None
    ) -> FlowSnapshot:
        ordered = steps if steps is not None else sorted(orm_model.steps, key=lambda s: s.order)
        return FlowSnapshot(
            id=FlowSnapshotId(orm_model.id),
            template_id=TemplateId(orm_model.template_id),
            template_version=orm_model.template_version,
            title=orm_model.title,
            step_ids=tuple(StepSnapshotId(step.id) for step in ordered),
            metadata=FlowSnapshotMetadata(
                created_at=orm_model.created_at,
                created_by=UserId(orm_model.created_by),
                snapshot_version=orm_model.snapshot_version,
                total_steps=orm_model.total_steps,
                total_components=orm_model.total_components,
                size_bytes=orm_model.size_bytes,
                content_hash=ContentHash(orm_model.content_hash),
            ),
            description=orm_model.description,
            assignment_id=(
                AssignmentId(orm_model.assignment_id) if orm_model.assignment_id else None
            ),
            context=orm_model.context or {},
        )

    def step_to_domain(self, orm_model: StepSnapshotORM) -> StepSnapshot:
        components = sorted(orm_model.components, key=lambda c: c.order)
        return StepSnapshot(
            id=StepSnapshotId(orm_model.id),
            flow_snapshot_id=FlowSnapshotId(orm_model.flow_snapshot_id),
            component_ids=tuple(ComponentSnapshotId(c.id) for c in components),
            order=orm_model.order,
            is_required=orm_model.is_required,
            access=StepAccessRules(
                requires_previous_step_completed=orm_model.requires_previous_step_completed,
                skippable=orm_model.skippable,
                max_attempts=orm_model.max_attempts,
                time_limit_minutes=orm_model.time_limit_minutes,
            ),
            original=OriginalStepReference(
                id=orm_model.original_step_id,
                title=orm_model.original_title,
                order=orm_model.original_order,
                description=orm_model.original_description,
            ),
            metadata=StepSnapshotMetadata(
                total_components=orm_model.total_components,
                required_components=orm_model.required_components,
                estimated_duration_minutes=orm_model.estimated_duration_minutes,
            ),
        )

    def component_to_domain(self, orm_model: ComponentSnapshotORM) -> ComponentSnapshot:
        component_type = cast(ComponentType, orm_model.component_type)
        return ComponentSnapshot(
            id=ComponentSnapshotId(orm_model.id),
            step_snapshot_id=StepSnapshotId(orm_model.step_snapshot_id),
            component_type=component_type,
            content=content_from_dict(component_type, orm_model.content),
            order=orm_model.order,
            is_required=orm_model.is_required,
            original=OriginalComponentReference(
                id=orm_model.original_component_id,
                title=orm_model.original_title,
                description=orm_model.original_description,
            ),
            metadata=ComponentSnapshotMetadata(
                snapshot_version=orm_model.snapshot_version,
                content_size=orm_model.content_size,
                estimated_duration_minutes=orm_model.estimated_duration_minutes,
                tags=tuple(orm_model.tags or ()),
            ),
            max_attempts=orm_model.max_attempts,
        )

    def tree_to_orm(self, tree: SnapshotTree) -> FlowSnapshotORM:
        """Build new rows for all three levels of a tree."""
        flow = tree.flow
        orm_model = FlowSnapshotORM(
            id=flow.id.value,
            template_id=flow.template_id.value,
            template_version=flow.template_version,
            title=flow.title,
            description=flow.description,
            assignment_id=flow.assignment_id.value if flow.assignment_id else None,
            context=flow.context_dict(),
            created_at=flow.metadata.created_at,
            created_by=flow.metadata.created_by.value,
            snapshot_version=flow.metadata.snapshot_version,
            total_steps=flow.metadata.total_steps,
            total_components=flow.metadata.total_components,
            size_bytes=flow.metadata.size_bytes,
            content_hash=flow.metadata.content_hash.value,
        )
        orm_model.steps = [
            self._step_to_orm(step, tree.components_for_step(step.id))
            for step in tree.ordered_steps()
        ]
        return orm_model

    def _step_to_orm(
        self, step: StepSnapshot, components: list[ComponentSnapshot]
    ) -> StepSnapshotORM:
        orm_model = StepSnapshotORM(
            id=step.id.value,
            flow_snapshot_id=step.flow_snapshot_id.value,
            order=step.order,
            is_required=step.is_required,
            requires_previous_step_completed=step.access.requires_previous_step_completed,
            skippable=step.access.skippable,
            max_attempts=step.access.max_attempts,
            time_limit_minutes=step.access.time_limit_minutes,
            original_step_id=step.original.id,
            original_title=step.original.title,
            original_description=step.original.description,
            original_order=step.original.order,
            total_components=step.metadata.total_components,
            required_components=step.metadata.required_components,
            estimated_duration_minutes=step.metadata.estimated_duration_minutes,
        )
        orm_model.components = [self._component_to_orm(c) for c in components]
        return orm_model

    def _component_to_orm(self, component: ComponentSnapshot) -> ComponentSnapshotORM:
        return ComponentSnapshotORM(
            id=component.id.value,
            step_snapshot_id=component.step_snapshot_id.value,
            component_type=component.component_type,
            order=component.order,
            is_required=component.is_required,
            max_attempts=component.max_attempts,
            content=content_to_dict(component.content),
            original_component_id=component.original.id,
            original_title=component.original.title,
            original_description=component.original.description,
            snapshot_version=component.metadata.snapshot_version,
            content_size=component.metadata.content_size,
            estimated_duration_minutes=component.metadata.estimated_duration_minutes,
            tags=list(component.metadata.tags),
        )
