"""
Domain service that deep-copies a flow template into a SnapshotTree.

Each level is rebuilt field by field from the template, lists become tuples
and content dicts become frozen value objects, so the snapshot shares no
mutable state with the template it came from.
"""

import json
from collections.abc import Mapping
from datetime import datetime
from typing import Any, cast

from buddyflow.domain.common.value_objects import (
    AssignmentId,
    ComponentSnapshotId,
    ContentHash,
    FlowSnapshotId,
    StepSnapshotId,
    UserId,
)
from buddyflow.domain.curriculum.entities.flow_template import (
    ComponentTemplate,
    FlowTemplate,
    StepTemplate,
)
from buddyflow.domain.snapshot.content import (
    DEFAULT_QUIZ_PASSING_SCORE,
    ComponentType,
    content_from_dict,
    content_size,
    content_to_dict,
    estimate_duration_minutes,
)
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

CURRENT_SNAPSHOT_VERSION = "1.0.0"


class SnapshotFactory:
    """Builds immutable snapshot trees from validated templates."""

    def __init__(
        self,
        snapshot_version: str = CURRENT_SNAPSHOT_VERSION,
        default_passing_score: int = DEFAULT_QUIZ_PASSING_SCORE,
    ) -> None:
        self.snapshot_version = snapshot_version
        self.default_passing_score = default_passing_score

    def build(
        self,
        template: FlowTemplate,
        created_by: UserId,
        created_at: datetime,
        assignment_id: AssignmentId | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> SnapshotTree:
        """
        Deep-copy a template into a new snapshot tree.

        The template must already have passed TemplateValidator; content
        that fails to construct here raises ValidationError.

        Args:
            template: Source template
            created_by: User that triggered the snapshot
            created_at: Creation timestamp
            assignment_id: Assignment that will own the snapshot, if known
            context: Free-form context stored on the flow snapshot

        Returns:
            A new tree with freshly generated ids at every level
        """
        flow_id = FlowSnapshotId.generate()
        steps: list[StepSnapshot] = []
        components: list[ComponentSnapshot] = []

        for step_template in template.ordered_steps():
            step_id = StepSnapshotId.generate()
            step_components = [
                self._build_component(step_id, component_template)
                for component_template in step_template.ordered_components()
            ]
            components.extend(step_components)
            steps.append(self._build_step(flow_id, step_id, step_template, step_components))

        canonical = _canonical_tree_data(template, steps, components)
        flow = FlowSnapshot(
            id=flow_id,
            template_id=template.id,
            template_version=template.version,
            title=template.title.strip(),
            description=template.description,
            step_ids=tuple(step.id for step in steps),
            assignment_id=assignment_id,
            context=dict(context or {}),
            metadata=FlowSnapshotMetadata(
                created_at=created_at,
                created_by=created_by,
                snapshot_version=self.snapshot_version,
                total_steps=len(steps),
                total_components=len(components),
                size_bytes=len(
                    json.dumps(canonical, ensure_ascii=False, sort_keys=True).encode("utf-8")
                ),
                content_hash=ContentHash.compute_from_data(canonical),
            ),
        )
        return SnapshotTree(flow=flow, steps=tuple(steps), components=tuple(components))

    def _build_component(
        self, step_id: StepSnapshotId, template: ComponentTemplate
    ) -> ComponentSnapshot:
        component_type = cast(ComponentType, template.component_type)
        content = content_from_dict(
            component_type, template.content, default_passing_score=self.default_passing_score
        )
        return ComponentSnapshot(
            id=ComponentSnapshotId.generate(),
            step_snapshot_id=step_id,
            component_type=component_type,
            content=content,
            order=template.order,
            is_required=template.is_required,
            max_attempts=template.max_attempts,
            original=OriginalComponentReference(
                id=template.id.value,
                title=template.title,
                description=template.description,
            ),
            metadata=ComponentSnapshotMetadata(
                snapshot_version=self.snapshot_version,
                content_size=content_size(content),
                estimated_duration_minutes=estimate_duration_minutes(content),
                tags=tuple(template.tags),
            ),
        )

    def _build_step(
        self,
        flow_id: FlowSnapshotId,
        step_id: StepSnapshotId,
        template: StepTemplate,
        components: list[ComponentSnapshot],
    ) -> StepSnapshot:
        return StepSnapshot(
            id=step_id,
            flow_snapshot_id=flow_id,
            component_ids=tuple(c.id for c in components),
            order=template.order,
            is_required=template.is_required,
            access=StepAccessRules(
                requires_previous_step_completed=template.requires_previous_step_completed,
                skippable=template.skippable,
                max_attempts=template.max_attempts,
                time_limit_minutes=template.time_limit_minutes,
            ),
            original=OriginalStepReference(
                id=template.id.value,
                title=template.title,
                order=template.order,
                description=template.description,
            ),
            metadata=StepSnapshotMetadata(
                total_components=len(components),
                required_components=sum(1 for c in components if c.is_required),
                estimated_duration_minutes=sum(
                    c.metadata.estimated_duration_minutes for c in components
                ),
            ),
        )


def _canonical_tree_data(
    template: FlowTemplate, steps: list[StepSnapshot], components: list[ComponentSnapshot]
) -> dict[str, Any]:
    """Id-free description of the tree, stable across snapshots of one template revision."""
    by_step: dict[StepSnapshotId, list[ComponentSnapshot]] = {}
    for component in components:
        by_step.setdefault(component.step_snapshot_id, []).append(component)

    return {
        "template_id": template.id.value,
        "template_version": template.version,
        "title": template.title.strip(),
        "description": template.description,
        "steps": [
            {
                "order": step.order,
                "title": step.title,
                "is_required": step.is_required,
                "requires_previous_step_completed": step.access.requires_previous_step_completed,
                "skippable": step.access.skippable,
                "components": [
                    {
                        "order": component.order,
                        "type": component.component_type,
                        "title": component.title,
                        "is_required": component.is_required,
                        "max_attempts": component.max_attempts,
                        "content": content_to_dict(component.content),
                    }
                    for component in by_step.get(step.id, [])
                ],
            }
            for step in steps
        ],
    }
