"""Mapper for FlowTemplate ORM → Domain conversion."""

import copy

from buddyflow.domain.common.value_objects import (
    TemplateComponentId,
    TemplateId,
    TemplateStepId,
)
from buddyflow.domain.curriculum.entities.flow_template import (
    ComponentTemplate,
    FlowTemplate,
    StepTemplate,
)
from buddyflow.models import FlowTemplate as FlowTemplateORM
from buddyflow.models import TemplateComponent as TemplateComponentORM
from buddyflow.models import TemplateStep as TemplateStepORM


class FlowTemplateMapper:
    """Mapper for FlowTemplate ORM → Domain conversion. Templates are read-only here."""

    def to_domain(self, orm_model: FlowTemplateORM) -> FlowTemplate:
        """Convert ORM model, with its steps and components, to a domain entity."""
        return FlowTemplate(
            id=TemplateId(orm_model.id),
            title=orm_model.title,
            version=orm_model.version,
            is_active=orm_model.is_active,
            description=orm_model.description,
            steps=[self._step_to_domain(step) for step in orm_model.steps],
        )

    def _step_to_domain(self, orm_model: TemplateStepORM) -> StepTemplate:
        return StepTemplate(
            id=TemplateStepId(orm_model.id),
            title=orm_model.title,
            order=orm_model.order,
            description=orm_model.description,
            is_required=orm_model.is_required,
            requires_previous_step_completed=orm_model.requires_previous_step_completed,
            skippable=orm_model.skippable,
            max_attempts=orm_model.max_attempts,
            time_limit_minutes=orm_model.time_limit_minutes,
            components=[self._component_to_domain(c) for c in orm_model.components],
        )

    def _component_to_domain(self, orm_model: TemplateComponentORM) -> ComponentTemplate:
        # JSON columns hand back live structures; copy so callers cannot write through.
        return ComponentTemplate(
            id=TemplateComponentId(orm_model.id),
            component_type=orm_model.component_type,
            title=orm_model.title,
            order=orm_model.order,
            content=copy.deepcopy(orm_model.content or {}),
            description=orm_model.description,
            is_required=orm_model.is_required,
            max_attempts=orm_model.max_attempts,
            tags=list(orm_model.tags or []),
        )
