"""Mutable curriculum templates: flow -> ordered steps -> ordered components."""

from dataclasses import dataclass, field
from typing import Any

from buddyflow.domain.common.entity import Entity
from buddyflow.domain.common.value_objects import TemplateComponentId, TemplateId, TemplateStepId


@dataclass
class ComponentTemplate(Entity[TemplateComponentId]):
    """
    A content unit as authored.

    ``component_type`` is kept as the raw stored string so an unrecognized
    type can be reported rather than rejected on load.
    """

    id: TemplateComponentId
    component_type: str
    title: str
    order: int
    content: dict[str, Any] = field(default_factory=dict)
    description: str | None = None
    is_required: bool = True
    max_attempts: int | None = None
    tags: list[str] = field(default_factory=list)


@dataclass
class StepTemplate(Entity[TemplateStepId]):
    id: TemplateStepId
    title: str
    order: int
    components: list[ComponentTemplate] = field(default_factory=list)
    description: str | None = None
    is_required: bool = True
    requires_previous_step_completed: bool = True
    skippable: bool = False
    max_attempts: int | None = None
    time_limit_minutes: int | None = None

    def ordered_components(self) -> list[ComponentTemplate]:
        return sorted(self.components, key=lambda c: c.order)


@dataclass
class FlowTemplate(Entity[TemplateId]):
    id: TemplateId
    title: str
    version: int
    is_active: bool = True
    steps: list[StepTemplate] = field(default_factory=list)
    description: str | None = None

    def ordered_steps(self) -> list[StepTemplate]:
        return sorted(self.steps, key=lambda s: s.order)
