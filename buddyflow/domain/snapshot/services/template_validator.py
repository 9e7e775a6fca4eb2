"""
Domain service that checks a flow template can be frozen into a snapshot.

This is a pure domain service with no infrastructure dependencies.
"""

from dataclasses import dataclass
from typing import Any, cast

from buddyflow.domain.common.exceptions import ValidationError
from buddyflow.domain.curriculum.entities.flow_template import (
    ComponentTemplate,
    FlowTemplate,
    StepTemplate,
)
from buddyflow.domain.snapshot.content import COMPONENT_TYPES, ComponentType, content_from_dict


@dataclass(frozen=True)
class TemplateValidationReport:
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors


class TemplateValidator:
    """
    Collects every defect in a template instead of stopping at the first.

    Errors block snapshot creation. Warnings (such as an empty step) are
    reported alongside but do not.
    """

    def validate(self, template: FlowTemplate) -> TemplateValidationReport:
        """
        Validate a template.

        Args:
            template: The template to inspect

        Returns:
            Report listing all errors and warnings found
        """
        errors: list[str] = []
        warnings: list[str] = []

        if not template.is_active:
            errors.append(f"Template {template.id} is not active")
        if not template.title or not template.title.strip():
            errors.append("Flow title cannot be empty")
        if not template.steps:
            errors.append("Flow must have at least one step")

        for step in template.ordered_steps():
            self._validate_step(step, errors, warnings)

        return TemplateValidationReport(errors=tuple(errors), warnings=tuple(warnings))

    def _validate_step(self, step: StepTemplate, errors: list[str], warnings: list[str]) -> None:
        label = f"Step {step.order}"
        if not step.title or not step.title.strip():
            errors.append(f"{label} must have a title")
        if step.order < 1:
            errors.append(f"{label} order must be 1 or greater")
        if not step.components:
            warnings.append(f"{label} has no components")

        for component in step.ordered_components():
            self._validate_component(label, component, errors)

    def _validate_component(
        self, step_label: str, component: ComponentTemplate, errors: list[str]
    ) -> None:
        label = f"{step_label}, component {component.order}"
        if component.component_type not in COMPONENT_TYPES:
            errors.append(f"{label} has unrecognized type '{component.component_type}'")
            return

        found = _content_errors(component.component_type, component.content or {})
        if not found:
            # Structural checks passed; let the content constructors catch the rest.
            try:
                content_from_dict(
                    cast(ComponentType, component.component_type), component.content or {}
                )
            except ValidationError as e:
                found.append(e.message)
        errors.extend(f"{label}: {message}" for message in found)


def _content_errors(component_type: str, content: dict[str, Any]) -> list[str]:
    found: list[str] = []
    if component_type == "article":
        if not str(content.get("text") or "").strip():
            found.append("article body text cannot be empty")
    elif component_type == "task":
        if not str(content.get("reference_answer") or "").strip():
            found.append("task must have a reference answer")
    elif component_type == "video":
        if not str(content.get("url") or "").strip():
            found.append("video must have a source URL")
    elif component_type == "quiz":
        questions = content.get("questions") or []
        if not isinstance(questions, list):
            return ["quiz questions must be a list"]
        if not questions:
            found.append("quiz must have at least one question")
        for index, question in enumerate(questions, start=1):
            if not isinstance(question, dict):
                found.append(f"quiz question {index} is malformed")
                continue
            options = question.get("options") or []
            if not isinstance(options, list) or not all(isinstance(o, dict) for o in options):
                found.append(f"quiz question {index} has a malformed option")
                continue
            if len(options) < 2:
                found.append(f"quiz question {index} needs at least two options")
            if not any(option.get("is_correct") for option in options):
                found.append(f"quiz question {index} needs at least one correct option")
    return found
