"""Tests for TemplateValidator domain service."""

from typing import Any

from buddyflow.domain.common.value_objects import TemplateComponentId, TemplateId, TemplateStepId
from buddyflow.domain.curriculum.entities.flow_template import (
    ComponentTemplate,
    FlowTemplate,
    StepTemplate,
)
from buddyflow.domain.snapshot.services.template_validator import TemplateValidator


def _component(component_type: str, content: dict[str, Any], order: int = 1) -> ComponentTemplate:
    return ComponentTemplate(
        id=TemplateComponentId(order),
        component_type=component_type,
        title=f"{component_type} {order}",
        order=order,
        content=content,
    )


def _template(*steps: StepTemplate, is_active: bool = True, title: str = "Flow") -> FlowTemplate:
    return FlowTemplate(
        id=TemplateId(1), title=title, version=1, is_active=is_active, steps=list(steps)
    )


def _step(*components: ComponentTemplate, order: int = 1, title: str = "Step") -> StepTemplate:
    return StepTemplate(
        id=TemplateStepId(order), title=title, order=order, components=list(components)
    )


class TestTemplateValidator:
    def test_valid_template_has_no_errors(self) -> None:
        template = _template(
            _step(
                _component("article", {"text": "Hello"}),
                _component("task", {"instruction": "Say hi", "reference_answer": "hi"}, 2),
            )
        )
        report = TemplateValidator().validate(template)
        assert report.is_valid
        assert report.errors == ()

    def test_collects_every_error(self) -> None:
        template = _template(
            _step(
                _component("article", {"text": "  "}),
                _component("video", {"url": ""}, 2),
                _component("task", {"instruction": "?"}, 3),
            ),
            is_active=False,
            title="",
        )
        report = TemplateValidator().validate(template)
        assert not report.is_valid
        assert len(report.errors) == 5
        assert any("not active" in e for e in report.errors)
        assert any("title cannot be empty" in e for e in report.errors)
        assert any("article body text" in e for e in report.errors)
        assert any("source URL" in e for e in report.errors)
        assert any("reference answer" in e for e in report.errors)

    def test_flow_without_steps_is_invalid(self) -> None:
        report = TemplateValidator().validate(_template())
        assert report.errors == ("Flow must have at least one step",)

    def test_empty_step_is_only_a_warning(self) -> None:
        report = TemplateValidator().validate(_template(_step()))
        assert report.is_valid
        assert report.warnings == ("Step 1 has no components",)

    def test_quiz_question_rules(self) -> None:
        quiz = {
            "questions": [
                {"id": "q1", "text": "One option", "options": [{"id": "a", "is_correct": True}]},
                {
                    "id": "q2",
                    "text": "No correct option",
                    "options": [{"id": "a"}, {"id": "b"}],
                },
            ]
        }
        report = TemplateValidator().validate(_template(_step(_component("quiz", quiz))))
        assert report.errors == (
            "Step 1, component 1: quiz question 1 needs at least two options",
            "Step 1, component 1: quiz question 2 needs at least one correct option",
        )

    def test_malformed_quiz_entries_are_reported(self) -> None:
        quiz = {
            "questions": [
                "What is two plus two?",
                {"id": "q2", "text": "Pick one", "options": ["a", {"id": "b", "is_correct": True}]},
                {
                    "id": "q3",
                    "text": "Fine",
                    "options": [{"id": "a", "is_correct": True}, {"id": "b"}],
                },
            ]
        }
        report = TemplateValidator().validate(_template(_step(_component("quiz", quiz))))
        assert report.errors == (
            "Step 1, component 1: quiz question 1 is malformed",
            "Step 1, component 1: quiz question 2 has a malformed option",
        )

        report = TemplateValidator().validate(
            _template(_step(_component("quiz", {"questions": {"q1": "?"}})))
        )
        assert report.errors == ("Step 1, component 1: quiz questions must be a list",)

    def test_empty_quiz_is_invalid(self) -> None:
        report = TemplateValidator().validate(
            _template(_step(_component("quiz", {"questions": []})))
        )
        assert report.errors == ("Step 1, component 1: quiz must have at least one question",)

    def test_unrecognized_component_type(self) -> None:
        report = TemplateValidator().validate(
            _template(_step(_component("podcast", {"url": "x"})))
        )
        assert report.errors == ("Step 1, component 1 has unrecognized type 'podcast'",)

    def test_step_order_must_be_positive(self) -> None:
        report = TemplateValidator().validate(
            _template(_step(_component("article", {"text": "x"}), order=0))
        )
        assert "Step 0 order must be 1 or greater" in report.errors

    def test_content_constructor_errors_are_reported(self) -> None:
        video = {"url": "https://example.com/v.mp4", "min_watch_percentage": 1.5}
        report = TemplateValidator().validate(_template(_step(_component("video", video))))
        assert len(report.errors) == 1
        assert "Minimum watch percentage" in report.errors[0]
