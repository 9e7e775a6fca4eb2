"""Tests for SnapshotFactory domain service."""

import dataclasses
from datetime import UTC, datetime
from typing import Any

import pytest

from buddyflow.domain.common.exceptions import InvariantViolationError
from buddyflow.domain.common.value_objects import (
    TemplateComponentId,
    TemplateId,
    TemplateStepId,
    UserId,
)
from buddyflow.domain.curriculum.entities.flow_template import (
    ComponentTemplate,
    FlowTemplate,
    StepTemplate,
)
from buddyflow.domain.snapshot.content import ArticleContent, QuizContent, TaskContent
from buddyflow.domain.snapshot.services.snapshot_factory import SnapshotFactory

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


def _quiz(questions: int) -> dict[str, Any]:
    return {
        "questions": [
            {
                "id": f"q{n}",
                "text": f"Q{n}",
                "options": [{"id": "a", "is_correct": True}, {"id": "b"}],
            }
            for n in range(questions)
        ]
    }


def _template() -> FlowTemplate:
    return FlowTemplate(
        id=TemplateId(7),
        title=" Onboarding ",
        version=3,
        steps=[
            StepTemplate(
                id=TemplateStepId(2),
                title="Second",
                order=2,
                skippable=True,
                components=[
                    ComponentTemplate(
                        id=TemplateComponentId(5),
                        component_type="video",
                        title="Clip",
                        order=1,
                        content={"url": "https://example.com/v.mp4", "duration_seconds": 61},
                    ),
                    ComponentTemplate(
                        id=TemplateComponentId(6),
                        component_type="video",
                        title="Clip without duration",
                        order=2,
                        is_required=False,
                        content={"url": "https://example.com/w.mp4"},
                    ),
                ],
            ),
            StepTemplate(
                id=TemplateStepId(1),
                title="First",
                order=1,
                components=[
                    ComponentTemplate(
                        id=TemplateComponentId(3),
                        component_type="task",
                        title="Task",
                        order=2,
                        content={"instruction": "?", "reference_answer": "42"},
                        tags=["math"],
                    ),
                    ComponentTemplate(
                        id=TemplateComponentId(1),
                        component_type="article",
                        title="Article",
                        order=1,
                        content={"text": "Body"},
                    ),
                    ComponentTemplate(
                        id=TemplateComponentId(4),
                        component_type="quiz",
                        title="Small quiz",
                        order=3,
                        content=_quiz(2),
                    ),
                    ComponentTemplate(
                        id=TemplateComponentId(8),
                        component_type="quiz",
                        title="Big quiz",
                        order=4,
                        content=_quiz(4),
                    ),
                ],
            ),
        ],
    )


class TestSnapshotFactory:
    def test_builds_ordered_tree_with_counts(self) -> None:
        tree = SnapshotFactory().build(_template(), created_by=UserId(1), created_at=NOW)

        assert tree.flow.title == "Onboarding"
        assert tree.flow.template_version == 3
        assert tree.flow.metadata.total_steps == 2
        assert tree.flow.metadata.total_components == 6
        assert tree.flow.metadata.snapshot_version == "1.0.0"
        assert [s.title for s in tree.ordered_steps()] == ["First", "Second"]

        first, second = tree.ordered_steps()
        assert [c.title for c in tree.components_for_step(first.id)] == [
            "Article",
            "Task",
            "Small quiz",
            "Big quiz",
        ]
        assert second.access.skippable
        assert second.metadata.total_components == 2
        assert second.metadata.required_components == 1

    def test_duration_heuristics(self) -> None:
        tree = SnapshotFactory().build(_template(), created_by=UserId(1), created_at=NOW)
        first, second = tree.ordered_steps()

        durations = [
            c.metadata.estimated_duration_minutes for c in tree.components_for_step(first.id)
        ]
        # article default 5, task 10, quiz max(2*2, 5), quiz max(4*2, 5)
        assert durations == [5, 10, 5, 8]
        assert first.metadata.estimated_duration_minutes == 28

        video_durations = [
            c.metadata.estimated_duration_minutes for c in tree.components_for_step(second.id)
        ]
        # 61 seconds rounds up to 2 minutes; no duration counts as 0
        assert video_durations == [2, 0]

    def test_content_is_frozen_value_objects(self) -> None:
        tree = SnapshotFactory().build(_template(), created_by=UserId(1), created_at=NOW)
        first = tree.ordered_steps()[0]
        article, task, quiz, _ = tree.components_for_step(first.id)

        assert isinstance(article.content, ArticleContent)
        assert isinstance(task.content, TaskContent)
        assert isinstance(quiz.content, QuizContent)
        assert quiz.content.passing_score == 70
        assert task.metadata.tags == ("math",)
        with pytest.raises(dataclasses.FrozenInstanceError):
            task.content.reference_answer = "41"  # type: ignore[misc]
        with pytest.raises(TypeError):
            tree.flow.context["key"] = "value"  # type: ignore[index]

    def test_snapshot_is_detached_from_template(self) -> None:
        template = _template()
        tree = SnapshotFactory().build(template, created_by=UserId(1), created_at=NOW)

        template.steps[1].components[0].content["reference_answer"] = "changed"
        template.steps[1].components[0].tags.append("edited")
        template.title = "Renamed"

        task = tree.components_for_step(tree.ordered_steps()[0].id)[1]
        assert isinstance(task.content, TaskContent)
        assert task.content.reference_answer == "42"
        assert task.metadata.tags == ("math",)
        assert tree.flow.title == "Onboarding"

    def test_same_template_gives_new_ids_and_same_hash(self) -> None:
        factory = SnapshotFactory()
        one = factory.build(_template(), created_by=UserId(1), created_at=NOW)
        two = factory.build(_template(), created_by=UserId(2), created_at=NOW)

        assert one.flow.id != two.flow.id
        assert {s.id for s in one.steps}.isdisjoint({s.id for s in two.steps})
        assert {c.id for c in one.components}.isdisjoint({c.id for c in two.components})
        assert one.flow.metadata.content_hash == two.flow.metadata.content_hash

    def test_content_change_changes_hash(self) -> None:
        factory = SnapshotFactory()
        template = _template()
        before = factory.build(template, created_by=UserId(1), created_at=NOW)
        template.steps[1].components[0].content["reference_answer"] = "43"
        after = factory.build(template, created_by=UserId(1), created_at=NOW)
        assert before.flow.metadata.content_hash != after.flow.metadata.content_hash

    def test_configured_passing_score_and_version(self) -> None:
        factory = SnapshotFactory(snapshot_version="2.0.0", default_passing_score=50)
        tree = factory.build(_template(), created_by=UserId(1), created_at=NOW)
        quiz = tree.components_for_step(tree.ordered_steps()[0].id)[2]
        assert isinstance(quiz.content, QuizContent)
        assert quiz.content.passing_score == 50
        assert quiz.metadata.snapshot_version == "2.0.0"

    def test_context_is_copied(self) -> None:
        context: dict[str, Any] = {"cohort": {"name": "spring"}}
        tree = SnapshotFactory().build(
            _template(), created_by=UserId(1), created_at=NOW, context=context
        )
        context["cohort"]["name"] = "autumn"
        assert tree.flow.context["cohort"]["name"] == "spring"

    def test_with_context_returns_new_snapshot(self) -> None:
        tree = SnapshotFactory().build(
            _template(), created_by=UserId(1), created_at=NOW, context={"a": 1, "b": 2}
        )
        merged = tree.flow.with_context({"b": 3, "c": 4})
        assert dict(merged.context) == {"a": 1, "b": 3, "c": 4}
        assert dict(tree.flow.context) == {"a": 1, "b": 2}
        assert merged.id == tree.flow.id

    def test_tree_rejects_mismatched_steps(self) -> None:
        factory = SnapshotFactory()
        one = factory.build(_template(), created_by=UserId(1), created_at=NOW)
        two = factory.build(_template(), created_by=UserId(1), created_at=NOW)
        with pytest.raises(InvariantViolationError):
            dataclasses.replace(one, steps=two.steps)
