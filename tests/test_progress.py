"""Tests for recording progress, unlocking steps and summaries."""

from typing import Any
from uuid import UUID, uuid4

import pytest
from sqlalchemy.orm import Session

from buddyflow.application.assignment.use_cases.assign_flow_use_case import AssignFlowUseCase
from buddyflow.application.assignment.use_cases.assignment_lifecycle_use_case import (
    AssignmentLifecycleUseCase,
)
from buddyflow.application.assignment.use_cases.exceptions import AssignmentNotFoundError
from buddyflow.application.progress.use_cases.dtos import ProgressUpdateResult
from buddyflow.application.progress.use_cases.exceptions import (
    ComponentNotFoundError,
    ProgressNotFoundError,
)
from buddyflow.application.progress.use_cases.progress_use_case import ProgressUseCase
from buddyflow.domain.common.exceptions import (
    AuthorizationError,
    BusinessRuleViolationError,
    ValidationError,
)
from buddyflow.domain.common.value_objects import AssignmentId, ComponentSnapshotId, UserId
from buddyflow.domain.progress.payloads import ArticleProgress, QuizProgress, VideoProgress
from buddyflow.exceptions import ConcurrentUpdateError
from buddyflow.infrastructure.progress.repositories.component_progress_repository import (
    ComponentProgressRepository,
)
from tests.conftest import (
    CREATOR_ID,
    LEARNER_ID,
    MENTOR_ID,
    AssignedFlow,
    ComponentSeed,
    FixedClock,
    StepSeed,
    article_content,
    seed_template,
)

ALL_RIGHT = {"q1": ["a"], "q2": ["a"], "q3": ["a"], "q4": ["a"]}
THREE_RIGHT = {"q1": ["a"], "q2": ["a"], "q3": ["a"], "q4": ["b"]}
ONE_RIGHT = {"q1": ["a"], "q2": ["b"], "q3": ["b"], "q4": ["b"]}


def _act(
    use_case: ProgressUseCase,
    flow: AssignedFlow,
    component_id: UUID,
    action: Any,
    data: dict[str, Any] | None = None,
    learner_id: int = LEARNER_ID,
) -> ProgressUpdateResult:
    return use_case.update_component_progress(
        learner_id, flow.assignment.id.value, component_id, action, data
    )


def _finish_first_step(use_case: ProgressUseCase, flow: AssignedFlow) -> ProgressUpdateResult:
    _act(use_case, flow, flow.component(1, 1), "update_progress", {"reading_progress": 1.0})
    return _act(use_case, flow, flow.component(1, 2), "submit_answer", {"answer": "Paris"})


class TestArticleAndCompletion:
    def test_reading_past_threshold_completes(
        self, progress_use_case: ProgressUseCase, assigned_flow: AssignedFlow
    ) -> None:
        article = assigned_flow.component(1, 1)

        first = _act(
            progress_use_case,
            assigned_flow,
            article,
            "update_progress",
            {"reading_progress": 0.5, "time_spent": 30},
        )
        assert first.progress.status == "in_progress"
        assert first.progress.time_spent_seconds == 30

        second = _act(
            progress_use_case, assigned_flow, article, "update_progress", {"reading_progress": 0.96}
        )
        assert second.progress.status == "completed"
        assert second.progress.version == 1

    def test_reading_progress_never_goes_back(
        self, progress_use_case: ProgressUseCase, assigned_flow: AssignedFlow
    ) -> None:
        article = assigned_flow.component(1, 1)
        _act(
            progress_use_case, assigned_flow, article, "update_progress", {"reading_progress": 0.6}
        )
        result = _act(
            progress_use_case, assigned_flow, article, "update_progress", {"reading_progress": 0.2}
        )
        payload = result.progress.payload
        assert isinstance(payload, ArticleProgress)
        assert payload.reading_progress == 0.6

    def test_complete_requires_criterion(
        self, progress_use_case: ProgressUseCase, assigned_flow: AssignedFlow
    ) -> None:
        article = assigned_flow.component(1, 1)
        with pytest.raises(BusinessRuleViolationError) as exc_info:
            _act(progress_use_case, assigned_flow, article, "complete")
        assert exc_info.value.rule == "completion_criteria_not_met"

        result = _act(progress_use_case, assigned_flow, article, "complete", {"fully_read": True})
        assert result.progress.status == "completed"

    def test_complete_is_idempotent(
        self,
        progress_use_case: ProgressUseCase,
        assigned_flow: AssignedFlow,
        clock: FixedClock,
    ) -> None:
        article = assigned_flow.component(1, 1)
        first = _act(progress_use_case, assigned_flow, article, "complete", {"fully_read": True})
        clock.advance(hours=1)

        second = _act(progress_use_case, assigned_flow, article, "complete", {"fully_read": True})

        assert second.progress.status == "completed"
        assert second.progress.completed_at == first.progress.completed_at
        assert not second.unlock_result.has_new_unlocks

    def test_articles_take_no_answers(
        self, progress_use_case: ProgressUseCase, assigned_flow: AssignedFlow
    ) -> None:
        with pytest.raises(BusinessRuleViolationError) as exc_info:
            _act(
                progress_use_case,
                assigned_flow,
                assigned_flow.component(1, 1),
                "submit_answer",
                {"answer": "Paris"},
            )
        assert exc_info.value.rule == "answer_not_supported"


class TestTasks:
    def test_wrong_answers_then_hint_then_correct(
        self, progress_use_case: ProgressUseCase, assigned_flow: AssignedFlow
    ) -> None:
        task = assigned_flow.component(1, 2)

        first = _act(progress_use_case, assigned_flow, task, "submit_answer", {"answer": "Lyon"})
        assert first.feedback is not None
        assert not first.feedback.is_correct
        assert first.feedback.attempts_left == 2
        assert first.feedback.hint is None

        second = _act(progress_use_case, assigned_flow, task, "submit_answer", {"answer": "Nice"})
        assert second.feedback is not None
        assert second.feedback.hint == "It is on the Seine."

        third = _act(
            progress_use_case, assigned_flow, task, "submit_answer", {"answer": "  paris "}
        )
        assert third.feedback is not None
        assert third.feedback.is_correct
        assert third.feedback.matched_by == "reference"
        assert third.progress.status == "completed"
        assert third.progress.attempt_count == 3

    def test_no_answers_after_completion(
        self, progress_use_case: ProgressUseCase, assigned_flow: AssignedFlow
    ) -> None:
        task = assigned_flow.component(1, 2)
        _act(progress_use_case, assigned_flow, task, "submit_answer", {"answer": "Paris"})
        with pytest.raises(BusinessRuleViolationError) as exc_info:
            _act(progress_use_case, assigned_flow, task, "submit_answer", {"answer": "Paris"})
        assert exc_info.value.rule == "answer_after_completion"

    def test_exhausted_attempts_fail_the_component(
        self, progress_use_case: ProgressUseCase, assigned_flow: AssignedFlow
    ) -> None:
        task = assigned_flow.component(1, 2)
        for answer in ("Lyon", "Nice", "Lille"):
            result = _act(
                progress_use_case, assigned_flow, task, "submit_answer", {"answer": answer}
            )

        assert result.progress.status == "failed"
        assert result.feedback is not None
        assert result.feedback.attempts_left == 0

        with pytest.raises(BusinessRuleViolationError) as exc_info:
            _act(progress_use_case, assigned_flow, task, "submit_answer", {"answer": "Paris"})
        assert exc_info.value.rule == "max_attempts_reached"

    def test_completing_a_step_reports_unlock(
        self, progress_use_case: ProgressUseCase, assigned_flow: AssignedFlow
    ) -> None:
        result = _finish_first_step(progress_use_case, assigned_flow)

        second_step = assigned_flow.tree.ordered_steps()[1]
        assert result.unlock_result.new_unlocked_step_ids == (second_step.id,)
        assert set(result.unlock_result.new_unlocked_component_ids) == {
            c.id for c in assigned_flow.tree.components_for_step(second_step.id)
        }
        assert result.unlock_result.messages == ("Step 2 'Check' is now available",)


class TestLockedStepsAndQuizzes:
    def test_locked_step_rejects_progress(
        self, progress_use_case: ProgressUseCase, assigned_flow: AssignedFlow
    ) -> None:
        with pytest.raises(BusinessRuleViolationError) as exc_info:
            _act(
                progress_use_case,
                assigned_flow,
                assigned_flow.component(2, 1),
                "submit_answer",
                {"answers": ALL_RIGHT},
            )
        assert exc_info.value.rule == "step_locked"

    def test_quiz_pass_and_fail(
        self, progress_use_case: ProgressUseCase, assigned_flow: AssignedFlow
    ) -> None:
        _finish_first_step(progress_use_case, assigned_flow)
        quiz = assigned_flow.component(2, 1)

        failed = _act(
            progress_use_case, assigned_flow, quiz, "submit_answer", {"answers": ONE_RIGHT}
        )
        assert failed.feedback is not None
        assert failed.feedback.score == 25
        assert failed.progress.status == "in_progress"

        passed = _act(
            progress_use_case, assigned_flow, quiz, "submit_answer", {"answers": THREE_RIGHT}
        )
        assert passed.feedback is not None
        assert passed.feedback.score == 75
        assert passed.feedback.is_correct
        assert passed.progress.status == "completed"
        payload = passed.progress.payload
        assert isinstance(payload, QuizProgress)
        assert payload.best_score == 75
        assert payload.current_score == 75
        assert [a.score for a in payload.attempts] == [25, 75]

    def test_video_segments_merge_and_complete(
        self, progress_use_case: ProgressUseCase, assigned_flow: AssignedFlow
    ) -> None:
        _finish_first_step(progress_use_case, assigned_flow)
        video = assigned_flow.component(2, 2)

        first = _act(
            progress_use_case,
            assigned_flow,
            video,
            "update_progress",
            {"watched_segments": [{"start": 0, "end": 300}], "current_position": 300},
        )
        assert first.progress.status == "in_progress"

        second = _act(
            progress_use_case,
            assigned_flow,
            video,
            "update_progress",
            {"watched_segments": [{"start": 200, "end": 500}, {"start": 590, "end": 900}]},
        )
        payload = second.progress.payload
        assert isinstance(payload, VideoProgress)
        assert payload.watch_percentage == 85.0
        assert payload.last_position_seconds == 300
        assert second.progress.status == "completed"


class TestSkipFailAndValidation:
    def test_required_component_in_fixed_step_cannot_be_skipped(
        self, progress_use_case: ProgressUseCase, assigned_flow: AssignedFlow
    ) -> None:
        with pytest.raises(BusinessRuleViolationError) as exc_info:
            _act(progress_use_case, assigned_flow, assigned_flow.component(1, 1), "skip")
        assert exc_info.value.rule == "skip_not_allowed"

    def test_skippable_step(
        self, progress_use_case: ProgressUseCase, assigned_flow: AssignedFlow
    ) -> None:
        _finish_first_step(progress_use_case, assigned_flow)
        quiz = assigned_flow.component(2, 1)
        video = assigned_flow.component(2, 2)
        _act(progress_use_case, assigned_flow, quiz, "submit_answer", {"answers": ALL_RIGHT})
        _act(
            progress_use_case,
            assigned_flow,
            video,
            "update_progress",
            {"watched_segments": [{"start": 0, "end": 600}]},
        )

        result = _act(progress_use_case, assigned_flow, assigned_flow.component(3, 1), "skip")
        assert result.progress.status == "skipped"

    def test_skipping_optional_component_in_fixed_step_unlocks_next(
        self,
        db_session: Session,
        assign_flow_use_case: AssignFlowUseCase,
        lifecycle_use_case: AssignmentLifecycleUseCase,
        progress_use_case: ProgressUseCase,
    ) -> None:
        template_id = seed_template(
            db_session,
            steps=[
                StepSeed(
                    title="Read",
                    components=[
                        ComponentSeed("article", article_content(), title="Required"),
                        ComponentSeed(
                            "article", article_content(), title="Optional", is_required=False
                        ),
                    ],
                ),
                StepSeed(title="Next", components=[ComponentSeed("article", article_content())]),
            ],
        )
        assigned = assign_flow_use_case.assign_flow(
            template_id=template_id,
            learner_id=LEARNER_ID,
            mentor_ids=[MENTOR_ID],
            created_by=CREATOR_ID,
        )
        assignment = lifecycle_use_case.start(assigned.assignment.id.value, LEARNER_ID)
        flow = AssignedFlow(assignment=assignment, tree=assigned.snapshot.tree)

        skipped = _act(progress_use_case, flow, flow.component(1, 2), "skip")
        assert skipped.progress.status == "skipped"
        assert not skipped.unlock_result.has_new_unlocks

        read = _act(
            progress_use_case,
            flow,
            flow.component(1, 1),
            "update_progress",
            {"reading_progress": 1.0},
        )

        second_step = flow.tree.ordered_steps()[1]
        assert read.unlock_result.new_unlocked_step_ids == (second_step.id,)
        summary = progress_use_case.get_progress_summary(LEARNER_ID, flow.assignment.id.value)
        assert len(summary.unlocked_step_ids) == 2
        assert summary.next_component is not None
        assert summary.next_component.component_snapshot_id.value == flow.component(2, 1)

    def test_fail_action(
        self, progress_use_case: ProgressUseCase, assigned_flow: AssignedFlow
    ) -> None:
        task = assigned_flow.component(1, 2)
        _act(progress_use_case, assigned_flow, task, "start")
        result = _act(progress_use_case, assigned_flow, task, "fail", {"time_spent": 12})
        assert result.progress.status == "failed"
        assert result.progress.time_spent_seconds == 12

    def test_invalid_inputs(
        self, progress_use_case: ProgressUseCase, assigned_flow: AssignedFlow
    ) -> None:
        article = assigned_flow.component(1, 1)
        with pytest.raises(ValidationError):
            _act(progress_use_case, assigned_flow, article, "teleport")
        with pytest.raises(ValidationError):
            _act(
                progress_use_case,
                assigned_flow,
                article,
                "update_progress",
                {"reading_progress": 1.5},
            )
        with pytest.raises(ValidationError):
            _act(progress_use_case, assigned_flow, article, "start", {"time_spent": -5})
        with pytest.raises(ComponentNotFoundError):
            _act(progress_use_case, assigned_flow, uuid4(), "start")

    def test_only_learner_records_progress(
        self, progress_use_case: ProgressUseCase, assigned_flow: AssignedFlow
    ) -> None:
        with pytest.raises(AuthorizationError):
            _act(
                progress_use_case,
                assigned_flow,
                assigned_flow.component(1, 1),
                "start",
                learner_id=MENTOR_ID,
            )
        with pytest.raises(AssignmentNotFoundError):
            progress_use_case.update_component_progress(
                LEARNER_ID, 999, assigned_flow.component(1, 1), "start"
            )

    def test_paused_assignment_rejects_progress(
        self,
        progress_use_case: ProgressUseCase,
        lifecycle_use_case: AssignmentLifecycleUseCase,
        assigned_flow: AssignedFlow,
    ) -> None:
        lifecycle_use_case.pause(assigned_flow.assignment.id.value, LEARNER_ID)
        with pytest.raises(BusinessRuleViolationError) as exc_info:
            _act(progress_use_case, assigned_flow, assigned_flow.component(1, 1), "start")
        assert exc_info.value.rule == "assignment_not_active"


class TestResetAndConcurrency:
    def test_reset_keeps_step_unlocked(
        self, progress_use_case: ProgressUseCase, assigned_flow: AssignedFlow
    ) -> None:
        _finish_first_step(progress_use_case, assigned_flow)
        task = assigned_flow.component(1, 2)

        progress = progress_use_case.reset_component_progress(
            LEARNER_ID, assigned_flow.assignment.id.value, task
        )

        assert progress.status == "not_started"
        assert progress.attempt_count == 0
        assert len(progress.reset_history) == 1
        assert progress.reset_history[0].previous_status == "completed"
        summary = progress_use_case.get_progress_summary(
            LEARNER_ID, assigned_flow.assignment.id.value
        )
        assert len(summary.unlocked_step_ids) == 2

        # The step stays open, so the task can be answered again.
        again = _act(progress_use_case, assigned_flow, task, "submit_answer", {"answer": "Paris"})
        assert again.progress.status == "completed"
        assert again.progress.attempt_count == 1

    def test_reset_without_progress(
        self, progress_use_case: ProgressUseCase, assigned_flow: AssignedFlow
    ) -> None:
        with pytest.raises(ProgressNotFoundError):
            progress_use_case.reset_component_progress(
                LEARNER_ID, assigned_flow.assignment.id.value, assigned_flow.component(1, 1)
            )

    def test_stale_write_is_rejected(
        self,
        db_session: Session,
        progress_use_case: ProgressUseCase,
        assigned_flow: AssignedFlow,
        clock: FixedClock,
    ) -> None:
        article = assigned_flow.component(1, 1)
        _act(progress_use_case, assigned_flow, article, "start")
        repository = ComponentProgressRepository(db_session)
        key = (
            UserId(LEARNER_ID),
            AssignmentId(assigned_flow.assignment.id.value),
            ComponentSnapshotId(article),
        )
        first = repository.find(*key)
        second = repository.find(*key)
        assert first is not None
        assert second is not None

        first.add_time(10, clock.now())
        repository.update(first)
        second.add_time(20, clock.now())

        with pytest.raises(ConcurrentUpdateError):
            repository.update(second)
        stored = repository.find(*key)
        assert stored is not None
        assert stored.time_spent_seconds == 10


class TestSummaryAndUnlockCheck:
    def test_summary_after_first_step(
        self, progress_use_case: ProgressUseCase, assigned_flow: AssignedFlow
    ) -> None:
        _finish_first_step(progress_use_case, assigned_flow)

        summary = progress_use_case.get_progress_summary(
            LEARNER_ID, assigned_flow.assignment.id.value
        )

        assert [s.status for s in summary.steps] == ["completed", "available", "locked"]
        assert [s.percent for s in summary.steps] == [100, 0, 0]
        assert summary.flow_percent == 33
        assert summary.next_component is not None
        assert summary.next_component.component_snapshot_id.value == assigned_flow.component(2, 1)
        assert summary.stats.completed_components == 2
        assert summary.stats.total_components == 5
        assert summary.stats.completed_steps == 1
        assert summary.stats.total_attempts == 1

    def test_summary_for_fresh_assignment(
        self, progress_use_case: ProgressUseCase, assigned_flow: AssignedFlow
    ) -> None:
        summary = progress_use_case.get_progress_summary(
            LEARNER_ID, assigned_flow.assignment.id.value
        )
        assert summary.flow_percent == 0
        assert [s.status for s in summary.steps] == ["available", "locked", "locked"]
        assert summary.next_component is not None
        assert summary.next_component.component_snapshot_id.value == assigned_flow.component(1, 1)

    def test_check_and_unlock_next_steps(
        self, progress_use_case: ProgressUseCase, assigned_flow: AssignedFlow
    ) -> None:
        assignment_id = assigned_flow.assignment.id.value
        before = progress_use_case.check_and_unlock_next_steps(LEARNER_ID, assignment_id)
        assert before.is_success
        assert before.unwrap().new_unlocked_step_ids == ()

        _finish_first_step(progress_use_case, assigned_flow)

        after = progress_use_case.check_and_unlock_next_steps(LEARNER_ID, assignment_id)
        second_step = assigned_flow.tree.ordered_steps()[1]
        assert after.unwrap().new_unlocked_step_ids == (second_step.id,)

    def test_check_and_unlock_failures(
        self, progress_use_case: ProgressUseCase, assigned_flow: AssignedFlow
    ) -> None:
        missing = progress_use_case.check_and_unlock_next_steps(LEARNER_ID, 999)
        assert missing.is_failure
        assert missing.unwrap_error().reason == "assignment_not_found"

        stranger = progress_use_case.check_and_unlock_next_steps(
            MENTOR_ID, assigned_flow.assignment.id.value
        )
        assert stranger.unwrap_error().reason == "not_assignment_learner"

    def test_analytics(
        self, progress_use_case: ProgressUseCase, assigned_flow: AssignedFlow
    ) -> None:
        task = assigned_flow.component(1, 2)
        _act(
            progress_use_case,
            assigned_flow,
            assigned_flow.component(1, 1),
            "update_progress",
            {"reading_progress": 1.0, "time_spent": 100},
        )
        for answer in ("Lyon", "Nice", "Lille"):
            _act(
                progress_use_case,
                assigned_flow,
                task,
                "submit_answer",
                {"answer": answer, "time_spent": 100},
            )

        analytics = progress_use_case.get_progress_analytics(
            LEARNER_ID, assigned_flow.assignment.id.value
        )

        assert analytics.completion_rate == 20
        assert analytics.total_time_spent_seconds == 400
        assert analytics.average_time_per_component_seconds == 200
        assert analytics.total_attempts == 3
        assert [c.value for c in analytics.struggling_component_ids] == [task]
