"""Tests for the ComponentProgress entity."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from buddyflow.domain.common.exceptions import BusinessRuleViolationError, ValidationError
from buddyflow.domain.common.value_objects import AssignmentId, ComponentSnapshotId, UserId
from buddyflow.domain.progress.entities.component_progress import (
    ComponentProgress,
    InvalidProgressTransitionError,
)
from buddyflow.domain.progress.payloads import (
    ArticleProgress,
    TaskProgress,
    VideoProgress,
    WatchedSegment,
    merge_segments,
    payload_from_dict,
    payload_to_dict,
)
from buddyflow.domain.snapshot.content import ComponentType

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


def _progress(component_type: ComponentType = "task") -> ComponentProgress:
    return ComponentProgress.create(
        learner_id=UserId(1),
        assignment_id=AssignmentId(1),
        component_snapshot_id=ComponentSnapshotId(uuid4()),
        component_type=component_type,
    )


class TestComponentProgress:
    def test_new_record_is_not_started(self) -> None:
        progress = _progress()
        assert progress.status == "not_started"
        assert progress.id.value == 0
        assert isinstance(progress.payload, TaskProgress)

    def test_start_is_idempotent(self) -> None:
        progress = _progress()
        assert progress.start(NOW)
        assert not progress.start(NOW + timedelta(minutes=1))
        assert progress.started_at == NOW

    def test_correct_task_attempt_completes(self) -> None:
        progress = _progress()
        progress.record_task_attempt("Lyon", False, NOW, time_spent=30)
        attempt = progress.record_task_attempt("Paris", True, NOW, time_spent=20)

        assert attempt.attempt_number == 2
        assert progress.status == "completed"
        assert progress.attempt_count == 2
        assert progress.time_spent_seconds == 50
        assert progress.completed_at == NOW

    def test_no_answers_after_completion(self) -> None:
        progress = _progress()
        progress.record_task_attempt("Paris", True, NOW)
        with pytest.raises(BusinessRuleViolationError) as exc_info:
            progress.record_task_attempt("Paris", True, NOW)
        assert exc_info.value.rule == "answer_after_completion"

    def test_attempt_limit(self) -> None:
        progress = _progress()
        progress.record_task_attempt("a", False, NOW)
        progress.record_task_attempt("b", False, NOW)
        progress.ensure_attempts_remaining(3)
        progress.ensure_attempts_remaining(None)
        with pytest.raises(BusinessRuleViolationError) as exc_info:
            progress.ensure_attempts_remaining(2)
        assert exc_info.value.rule == "max_attempts_reached"

    def test_complete_is_idempotent(self) -> None:
        progress = _progress("article")
        assert progress.complete(NOW)
        assert not progress.complete(NOW + timedelta(hours=1))
        assert progress.completed_at == NOW

    def test_terminal_states_reject_transitions(self) -> None:
        progress = _progress("article")
        progress.start(NOW)
        progress.skip(NOW)
        with pytest.raises(InvalidProgressTransitionError):
            progress.complete(NOW)
        with pytest.raises(InvalidProgressTransitionError):
            progress.start(NOW)
        with pytest.raises(InvalidProgressTransitionError):
            progress.update_payload(ArticleProgress(0.5), NOW)

    def test_skip_and_fail_require_in_progress(self) -> None:
        with pytest.raises(InvalidProgressTransitionError):
            _progress().skip(NOW)
        with pytest.raises(InvalidProgressTransitionError):
            _progress().fail(NOW)

    def test_negative_time_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _progress().add_time(-1, NOW)

    def test_payload_type_must_match(self) -> None:
        progress = _progress("article")
        with pytest.raises(ValidationError):
            progress.update_payload(VideoProgress(), NOW)

    def test_reset_archives_history(self) -> None:
        progress = _progress()
        progress.record_task_attempt("Paris", True, NOW, time_spent=40)

        record = progress.reset(NOW + timedelta(days=1))

        assert record.previous_status == "completed"
        assert record.attempt_count == 1
        assert isinstance(record.payload, TaskProgress)
        assert record.payload.attempts[0].answer == "Paris"
        assert progress.status == "not_started"
        assert progress.attempt_count == 0
        assert progress.time_spent_seconds == 0
        assert progress.payload == TaskProgress()
        assert progress.has_been_completed
        assert not progress.is_completed


class TestPayloads:
    def test_merge_segments(self) -> None:
        merged = merge_segments(
            [WatchedSegment(50, 80), WatchedSegment(0, 30), WatchedSegment(20, 50)]
        )
        assert merged == (WatchedSegment(0, 80),)

    def test_merge_keeps_gaps(self) -> None:
        merged = merge_segments([WatchedSegment(0, 10), WatchedSegment(20, 30)])
        assert merged == (WatchedSegment(0, 10), WatchedSegment(20, 30))

    def test_invalid_segment(self) -> None:
        with pytest.raises(ValidationError):
            WatchedSegment(10, 5)

    def test_reading_progress_bounds(self) -> None:
        with pytest.raises(ValidationError):
            ArticleProgress(reading_progress=1.5)

    def test_task_payload_survives_serialization(self) -> None:
        progress = _progress()
        progress.record_task_attempt("Lyon", False, NOW, time_spent=5)
        data = payload_to_dict(progress.payload)
        assert payload_from_dict("task", data) == progress.payload
