"""Use case for recording and aggregating learner progress."""

from collections.abc import Mapping
from typing import Any, Literal, TypeVar, assert_never
from uuid import UUID

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from buddyflow.application.assignment.protocols.assignment_store import AssignmentStoreProtocol
from buddyflow.application.assignment.use_cases.exceptions import AssignmentNotFoundError
from buddyflow.application.common.clock import ClockProtocol
from buddyflow.application.common.result import Failure, Result, Success
from buddyflow.application.progress.protocols.progress_store import ProgressStoreProtocol
from buddyflow.application.progress.use_cases.dtos import (
    AnswerFeedback,
    ComponentProgressSummary,
    ProgressAnalytics,
    ProgressStats,
    ProgressSummary,
    ProgressUpdateResult,
    StepProgressStatus,
    StepProgressSummary,
    UnlockFailure,
    UnlockResult,
)
from buddyflow.application.progress.use_cases.exceptions import (
    ComponentNotFoundError,
    ProgressNotFoundError,
)
from buddyflow.application.snapshot.protocols.snapshot_store import SnapshotStoreProtocol
from buddyflow.application.snapshot.use_cases.exceptions import SnapshotNotFoundError
from buddyflow.domain.assignment.entities.assignment import Assignment
from buddyflow.domain.common.exceptions import (
    AuthorizationError,
    BusinessRuleViolationError,
    ValidationError,
)
from buddyflow.domain.common.value_objects import (
    AssignmentId,
    ComponentSnapshotId,
    StepSnapshotId,
    UserId,
)
from buddyflow.domain.progress.entities.component_progress import ComponentProgress
from buddyflow.domain.progress.payloads import (
    ArticleProgress,
    ProgressPayload,
    QuizProgress,
    TaskProgress,
    VideoProgress,
    WatchedSegment,
    merge_segments,
)
from buddyflow.domain.progress.services.answer_validators import AnswerValidator
from buddyflow.domain.progress.services.completion_policy import CompletionPolicy
from buddyflow.domain.progress.services.progress_calculator import ProgressCalculator
from buddyflow.domain.progress.services.unlock_policy import UnlockPolicy
from buddyflow.domain.snapshot.content import (
    ArticleContent,
    QuizContent,
    TaskContent,
    VideoContent,
)
from buddyflow.domain.snapshot.entities import ComponentSnapshot, SnapshotTree
from buddyflow.schemas.progress_schemas import (
    CompleteData,
    FailData,
    ProgressUpdateData,
    QuizAnswerData,
    SkipData,
    StartData,
    TaskAnswerData,
)

ProgressAction = Literal["start", "update_progress", "submit_answer", "complete", "skip", "fail"]
PROGRESS_ACTIONS: tuple[ProgressAction, ...] = (
    "start",
    "update_progress",
    "submit_answer",
    "complete",
    "skip",
    "fail",
)

# A component is flagged as a struggle above either threshold.
STRUGGLING_ATTEMPTS = 2
STRUGGLING_SECONDS = 600

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class ProgressUseCase:
    """Use case for per-component progress, unlocking and summaries."""

    def __init__(
        self,
        assignment_store: AssignmentStoreProtocol,
        snapshot_store: SnapshotStoreProtocol,
        progress_store: ProgressStoreProtocol,
        clock: ClockProtocol,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """Initialize use case with its collaborators."""
        self.assignment_store = assignment_store
        self.snapshot_store = snapshot_store
        self.progress_store = progress_store
        self.clock = clock
        self.logger = logger or structlog.get_logger(__name__)
        self.answer_validator = AnswerValidator(self.logger)
        self.completion_policy = CompletionPolicy()
        self.unlock_policy = UnlockPolicy()
        self.calculator = ProgressCalculator()

    def update_component_progress(
        self,
        learner_id: int,
        assignment_id: int,
        component_snapshot_id: UUID,
        action: ProgressAction,
        data: Mapping[str, Any] | None = None,
    ) -> ProgressUpdateResult:
        """
        Apply one learner action to a component.

        Args:
            learner_id: ID of the learner acting
            assignment_id: ID of the assignment the component belongs to
            component_snapshot_id: ID of the component snapshot
            action: One of start, update_progress, submit_answer, complete, skip, fail
            data: Action payload, validated against the action's schema

        Returns:
            The updated progress, anything newly unlocked, and answer feedback
            for submit_answer

        Raises:
            AssignmentNotFoundError: If the assignment does not exist
            AuthorizationError: If the learner does not own the assignment
            ComponentNotFoundError: If the component is not in the assignment's snapshot
            ValidationError: If the data is malformed or the transition is invalid
            BusinessRuleViolationError: If the step is locked, the component is
                already completed, or no attempts are left
            ConcurrentUpdateError: If another update to the same progress won the race
        """
        if action not in PROGRESS_ACTIONS:
            raise ValidationError(f"Unknown progress action '{action}'", field="action")

        assignment = self._load_assignment(learner_id, assignment_id)
        if assignment.status != "in_progress":
            raise BusinessRuleViolationError(
                "assignment_not_active",
                f"Progress can only be recorded on an assignment in progress "
                f"(status is {assignment.status})",
            )
        tree = self._load_tree(assignment)
        component = tree.get_component(ComponentSnapshotId(component_snapshot_id))
        if component is None:
            raise ComponentNotFoundError(component_snapshot_id)

        before = self._progress_map(assignment)
        unlocked_before = self.unlock_policy.unlocked_step_ids(tree, before)
        if component.step_snapshot_id not in unlocked_before:
            raise BusinessRuleViolationError(
                "step_locked", "The step containing this component is still locked"
            )

        existing = before.get(component.id)
        progress = existing or ComponentProgress.create(
            learner_id=assignment.learner_id,
            assignment_id=assignment.id,
            component_snapshot_id=component.id,
            component_type=component.component_type,
        )

        feedback = self._apply_action(tree, component, progress, action, data or {})

        progress = (
            self.progress_store.update(progress)
            if existing is not None
            else self.progress_store.create(progress)
        )

        after = {**before, component.id: progress}
        unlock_result = self._diff_unlocks(tree, unlocked_before, after)

        self.logger.info(
            "updated_component_progress",
            assignment_id=assignment_id,
            component_snapshot_id=str(component_snapshot_id),
            action=action,
            status=progress.status,
            attempt_count=progress.attempt_count,
            new_unlocked_steps=len(unlock_result.new_unlocked_step_ids),
        )
        return ProgressUpdateResult(
            progress=progress, unlock_result=unlock_result, feedback=feedback
        )

    def check_and_unlock_next_steps(
        self, learner_id: int, assignment_id: int
    ) -> Result[UnlockResult, UnlockFailure]:
        """
        Report unlocked steps the learner has not opened yet.

        Unlike update_component_progress this never raises for a missing
        assignment or snapshot; those come back as a Failure.
        """
        assignment = self.assignment_store.find_by_id(AssignmentId(assignment_id))
        if assignment is None:
            return Failure(
                UnlockFailure("assignment_not_found", f"Assignment {assignment_id} not found")
            )
        if not assignment.is_learner(UserId(learner_id)):
            return Failure(
                UnlockFailure(
                    "not_assignment_learner",
                    f"User {learner_id} is not the learner on assignment {assignment_id}",
                )
            )
        tree = self.snapshot_store.get_snapshot_tree(assignment.snapshot_id)
        if tree is None:
            return Failure(
                UnlockFailure("snapshot_not_found", f"Snapshot {assignment.snapshot_id} not found")
            )

        progress = self._progress_map(assignment)
        first = tree.first_step()
        untouched = [
            step_id
            for step_id in self.unlock_policy.unlocked_step_ids(tree, progress)
            if (first is None or step_id != first.id)
            and not any(c.id in progress for c in tree.components_for_step(step_id))
        ]
        return Success(self._unlock_result(tree, untouched))

    def get_progress_summary(self, learner_id: int, assignment_id: int) -> ProgressSummary:
        """
        Summarise a learner's progress through an assignment's snapshot.

        Raises:
            AssignmentNotFoundError: If the assignment does not exist
            AuthorizationError: If the learner does not own the assignment
            SnapshotNotFoundError: If the assignment's snapshot is missing
        """
        assignment = self._load_assignment(learner_id, assignment_id)
        tree = self._load_tree(assignment)
        progress = self._progress_map(assignment)
        unlocked = self.unlock_policy.unlocked_step_ids(tree, progress)

        components: list[ComponentProgressSummary] = []
        steps: list[StepProgressSummary] = []
        for step in tree.ordered_steps():
            step_components = tree.components_for_step(step.id)
            summaries = [
                self._component_summary(c, progress.get(c.id), step.id in unlocked)
                for c in step_components
            ]
            components.extend(summaries)
            completed = sum(1 for s in summaries if s.status == "completed")
            steps.append(
                StepProgressSummary(
                    step_snapshot_id=step.id,
                    title=step.title,
                    order=step.order,
                    status=self._step_status(step.id in unlocked, summaries, completed),
                    percent=self.calculator.step_percent(completed, len(summaries)),
                    component_count=len(summaries),
                    completed_components=completed,
                )
            )

        next_component = next(
            (
                c
                for c in components
                if c.is_unlocked and c.status not in ("completed", "skipped")
            ),
            None,
        )
        records = list(progress.values())
        stats = ProgressStats(
            total_time_spent_seconds=sum(p.time_spent_seconds for p in records),
            total_attempts=sum(p.attempt_count for p in records),
            completed_components=sum(1 for c in components if c.status == "completed"),
            total_components=len(components),
            completed_steps=sum(1 for s in steps if s.status == "completed"),
            total_steps=len(steps),
        )
        return ProgressSummary(
            flow_percent=self.calculator.flow_percent([s.percent for s in steps]),
            steps=tuple(steps),
            components=tuple(components),
            unlocked_step_ids=tuple(unlocked),
            next_component=next_component,
            stats=stats,
        )

    def reset_component_progress(
        self, learner_id: int, assignment_id: int, component_snapshot_id: UUID
    ) -> ComponentProgress:
        """
        Reset a component to not_started with a fresh, empty payload.

        The discarded payload, including its attempt history, is archived on
        the progress record rather than deleted.

        Raises:
            AssignmentNotFoundError: If the assignment does not exist
            AuthorizationError: If the learner does not own the assignment
            ProgressNotFoundError: If nothing was recorded for the component
        """
        assignment = self._load_assignment(learner_id, assignment_id)
        progress = self.progress_store.find(
            assignment.learner_id, assignment.id, ComponentSnapshotId(component_snapshot_id)
        )
        if progress is None:
            raise ProgressNotFoundError(component_snapshot_id)

        record = progress.reset(self.clock.now())
        progress = self.progress_store.update(progress)
        self.logger.info(
            "reset_component_progress",
            assignment_id=assignment_id,
            component_snapshot_id=str(component_snapshot_id),
            previous_status=record.previous_status,
            archived_attempts=record.attempt_count,
        )
        return progress

    def get_progress_analytics(self, learner_id: int, assignment_id: int) -> ProgressAnalytics:
        """Completion rate, average time per component and components the learner struggles with."""
        assignment = self._load_assignment(learner_id, assignment_id)
        tree = self._load_tree(assignment)
        records = list(self._progress_map(assignment).values())

        completed = sum(1 for p in records if p.is_completed)
        total_time = sum(p.time_spent_seconds for p in records)
        touched = [p for p in records if p.status != "not_started"]
        struggling = tuple(
            p.component_snapshot_id
            for p in records
            if p.attempt_count > STRUGGLING_ATTEMPTS or p.time_spent_seconds > STRUGGLING_SECONDS
        )
        return ProgressAnalytics(
            completion_rate=self.calculator.step_percent(completed, tree.total_components),
            average_time_per_component_seconds=(
                round(total_time / len(touched)) if touched else 0
            ),
            struggling_component_ids=struggling,
            total_time_spent_seconds=total_time,
            total_attempts=sum(p.attempt_count for p in records),
        )

    # Actions

    def _apply_action(
        self,
        tree: SnapshotTree,
        component: ComponentSnapshot,
        progress: ComponentProgress,
        action: ProgressAction,
        data: Mapping[str, Any],
    ) -> AnswerFeedback | None:
        now = self.clock.now()
        if action == "start":
            parsed_start = _parse(StartData, data)
            progress.start(now)
            progress.add_time(parsed_start.time_spent, now)
            return None
        if action == "update_progress":
            parsed_update = _parse(ProgressUpdateData, data)
            payload = self._merged_payload(component, progress.payload, parsed_update)
            progress.update_payload(payload, now, parsed_update.time_spent)
            if not component.is_evaluated and self.completion_policy.is_met(
                component, progress.payload
            ):
                progress.complete(now)
            return None
        if action == "submit_answer":
            return self._submit_answer(tree, component, progress, data)
        if action == "complete":
            self._complete(component, progress, _parse(CompleteData, data))
            return None
        if action == "skip":
            parsed_skip = _parse(SkipData, data)
            step = tree.step_of(component)
            if component.is_required and not step.access.skippable:
                raise BusinessRuleViolationError(
                    "skip_not_allowed", "Only optional components or skippable steps can be skipped"
                )
            progress.start(now)
            progress.add_time(parsed_skip.time_spent, now)
            progress.skip(now)
            return None
        if action == "fail":
            parsed_fail = _parse(FailData, data)
            progress.add_time(parsed_fail.time_spent, now)
            progress.fail(now)
            return None
        assert_never(action)

    def _submit_answer(
        self,
        tree: SnapshotTree,
        component: ComponentSnapshot,
        progress: ComponentProgress,
        data: Mapping[str, Any],
    ) -> AnswerFeedback:
        content = component.content
        if isinstance(content, ArticleContent | VideoContent):
            raise BusinessRuleViolationError(
                "answer_not_supported", f"A {component.component_type} does not take answers"
            )
        if progress.is_completed:
            raise BusinessRuleViolationError(
                "answer_after_completion", "Component is already completed"
            )
        max_attempts = component.max_attempts or tree.step_of(component).access.max_attempts
        progress.ensure_attempts_remaining(max_attempts)
        now = self.clock.now()

        if isinstance(content, TaskContent):
            task_data = _parse(TaskAnswerData, data)
            if content.max_answer_length and len(task_data.answer) > content.max_answer_length:
                raise ValidationError(
                    f"Answer is longer than {content.max_answer_length} characters",
                    field="answer",
                )
            match = self.answer_validator.match_task(content, task_data.answer)
            attempt = progress.record_task_attempt(
                task_data.answer, match.is_correct, now, task_data.time_spent
            )
            failed = (
                sum(1 for a in progress.payload.attempts if not a.is_correct)
                if isinstance(progress.payload, TaskProgress)
                else 0
            )
            feedback = AnswerFeedback(
                is_correct=match.is_correct,
                attempt_number=attempt.attempt_number,
                attempts_left=_attempts_left(progress, max_attempts),
                matched_by=match.matched_by,
                hint=None if match.is_correct else self.answer_validator.hint_for(content, failed),
            )
        else:
            quiz_data = _parse(QuizAnswerData, data)
            score = self.answer_validator.score_quiz(content, quiz_data.answers)
            quiz_attempt = progress.record_quiz_attempt(
                score=score.score,
                correct_answers=score.correct_answers,
                total_questions=score.total_questions,
                passed=score.passed,
                answers=tuple(
                    (question_id, tuple(options))
                    for question_id, options in sorted(quiz_data.answers.items())
                ),
                started_at=quiz_data.started_at or progress.started_at or now,
                now=now,
                time_spent=quiz_data.time_spent,
            )
            feedback = AnswerFeedback(
                is_correct=score.passed,
                attempt_number=quiz_attempt.attempt_number,
                attempts_left=_attempts_left(progress, max_attempts),
                score=score.score,
            )

        if not feedback.is_correct and feedback.attempts_left == 0:
            progress.fail(now)
            self.logger.info(
                "component_attempts_exhausted",
                component_snapshot_id=str(component.id),
                attempts=progress.attempt_count,
            )
        return feedback

    def _complete(
        self, component: ComponentSnapshot, progress: ComponentProgress, data: CompleteData
    ) -> None:
        if progress.is_completed:
            return
        now = self.clock.now()
        if data.fully_read and isinstance(progress.payload, ArticleProgress):
            progress.update_payload(
                ArticleProgress(
                    reading_progress=progress.payload.reading_progress, fully_read=True
                ),
                now,
            )
        if not self.completion_policy.is_met(component, progress.payload):
            raise BusinessRuleViolationError(
                "completion_criteria_not_met",
                f"The {component.component_type} completion criterion is not met yet",
            )
        progress.add_time(data.time_spent, now)
        progress.complete(now)

    def _merged_payload(
        self, component: ComponentSnapshot, payload: ProgressPayload, data: ProgressUpdateData
    ) -> ProgressPayload:
        content = component.content
        if isinstance(content, ArticleContent):
            assert isinstance(payload, ArticleProgress)
            reading = payload.reading_progress
            if data.reading_progress is not None:
                reading = max(reading, data.reading_progress)
            return ArticleProgress(
                reading_progress=reading, fully_read=payload.fully_read or bool(data.fully_read)
            )
        if isinstance(content, VideoContent):
            assert isinstance(payload, VideoProgress)
            return self._merged_video(content, payload, data)
        if isinstance(content, TaskContent):
            assert isinstance(payload, TaskProgress)
            return payload
        if isinstance(content, QuizContent):
            assert isinstance(payload, QuizProgress)
            return payload
        assert_never(content)

    def _merged_video(
        self, content: VideoContent, payload: VideoProgress, data: ProgressUpdateData
    ) -> VideoProgress:
        duration = content.duration_seconds
        new_segments = [
            WatchedSegment(
                min(s.start, duration) if duration else s.start,
                min(s.end, duration) if duration else s.end,
            )
            for s in data.watched_segments
        ]
        segments = merge_segments([*payload.segments, *new_segments])
        if duration:
            watched = sum(s.length for s in segments)
            percentage = min(100.0, watched / duration * 100)
        elif data.watch_percentage is not None:
            percentage = max(payload.watch_percentage, data.watch_percentage)
        else:
            percentage = payload.watch_percentage
        return VideoProgress(
            segments=segments,
            watch_percentage=round(percentage, 2),
            last_position_seconds=(
                data.current_position
                if data.current_position is not None
                else payload.last_position_seconds
            ),
        )

    # Helpers

    def _load_assignment(self, learner_id: int, assignment_id: int) -> Assignment:
        assignment = self.assignment_store.find_by_id(AssignmentId(assignment_id))
        if assignment is None:
            raise AssignmentNotFoundError(assignment_id)
        if not assignment.is_learner(UserId(learner_id)):
            raise AuthorizationError("Only the assignment's learner can record or view progress")
        return assignment

    def _load_tree(self, assignment: Assignment) -> SnapshotTree:
        tree = self.snapshot_store.get_snapshot_tree(assignment.snapshot_id)
        if tree is None:
            raise SnapshotNotFoundError(assignment.snapshot_id.value)
        return tree

    def _progress_map(self, assignment: Assignment) -> dict[ComponentSnapshotId, ComponentProgress]:
        return {
            p.component_snapshot_id: p
            for p in self.progress_store.find_all_by_assignment(assignment.id)
            if p.learner_id == assignment.learner_id
        }

    def _diff_unlocks(
        self,
        tree: SnapshotTree,
        unlocked_before: list[StepSnapshotId],
        after: Mapping[ComponentSnapshotId, ComponentProgress],
    ) -> UnlockResult:
        unlocked_after = self.unlock_policy.unlocked_step_ids(tree, after)
        return self._unlock_result(
            tree, [step_id for step_id in unlocked_after if step_id not in unlocked_before]
        )

    def _unlock_result(self, tree: SnapshotTree, step_ids: list[StepSnapshotId]) -> UnlockResult:
        messages: list[str] = []
        component_ids: list[ComponentSnapshotId] = []
        for step_id in step_ids:
            step = tree.get_step(step_id)
            if step is None:
                continue
            messages.append(f"Step {step.order} '{step.title}' is now available")
            component_ids.extend(c.id for c in tree.components_for_step(step_id))
        return UnlockResult(
            new_unlocked_step_ids=tuple(step_ids),
            new_unlocked_component_ids=tuple(component_ids),
            messages=tuple(messages),
        )

    def _component_summary(
        self, component: ComponentSnapshot, progress: ComponentProgress | None, is_unlocked: bool
    ) -> ComponentProgressSummary:
        return ComponentProgressSummary(
            component_snapshot_id=component.id,
            step_snapshot_id=component.step_snapshot_id,
            title=component.title,
            component_type=component.component_type,
            order=component.order,
            is_required=component.is_required,
            is_unlocked=is_unlocked,
            status=progress.status if progress else "not_started",
            percent=self.completion_policy.percent(component, progress),
            attempt_count=progress.attempt_count if progress else 0,
            time_spent_seconds=progress.time_spent_seconds if progress else 0,
        )

    @staticmethod
    def _step_status(
        is_unlocked: bool, components: list[ComponentProgressSummary], completed: int
    ) -> StepProgressStatus:
        if not is_unlocked:
            return "locked"
        if completed == len(components):
            return "completed"
        if any(c.status != "not_started" for c in components):
            return "in_progress"
        return "available"


def _parse(schema: type[SchemaT], data: Mapping[str, Any]) -> SchemaT:
    try:
        return schema.model_validate(dict(data))
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'data'}: {error['msg']}"
            for error in e.errors()
        )
        raise ValidationError(f"Invalid action data: {problems}", field="data") from e


def _attempts_left(progress: ComponentProgress, max_attempts: int | None) -> int | None:
    if max_attempts is None:
        return None
    return max(0, max_attempts - progress.attempt_count)
