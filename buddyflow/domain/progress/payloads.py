"""
Type-specific progress payloads.

Payloads are frozen. Updating progress swaps in a new payload value; attempt
records inside a payload are appended, never rewritten.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, assert_never

from buddyflow.domain.common.exceptions import ValidationError
from buddyflow.domain.snapshot.content import ComponentType


@dataclass(frozen=True)
class ArticleProgress:
    reading_progress: float = 0.0
    fully_read: bool = False

    def __post_init__(self) -> None:
        if not 0.0 <= self.reading_progress <= 1.0:
            raise ValidationError(
                "Reading progress must be between 0 and 1",
                field="reading_progress",
                value=self.reading_progress,
            )


@dataclass(frozen=True)
class TaskAttempt:
    attempt_number: int
    answer: str
    is_correct: bool
    submitted_at: datetime
    time_spent_seconds: int = 0


@dataclass(frozen=True)
class TaskProgress:
    attempts: tuple[TaskAttempt, ...] = ()

    @property
    def last_answer(self) -> str | None:
        return self.attempts[-1].answer if self.attempts else None

    @property
    def solved(self) -> bool:
        return any(attempt.is_correct for attempt in self.attempts)

    def with_attempt(self, attempt: TaskAttempt) -> "TaskProgress":
        return replace(self, attempts=(*self.attempts, attempt))


@dataclass(frozen=True)
class QuizAttempt:
    attempt_number: int
    score: int
    correct_answers: int
    total_questions: int
    passed: bool
    started_at: datetime
    completed_at: datetime
    time_spent_seconds: int = 0
    answers: tuple[tuple[str, tuple[str, ...]], ...] = ()


@dataclass(frozen=True)
class QuizProgress:
    attempts: tuple[QuizAttempt, ...] = ()
    best_score: int | None = None
    current_score: int | None = None
    passed: bool = False

    def with_attempt(self, attempt: QuizAttempt) -> "QuizProgress":
        best = attempt.score if self.best_score is None else max(self.best_score, attempt.score)
        return QuizProgress(
            attempts=(*self.attempts, attempt),
            best_score=best,
            current_score=attempt.score,
            passed=self.passed or attempt.passed,
        )


@dataclass(frozen=True)
class WatchedSegment:
    start: float
    end: float

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValidationError(
                "Watched segment must satisfy 0 <= start <= end",
                field="segments",
                value=(self.start, self.end),
            )

    @property
    def length(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class VideoProgress:
    segments: tuple[WatchedSegment, ...] = ()
    watch_percentage: float = 0.0
    last_position_seconds: float = 0.0

    @property
    def watched_seconds(self) -> float:
        return sum(segment.length for segment in self.segments)


ProgressPayload = ArticleProgress | TaskProgress | QuizProgress | VideoProgress


def merge_segments(segments: list[WatchedSegment]) -> tuple[WatchedSegment, ...]:
    """Sort segments and fuse any that overlap or touch."""
    merged: list[WatchedSegment] = []
    for segment in sorted(segments, key=lambda s: (s.start, s.end)):
        if merged and segment.start <= merged[-1].end:
            last = merged.pop()
            merged.append(WatchedSegment(last.start, max(last.end, segment.end)))
        else:
            merged.append(segment)
    return tuple(merged)


def empty_payload(component_type: ComponentType) -> ProgressPayload:
    if component_type == "article":
        return ArticleProgress()
    if component_type == "task":
        return TaskProgress()
    if component_type == "quiz":
        return QuizProgress()
    if component_type == "video":
        return VideoProgress()
    assert_never(component_type)


def payload_attempt_count(payload: ProgressPayload) -> int:
    if isinstance(payload, TaskProgress | QuizProgress):
        return len(payload.attempts)
    return 0


def payload_to_dict(payload: ProgressPayload) -> dict[str, Any]:
    """Serialize a payload to JSON-compatible data."""
    if isinstance(payload, ArticleProgress):
        return {"reading_progress": payload.reading_progress, "fully_read": payload.fully_read}
    if isinstance(payload, TaskProgress):
        return {
            "attempts": [
                {
                    "attempt_number": a.attempt_number,
                    "answer": a.answer,
                    "is_correct": a.is_correct,
                    "submitted_at": a.submitted_at.isoformat(),
                    "time_spent_seconds": a.time_spent_seconds,
                }
                for a in payload.attempts
            ]
        }
    if isinstance(payload, QuizProgress):
        return {
            "attempts": [
                {
                    "attempt_number": a.attempt_number,
                    "score": a.score,
                    "correct_answers": a.correct_answers,
                    "total_questions": a.total_questions,
                    "passed": a.passed,
                    "started_at": a.started_at.isoformat(),
                    "completed_at": a.completed_at.isoformat(),
                    "time_spent_seconds": a.time_spent_seconds,
                    "answers": {question: list(options) for question, options in a.answers},
                }
                for a in payload.attempts
            ],
            "best_score": payload.best_score,
            "current_score": payload.current_score,
            "passed": payload.passed,
        }
    if isinstance(payload, VideoProgress):
        return {
            "segments": [[s.start, s.end] for s in payload.segments],
            "watch_percentage": payload.watch_percentage,
            "last_position_seconds": payload.last_position_seconds,
        }
    assert_never(payload)


def payload_from_dict(component_type: ComponentType, data: dict[str, Any]) -> ProgressPayload:
    """Rebuild a payload from data produced by ``payload_to_dict``."""
    if component_type == "article":
        return ArticleProgress(
            reading_progress=float(data.get("reading_progress", 0.0)),
            fully_read=bool(data.get("fully_read", False)),
        )
    if component_type == "task":
        return TaskProgress(
            attempts=tuple(
                TaskAttempt(
                    attempt_number=a["attempt_number"],
                    answer=a["answer"],
                    is_correct=a["is_correct"],
                    submitted_at=datetime.fromisoformat(a["submitted_at"]),
                    time_spent_seconds=a.get("time_spent_seconds", 0),
                )
                for a in data.get("attempts", [])
            )
        )
    if component_type == "quiz":
        return QuizProgress(
            attempts=tuple(
                QuizAttempt(
                    attempt_number=a["attempt_number"],
                    score=a["score"],
                    correct_answers=a["correct_answers"],
                    total_questions=a["total_questions"],
                    passed=a["passed"],
                    started_at=datetime.fromisoformat(a["started_at"]),
                    completed_at=datetime.fromisoformat(a["completed_at"]),
                    time_spent_seconds=a.get("time_spent_seconds", 0),
                    answers=tuple(
                        (question, tuple(options))
                        for question, options in a.get("answers", {}).items()
                    ),
                )
                for a in data.get("attempts", [])
            ),
            best_score=data.get("best_score"),
            current_score=data.get("current_score"),
            passed=bool(data.get("passed", False)),
        )
    if component_type == "video":
        return VideoProgress(
            segments=tuple(WatchedSegment(start, end) for start, end in data.get("segments", [])),
            watch_percentage=float(data.get("watch_percentage", 0.0)),
            last_position_seconds=float(data.get("last_position_seconds", 0.0)),
        )
    assert_never(component_type)
