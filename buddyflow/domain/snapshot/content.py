"""
Frozen component content variants.

A component's content is a tagged variant over article, task, quiz and
video. Every dispatch over the variant ends in ``assert_never`` so adding a
new component type fails loudly at each site that has not been taught
about it.
"""

import json
import math
from dataclasses import dataclass, field
from typing import Any, Literal, assert_never

from buddyflow.domain.common.exceptions import ValidationError
from buddyflow.domain.common.value_object import ValueObject

ComponentType = Literal["article", "task", "quiz", "video"]
COMPONENT_TYPES: tuple[ComponentType, ...] = ("article", "task", "quiz", "video")

DEFAULT_ARTICLE_MINUTES = 5
TASK_MINUTES = 10
MIN_QUIZ_MINUTES = 5
MINUTES_PER_QUIZ_QUESTION = 2
DEFAULT_QUIZ_PASSING_SCORE = 70
DEFAULT_MIN_WATCH_PERCENTAGE = 0.8


@dataclass(frozen=True)
class ArticleContent(ValueObject):
    text: str
    html: str | None = None
    estimated_read_minutes: int | None = None

    def __post_init__(self) -> None:
        if not self.text or not self.text.strip():
            raise ValidationError("Article text cannot be empty", field="text")
        if self.estimated_read_minutes is not None and self.estimated_read_minutes <= 0:
            raise ValidationError(
                "Estimated read time must be positive",
                field="estimated_read_minutes",
                value=self.estimated_read_minutes,
            )


@dataclass(frozen=True)
class TaskValidationSettings(ValueObject):
    """How a free-text submission is compared to the reference answer."""

    case_sensitive: bool = False
    trim_whitespace: bool = True
    allow_partial_match: bool = False
    pattern: str | None = None


@dataclass(frozen=True)
class TaskContent(ValueObject):
    instruction: str
    reference_answer: str
    alternative_answers: tuple[str, ...] = ()
    hint: str | None = None
    validation: TaskValidationSettings = field(default_factory=TaskValidationSettings)
    max_answer_length: int | None = None

    def __post_init__(self) -> None:
        if not self.reference_answer or not self.reference_answer.strip():
            raise ValidationError("Task reference answer cannot be empty", field="reference_answer")


@dataclass(frozen=True)
class QuizOption(ValueObject):
    id: str
    text: str
    is_correct: bool = False
    explanation: str | None = None


@dataclass(frozen=True)
class QuizQuestion(ValueObject):
    id: str
    text: str
    options: tuple[QuizOption, ...]

    def __post_init__(self) -> None:
        if len(self.options) < 2:
            raise ValidationError(
                f"Quiz question {self.id} needs at least two options", field="options"
            )
        if not any(option.is_correct for option in self.options):
            raise ValidationError(
                f"Quiz question {self.id} needs at least one correct option", field="options"
            )

    @property
    def correct_option_ids(self) -> frozenset[str]:
        return frozenset(option.id for option in self.options if option.is_correct)


@dataclass(frozen=True)
class QuizContent(ValueObject):
    questions: tuple[QuizQuestion, ...]
    passing_score: int = DEFAULT_QUIZ_PASSING_SCORE
    explanation: str | None = None

    def __post_init__(self) -> None:
        if not self.questions:
            raise ValidationError("Quiz must have at least one question", field="questions")
        if not 0 <= self.passing_score <= 100:
            raise ValidationError(
                "Passing score must be between 0 and 100",
                field="passing_score",
                value=self.passing_score,
            )


@dataclass(frozen=True)
class VideoContent(ValueObject):
    url: str
    duration_seconds: int | None = None
    min_watch_percentage: float = DEFAULT_MIN_WATCH_PERCENTAGE
    thumbnail_url: str | None = None

    def __post_init__(self) -> None:
        if not self.url or not self.url.strip():
            raise ValidationError("Video URL cannot be empty", field="url")
        if not 0 < self.min_watch_percentage <= 1:
            raise ValidationError(
                "Minimum watch percentage must be a fraction in (0, 1]",
                field="min_watch_percentage",
                value=self.min_watch_percentage,
            )


ComponentContent = ArticleContent | TaskContent | QuizContent | VideoContent


def content_type_of(content: ComponentContent) -> ComponentType:
    """Return the discriminant that matches a content payload."""
    if isinstance(content, ArticleContent):
        return "article"
    if isinstance(content, TaskContent):
        return "task"
    if isinstance(content, QuizContent):
        return "quiz"
    if isinstance(content, VideoContent):
        return "video"
    assert_never(content)


def estimate_duration_minutes(content: ComponentContent) -> int:
    if isinstance(content, ArticleContent):
        return content.estimated_read_minutes or DEFAULT_ARTICLE_MINUTES
    if isinstance(content, TaskContent):
        return TASK_MINUTES
    if isinstance(content, QuizContent):
        return max(len(content.questions) * MINUTES_PER_QUIZ_QUESTION, MIN_QUIZ_MINUTES)
    if isinstance(content, VideoContent):
        if not content.duration_seconds:
            return 0
        return math.ceil(content.duration_seconds / 60)
    assert_never(content)


def content_size(content: ComponentContent) -> int:
    """Length of the serialized content payload, in characters."""
    return len(json.dumps(content_to_dict(content), ensure_ascii=False, sort_keys=True))


def content_to_dict(content: ComponentContent) -> dict[str, Any]:
    """Serialize content to plain JSON-compatible data."""
    if isinstance(content, ArticleContent):
        return {
            "text": content.text,
            "html": content.html,
            "estimated_read_minutes": content.estimated_read_minutes,
        }
    if isinstance(content, TaskContent):
        return {
            "instruction": content.instruction,
            "reference_answer": content.reference_answer,
            "alternative_answers": list(content.alternative_answers),
            "hint": content.hint,
            "validation": {
                "case_sensitive": content.validation.case_sensitive,
                "trim_whitespace": content.validation.trim_whitespace,
                "allow_partial_match": content.validation.allow_partial_match,
                "pattern": content.validation.pattern,
            },
            "max_answer_length": content.max_answer_length,
        }
    if isinstance(content, QuizContent):
        return {
            "questions": [
                {
                    "id": question.id,
                    "text": question.text,
                    "options": [
                        {
                            "id": option.id,
                            "text": option.text,
                            "is_correct": option.is_correct,
                            "explanation": option.explanation,
                        }
                        for option in question.options
                    ],
                }
                for question in content.questions
            ],
            "passing_score": content.passing_score,
            "explanation": content.explanation,
        }
    if isinstance(content, VideoContent):
        return {
            "url": content.url,
            "duration_seconds": content.duration_seconds,
            "min_watch_percentage": content.min_watch_percentage,
            "thumbnail_url": content.thumbnail_url,
        }
    assert_never(content)


def content_from_dict(
    component_type: ComponentType,
    data: dict[str, Any],
    default_passing_score: int = DEFAULT_QUIZ_PASSING_SCORE,
) -> ComponentContent:
    """
    Build a frozen content value from plain data, field by field.

    Lists become tuples and nested mappings become value objects, so the
    result shares no mutable state with ``data``.

    Raises:
        ValidationError: If the data does not describe valid content
    """
    try:
        if component_type == "article":
            return ArticleContent(
                text=str(data.get("text") or ""),
                html=data.get("html"),
                estimated_read_minutes=data.get("estimated_read_minutes"),
            )
        if component_type == "task":
            settings = data.get("validation") or {}
            return TaskContent(
                instruction=str(data.get("instruction") or ""),
                reference_answer=str(data.get("reference_answer") or ""),
                alternative_answers=tuple(str(a) for a in data.get("alternative_answers") or ()),
                hint=data.get("hint"),
                validation=TaskValidationSettings(
                    case_sensitive=bool(settings.get("case_sensitive", False)),
                    trim_whitespace=bool(settings.get("trim_whitespace", True)),
                    allow_partial_match=bool(settings.get("allow_partial_match", False)),
                    pattern=settings.get("pattern") or None,
                ),
                max_answer_length=data.get("max_answer_length"),
            )
        if component_type == "quiz":
            passing_score = data.get("passing_score")
            return QuizContent(
                questions=tuple(
                    QuizQuestion(
                        id=str(question["id"]),
                        text=str(question.get("text") or ""),
                        options=tuple(
                            QuizOption(
                                id=str(option["id"]),
                                text=str(option.get("text") or ""),
                                is_correct=bool(option.get("is_correct", False)),
                                explanation=option.get("explanation"),
                            )
                            for option in question.get("options") or ()
                        ),
                    )
                    for question in data.get("questions") or ()
                ),
                passing_score=(
                    default_passing_score if passing_score is None else int(passing_score)
                ),
                explanation=data.get("explanation"),
            )
        if component_type == "video":
            min_watch = data.get("min_watch_percentage")
            return VideoContent(
                url=str(data.get("url") or ""),
                duration_seconds=data.get("duration_seconds"),
                min_watch_percentage=(
                    DEFAULT_MIN_WATCH_PERCENTAGE if min_watch is None else float(min_watch)
                ),
                thumbnail_url=data.get("thumbnail_url"),
            )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ValidationError(f"Malformed {component_type} content: {e}") from e
    assert_never(component_type)
