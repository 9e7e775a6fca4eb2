"""
Type-specific completion criteria and per-component percentages.

This is a pure domain service with no infrastructure dependencies.
"""

from typing import assert_never

from buddyflow.domain.progress.entities.component_progress import ComponentProgress
from buddyflow.domain.progress.payloads import (
    ArticleProgress,
    ProgressPayload,
    QuizProgress,
    TaskProgress,
    VideoProgress,
)
from buddyflow.domain.snapshot.content import (
    ArticleContent,
    QuizContent,
    TaskContent,
    VideoContent,
)
from buddyflow.domain.snapshot.entities import ComponentSnapshot

ARTICLE_READ_THRESHOLD = 0.95
# Video progress is shown below 100 until the component is actually completed.
MAX_INCOMPLETE_PERCENT = 99


class CompletionPolicy:
    """Decides when a component's type-specific completion criterion holds."""

    def is_met(self, component: ComponentSnapshot, payload: ProgressPayload) -> bool:
        """
        Check whether the payload satisfies the component's completion criterion.

        Articles need a scroll depth of at least 95% or an explicit
        fully-read flag. Videos need the configured share watched. Tasks
        need a correct attempt and quizzes a passing attempt.
        """
        content = component.content
        if isinstance(content, ArticleContent):
            if not isinstance(payload, ArticleProgress):
                return False
            return payload.fully_read or payload.reading_progress >= ARTICLE_READ_THRESHOLD
        if isinstance(content, VideoContent):
            if not isinstance(payload, VideoProgress):
                return False
            return payload.watch_percentage >= content.min_watch_percentage * 100
        if isinstance(content, TaskContent):
            return isinstance(payload, TaskProgress) and payload.solved
        if isinstance(content, QuizContent):
            return isinstance(payload, QuizProgress) and payload.passed
        assert_never(content)

    def percent(self, component: ComponentSnapshot, progress: ComponentProgress | None) -> int:
        """Progress through a single component, 0-100."""
        if progress is None:
            return 0
        if progress.status in ("completed", "skipped"):
            return 100
        payload = progress.payload
        if isinstance(payload, ArticleProgress):
            return min(round(payload.reading_progress * 100), MAX_INCOMPLETE_PERCENT)
        if isinstance(payload, VideoProgress):
            return min(round(payload.watch_percentage), MAX_INCOMPLETE_PERCENT)
        if isinstance(payload, QuizProgress):
            return min(payload.best_score or 0, MAX_INCOMPLETE_PERCENT)
        if isinstance(payload, TaskProgress):
            return 0
        assert_never(payload)
