"""DTOs for progress use cases."""

from buddyflow.application.progress.use_cases.dtos.progress_dtos import (
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

__all__ = [
    "AnswerFeedback",
    "ComponentProgressSummary",
    "ProgressAnalytics",
    "ProgressStats",
    "ProgressSummary",
    "ProgressUpdateResult",
    "StepProgressStatus",
    "StepProgressSummary",
    "UnlockFailure",
    "UnlockResult",
]
