"""Pydantic schemas for progress action data."""

from datetime import datetime
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ProgressActionData(BaseModel):
    """Fields shared by every progress action."""

    model_config = ConfigDict(extra="forbid")

    time_spent: int = Field(0, ge=0, description="Seconds spent since the last update")


class StartData(ProgressActionData):
    """Schema for the start action."""


class WatchedSegmentData(BaseModel):
    start: float = Field(..., ge=0)
    end: float = Field(..., ge=0)

    @model_validator(mode="after")
    def check_order(self) -> Self:
        if self.end < self.start:
            raise ValueError("Segment end must not precede its start")
        return self


class ProgressUpdateData(ProgressActionData):
    """Schema for the update_progress action. Unused fields are ignored per type."""

    reading_progress: float | None = Field(None, ge=0, le=1, description="Article scroll depth")
    fully_read: bool | None = Field(None, description="Article explicitly read to the end")
    watched_segments: list[WatchedSegmentData] = Field(
        default_factory=list, description="Video ranges watched since the last update"
    )
    current_position: float | None = Field(None, ge=0, description="Video playhead in seconds")
    watch_percentage: float | None = Field(
        None, ge=0, le=100, description="Client-computed watch share for videos without duration"
    )


class TaskAnswerData(ProgressActionData):
    answer: str = Field(..., description="Free-text answer")


class QuizAnswerData(ProgressActionData):
    answers: dict[str, list[str]] = Field(
        ..., description="Selected option ids keyed by question id"
    )
    started_at: datetime | None = Field(None, description="When the learner opened the quiz")


class CompleteData(ProgressActionData):
    fully_read: bool | None = Field(None, description="Article explicitly read to the end")


class SkipData(ProgressActionData):
    """Schema for the skip action."""


class FailData(ProgressActionData):
    """Schema for the fail action."""
