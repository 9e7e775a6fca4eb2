"""Domain events recorded by the Assignment aggregate."""

from dataclasses import dataclass
from datetime import datetime

from buddyflow.domain.common.domain_event import DomainEvent
from buddyflow.domain.common.value_objects import AssignmentId, UserId


@dataclass(frozen=True, kw_only=True)
class AssignmentStarted(DomainEvent):
    assignment_id: AssignmentId
    learner_id: UserId


@dataclass(frozen=True, kw_only=True)
class AssignmentPaused(DomainEvent):
    assignment_id: AssignmentId
    paused_by: UserId
    reason: str


@dataclass(frozen=True, kw_only=True)
class AssignmentResumed(DomainEvent):
    assignment_id: AssignmentId
    resumed_by: UserId
    deadline: datetime
    deadline_shift_days: int


@dataclass(frozen=True, kw_only=True)
class AssignmentCompleted(DomainEvent):
    assignment_id: AssignmentId
    completed_by: UserId


@dataclass(frozen=True, kw_only=True)
class AssignmentCancelled(DomainEvent):
    assignment_id: AssignmentId
    cancelled_by: UserId
    reason: str


@dataclass(frozen=True, kw_only=True)
class DeadlineExtended(DomainEvent):
    assignment_id: AssignmentId
    extended_by: UserId
    previous_deadline: datetime
    new_deadline: datetime
    reason: str
