"""Immutable audit record of a deadline change."""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Literal

from buddyflow.domain.common.value_objects import UserId

AdjustmentKind = Literal["extension", "pause_compensation"]


def ceil_days(delta: timedelta) -> int:
    """Whole days covering ``delta``, rounded up."""
    return math.ceil(delta.total_seconds() / timedelta(days=1).total_seconds())


@dataclass(frozen=True)
class DeadlineAdjustment:
    """
    One change to an assignment deadline.

    ``delta_days`` is the calendar-day difference rounded up for
    extensions, and the number of business days added for pause
    compensation.
    """

    kind: AdjustmentKind
    previous_deadline: datetime
    new_deadline: datetime
    delta_days: int
    reason: str
    adjusted_by: UserId
    created_at: datetime
