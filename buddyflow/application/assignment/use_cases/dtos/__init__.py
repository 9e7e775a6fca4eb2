"""DTOs for assignment use cases."""

from buddyflow.application.assignment.use_cases.dtos.assignment_dtos import (
    AssignFlowResult,
    OverdueRecomputeResult,
    ResumeResult,
)

__all__ = ["AssignFlowResult", "OverdueRecomputeResult", "ResumeResult"]
