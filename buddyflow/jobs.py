"""Scheduled job entry points."""

import structlog

from buddyflow.application.assignment.use_cases.dtos import OverdueRecomputeResult
from buddyflow.config import configure_logging, get_settings
from buddyflow.core import container
from buddyflow.database import session_scope

logger = structlog.get_logger(__name__)


def run_overdue_recompute() -> OverdueRecomputeResult:
    """
    Refresh the overdue flag on every assignment.

    Meant to be run periodically by an external scheduler (cron, a worker
    beat); the job itself never loops or retries.
    """
    with session_scope() as db:
        use_case = container.assignment_lifecycle_use_case(db=db)
        result = use_case.recompute_overdue_flags()
    logger.info("overdue_recompute_finished", changed=result.changed)
    return result


def main() -> None:
    settings = get_settings()
    configure_logging(settings.ENVIRONMENT)
    run_overdue_recompute()


if __name__ == "__main__":
    main()
