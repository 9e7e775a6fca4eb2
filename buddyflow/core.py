from dependency_injector import containers, providers
from sqlalchemy.orm import Session

from buddyflow.application.assignment.use_cases.assign_flow_use_case import AssignFlowUseCase
from buddyflow.application.assignment.use_cases.assignment_lifecycle_use_case import (
    AssignmentLifecycleUseCase,
)
from buddyflow.application.progress.use_cases.progress_use_case import ProgressUseCase
from buddyflow.application.snapshot.use_cases.snapshot_use_case import SnapshotUseCase
from buddyflow.config import Settings, get_settings
from buddyflow.domain.snapshot.services.snapshot_factory import SnapshotFactory
from buddyflow.domain.snapshot.services.template_validator import TemplateValidator
from buddyflow.infrastructure.assignment.repositories.assignment_repository import (
    AssignmentRepository,
)
from buddyflow.infrastructure.assignment.services.calendar_service import CalendarService
from buddyflow.infrastructure.common.clock import SystemClock
from buddyflow.infrastructure.curriculum.repositories.template_repository import (
    TemplateRepository,
)
from buddyflow.infrastructure.progress.repositories.component_progress_repository import (
    ComponentProgressRepository,
)
from buddyflow.infrastructure.snapshot.repositories.snapshot_repository import (
    SnapshotRepository,
)


class Container(containers.DeclarativeContainer):
    """Dependency injection container."""

    # Declare db as a dependency that will be provided at runtime
    db = providers.Dependency(instance_of=Session)
    settings = providers.Singleton(get_settings)
    event_handlers = providers.List()

    clock = providers.Singleton(SystemClock)

    # Repositories
    template_repository = providers.Factory(TemplateRepository, db=db)
    snapshot_repository = providers.Factory(SnapshotRepository, db=db)
    progress_repository = providers.Factory(ComponentProgressRepository, db=db)
    assignment_repository = providers.Factory(AssignmentRepository, db=db)

    calendar_service = providers.Factory(
        CalendarService,
        db=db,
        working_days=settings.provided.WORKING_DAYS,
        holidays=settings.provided.HOLIDAYS,
    )

    # Domain services (pure domain logic, no db)
    snapshot_factory = providers.Factory(
        SnapshotFactory,
        snapshot_version=settings.provided.SNAPSHOT_FORMAT_VERSION,
        default_passing_score=settings.provided.DEFAULT_QUIZ_PASSING_SCORE,
    )
    template_validator = providers.Factory(TemplateValidator)

    # Application use cases
    snapshot_use_case = providers.Factory(
        SnapshotUseCase,
        template_reader=template_repository,
        snapshot_store=snapshot_repository,
        clock=clock,
        snapshot_factory=snapshot_factory,
        template_validator=template_validator,
    )
    progress_use_case = providers.Factory(
        ProgressUseCase,
        assignment_store=assignment_repository,
        snapshot_store=snapshot_repository,
        progress_store=progress_repository,
        clock=clock,
    )
    assignment_lifecycle_use_case = providers.Factory(
        AssignmentLifecycleUseCase,
        assignment_store=assignment_repository,
        calendar=calendar_service,
        clock=clock,
        event_handlers=event_handlers,
        at_risk_days=settings.provided.AT_RISK_DAYS,
        max_mentors=settings.provided.MAX_MENTORS_PER_ASSIGNMENT,
    )
    assign_flow_use_case = providers.Factory(
        AssignFlowUseCase,
        snapshot_use_case=snapshot_use_case,
        assignment_store=assignment_repository,
        calendar=calendar_service,
        clock=clock,
        default_deadline_business_days=settings.provided.DEFAULT_DEADLINE_BUSINESS_DAYS,
        max_mentors=settings.provided.MAX_MENTORS_PER_ASSIGNMENT,
    )


def create_container(settings: Settings | None = None) -> Container:
    """Build a container, optionally pinned to explicit settings."""
    new_container = Container()
    if settings is not None:
        new_container.settings.override(providers.Object(settings))
    return new_container


container = Container()
