"""Pytest configuration and fixtures."""

from collections.abc import Generator
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from sqlalchemy.orm import Session, sessionmaker

from buddyflow.application.assignment.use_cases.assign_flow_use_case import AssignFlowUseCase
from buddyflow.application.assignment.use_cases.assignment_lifecycle_use_case import (
    AssignmentLifecycleUseCase,
)
from buddyflow.application.progress.use_cases.progress_use_case import ProgressUseCase
from buddyflow.application.snapshot.use_cases.snapshot_use_case import SnapshotUseCase
from buddyflow.database import Base, create_db_engine
from buddyflow.domain.assignment.entities.assignment import Assignment
from buddyflow.domain.common import DomainEvent
from buddyflow.domain.snapshot.entities import SnapshotTree
from buddyflow.infrastructure.assignment.repositories.assignment_repository import (
    AssignmentRepository,
)
from buddyflow.infrastructure.assignment.services.calendar_service import CalendarService
from buddyflow.infrastructure.curriculum.repositories.template_repository import (
    TemplateRepository,
)
from buddyflow.infrastructure.progress.repositories.component_progress_repository import (
    ComponentProgressRepository,
)
from buddyflow.infrastructure.snapshot.repositories.snapshot_repository import (
    SnapshotRepository,
)
from buddyflow.models import FlowTemplate as FlowTemplateORM
from buddyflow.models import TemplateComponent as TemplateComponentORM
from buddyflow.models import TemplateStep as TemplateStepORM

# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite:///:memory:"

# Create test engine
test_engine = create_db_engine(TEST_DATABASE_URL)

# Create test session factory
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

# Monday
START_TIME = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)

LEARNER_ID = 10
MENTOR_ID = 20
OTHER_MENTOR_ID = 21
CREATOR_ID = 30


class FixedClock:
    """Clock pinned to a settable instant."""

    def __init__(self, current: datetime = START_TIME) -> None:
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


def article_content(text: str = "Read me carefully.") -> dict[str, Any]:
    return {"text": text, "estimated_read_minutes": 4}


def task_content(**overrides: Any) -> dict[str, Any]:
    content: dict[str, Any] = {
        "instruction": "Name the capital of France.",
        "reference_answer": "Paris",
        "alternative_answers": ["Paris, France"],
        "hint": "It is on the Seine.",
    }
    content.update(overrides)
    return content


def quiz_content(passing_score: int | None = 70) -> dict[str, Any]:
    questions = []
    for number in range(1, 5):
        questions.append(
            {
                "id": f"q{number}",
                "text": f"Question {number}",
                "options": [
                    {"id": "a", "text": "Right", "is_correct": True},
                    {"id": "b", "text": "Wrong", "is_correct": False},
                ],
            }
        )
    content: dict[str, Any] = {"questions": questions}
    if passing_score is not None:
        content["passing_score"] = passing_score
    return content


def video_content(duration_seconds: int | None = 600) -> dict[str, Any]:
    return {
        "url": "https://videos.example.com/intro.mp4",
        "duration_seconds": duration_seconds,
        "min_watch_percentage": 0.8,
    }


@dataclass
class ComponentSeed:
    component_type: str
    content: dict[str, Any]
    title: str = "Component"
    is_required: bool = True
    max_attempts: int | None = None
    tags: list[str] = field(default_factory=list)


@dataclass
class StepSeed:
    title: str
    components: list[ComponentSeed]
    skippable: bool = False
    requires_previous_step_completed: bool = True
    max_attempts: int | None = None


def default_steps() -> list[StepSeed]:
    """Three steps: article and task, then quiz and video, then a skippable wrap-up."""
    return [
        StepSeed(
            title="Welcome",
            components=[
                ComponentSeed("article", article_content(), title="Intro article"),
                ComponentSeed("task", task_content(), title="Capital task", max_attempts=3),
            ],
        ),
        StepSeed(
            title="Check",
            components=[
                ComponentSeed("quiz", quiz_content(), title="Check quiz", max_attempts=2),
                ComponentSeed("video", video_content(), title="Intro video"),
            ],
        ),
        StepSeed(
            title="Wrap-up",
            skippable=True,
            components=[ComponentSeed("article", article_content("Bye."), title="Outro")],
        ),
    ]


def seed_template(
    db: Session,
    steps: list[StepSeed] | None = None,
    title: str = "Onboarding",
    version: int = 1,
    is_active: bool = True,
) -> int:
    """Insert a template with its steps and components and return its id."""
    template = FlowTemplateORM(title=title, version=version, is_active=is_active)
    for step_order, step_seed in enumerate(steps if steps is not None else default_steps(), 1):
        step = TemplateStepORM(
            title=step_seed.title,
            order=step_order,
            skippable=step_seed.skippable,
            requires_previous_step_completed=step_seed.requires_previous_step_completed,
            max_attempts=step_seed.max_attempts,
        )
        for component_order, seed in enumerate(step_seed.components, 1):
            step.components.append(
                TemplateComponentORM(
                    component_type=seed.component_type,
                    title=seed.title,
                    order=component_order,
                    is_required=seed.is_required,
                    max_attempts=seed.max_attempts,
                    content=seed.content,
                    tags=seed.tags,
                )
            )
        template.steps.append(step)
    db.add(template)
    db.commit()
    return template.id


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    # Create all tables
    Base.metadata.create_all(bind=test_engine)

    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        # Drop all tables after test
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def published_events() -> list[DomainEvent]:
    return []


@pytest.fixture
def snapshot_use_case(db_session: Session, clock: FixedClock) -> SnapshotUseCase:
    return SnapshotUseCase(
        template_reader=TemplateRepository(db_session),
        snapshot_store=SnapshotRepository(db_session),
        clock=clock,
    )


@pytest.fixture
def calendar_service(db_session: Session) -> CalendarService:
    return CalendarService(db_session, working_days=[0, 1, 2, 3, 4])


@pytest.fixture
def assign_flow_use_case(
    db_session: Session,
    snapshot_use_case: SnapshotUseCase,
    calendar_service: CalendarService,
    clock: FixedClock,
) -> AssignFlowUseCase:
    return AssignFlowUseCase(
        snapshot_use_case=snapshot_use_case,
        assignment_store=AssignmentRepository(db_session),
        calendar=calendar_service,
        clock=clock,
    )


@pytest.fixture
def lifecycle_use_case(
    db_session: Session,
    calendar_service: CalendarService,
    clock: FixedClock,
    published_events: list[DomainEvent],
) -> AssignmentLifecycleUseCase:
    return AssignmentLifecycleUseCase(
        assignment_store=AssignmentRepository(db_session),
        calendar=calendar_service,
        clock=clock,
        event_handlers=[published_events.append],
    )


@pytest.fixture
def progress_use_case(db_session: Session, clock: FixedClock) -> ProgressUseCase:
    return ProgressUseCase(
        assignment_store=AssignmentRepository(db_session),
        snapshot_store=SnapshotRepository(db_session),
        progress_store=ComponentProgressRepository(db_session),
        clock=clock,
    )


@dataclass
class AssignedFlow:
    assignment: Assignment
    tree: SnapshotTree

    def component(self, step_order: int, component_order: int) -> Any:
        """UUID of the component at the given 1-based positions."""
        step = self.tree.ordered_steps()[step_order - 1]
        return self.tree.components_for_step(step.id)[component_order - 1].id.value


@pytest.fixture
def assigned_flow(
    db_session: Session,
    assign_flow_use_case: AssignFlowUseCase,
    lifecycle_use_case: AssignmentLifecycleUseCase,
) -> AssignedFlow:
    """The default template assigned to LEARNER_ID and started."""
    template_id = seed_template(db_session)
    result = assign_flow_use_case.assign_flow(
        template_id=template_id,
        learner_id=LEARNER_ID,
        mentor_ids=[MENTOR_ID],
        created_by=CREATOR_ID,
    )
    assignment = lifecycle_use_case.start(result.assignment.id.value, LEARNER_ID)
    return AssignedFlow(assignment=assignment, tree=result.snapshot.tree)
