"""Database models."""

from datetime import UTC, date, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator

from buddyflow.database import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")


class UTCDateTime(TypeDecorator[datetime]):
    """Timezone-aware UTC datetimes on every backend, SQLite included."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        value = value.astimezone(UTC)
        # SQLite has no timezone support; store naive UTC so comparisons stay lexical.
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


class FlowTemplate(Base):
    """Editable curriculum template; the source of every snapshot."""

    __tablename__ = "flow_templates"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    steps: Mapped[list["TemplateStep"]] = relationship(
        back_populates="flow_template", cascade="all, delete-orphan", order_by="TemplateStep.order"
    )

    def __repr__(self) -> str:
        return f"<FlowTemplate(id={self.id}, title='{self.title}', version={self.version})>"


class TemplateStep(Base):
    __tablename__ = "template_steps"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    flow_template_id: Mapped[int] = mapped_column(
        ForeignKey("flow_templates.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False)
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    requires_previous_step_completed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    skippable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    max_attempts: Mapped[int | None] = mapped_column(Integer, nullable=True)
    time_limit_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)

    flow_template: Mapped[FlowTemplate] = relationship(back_populates="steps")
    components: Mapped[list["TemplateComponent"]] = relationship(
        back_populates="step", cascade="all, delete-orphan", order_by="TemplateComponent.order"
    )


class TemplateComponent(Base):
    __tablename__ = "template_components"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    step_id: Mapped[int] = mapped_column(
        ForeignKey("template_steps.id", ondelete="CASCADE"), nullable=False, index=True
    )
    component_type: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False)
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    max_attempts: Mapped[int | None] = mapped_column(Integer, nullable=True)
    content: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    tags: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)

    step: Mapped[TemplateStep] = relationship(back_populates="components")


class FlowSnapshot(Base):
    """Frozen copy of a template. Rows are written once and never updated, except context."""

    __tablename__ = "flow_snapshots"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    # No foreign key: a snapshot outlives edits to, or deletion of, its template.
    template_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    template_version: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    assignment_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    context: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    created_by: Mapped[int] = mapped_column(Integer, nullable=False)
    snapshot_version: Mapped[str] = mapped_column(String(20), nullable=False)
    total_steps: Mapped[int] = mapped_column(Integer, nullable=False)
    total_components: Mapped[int] = mapped_column(Integer, nullable=False)
    size_bytes: Mapped[int] = mapped_column(Integer, nullable=False)
    content_hash: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    steps: Mapped[list["StepSnapshot"]] = relationship(
        back_populates="flow_snapshot",
        cascade="all, delete-orphan",
        order_by="StepSnapshot.order",
    )

    def __repr__(self) -> str:
        return f"<FlowSnapshot(id={self.id}, template_id={self.template_id})>"


class StepSnapshot(Base):
    __tablename__ = "step_snapshots"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    flow_snapshot_id: Mapped[UUID] = mapped_column(
        ForeignKey("flow_snapshots.id", ondelete="CASCADE"), nullable=False, index=True
    )
    order: Mapped[int] = mapped_column(Integer, nullable=False)
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False)
    requires_previous_step_completed: Mapped[bool] = mapped_column(Boolean, nullable=False)
    skippable: Mapped[bool] = mapped_column(Boolean, nullable=False)
    max_attempts: Mapped[int | None] = mapped_column(Integer, nullable=True)
    time_limit_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    original_step_id: Mapped[int] = mapped_column(Integer, nullable=False)
    original_title: Mapped[str] = mapped_column(String(500), nullable=False)
    original_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    original_order: Mapped[int] = mapped_column(Integer, nullable=False)
    total_components: Mapped[int] = mapped_column(Integer, nullable=False)
    required_components: Mapped[int] = mapped_column(Integer, nullable=False)
    estimated_duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)

    flow_snapshot: Mapped[FlowSnapshot] = relationship(back_populates="steps")
    components: Mapped[list["ComponentSnapshot"]] = relationship(
        back_populates="step_snapshot",
        cascade="all, delete-orphan",
        order_by="ComponentSnapshot.order",
    )


class ComponentSnapshot(Base):
    __tablename__ = "component_snapshots"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    step_snapshot_id: Mapped[UUID] = mapped_column(
        ForeignKey("step_snapshots.id", ondelete="CASCADE"), nullable=False, index=True
    )
    component_type: Mapped[str] = mapped_column(String(20), nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False)
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False)
    max_attempts: Mapped[int | None] = mapped_column(Integer, nullable=True)
    content: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)
    original_component_id: Mapped[int] = mapped_column(Integer, nullable=False)
    original_title: Mapped[str] = mapped_column(String(500), nullable=False)
    original_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    snapshot_version: Mapped[str] = mapped_column(String(20), nullable=False)
    content_size: Mapped[int] = mapped_column(Integer, nullable=False)
    estimated_duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    tags: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)

    step_snapshot: Mapped[StepSnapshot] = relationship(back_populates="components")


class Assignment(Base):
    """A learner's assignment to exactly one flow snapshot."""

    __tablename__ = "assignments"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    learner_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    snapshot_id: Mapped[UUID] = mapped_column(
        ForeignKey("flow_snapshots.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="not_started")
    deadline: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)
    assigned_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    started_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    last_activity_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    paused_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    paused_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    pause_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    cancelled_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cancel_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    time_spent_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_overdue: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    mentors: Mapped[list["AssignmentMentor"]] = relationship(
        back_populates="assignment",
        cascade="all, delete-orphan",
        order_by="AssignmentMentor.position",
    )
    adjustments: Mapped[list["DeadlineAdjustment"]] = relationship(
        back_populates="assignment",
        cascade="all, delete-orphan",
        order_by="DeadlineAdjustment.id",
    )

    def __repr__(self) -> str:
        return f"<Assignment(id={self.id}, learner_id={self.learner_id}, status={self.status})>"


class AssignmentMentor(Base):
    __tablename__ = "assignment_mentors"

    assignment_id: Mapped[int] = mapped_column(
        ForeignKey("assignments.id", ondelete="CASCADE"), primary_key=True
    )
    mentor_id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    assignment: Mapped[Assignment] = relationship(back_populates="mentors")


class DeadlineAdjustment(Base):
    """Append-only log of deadline changes."""

    __tablename__ = "deadline_adjustments"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    assignment_id: Mapped[int] = mapped_column(
        ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    kind: Mapped[str] = mapped_column(String(30), nullable=False)
    previous_deadline: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    new_deadline: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    delta_days: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    adjusted_by: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    assignment: Mapped[Assignment] = relationship(back_populates="adjustments")


class ComponentProgress(Base):
    """One row per learner, assignment and component snapshot."""

    __tablename__ = "component_progress"
    __table_args__ = (
        UniqueConstraint(
            "learner_id",
            "assignment_id",
            "component_snapshot_id",
            name="uq_component_progress_learner_assignment_component",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    learner_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    assignment_id: Mapped[int] = mapped_column(
        ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    component_snapshot_id: Mapped[UUID] = mapped_column(
        ForeignKey("component_snapshots.id", ondelete="CASCADE"), nullable=False, index=True
    )
    component_type: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="not_started")
    attempt_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    time_spent_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    started_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    last_activity_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    payload: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    reset_history: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONType, nullable=False, default=list
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Holiday(Base):
    __tablename__ = "holidays"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    day: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
