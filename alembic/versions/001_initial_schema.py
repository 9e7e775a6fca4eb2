"""Initial schema: templates, snapshots, assignments and progress.

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

JSON = sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql")


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        "flow_templates",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_flow_templates_id", "flow_templates", ["id"])

    op.create_table(
        "template_steps",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("flow_template_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("is_required", sa.Boolean(), nullable=False),
        sa.Column("requires_previous_step_completed", sa.Boolean(), nullable=False),
        sa.Column("skippable", sa.Boolean(), nullable=False),
        sa.Column("max_attempts", sa.Integer(), nullable=True),
        sa.Column("time_limit_minutes", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["flow_template_id"], ["flow_templates.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_template_steps_id", "template_steps", ["id"])
    op.create_index("ix_template_steps_flow_template_id", "template_steps", ["flow_template_id"])

    op.create_table(
        "template_components",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("step_id", sa.Integer(), nullable=False),
        sa.Column("component_type", sa.String(length=20), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("is_required", sa.Boolean(), nullable=False),
        sa.Column("max_attempts", sa.Integer(), nullable=True),
        sa.Column("content", JSON, nullable=False),
        sa.Column("tags", JSON, nullable=False),
        sa.ForeignKeyConstraint(["step_id"], ["template_steps.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_template_components_id", "template_components", ["id"])
    op.create_index("ix_template_components_step_id", "template_components", ["step_id"])

    op.create_table(
        "flow_snapshots",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("template_id", sa.Integer(), nullable=False),
        sa.Column("template_version", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("assignment_id", sa.Integer(), nullable=True),
        sa.Column("context", JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=False),
        sa.Column("snapshot_version", sa.String(length=20), nullable=False),
        sa.Column("total_steps", sa.Integer(), nullable=False),
        sa.Column("total_components", sa.Integer(), nullable=False),
        sa.Column("size_bytes", sa.Integer(), nullable=False),
        sa.Column("content_hash", sa.String(length=64), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_flow_snapshots_template_id", "flow_snapshots", ["template_id"])
    op.create_index("ix_flow_snapshots_content_hash", "flow_snapshots", ["content_hash"])

    op.create_table(
        "step_snapshots",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("flow_snapshot_id", sa.Uuid(), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("is_required", sa.Boolean(), nullable=False),
        sa.Column("requires_previous_step_completed", sa.Boolean(), nullable=False),
        sa.Column("skippable", sa.Boolean(), nullable=False),
        sa.Column("max_attempts", sa.Integer(), nullable=True),
        sa.Column("time_limit_minutes", sa.Integer(), nullable=True),
        sa.Column("original_step_id", sa.Integer(), nullable=False),
        sa.Column("original_title", sa.String(length=500), nullable=False),
        sa.Column("original_description", sa.Text(), nullable=True),
        sa.Column("original_order", sa.Integer(), nullable=False),
        sa.Column("total_components", sa.Integer(), nullable=False),
        sa.Column("required_components", sa.Integer(), nullable=False),
        sa.Column("estimated_duration_minutes", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["flow_snapshot_id"], ["flow_snapshots.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_step_snapshots_flow_snapshot_id", "step_snapshots", ["flow_snapshot_id"])

    op.create_table(
        "component_snapshots",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("step_snapshot_id", sa.Uuid(), nullable=False),
        sa.Column("component_type", sa.String(length=20), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("is_required", sa.Boolean(), nullable=False),
        sa.Column("max_attempts", sa.Integer(), nullable=True),
        sa.Column("content", JSON, nullable=False),
        sa.Column("original_component_id", sa.Integer(), nullable=False),
        sa.Column("original_title", sa.String(length=500), nullable=False),
        sa.Column("original_description", sa.Text(), nullable=True),
        sa.Column("snapshot_version", sa.String(length=20), nullable=False),
        sa.Column("content_size", sa.Integer(), nullable=False),
        sa.Column("estimated_duration_minutes", sa.Integer(), nullable=False),
        sa.Column("tags", JSON, nullable=False),
        sa.ForeignKeyConstraint(["step_snapshot_id"], ["step_snapshots.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_component_snapshots_step_snapshot_id", "component_snapshots", ["step_snapshot_id"]
    )

    op.create_table(
        "assignments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("learner_id", sa.Integer(), nullable=False),
        sa.Column("snapshot_id", sa.Uuid(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_activity_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paused_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paused_by", sa.Integer(), nullable=True),
        sa.Column("pause_reason", sa.Text(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by", sa.Integer(), nullable=True),
        sa.Column("cancel_reason", sa.Text(), nullable=True),
        sa.Column("time_spent_seconds", sa.Integer(), nullable=False),
        sa.Column("is_overdue", sa.Boolean(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["snapshot_id"], ["flow_snapshots.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_assignments_id", "assignments", ["id"])
    op.create_index("ix_assignments_learner_id", "assignments", ["learner_id"])
    op.create_index("ix_assignments_snapshot_id", "assignments", ["snapshot_id"])
    op.create_index("ix_assignments_deadline", "assignments", ["deadline"])
    op.create_index("ix_assignments_is_overdue", "assignments", ["is_overdue"])

    op.create_table(
        "assignment_mentors",
        sa.Column("assignment_id", sa.Integer(), nullable=False),
        sa.Column("mentor_id", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["assignment_id"], ["assignments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("assignment_id", "mentor_id"),
    )
    op.create_index("ix_assignment_mentors_mentor_id", "assignment_mentors", ["mentor_id"])

    op.create_table(
        "deadline_adjustments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("assignment_id", sa.Integer(), nullable=False),
        sa.Column("kind", sa.String(length=30), nullable=False),
        sa.Column("previous_deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("new_deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("delta_days", sa.Integer(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("adjusted_by", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["assignment_id"], ["assignments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_deadline_adjustments_assignment_id", "deadline_adjustments", ["assignment_id"]
    )

    op.create_table(
        "component_progress",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("learner_id", sa.Integer(), nullable=False),
        sa.Column("assignment_id", sa.Integer(), nullable=False),
        sa.Column("component_snapshot_id", sa.Uuid(), nullable=False),
        sa.Column("component_type", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("attempt_count", sa.Integer(), nullable=False),
        sa.Column("time_spent_seconds", sa.Integer(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_activity_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("payload", JSON, nullable=False),
        sa.Column("reset_history", JSON, nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["assignment_id"], ["assignments.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["component_snapshot_id"], ["component_snapshots.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "learner_id",
            "assignment_id",
            "component_snapshot_id",
            name="uq_component_progress_learner_assignment_component",
        ),
    )
    op.create_index("ix_component_progress_learner_id", "component_progress", ["learner_id"])
    op.create_index(
        "ix_component_progress_assignment_id", "component_progress", ["assignment_id"]
    )
    op.create_index(
        "ix_component_progress_component_snapshot_id",
        "component_progress",
        ["component_snapshot_id"],
    )

    op.create_table(
        "holidays",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("day", sa.Date(), nullable=False),
        sa.Column("is_recurring", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_holidays_day", "holidays", ["day"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("holidays")
    op.drop_table("component_progress")
    op.drop_table("deadline_adjustments")
    op.drop_table("assignment_mentors")
    op.drop_table("assignments")
    op.drop_table("component_snapshots")
    op.drop_table("step_snapshots")
    op.drop_table("flow_snapshots")
    op.drop_table("template_components")
    op.drop_table("template_steps")
    op.drop_table("flow_templates")
