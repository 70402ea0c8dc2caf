"""Initial step queue tables.

Revision ID: 001_initial
Revises:
Create Date: 2025-02-03
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create the jobs and processing_steps tables."""
    json_type = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")

    # Create jobs table
    op.create_table(
        "jobs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("type", sa.String(length=150), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.Column("payload", json_type, nullable=False),
        sa.Column("result", json_type, nullable=True),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_jobs_status", "jobs", ["status"])
    op.create_index("ix_jobs_user_id", "jobs", ["user_id"])

    # Create processing_steps table
    op.create_table(
        "processing_steps",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("type", sa.String(length=100), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.Column("step_number", sa.Integer(), nullable=False),
        sa.Column("sequence_id", sa.Uuid(), nullable=False),
        sa.Column("job_id", sa.Uuid(), nullable=True),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("data", json_type, nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["job_id"],
            ["jobs.id"],
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_processing_steps_sequence_id", "processing_steps", ["sequence_id"])
    op.create_index("ix_processing_steps_status", "processing_steps", ["status"])
    op.create_index("ix_processing_steps_user_id", "processing_steps", ["user_id"])
    op.create_index(
        "ix_processing_steps_sequence_step_number",
        "processing_steps",
        ["sequence_id", "step_number"],
        unique=True,
    )


def downgrade() -> None:
    """Drop the step queue tables."""
    op.drop_index("ix_processing_steps_sequence_step_number", table_name="processing_steps")
    op.drop_index("ix_processing_steps_user_id", table_name="processing_steps")
    op.drop_index("ix_processing_steps_status", table_name="processing_steps")
    op.drop_index("ix_processing_steps_sequence_id", table_name="processing_steps")
    op.drop_table("processing_steps")

    op.drop_index("ix_jobs_user_id", table_name="jobs")
    op.drop_index("ix_jobs_status", table_name="jobs")
    op.drop_table("jobs")
