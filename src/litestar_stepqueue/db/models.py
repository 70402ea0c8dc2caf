"""SQLAlchemy models for step queue persistence.

This module defines the database models for persisting sequencer state:
- StepModel: One unit of work within a sequence, mutated in place as it runs
- JobModel: One execution attempt of a step, kept for retries and audits
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from advanced_alchemy.base import UUIDAuditBase
from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from litestar_stepqueue.core.models import JobData, StepData
from litestar_stepqueue.core.types import JobStatus, StepStatus

__all__ = [
    "JobModel",
    "StepModel",
]


# Cross-database JSON type: uses JSONB for PostgreSQL, JSON for others (SQLite, MySQL, etc.)
JSONType = JSON().with_variant(JSONB, "postgresql")


class JobModel(UUIDAuditBase):
    """Persisted execution attempt of a step.

    A retried step gets a new job; earlier jobs stay untouched so every attempt
    remains traceable.

    Attributes:
        type: Job type derived from the step type (``STEP_<TYPE>``).
        status: Current execution status.
        payload: Reference data (step id, step number, step type, sequence step ids).
        result: Handler result on success, ``{"error": ...}`` on failure.
        user_id: Owner of the job.
        completed_at: Set only when the job completes.
    """

    __tablename__ = "jobs"
    __table_args__ = (
        Index("ix_jobs_status", "status"),
        Index("ix_jobs_user_id", "user_id"),
    )

    type: Mapped[str] = mapped_column(String(150))
    status: Mapped[JobStatus] = mapped_column(
        Enum(JobStatus, native_enum=False, length=50),
        default=JobStatus.PENDING,
    )
    payload: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)
    result: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    user_id: Mapped[str] = mapped_column(String(255))
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def to_data(self) -> JobData:
        """Detach the row into a plain snapshot."""
        return JobData(
            id=self.id,
            type=self.type,
            status=self.status,
            payload=dict(self.payload or {}),
            user_id=self.user_id,
            result=self.result,
            completed_at=self.completed_at,
        )


class StepModel(UUIDAuditBase):
    """Persisted processing step.

    Steps are created in bulk when a sequence is requested and are never deleted
    by the sequencer.

    Attributes:
        type: Step type tag selecting the handler.
        status: Current lifecycle status.
        step_number: 1-based position within the sequence.
        sequence_id: Identifier shared by all steps of one sequence.
        job_id: Job currently or most recently associated with the step.
        user_id: Owner, used to address notifications.
        data: Opaque payload forwarded to the handler.
        started_at: When the step last entered PROCESSING.
        completed_at: When the step last reached a terminal status.
        job: The associated job.
    """

    __tablename__ = "processing_steps"
    __table_args__ = (
        Index("ix_processing_steps_sequence_id", "sequence_id"),
        Index("ix_processing_steps_status", "status"),
        Index("ix_processing_steps_user_id", "user_id"),
        Index("ix_processing_steps_sequence_step_number", "sequence_id", "step_number", unique=True),
    )

    type: Mapped[str] = mapped_column(String(100))
    status: Mapped[StepStatus] = mapped_column(
        Enum(StepStatus, native_enum=False, length=50),
        default=StepStatus.PENDING,
    )
    step_number: Mapped[int] = mapped_column(Integer)
    sequence_id: Mapped[UUID] = mapped_column()
    job_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("jobs.id", ondelete="SET NULL"),
        nullable=True,
    )
    user_id: Mapped[str] = mapped_column(String(255))
    data: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    job: Mapped[JobModel | None] = relationship(lazy="noload")

    def to_data(self) -> StepData:
        """Detach the row into a plain snapshot."""
        return StepData(
            id=self.id,
            type=self.type,
            status=self.status,
            step_number=self.step_number,
            sequence_id=self.sequence_id,
            user_id=self.user_id,
            job_id=self.job_id,
            data=self.data,
            started_at=self.started_at,
            completed_at=self.completed_at,
        )
