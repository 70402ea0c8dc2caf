"""Data Transfer Objects for the step queue web API.

This module defines DTOs for serializing and deserializing sequence data
in REST API requests and responses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

if TYPE_CHECKING:
    from litestar_stepqueue.core.models import SequenceStatus, StepData

__all__ = [
    "CreateSequenceDTO",
    "ProcessNextDTO",
    "RetryStepDTO",
    "SequenceCreatedDTO",
    "SequenceStatusDTO",
    "StepDTO",
    "StepSummaryDTO",
]


@dataclass
class CreateSequenceDTO:
    """DTO for creating a new step sequence.

    Attributes:
        step_types: Step type tags in execution order.
        user_id: Owner of the sequence; status updates are pushed to this user.
        data: Opaque payload forwarded to every step handler.
    """

    step_types: list[str]
    user_id: str
    data: dict[str, Any] | None = None


@dataclass
class SequenceCreatedDTO:
    """DTO returned after a sequence was created.

    Attributes:
        step_ids: The created step ids, in order.
        message: Human-readable confirmation.
    """

    step_ids: list[UUID]
    message: str = "Step sequence created"


@dataclass
class StepDTO:
    """DTO for a processing step.

    Attributes:
        id: Step ID.
        sequence_id: Sequence the step belongs to.
        step_number: 1-based position in the sequence.
        type: Step type tag.
        status: Lifecycle status (PENDING, PROCESSING, COMPLETED, FAILED).
        user_id: Owner of the step.
        job_id: Job currently or most recently associated with the step.
        started_at: When the step last started.
        completed_at: When the step last reached a terminal status.
    """

    id: UUID
    sequence_id: UUID
    step_number: int
    type: str
    status: str
    user_id: str
    job_id: UUID | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def from_step(cls, step: StepData) -> StepDTO:
        """Build the DTO from a step snapshot."""
        return cls(
            id=step.id,
            sequence_id=step.sequence_id,
            step_number=step.step_number,
            type=step.type,
            status=str(step.status),
            user_id=step.user_id,
            job_id=step.job_id,
            started_at=step.started_at,
            completed_at=step.completed_at,
        )


@dataclass
class StepSummaryDTO:
    """DTO for one step within a status report."""

    id: UUID
    step_number: int
    type: str
    status: str
    started_at: datetime | None = None
    completed_at: datetime | None = None
    job_id: UUID | None = None
    job_status: str | None = None


@dataclass
class SequenceStatusDTO:
    """DTO for the progress of a sequence.

    Attributes:
        total_steps: Number of steps reported on.
        completed_steps: Steps in COMPLETED.
        failed_steps: Steps in FAILED.
        pending_steps: Steps in PENDING.
        current_step: The step being processed, if exactly one is.
        steps: Per-step summaries ordered by step number.
    """

    total_steps: int
    completed_steps: int
    failed_steps: int
    pending_steps: int
    current_step: StepDTO | None = None
    steps: list[StepSummaryDTO] = field(default_factory=list)

    @classmethod
    def from_status(cls, status: SequenceStatus) -> SequenceStatusDTO:
        """Build the DTO from a sequence status."""
        return cls(
            total_steps=status.total_steps,
            completed_steps=status.completed_steps,
            failed_steps=status.failed_steps,
            pending_steps=status.pending_steps,
            current_step=StepDTO.from_step(status.current_step) if status.current_step else None,
            steps=[
                StepSummaryDTO(
                    id=summary.id,
                    step_number=summary.step_number,
                    type=summary.type,
                    status=str(summary.status),
                    started_at=summary.started_at,
                    completed_at=summary.completed_at,
                    job_id=summary.job_id,
                    job_status=str(summary.job_status) if summary.job_status else None,
                )
                for summary in status.steps
            ],
        )


@dataclass
class RetryStepDTO:
    """DTO returned after a retry request."""

    success: bool
    message: str


@dataclass
class ProcessNextDTO:
    """DTO returned after manually advancing a sequence.

    Attributes:
        processed: Whether a step was executed.
        step: The executed step as it stood right after execution.
        message: Human-readable outcome.
    """

    processed: bool
    message: str
    step: StepDTO | None = None
