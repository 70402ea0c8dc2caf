"""Concrete data models for litestar-stepqueue.

This module provides plain dataclasses for step and job state. They are detached
snapshots of persisted rows, safe to hand to notification emitters, queue
backends and HTTP responses after the database session is gone.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from litestar_stepqueue.core.types import JobStatus, StepStatus

__all__ = [
    "JobData",
    "RetryResult",
    "SequenceStatus",
    "StepData",
    "StepJobPayload",
    "StepSummary",
]


@dataclass
class StepData:
    """Snapshot of a processing step.

    Attributes:
        id: Unique identifier of the step.
        type: Step type tag selecting the handler.
        status: Current lifecycle status.
        step_number: 1-based position within the sequence.
        sequence_id: Identifier shared by every step of the sequence.
        user_id: Owner of the step.
        job_id: Job currently or most recently associated with the step.
        data: Opaque payload forwarded to the handler.
        started_at: When the step last entered PROCESSING.
        completed_at: When the step last reached a terminal status.
    """

    id: UUID
    type: str
    status: StepStatus
    step_number: int
    sequence_id: UUID
    user_id: str
    job_id: UUID | None = None
    data: dict[str, Any] | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None


@dataclass
class JobData:
    """Snapshot of a job, one execution attempt of a step.

    Attributes:
        id: Unique identifier of the job.
        type: Job type, ``STEP_<TYPE>``.
        status: Current lifecycle status.
        payload: Reference data (step id, step number, step type, sequence step ids).
        user_id: Owner of the job.
        result: Handler result on success, ``{"error": ...}`` on failure.
        completed_at: Set only when the job completes.
    """

    id: UUID
    type: str
    status: JobStatus
    payload: dict[str, Any]
    user_id: str
    result: Any = None
    completed_at: datetime | None = None


@dataclass
class StepJobPayload:
    """Message carried by the background queue for one step job.

    Attributes:
        job_id: The job record tracking this attempt.
        step_id: The step to execute.
        step_number: Position of the step in its sequence.
        step_type: Step type tag.
        step_ids: Every step id of the sequence, in order, so the worker can
            run the continuation without another lookup.
        user_id: Owner of the step.
    """

    job_id: UUID
    step_id: UUID
    step_number: int
    step_type: str
    step_ids: list[UUID] = field(default_factory=list)
    user_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dictionary.

        Returns:
            Dictionary with string UUIDs.
        """
        return {
            "job_id": str(self.job_id),
            "step_id": str(self.step_id),
            "step_number": self.step_number,
            "step_type": self.step_type,
            "step_ids": [str(step_id) for step_id in self.step_ids],
            "user_id": self.user_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StepJobPayload:
        """Build a payload from its dictionary form.

        Args:
            data: Dictionary produced by :meth:`to_dict`.

        Returns:
            The parsed payload.

        Raises:
            KeyError: If a required key is missing.
            ValueError: If an id is not a valid UUID.
        """
        return cls(
            job_id=UUID(str(data["job_id"])),
            step_id=UUID(str(data["step_id"])),
            step_number=int(data["step_number"]),
            step_type=str(data["step_type"]),
            step_ids=[UUID(str(step_id)) for step_id in data.get("step_ids", [])],
            user_id=data.get("user_id"),
        )


@dataclass
class StepSummary:
    """Per-step projection returned by a sequence status query."""

    id: UUID
    step_number: int
    type: str
    status: StepStatus
    started_at: datetime | None = None
    completed_at: datetime | None = None
    job_id: UUID | None = None
    job_status: JobStatus | None = None


@dataclass
class SequenceStatus:
    """Progress summary of a sequence.

    Attributes:
        total_steps: Number of steps found.
        completed_steps: Steps in COMPLETED.
        failed_steps: Steps in FAILED.
        pending_steps: Steps in PENDING.
        current_step: The PROCESSING step, set only when exactly one step is processing.
        steps: Per-step projection ordered by step number.
    """

    total_steps: int
    completed_steps: int
    failed_steps: int
    pending_steps: int
    current_step: StepData | None = None
    steps: list[StepSummary] = field(default_factory=list)

    @property
    def is_finished(self) -> bool:
        """Whether every step completed."""
        return self.total_steps > 0 and self.completed_steps == self.total_steps

    @property
    def is_halted(self) -> bool:
        """Whether a failed step blocks the rest of the sequence."""
        return self.failed_steps > 0


@dataclass
class RetryResult:
    """Outcome of a retry request."""

    success: bool
    message: str
