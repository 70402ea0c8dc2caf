"""Domain events for step lifecycle.

These events are pushed to external listeners (for example a per-user websocket
channel) whenever a step changes status.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any
from uuid import UUID

if TYPE_CHECKING:
    from litestar_stepqueue.core.models import StepData

__all__ = ["StepEvent", "StepStatusChanged"]


@dataclass
class StepEvent:
    """Base class for all step events.

    Attributes:
        step_id: Unique identifier of the step.
        timestamp: When the event occurred.
    """

    step_id: UUID
    timestamp: datetime


@dataclass
class StepStatusChanged(StepEvent):
    """Event emitted when a step transitions to a new status.

    Attributes:
        step_id: Unique identifier of the step.
        timestamp: When the transition was persisted.
        sequence_id: Sequence the step belongs to.
        step_number: Position of the step in its sequence.
        step_type: Step type tag.
        status: The new status.
        user_id: Owner of the step.
        job_id: Job associated with the step, if any.
        started_at: When the step entered PROCESSING.
        completed_at: When the step reached a terminal status.

    Example:
        >>> event = StepStatusChanged.from_step(step)
        >>> event.status
        'COMPLETED'
    """

    sequence_id: UUID
    step_number: int
    step_type: str
    status: str
    user_id: str
    job_id: UUID | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def from_step(cls, step: StepData) -> StepStatusChanged:
        """Build the event from a step snapshot.

        Args:
            step: The step after the transition.

        Returns:
            The event.
        """
        return cls(
            step_id=step.id,
            timestamp=datetime.now(timezone.utc),
            sequence_id=step.sequence_id,
            step_number=step.step_number,
            step_type=step.type,
            status=str(step.status),
            user_id=step.user_id,
            job_id=step.job_id,
            started_at=step.started_at,
            completed_at=step.completed_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        return {
            "id": str(self.step_id),
            "sequenceId": str(self.sequence_id),
            "stepNumber": self.step_number,
            "type": self.step_type,
            "status": self.status,
            "userId": self.user_id,
            "jobId": str(self.job_id) if self.job_id else None,
            "startedAt": self.started_at.isoformat() if self.started_at else None,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
            "timestamp": self.timestamp.isoformat(),
        }
