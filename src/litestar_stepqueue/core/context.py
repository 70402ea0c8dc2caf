"""Step execution context.

This module provides the StepExecutionContext dataclass which is handed to a step
handler for each execution attempt.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

__all__ = ["StepExecutionContext"]


@dataclass
class StepExecutionContext:
    """Everything a handler needs to execute one step.

    Attributes:
        step_id: Unique identifier of the step being executed.
        step_type: The step type tag that selected the handler.
        payload: ``{"user_id": ..., "data": ...}``; the step owner and the opaque
            data supplied when the sequence was created.
        current_step_number: 1-based position of the step in its sequence.
        total_steps: Number of steps in the sequence.

    Example:
        >>> from uuid import uuid4
        >>> context = StepExecutionContext(
        ...     step_id=uuid4(),
        ...     step_type="WEBSITE_LOADING",
        ...     payload={"user_id": "user-1", "data": {"url": "https://example.com"}},
        ...     current_step_number=1,
        ...     total_steps=2,
        ... )
        >>> context.data["url"]
        'https://example.com'
    """

    step_id: UUID
    step_type: str
    payload: dict[str, Any] = field(default_factory=dict)
    current_step_number: int = 1
    total_steps: int = 1

    @property
    def user_id(self) -> str | None:
        """Owner of the step."""
        return self.payload.get("user_id")

    @property
    def data(self) -> dict[str, Any]:
        """Opaque data supplied when the sequence was created."""
        return self.payload.get("data") or {}

    @property
    def is_last_step(self) -> bool:
        """Whether this is the final step of its sequence."""
        return self.current_step_number >= self.total_steps
