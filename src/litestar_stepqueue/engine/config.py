"""Configuration for the step sequencer."""

from __future__ import annotations

import math
from dataclasses import dataclass

from litestar_stepqueue.core.types import DEFAULT_JOB_NAME, DEFAULT_QUEUE_NAME

__all__ = ["QUEUE_TIMEOUT_GRACE", "SequencerConfig"]

QUEUE_TIMEOUT_GRACE = 30
"""Seconds a queue job may outlive the step deadline before the queue kills it."""


@dataclass
class SequencerConfig:
    """Configuration for the StepSequencer.

    Attributes:
        queue_name: Background queue step jobs are enqueued on.
        job_name: Job name workers dispatch step jobs on.
        step_timeout: Deadline in seconds for a single handler execution. ``None``
            means no deadline; a hanging handler then blocks its sequence.

    Example:
        >>> config = SequencerConfig(queue_name="steps", step_timeout=300)
    """

    queue_name: str = DEFAULT_QUEUE_NAME
    job_name: str = DEFAULT_JOB_NAME
    step_timeout: float | None = None

    def __post_init__(self) -> None:
        if self.step_timeout is not None and self.step_timeout <= 0:
            msg = f"step_timeout must be positive, got {self.step_timeout}"
            raise ValueError(msg)

    @property
    def queue_job_timeout(self) -> int | None:
        """Run-time limit for the queue job wrapping one step.

        The limit leaves the sequencer's own deadline room to fire first, so a
        slow step is recorded as timed out rather than killed by the queue.
        ``None`` when no step deadline is configured.
        """
        if self.step_timeout is None:
            return None
        return math.ceil(self.step_timeout) + QUEUE_TIMEOUT_GRACE
