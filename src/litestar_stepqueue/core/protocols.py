"""Protocol definitions for litestar-stepqueue.

This module defines the structural contracts the sequencer depends on: step
handlers, the background work queue and the notification emitter. Any object
with matching methods satisfies them; no inheritance is required.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from litestar_stepqueue.core.context import StepExecutionContext
    from litestar_stepqueue.core.models import StepData

__all__ = ["StepEventEmitter", "StepHandler", "WorkQueue"]


@runtime_checkable
class StepHandler(Protocol):
    """Executor for one step type.

    Example:
        >>> class SummarizeHandler:
        ...     async def execute(self, context: StepExecutionContext) -> dict:
        ...         return {"summary": await summarize(context.data["text"])}
    """

    async def execute(self, context: StepExecutionContext) -> Any:
        """Run the step.

        Args:
            context: The execution context of the step.

        Returns:
            A JSON-compatible result, stored on the job record.

        Raises:
            Exception: Any exception fails the step; the sequence halts until
                the step is retried.
        """
        ...


@runtime_checkable
class WorkQueue(Protocol):
    """Background work queue the sequencer schedules step jobs on.

    Delivery semantics (at-least-once, retry count, backoff) belong to the
    queue implementation, not to the sequencer.
    """

    async def enqueue(self, queue_name: str, job_name: str, payload: dict[str, Any]) -> None:
        """Schedule a job without waiting for it to run.

        Args:
            queue_name: Name of the target queue.
            job_name: Name of the job function consumers dispatch on.
            payload: JSON-compatible job payload.
        """
        ...


@runtime_checkable
class StepEventEmitter(Protocol):
    """Pushes step status changes to interested listeners."""

    async def emit_step_status_changed(self, owner_id: str, step: StepData) -> None:
        """Publish a step status change.

        Args:
            owner_id: The user the step belongs to; used to address the listener.
            step: The step after the transition.
        """
        ...
