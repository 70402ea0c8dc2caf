"""Exception hierarchy for litestar-stepqueue."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID

__all__ = (
    "HandlerAlreadyRegisteredError",
    "HandlerNotFoundError",
    "InvalidStepStateError",
    "JobNotFoundError",
    "JobRejectedError",
    "StepExecutionError",
    "StepNotFoundError",
    "StepQueueError",
    "StepTimeoutError",
    "UnknownJobError",
)


class StepQueueError(Exception):
    """Base exception for all litestar-stepqueue errors.

    All exceptions raised by litestar-stepqueue inherit from this class, so callers
    can catch every sequencer-related error with a single except clause.
    """


class StepNotFoundError(StepQueueError):
    """Raised when one or more referenced steps do not exist.

    Attributes:
        step_ids: The IDs of the steps that were not found.
    """

    def __init__(self, *step_ids: str | UUID) -> None:
        """Initialize the exception with the missing step IDs.

        Args:
            *step_ids: The IDs of the steps that were not found.
        """
        self.step_ids = step_ids
        if len(step_ids) == 1:
            msg = f"Step {step_ids[0]} not found"
        else:
            msg = f"Steps not found: {', '.join(str(step_id) for step_id in step_ids)}"
        super().__init__(msg)


class JobNotFoundError(StepQueueError):
    """Raised when a step has no job record to track its execution attempt.

    Attributes:
        step_id: The ID of the step without a job.
    """

    def __init__(self, step_id: str | UUID) -> None:
        """Initialize the exception with step details.

        Args:
            step_id: The ID of the step without a job.
        """
        self.step_id = step_id
        super().__init__(f"No job found for step {step_id}")


class InvalidStepStateError(StepQueueError):
    """Raised when an operation is not allowed in the step's current status.

    No state mutation happens when this is raised.

    Attributes:
        step_id: The ID of the step.
        status: The current status of the step.
        expected: The status the operation requires.
    """

    def __init__(self, step_id: str | UUID, status: str, expected: str) -> None:
        """Initialize the exception with state details.

        Args:
            step_id: The ID of the step.
            status: The current status of the step.
            expected: The status the operation requires.
        """
        self.step_id = step_id
        self.status = status
        self.expected = expected
        super().__init__(f"Step {step_id} is {status}, expected {expected}")


class HandlerNotFoundError(StepQueueError):
    """Raised when no handler is registered for a step type.

    During step execution this becomes a normal step failure.

    Attributes:
        step_type: The step type tag without a handler.
    """

    def __init__(self, step_type: str) -> None:
        """Initialize the exception with the step type.

        Args:
            step_type: The step type tag without a handler.
        """
        self.step_type = step_type
        super().__init__(f"No handler registered for step type: {step_type}")


class HandlerAlreadyRegisteredError(StepQueueError):
    """Raised when a second handler is registered for the same step type.

    Attributes:
        step_type: The step type tag that already has a handler.
    """

    def __init__(self, step_type: str) -> None:
        """Initialize the exception with the step type.

        Args:
            step_type: The step type tag that already has a handler.
        """
        self.step_type = step_type
        super().__init__(f"A handler is already registered for step type: {step_type}")


class StepExecutionError(StepQueueError):
    """Raised by handlers to report a business failure of a step.

    Attributes:
        step_type: The type of the step that failed.
        reason: Description of the failure.
    """

    def __init__(self, step_type: str, reason: str) -> None:
        """Initialize the exception with step execution details.

        Args:
            step_type: The type of the step that failed.
            reason: Description of the failure.
        """
        self.step_type = step_type
        self.reason = reason
        super().__init__(reason)


class StepTimeoutError(StepQueueError):
    """Raised when a handler does not finish within the configured deadline.

    Attributes:
        step_id: The ID of the step that timed out.
        timeout: The deadline in seconds.
    """

    def __init__(self, step_id: str | UUID, timeout: float) -> None:
        """Initialize the exception with timeout details.

        Args:
            step_id: The ID of the step that timed out.
            timeout: The deadline in seconds.
        """
        self.step_id = step_id
        self.timeout = timeout
        super().__init__(f"Step {step_id} timed out after {timeout:g}s")


class UnknownJobError(StepQueueError):
    """Raised when a job is enqueued for a queue/job name nobody consumes.

    Attributes:
        queue_name: The queue the job was sent to.
        job_name: The job name.
    """

    def __init__(self, queue_name: str, job_name: str) -> None:
        """Initialize the exception with queue details.

        Args:
            queue_name: The queue the job was sent to.
            job_name: The job name.
        """
        self.queue_name = queue_name
        self.job_name = job_name
        super().__init__(f"No consumer registered for job '{job_name}' on queue '{queue_name}'")


class JobRejectedError(StepQueueError):
    """Raised when the queue backend declines to accept a job.

    Attributes:
        queue_name: The queue the job was sent to.
        job_name: The job name.
    """

    def __init__(self, queue_name: str, job_name: str) -> None:
        """Initialize the exception with queue details.

        Args:
            queue_name: The queue the job was sent to.
            job_name: The job name.
        """
        self.queue_name = queue_name
        self.job_name = job_name
        super().__init__(f"Queue '{queue_name}' rejected job '{job_name}'")
