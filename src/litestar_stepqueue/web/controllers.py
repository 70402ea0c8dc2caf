"""REST API controller for step sequences.

This module provides the StepQueueController, a thin HTTP layer over the
StepSequencer: create a sequence, report its status, retry a failed step and
manually advance a sequence by one step.
"""

from __future__ import annotations

from typing import ClassVar
from uuid import UUID

from litestar import Controller, get, post
from litestar.exceptions import ValidationException

from litestar_stepqueue.engine.registry import StepHandlerRegistry  # noqa: TC001 - needed for DI
from litestar_stepqueue.engine.sequencer import StepSequencer  # noqa: TC001 - needed for DI
from litestar_stepqueue.web.dto import (
    CreateSequenceDTO,
    ProcessNextDTO,
    RetryStepDTO,
    SequenceCreatedDTO,
    SequenceStatusDTO,
    StepDTO,
)

__all__ = ["StepQueueController", "parse_step_ids"]


def parse_step_ids(raw: str) -> list[UUID]:
    """Parse a comma separated list of step ids.

    Args:
        raw: The path segment, e.g. ``"<uuid>,<uuid>"``.

    Returns:
        The parsed ids, in the given order.

    Raises:
        ValidationException: If the list is empty or an id is not a UUID.
    """
    parts = [part.strip() for part in raw.split(",") if part.strip()]
    if not parts:
        raise ValidationException(detail="At least one step id is required")
    try:
        return [UUID(part) for part in parts]
    except ValueError as e:
        raise ValidationException(detail=f"Invalid step id list: {raw}") from e


class StepQueueController(Controller):
    """API controller for step sequences.

    Tags: Step Queue
    """

    path = "/queue"
    tags: ClassVar[list[str]] = ["Step Queue"]

    @post("/sequence", dto=None, return_dto=None)
    async def create_sequence(
        self,
        data: CreateSequenceDTO,
        step_sequencer: StepSequencer,
        step_handler_registry: StepHandlerRegistry,
    ) -> SequenceCreatedDTO:
        """Create a step sequence and schedule its first step.

        Args:
            data: Step types, owner and payload of the sequence.
            step_sequencer: Injected sequencer.
            step_handler_registry: Injected handler registry.

        Returns:
            The created step ids.

        Raises:
            ValidationException: If the list is empty or names a type without a handler.
        """
        if not data.step_types:
            raise ValidationException(detail="At least one step type is required")

        unknown = [step_type for step_type in data.step_types if not step_handler_registry.has_handler(step_type)]
        if unknown:
            raise ValidationException(detail=f"Unknown step type(s): {', '.join(unknown)}")

        step_ids = await step_sequencer.create_sequence(data.step_types, user_id=data.user_id, data=data.data)
        return SequenceCreatedDTO(step_ids=step_ids)

    @get("/sequence/{step_ids:str}/status")
    async def get_sequence_status(
        self,
        step_ids: str,
        step_sequencer: StepSequencer,
    ) -> SequenceStatusDTO:
        """Report the progress of a sequence.

        Args:
            step_ids: Comma separated step ids.
            step_sequencer: Injected sequencer.

        Returns:
            Counts, the step being processed and per-step summaries.
        """
        status = await step_sequencer.get_sequence_status(parse_step_ids(step_ids))
        return SequenceStatusDTO.from_status(status)

    @post("/step/{step_id:uuid}/retry", status_code=200)
    async def retry_step(
        self,
        step_id: UUID,
        step_sequencer: StepSequencer,
    ) -> RetryStepDTO:
        """Retry a failed step.

        Args:
            step_id: The failed step.
            step_sequencer: Injected sequencer.

        Returns:
            The retry outcome.
        """
        result = await step_sequencer.retry_step(step_id)
        return RetryStepDTO(success=result.success, message=result.message)

    @post("/sequence/{step_ids:str}/process-next", status_code=200)
    async def process_next_step(
        self,
        step_ids: str,
        step_sequencer: StepSequencer,
    ) -> ProcessNextDTO:
        """Execute the next eligible step synchronously.

        Args:
            step_ids: Comma separated step ids.
            step_sequencer: Injected sequencer.

        Returns:
            The executed step, if any.
        """
        step = await step_sequencer.process_next_step(parse_step_ids(step_ids))
        if step is None:
            return ProcessNextDTO(processed=False, message="No step to process")
        return ProcessNextDTO(processed=True, message=f"Step {step.step_number} processed", step=StepDTO.from_step(step))
