"""Step sequencer.

This module provides the StepSequencer, which chains typed steps into a sequence
and runs them strictly one at a time in step-number order. Progression goes
through the background work queue: finishing a step only schedules the next one,
it never runs it inline.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from sqlalchemy.exc import SQLAlchemyError

from litestar_stepqueue.core.context import StepExecutionContext
from litestar_stepqueue.core.models import RetryResult, SequenceStatus, StepJobPayload, StepSummary
from litestar_stepqueue.core.types import JobStatus, StepStatus, job_type_for
from litestar_stepqueue.db.models import JobModel, StepModel
from litestar_stepqueue.db.repositories import JobRepository, StepRepository
from litestar_stepqueue.engine.config import SequencerConfig
from litestar_stepqueue.exceptions import (
    HandlerNotFoundError,
    InvalidStepStateError,
    JobNotFoundError,
    StepNotFoundError,
    StepTimeoutError,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from litestar_stepqueue.core.models import JobData, StepData
    from litestar_stepqueue.core.protocols import StepEventEmitter, StepHandler, WorkQueue
    from litestar_stepqueue.engine.registry import StepHandlerRegistry

__all__ = ["StepSequencer", "find_next_step"]

logger = logging.getLogger(__name__)


def find_next_step(steps: Iterable[StepModel]) -> StepModel | None:
    """Find the step the continuation should launch.

    Scans steps in the given order (callers pass them sorted by step number) and
    returns the first PENDING one. A FAILED step halts the sequence and a
    PROCESSING step means the sequence is busy; either stops the scan.

    Args:
        steps: Steps of one sequence ordered by step number.

    Returns:
        The next step to run, or None if the sequence is finished, halted or busy.
    """
    for step in steps:
        if step.status == StepStatus.PENDING:
            return step
        if step.status in (StepStatus.FAILED, StepStatus.PROCESSING):
            return None
    return None


class StepSequencer:
    """Orchestrates ordered, single-active-step sequences.

    Every public operation opens its own session from ``session_maker`` and commits
    after each single-row transition, so progress is durable and visible to other
    workers as soon as it happens. The session factory should be created with
    ``expire_on_commit=False``.

    Attributes:
        registry: Handler lookup by step type.
        session_maker: Factory for database sessions.
        work_queue: Background queue step jobs are scheduled on.
        emitter: Optional notification emitter for status changes.
        config: Queue names and execution policy.
    """

    def __init__(
        self,
        registry: StepHandlerRegistry,
        session_maker: async_sessionmaker[AsyncSession],
        work_queue: WorkQueue,
        emitter: StepEventEmitter | None = None,
        config: SequencerConfig | None = None,
    ) -> None:
        """Initialize the sequencer.

        Args:
            registry: The step handler registry.
            session_maker: Factory for database sessions.
            work_queue: The background work queue.
            emitter: Optional emitter for step status notifications.
            config: Optional sequencer configuration.
        """
        self.registry = registry
        self.session_maker = session_maker
        self.work_queue = work_queue
        self.emitter = emitter
        self.config = config or SequencerConfig()

    async def create_sequence(
        self,
        step_types: Sequence[str],
        user_id: str,
        data: dict[str, Any] | None = None,
    ) -> list[UUID]:
        """Create a sequence of steps and schedule the first one.

        All steps are persisted as PENDING without a job. Only the first step gets
        a job and is enqueued; the rest wait for their turn.

        Args:
            step_types: Step type tags in execution order.
            user_id: Owner of the sequence.
            data: Opaque payload forwarded to every handler.

        Returns:
            The created step ids, in order.

        Example:
            >>> step_ids = await sequencer.create_sequence(
            ...     [StepType.WEBSITE_LOADING], user_id="user-1", data={"url": "https://example.com"}
            ... )
        """
        if not step_types:
            return []

        sequence_id = uuid4()

        async with self.session_maker() as session:
            steps = StepRepository(session=session)
            created = await steps.add_many(
                [
                    StepModel(
                        type=str(step_type),
                        status=StepStatus.PENDING,
                        step_number=step_number,
                        sequence_id=sequence_id,
                        job_id=None,
                        user_id=user_id,
                        data=data,
                    )
                    for step_number, step_type in enumerate(step_types, start=1)
                ]
            )
            step_ids = [step.id for step in created]
            await session.commit()

            logger.info("Created sequence %s with %d step(s) for user %s", sequence_id, len(step_ids), user_id)

            await self._launch_next(session, step_ids)

        return step_ids

    async def launch_next(self, step_ids: Sequence[UUID]) -> JobData | None:
        """Run the continuation for a sequence.

        Finds the next eligible step, creates a job for it and enqueues it.

        Args:
            step_ids: Every step id of the sequence.

        Returns:
            The created job, or None if there was nothing to launch.
        """
        async with self.session_maker() as session:
            return await self._launch_next(session, list(step_ids))

    async def process_step_job(self, payload: StepJobPayload | Mapping[str, Any]) -> None:
        """Consume one step job from the background queue.

        Failures are recorded on the step and the job; nothing is raised back to
        the queue runtime, so the queue never retries a failed step on its own.

        Args:
            payload: The job payload, as a dataclass or in its dictionary form.
        """
        try:
            job_payload = payload if isinstance(payload, StepJobPayload) else StepJobPayload.from_dict(dict(payload))
        except (KeyError, TypeError, ValueError):
            logger.exception("Discarding malformed step job payload: %r", payload)
            return

        async with self.session_maker() as session:
            steps = StepRepository(session=session)
            step = await steps.get_one_or_none(id=job_payload.step_id)

            if step is None:
                error = StepNotFoundError(job_payload.step_id)
                logger.warning("%s; failing job %s", error, job_payload.job_id)
                await self._fail_job(session, job_payload.job_id, str(error))
                await session.commit()
                return

            if step.job_id != job_payload.job_id:
                if step.job_id is None:
                    message = f"Job {job_payload.job_id} is not attached to step {job_payload.step_id}"
                else:
                    message = f"Job {job_payload.job_id} was superseded by job {step.job_id}"
                logger.warning("%s; step %s left untouched", message, job_payload.step_id)
                await self._fail_job(session, job_payload.job_id, message)
                await session.commit()
                return

            await self._execute_guarded(session, job_payload.step_id, job_payload.step_ids or [job_payload.step_id])

    async def process_next_step(self, step_ids: Sequence[UUID]) -> StepData | None:
        """Execute the next eligible step synchronously, bypassing the queue.

        This is a manual/debug entry point. A job record is created for the step if
        it has none, so the attempt stays traceable. Steps after it are still
        scheduled through the queue.

        Args:
            step_ids: Every step id of the sequence.

        Returns:
            The step as it stood right after execution, or None if no step was run.
        """
        ids = list(step_ids)

        async with self.session_maker() as session:
            steps = StepRepository(session=session)
            next_step = find_next_step(await steps.list_by_ids(ids))
            if next_step is None:
                logger.info("No eligible step to process in %s", ids)
                return None

            step_id = next_step.id
            if next_step.job_id is None:
                await self._create_job(session, next_step, ids)
                await session.commit()

            return await self._execute_guarded(session, step_id, ids)

    async def retry_step(self, step_id: UUID) -> RetryResult:
        """Reset a failed step and schedule it again.

        Args:
            step_id: The failed step.

        Returns:
            The retry outcome.

        Raises:
            StepNotFoundError: If the step does not exist.
            InvalidStepStateError: If the step is not FAILED. Nothing is written.
        """
        async with self.session_maker() as session:
            steps = StepRepository(session=session)
            step = await steps.get_one_or_none(id=step_id)

            if step is None:
                raise StepNotFoundError(step_id)
            if step.status != StepStatus.FAILED:
                raise InvalidStepStateError(step_id, str(step.status), str(StepStatus.FAILED))

            sequence_id = step.sequence_id
            reset = await steps.reset(step_id)
            snapshot = reset.to_data() if reset else None
            await session.commit()

            logger.info("Retrying step %s of sequence %s", step_id, sequence_id)
            if snapshot:
                await self._notify(snapshot)

            siblings = await steps.list_by_sequence(sequence_id)
            await self._launch_next(session, [sibling.id for sibling in siblings])

        return RetryResult(success=True, message="Step retry initiated")

    async def get_sequence_status(self, step_ids: Sequence[UUID]) -> SequenceStatus:
        """Summarize the progress of a sequence.

        Args:
            step_ids: The step ids to report on.

        Returns:
            Counts, the processing step (if exactly one) and a per-step projection.

        Raises:
            StepNotFoundError: If any of the ids does not exist.
        """
        ids = list(dict.fromkeys(step_ids))

        async with self.session_maker() as session:
            found = await StepRepository(session=session).list_by_ids(ids)

            missing = [step_id for step_id in ids if step_id not in {step.id for step in found}]
            if missing:
                raise StepNotFoundError(*missing)

            job_ids = [step.job_id for step in found if step.job_id is not None]
            job_statuses = {job.id: job.status for job in await JobRepository(session=session).list_by_ids(job_ids)}
            snapshots = [step.to_data() for step in found]

        processing = [step for step in snapshots if step.status == StepStatus.PROCESSING]

        return SequenceStatus(
            total_steps=len(snapshots),
            completed_steps=sum(1 for step in snapshots if step.status == StepStatus.COMPLETED),
            failed_steps=sum(1 for step in snapshots if step.status == StepStatus.FAILED),
            pending_steps=sum(1 for step in snapshots if step.status == StepStatus.PENDING),
            current_step=processing[0] if len(processing) == 1 else None,
            steps=[
                StepSummary(
                    id=step.id,
                    step_number=step.step_number,
                    type=step.type,
                    status=step.status,
                    started_at=step.started_at,
                    completed_at=step.completed_at,
                    job_id=step.job_id,
                    job_status=job_statuses.get(step.job_id) if step.job_id else None,
                )
                for step in snapshots
            ],
        )

    async def _launch_next(self, session: AsyncSession, step_ids: list[UUID]) -> JobData | None:
        """Create and enqueue the job for the next eligible step of a sequence."""
        steps = StepRepository(session=session)
        next_step = find_next_step(await steps.list_by_ids(step_ids))

        if next_step is None:
            logger.debug("Nothing to launch for sequence %s", step_ids)
            return None

        job = await self._create_job(session, next_step, step_ids)
        job_data = job.to_data()
        payload = StepJobPayload(
            job_id=job_data.id,
            step_id=next_step.id,
            step_number=next_step.step_number,
            step_type=next_step.type,
            step_ids=list(step_ids),
            user_id=next_step.user_id,
        )
        await session.commit()

        try:
            await self.work_queue.enqueue(self.config.queue_name, self.config.job_name, payload.to_dict())
        except Exception as e:
            logger.exception("Failed to enqueue job %s for step %s", payload.job_id, payload.step_id)
            await self._record_failure(session, payload.step_id, payload.job_id, f"Failed to enqueue job: {e}")
            return None

        logger.info(
            "Enqueued job %s for step %s (%d of %d, %s)",
            payload.job_id,
            payload.step_id,
            payload.step_number,
            len(step_ids),
            payload.step_type,
        )
        return job_data

    async def _create_job(self, session: AsyncSession, step: StepModel, step_ids: list[UUID]) -> JobModel:
        """Persist a job for the step and point the step at it."""
        job = await JobRepository(session=session).add(
            JobModel(
                type=job_type_for(step.type),
                status=JobStatus.PENDING,
                payload={
                    "step_id": str(step.id),
                    "step_number": step.step_number,
                    "step_type": step.type,
                    "step_ids": [str(step_id) for step_id in step_ids],
                },
                user_id=step.user_id,
            )
        )
        await StepRepository(session=session).update_fields(step.id, job_id=job.id)
        return job

    async def _execute_guarded(self, session: AsyncSession, step_id: UUID, step_ids: list[UUID]) -> StepData | None:
        """Claim and execute a step, then launch its successor.

        Only errors raised after this call owns the step are recorded as a step
        failure; a step it could not claim is left to whoever holds it.
        """
        try:
            processing = await self._claim_step(session, step_id)
        except SQLAlchemyError:
            await session.rollback()
            logger.exception("Could not claim step %s", step_id)
            return None
        if processing is None:
            return None

        try:
            snapshot = await self._run_claimed(session, processing, step_ids)
        except asyncio.CancelledError:
            logger.warning("Step %s was cancelled while processing", step_id)
            await self._fail_cancelled(session, step_id)
            raise
        except Exception as e:
            logger.exception("Unexpected error while processing step %s", step_id)
            await session.rollback()
            return await self._record_failure(session, step_id, processing.job_id, str(e))

        if snapshot.status == StepStatus.COMPLETED:
            await self._continue_sequence(session, step_ids)
        return snapshot

    async def _continue_sequence(self, session: AsyncSession, step_ids: list[UUID]) -> None:
        """Launch the successor of a completed step.

        If the launch cannot be persisted, the successor is marked FAILED so the
        sequence can be resumed with :meth:`retry_step`.
        """
        try:
            await self._launch_next(session, step_ids)
        except Exception as e:
            await session.rollback()
            logger.exception("Failed to launch the next step of sequence %s", step_ids)
            try:
                next_step = find_next_step(await StepRepository(session=session).list_by_ids(step_ids))
                if next_step is not None:
                    await self._record_failure(
                        session, next_step.id, next_step.job_id, f"Failed to launch step: {e}"
                    )
            except SQLAlchemyError:
                await session.rollback()
                logger.exception("Could not mark the next step of sequence %s as failed", step_ids)

    async def _claim_step(self, session: AsyncSession, step_id: UUID) -> StepData | None:
        """Move the step to PROCESSING and notify, or return None if it is not pending."""
        steps = StepRepository(session=session)

        if not await steps.claim(step_id):
            await session.rollback()
            logger.warning("Step %s is no longer pending; skipping execution", step_id)
            return None
        await session.commit()

        try:
            step = await steps.get_fresh(step_id)
            if step is None:
                return None
            processing = step.to_data()
            await self._notify(processing)
        except asyncio.CancelledError:
            logger.warning("Step %s was cancelled right after it was claimed", step_id)
            await self._fail_cancelled(session, step_id)
            raise
        return processing

    async def _fail_cancelled(self, session: AsyncSession, step_id: UUID) -> None:
        """Record a cancelled step as FAILED, shielded from further cancellation."""
        try:
            await asyncio.shield(self._record_cancellation(session, step_id))
        except Exception:
            logger.exception("Could not record the cancellation of step %s", step_id)

    async def _record_cancellation(self, session: AsyncSession, step_id: UUID) -> None:
        await session.rollback()
        step = await StepRepository(session=session).get_fresh(step_id)
        if step is None or step.status != StepStatus.PROCESSING:
            return
        await self._record_failure(session, step_id, step.job_id, f"Step {step_id} was cancelled")

    async def _run_claimed(self, session: AsyncSession, processing: StepData, step_ids: list[UUID]) -> StepData:
        """Run the handler of a claimed step and persist the outcome."""
        steps = StepRepository(session=session)
        jobs = JobRepository(session=session)
        step_id = processing.id
        job_id = processing.job_id
        handler = self.registry.get(processing.type)

        try:
            if handler is None:
                raise HandlerNotFoundError(processing.type)
            if job_id is None or await jobs.update_status(job_id, JobStatus.PROCESSING) is None:
                raise JobNotFoundError(step_id)
            await session.commit()

            context = StepExecutionContext(
                step_id=step_id,
                step_type=processing.type,
                payload={"user_id": processing.user_id, "data": processing.data},
                current_step_number=processing.step_number,
                total_steps=len(step_ids),
            )
            result = await self._run_handler(handler, context)
        except Exception as e:
            await session.rollback()
            logger.warning("Step %s (%s) failed: %s", step_id, processing.type, e)
            failed = await self._record_failure(session, step_id, job_id, str(e))
            return failed or processing

        completed = await steps.mark_completed(step_id)
        await jobs.update_status(job_id, JobStatus.COMPLETED, result=result)
        snapshot = completed.to_data() if completed else processing
        await session.commit()

        logger.info("Step %s (%s) completed", step_id, processing.type)
        await self._notify(snapshot)
        return snapshot

    async def _run_handler(self, handler: StepHandler, context: StepExecutionContext) -> Any:
        """Invoke the handler, applying the configured deadline."""
        outcome = handler.execute(context)
        if not inspect.isawaitable(outcome):
            return outcome

        timeout = self.config.step_timeout
        if timeout is None:
            return await outcome
        try:
            return await asyncio.wait_for(outcome, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise StepTimeoutError(context.step_id, timeout) from e

    async def _record_failure(
        self,
        session: AsyncSession,
        step_id: UUID,
        job_id: UUID | None,
        message: str,
    ) -> StepData | None:
        """Persist a failed step and its failed job, then notify."""
        failed = await StepRepository(session=session).mark_failed(step_id)
        if job_id is not None:
            await self._fail_job(session, job_id, message)
        snapshot = failed.to_data() if failed else None
        await session.commit()

        if snapshot:
            await self._notify(snapshot)
        return snapshot

    async def _fail_job(self, session: AsyncSession, job_id: UUID, message: str) -> None:
        await JobRepository(session=session).update_status(
            job_id,
            JobStatus.FAILED,
            result={"error": message, "timestamp": datetime.now(timezone.utc).isoformat()},
        )

    async def _notify(self, step: StepData) -> None:
        """Push a status change; emitter errors are logged, never raised."""
        if self.emitter is None:
            return
        try:
            await self.emitter.emit_step_status_changed(step.user_id, step)
        except Exception:
            logger.exception("Failed to emit status update for step %s", step.id)
        else:
            logger.debug("Emitted status %s for step %s", step.status, step.id)
