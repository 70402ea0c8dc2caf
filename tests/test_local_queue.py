"""Tests for the in-process work queue."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import pytest

from litestar_stepqueue.core.protocols import WorkQueue
from litestar_stepqueue.core.types import JobStatus, StepStatus
from litestar_stepqueue.db.repositories import JobRepository, StepRepository
from litestar_stepqueue.engine.local import LocalWorkQueue
from litestar_stepqueue.engine.registry import StepHandlerRegistry
from litestar_stepqueue.engine.sequencer import StepSequencer
from litestar_stepqueue.exceptions import UnknownJobError
from tests.conftest import GatedHandler, RecordingHandler

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


@pytest.mark.unit
class TestLocalWorkQueue:
    """Tests for LocalWorkQueue."""

    async def test_runs_registered_job(self) -> None:
        """Test an enqueued job receives its payload."""
        queue = LocalWorkQueue()
        received: list[dict[str, Any]] = []

        async def job(payload: dict[str, Any]) -> None:
            received.append(payload)

        queue.register_job("process-step", job)
        await queue.enqueue("step-processing", "process-step", {"step_id": "1"})
        await queue.drain()

        assert received == [{"step_id": "1"}]
        assert queue.pending == 0
        assert isinstance(queue, WorkQueue)

    async def test_enqueue_returns_before_job_runs(self) -> None:
        """Test enqueue only schedules the job."""
        queue = LocalWorkQueue()
        started = asyncio.Event()

        async def job(payload: dict[str, Any]) -> None:
            started.set()

        queue.register_job("process-step", job)
        await queue.enqueue("step-processing", "process-step", {})

        assert not started.is_set()
        assert queue.pending == 1
        await queue.drain()
        assert started.is_set()

    async def test_unknown_job(self) -> None:
        """Test enqueueing a job nobody consumes."""
        queue = LocalWorkQueue()

        with pytest.raises(UnknownJobError):
            await queue.enqueue("step-processing", "process-step", {})

    async def test_queue_name_is_part_of_the_key(self) -> None:
        """Test a job registered on another queue is not found."""
        queue = LocalWorkQueue()

        async def job(payload: dict[str, Any]) -> None:
            return None

        queue.register_job("process-step", job, queue_name="other")

        with pytest.raises(UnknownJobError):
            await queue.enqueue("step-processing", "process-step", {})

    async def test_errors_are_collected(self) -> None:
        """Test a failing job does not break the queue."""
        queue = LocalWorkQueue()

        async def job(payload: dict[str, Any]) -> None:
            raise RuntimeError("job exploded")

        queue.register_job("process-step", job)
        await queue.enqueue("step-processing", "process-step", {})
        await queue.drain()

        assert len(queue.errors) == 1
        assert str(queue.errors[0]) == "job exploded"

    async def test_drain_waits_for_chained_jobs(self) -> None:
        """Test jobs enqueued by running jobs are waited for."""
        queue = LocalWorkQueue()
        seen: list[int] = []

        async def job(payload: dict[str, Any]) -> None:
            seen.append(payload["n"])
            if payload["n"] < 3:
                await queue.enqueue("step-processing", "process-step", {"n": payload["n"] + 1})

        queue.register_job("process-step", job)
        await queue.enqueue("step-processing", "process-step", {"n": 1})
        await queue.drain()

        assert seen == [1, 2, 3]

    async def test_concurrency_limit(self) -> None:
        """Test no more than the configured number of jobs run at once."""
        queue = LocalWorkQueue(concurrency=2)
        running = 0
        peak = 0

        async def job(payload: dict[str, Any]) -> None:
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1

        queue.register_job("process-step", job)
        for _ in range(5):
            await queue.enqueue("step-processing", "process-step", {})
        await queue.drain()

        assert peak == 2

    async def test_close_cancels_jobs(self) -> None:
        """Test close cancels jobs still running."""
        queue = LocalWorkQueue()
        gate = asyncio.Event()

        async def job(payload: dict[str, Any]) -> None:
            await gate.wait()

        queue.register_job("process-step", job)
        await queue.enqueue("step-processing", "process-step", {})
        await asyncio.sleep(0)

        await queue.close()

        assert queue.pending == 0
        assert queue.errors == []


@pytest.mark.integration
class TestLocalWorkQueueShutdown:
    """Tests for shutting the queue down under a running sequence."""

    async def test_close_fails_running_step(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        """Test a step cancelled by close is recorded as failed, not left processing."""
        gated = GatedHandler()
        registry = StepHandlerRegistry()
        registry.register("GATED", gated)
        registry.register("OK", RecordingHandler())
        queue = LocalWorkQueue()
        sequencer = StepSequencer(registry, session_maker, queue)
        queue.register_job("process-step", sequencer.process_step_job)

        step_ids = await sequencer.create_sequence(["GATED", "OK"], "user-1")
        await asyncio.wait_for(gated.started.wait(), timeout=5)

        await queue.close()

        assert queue.pending == 0
        assert queue.errors == []
        async with session_maker() as session:
            steps = await StepRepository(session=session).list_by_ids(step_ids)
            assert [step.status for step in steps] == [StepStatus.FAILED, StepStatus.PENDING]
            job = await JobRepository(session=session).get(steps[0].job_id)
            assert job.status == JobStatus.FAILED
            assert job.result["error"] == f"Step {step_ids[0]} was cancelled"

        status = await sequencer.get_sequence_status(step_ids)
        assert status.current_step is None
        assert status.failed_steps == 1
