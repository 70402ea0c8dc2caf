"""Shared test fixtures for litestar-stepqueue test suite."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from litestar_stepqueue.db.models import StepModel
from litestar_stepqueue.engine.config import SequencerConfig
from litestar_stepqueue.engine.local import LocalWorkQueue
from litestar_stepqueue.engine.notifier import InMemoryStepEventEmitter
from litestar_stepqueue.engine.registry import StepHandlerRegistry
from litestar_stepqueue.engine.sequencer import StepSequencer
from litestar_stepqueue.exceptions import StepExecutionError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncEngine

    from litestar_stepqueue.core.context import StepExecutionContext


# =============================================================================
# Sample Handlers
# =============================================================================


class RecordingHandler:
    """Handler that records every context it is given and succeeds."""

    def __init__(self, result: Any = None) -> None:
        self.result = result if result is not None else {"ok": True}
        self.contexts: list[StepExecutionContext] = []

    async def execute(self, context: StepExecutionContext) -> Any:
        """Record the context and return the configured result."""
        self.contexts.append(context)
        return self.result

    @property
    def calls(self) -> int:
        return len(self.contexts)


class FailingHandler:
    """Handler that fails a configurable number of times, then succeeds."""

    def __init__(self, failures: int = 1_000_000, message: str = "boom") -> None:
        self.failures = failures
        self.message = message
        self.calls = 0

    async def execute(self, context: StepExecutionContext) -> Any:
        """Fail until the failure budget is spent."""
        self.calls += 1
        if self.calls <= self.failures:
            raise StepExecutionError(context.step_type, self.message)
        return {"recovered": True}


class GatedHandler:
    """Handler that blocks until its gate is opened."""

    def __init__(self) -> None:
        self.started = asyncio.Event()
        self.gate = asyncio.Event()
        self.calls = 0

    async def execute(self, context: StepExecutionContext) -> Any:
        """Signal start, then wait for the gate."""
        self.calls += 1
        self.started.set()
        await self.gate.wait()
        return {"released": True}


class SlowHandler:
    """Handler that sleeps longer than any sensible test timeout."""

    async def execute(self, context: StepExecutionContext) -> Any:
        """Sleep, then succeed."""
        await asyncio.sleep(5)
        return {"slow": True}


class RecordingWorkQueue:
    """Work queue that only records what was enqueued."""

    def __init__(self) -> None:
        self.enqueued: list[tuple[str, str, dict[str, Any]]] = []

    async def enqueue(self, queue_name: str, job_name: str, payload: dict[str, Any]) -> None:
        """Record the job without running it."""
        self.enqueued.append((queue_name, job_name, payload))

    @property
    def payloads(self) -> list[dict[str, Any]]:
        return [payload for _, _, payload in self.enqueued]


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
async def async_engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    """Create an async SQLite file engine for testing.

    A file database lets the sequencer's sessions and the background jobs use
    separate connections, like they would in production.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'steps.db'}", echo=False)

    # Enable foreign keys for SQLite
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(StepModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory the sequencer works with."""
    return async_sessionmaker(bind=async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def async_session(session_maker: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """Create an async session for direct assertions."""
    async with session_maker() as session:
        yield session
        await session.rollback()


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def recording_handler() -> RecordingHandler:
    """Create a handler that always succeeds."""
    return RecordingHandler()


@pytest.fixture
def failing_handler() -> FailingHandler:
    """Create a handler that fails once, then succeeds."""
    return FailingHandler(failures=1)


@pytest.fixture
def step_registry(recording_handler: RecordingHandler, failing_handler: FailingHandler) -> StepHandlerRegistry:
    """Create a registry with an ``OK`` and a ``FLAKY`` step type."""
    registry = StepHandlerRegistry()
    registry.register("OK", recording_handler)
    registry.register("FLAKY", failing_handler)
    return registry


@pytest.fixture
def emitter() -> InMemoryStepEventEmitter:
    """Create an emitter that keeps events in memory."""
    return InMemoryStepEventEmitter()


@pytest.fixture
async def work_queue() -> AsyncIterator[LocalWorkQueue]:
    """Create a local work queue and cancel leftovers after the test."""
    queue = LocalWorkQueue()
    yield queue
    await queue.close()


@pytest.fixture
def sequencer_config() -> SequencerConfig:
    """Default sequencer configuration."""
    return SequencerConfig()


@pytest.fixture
def sequencer(
    step_registry: StepHandlerRegistry,
    session_maker: async_sessionmaker[AsyncSession],
    work_queue: LocalWorkQueue,
    emitter: InMemoryStepEventEmitter,
    sequencer_config: SequencerConfig,
) -> StepSequencer:
    """Create a sequencer whose jobs run on the local work queue."""
    sequencer = StepSequencer(
        registry=step_registry,
        session_maker=session_maker,
        work_queue=work_queue,
        emitter=emitter,
        config=sequencer_config,
    )
    work_queue.register_job(sequencer_config.job_name, sequencer.process_step_job, queue_name=sequencer_config.queue_name)
    return sequencer


@pytest.fixture
def recorded_queue() -> RecordingWorkQueue:
    """Create a work queue that never runs its jobs."""
    return RecordingWorkQueue()


@pytest.fixture
def recorded_sequencer(
    step_registry: StepHandlerRegistry,
    session_maker: async_sessionmaker[AsyncSession],
    recorded_queue: RecordingWorkQueue,
    emitter: InMemoryStepEventEmitter,
) -> StepSequencer:
    """Create a sequencer whose jobs are delivered by hand."""
    return StepSequencer(
        registry=step_registry,
        session_maker=session_maker,
        work_queue=recorded_queue,
        emitter=emitter,
    )


def pytest_configure(config: Any) -> None:
    """Configure pytest with custom markers.

    Args:
        config: Pytest config object
    """
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests")
