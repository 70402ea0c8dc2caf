"""Local in-process work queue.

This module provides an asyncio-based background work queue suitable for
development, testing, and single-instance deployments. Jobs run as asyncio tasks
in the same process; nothing survives a restart.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeAlias

from litestar_stepqueue.core.types import DEFAULT_QUEUE_NAME
from litestar_stepqueue.exceptions import UnknownJobError

__all__ = ["JobFunction", "LocalWorkQueue"]

logger = logging.getLogger(__name__)

JobFunction: TypeAlias = Callable[[dict[str, Any]], Awaitable[Any]]
"""Coroutine function consuming a job payload."""


class LocalWorkQueue:
    """In-memory async work queue.

    Every enqueued job gets its own asyncio task, which gives one worker slot per
    dequeued job. An optional concurrency limit bounds how many jobs run at once.

    Attributes:
        concurrency: Maximum number of jobs running at once, or None for no limit.
        errors: Exceptions that escaped job functions, in order.
        _functions: Map of ``(queue_name, job_name)`` to job functions.
        _tasks: Tasks that have not finished yet.
    """

    def __init__(self, concurrency: int | None = None) -> None:
        """Initialize the local work queue.

        Args:
            concurrency: Optional limit on concurrently running jobs.
        """
        self.concurrency = concurrency
        self.errors: list[BaseException] = []
        self._functions: dict[tuple[str, str], JobFunction] = {}
        self._tasks: set[asyncio.Task[None]] = set()
        self._semaphore = asyncio.Semaphore(concurrency) if concurrency else None

    def register_job(
        self,
        job_name: str,
        func: JobFunction,
        queue_name: str = DEFAULT_QUEUE_NAME,
    ) -> None:
        """Register the function that consumes a job.

        Args:
            job_name: The job name.
            func: Coroutine function called with the job payload.
            queue_name: The queue the job is consumed from.
        """
        self._functions[(queue_name, job_name)] = func

    async def enqueue(self, queue_name: str, job_name: str, payload: dict[str, Any]) -> None:
        """Schedule a job and return immediately.

        Args:
            queue_name: Name of the target queue.
            job_name: Name of the job.
            payload: Job payload.

        Raises:
            UnknownJobError: If no function consumes this queue/job pair.
        """
        func = self._functions.get((queue_name, job_name))
        if func is None:
            raise UnknownJobError(queue_name, job_name)

        task = asyncio.create_task(self._run(job_name, func, payload))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(
        self,
        job_name: str,
        func: JobFunction,
        payload: dict[str, Any],
    ) -> None:
        try:
            if self._semaphore is not None:
                async with self._semaphore:
                    await func(payload)
            else:
                await func(payload)
        except Exception as e:
            logger.exception("Job %s raised an unhandled error", job_name)
            self.errors.append(e)

    @property
    def pending(self) -> int:
        """Number of jobs that have not finished."""
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait until no job is in flight.

        Jobs enqueued by running jobs are waited for as well.
        """
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Cancel every job that is still running."""
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()
