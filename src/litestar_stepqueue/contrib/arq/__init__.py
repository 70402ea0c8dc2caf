"""ARQ (Async Redis Queue) integration.

This module provides an ARQ-backed work queue for running step jobs on separate
worker processes, and the settings those workers are started with.

Installation:
    .. code-block:: bash

        pip install litestar-stepqueue[arq]

Example:
    .. code-block:: python

        from arq import create_pool
        from arq.connections import RedisSettings
        from litestar_stepqueue.contrib.arq import ARQWorkQueue, arq_worker_settings

        redis = await create_pool(RedisSettings())
        sequencer = StepSequencer(registry, session_maker, ARQWorkQueue(redis))

        # worker module
        WorkerSettings = arq_worker_settings(sequencer, redis_settings=RedisSettings())

See Also:
    - ARQ documentation: https://arq-docs.helpmanual.io/
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from arq.worker import func

from litestar_stepqueue.core.types import DEFAULT_JOB_NAME, DEFAULT_QUEUE_NAME
from litestar_stepqueue.exceptions import JobRejectedError

if TYPE_CHECKING:
    from arq.connections import ArqRedis, RedisSettings

    from litestar_stepqueue.engine.sequencer import StepSequencer

__all__ = ["ARQWorkQueue", "arq_worker_settings", "process_step"]

logger = logging.getLogger(__name__)

SEQUENCER_CONTEXT_KEY = "sequencer"


class ARQWorkQueue:
    """Work queue that enqueues step jobs through an ARQ Redis pool.

    Attributes:
        redis: The ARQ connection pool.
    """

    def __init__(self, redis: ArqRedis) -> None:
        """Initialize the work queue.

        Args:
            redis: ARQ connection pool, e.g. from ``arq.create_pool``.
        """
        self.redis = redis

    async def enqueue(self, queue_name: str, job_name: str, payload: dict[str, Any]) -> None:
        """Enqueue a step job.

        Args:
            queue_name: Name of the target queue.
            job_name: Name of the worker function.
            payload: Job payload, passed to the function positionally.

        Raises:
            JobRejectedError: If ARQ declines the job, e.g. because a job with
                the same id already exists.
        """
        job = await self.redis.enqueue_job(job_name, payload, _queue_name=queue_name)
        if job is None:
            raise JobRejectedError(queue_name, job_name)
        logger.debug("Enqueued ARQ job %s on %s", job.job_id, queue_name)


async def process_step(ctx: dict[str, Any], payload: dict[str, Any]) -> None:
    """ARQ job function consuming one step job.

    Args:
        ctx: The ARQ worker context; must hold the sequencer.
        payload: The step job payload.
    """
    sequencer: StepSequencer = ctx[SEQUENCER_CONTEXT_KEY]
    await sequencer.process_step_job(payload)


def arq_worker_settings(
    sequencer: StepSequencer,
    *,
    queue_name: str = DEFAULT_QUEUE_NAME,
    job_name: str = DEFAULT_JOB_NAME,
    redis_settings: RedisSettings | None = None,
    max_jobs: int = 10,
    job_timeout: int | None = None,
) -> dict[str, Any]:
    """Build the settings an ARQ worker is started with.

    Args:
        sequencer: The sequencer jobs are handed to.
        queue_name: The queue the worker consumes.
        job_name: Name the job function is registered under.
        redis_settings: Redis connection settings.
        max_jobs: Number of jobs the worker runs at once.
        job_timeout: Seconds a job may run before ARQ cancels it. Defaults to
            :attr:`SequencerConfig.queue_job_timeout`, falling back to the ARQ
            default when no step deadline is configured.

    Returns:
        Keyword arguments for ``arq.Worker``.
    """

    async def on_startup(ctx: dict[str, Any]) -> None:
        ctx[SEQUENCER_CONTEXT_KEY] = sequencer

    settings: dict[str, Any] = {
        "functions": [func(process_step, name=job_name, max_tries=1)],
        "queue_name": queue_name,
        "on_startup": on_startup,
        "max_jobs": max_jobs,
    }
    if redis_settings is not None:
        settings["redis_settings"] = redis_settings
    timeout = job_timeout if job_timeout is not None else sequencer.config.queue_job_timeout
    if timeout is not None:
        settings["job_timeout"] = timeout
    return settings
