"""SAQ (Simple Async Queue) integration.

This module provides a SAQ-backed work queue for running step jobs on separate
worker processes, and the settings those workers are started with.

Installation:
    .. code-block:: bash

        pip install litestar-stepqueue[saq]

Example:
    .. code-block:: python

        from saq import Queue
        from litestar_stepqueue.contrib.saq import SAQWorkQueue, saq_worker_settings

        config = SequencerConfig(step_timeout=60)
        queue = Queue.from_url("redis://localhost:6379/0", name="step-processing")
        work_queue = SAQWorkQueue(queue, timeout=config.queue_job_timeout)
        sequencer = StepSequencer(registry, session_maker, work_queue, config=config)

        # worker module, run with ``saq myapp.worker.settings``
        settings = saq_worker_settings(queue, sequencer, concurrency=5)

See Also:
    - SAQ documentation: https://github.com/tobymao/saq
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from saq import Queue

from litestar_stepqueue.core.types import DEFAULT_JOB_NAME
from litestar_stepqueue.exceptions import UnknownJobError

if TYPE_CHECKING:
    from litestar_stepqueue.engine.sequencer import StepSequencer

__all__ = ["SAQWorkQueue", "process_step", "saq_worker_settings"]

logger = logging.getLogger(__name__)

SEQUENCER_CONTEXT_KEY = "sequencer"


class SAQWorkQueue:
    """Work queue that enqueues step jobs on SAQ queues.

    Each job runs a single attempt; failure handling is owned by the sequencer,
    so SAQ-level retries are disabled. SAQ kills jobs after 10 seconds unless
    told otherwise, so every job carries an explicit timeout.

    Attributes:
        queues: SAQ queues keyed by queue name.
        timeout: Job timeout in seconds; 0 disables it.
    """

    def __init__(self, queues: Queue | Mapping[str, Queue], *, timeout: int | None = None) -> None:
        """Initialize the work queue.

        Args:
            queues: One SAQ queue, or several keyed by queue name.
            timeout: Job timeout in seconds, usually
                :attr:`SequencerConfig.queue_job_timeout`. ``None`` disables it.
        """
        self.timeout = timeout or 0
        if isinstance(queues, Queue):
            self.queues: dict[str, Queue] = {queues.name: queues}
        else:
            self.queues = dict(queues)

    async def enqueue(self, queue_name: str, job_name: str, payload: dict[str, Any]) -> None:
        """Enqueue a step job.

        Args:
            queue_name: Name of the target queue.
            job_name: Name of the worker function.
            payload: Job payload, passed to the function as ``payload``.

        Raises:
            UnknownJobError: If no SAQ queue is configured under ``queue_name``.
        """
        queue = self.queues.get(queue_name)
        if queue is None:
            raise UnknownJobError(queue_name, job_name)
        job = await queue.enqueue(job_name, payload=payload, retries=1, timeout=self.timeout)
        logger.debug("Enqueued SAQ job %s on %s", getattr(job, "key", None), queue_name)


async def process_step(ctx: dict[str, Any], *, payload: dict[str, Any]) -> None:
    """SAQ job function consuming one step job.

    Args:
        ctx: The SAQ worker context; must hold the sequencer.
        payload: The step job payload.
    """
    sequencer: StepSequencer = ctx[SEQUENCER_CONTEXT_KEY]
    await sequencer.process_step_job(payload)


def saq_worker_settings(
    queue: Queue,
    sequencer: StepSequencer,
    *,
    job_name: str = DEFAULT_JOB_NAME,
    concurrency: int = 10,
) -> dict[str, Any]:
    """Build the settings a SAQ worker is started with.

    Args:
        queue: The queue the worker consumes.
        sequencer: The sequencer jobs are handed to.
        job_name: Name the job function is registered under.
        concurrency: Number of jobs the worker runs at once.

    Returns:
        A settings mapping for ``saq.Worker``.
    """

    async def startup(ctx: dict[str, Any]) -> None:
        ctx[SEQUENCER_CONTEXT_KEY] = sequencer

    return {
        "queue": queue,
        "functions": [(job_name, process_step)],
        "concurrency": concurrency,
        "startup": startup,
    }
