"""Litestar StepQueue - Ordered step sequencing for Litestar.

This package runs a list of typed processing steps strictly one after another in
the background. Each step is dispatched to the handler registered for its type,
every transition is persisted and pushed to the step owner, and a failed step
halts its sequence until it is retried.

Key Features:
    - One active step per sequence, in step-number order
    - Durable step and job records (SQLAlchemy via advanced-alchemy)
    - Pluggable background queues (in-process, SAQ, ARQ)
    - Per-user status notifications over Litestar channels
    - Retry of failed steps resuming the sequence where it stopped

Example:
    >>> from litestar_stepqueue import StepSequencer, StepHandlerRegistry, LocalWorkQueue
    >>>
    >>> class SummarizeHandler:
    ...     async def execute(self, context):
    ...         return {"summary": await summarize(context.data["text"])}
    >>>
    >>> registry = StepHandlerRegistry()
    >>> registry.register("SUMMARIZE", SummarizeHandler())
    >>> sequencer = StepSequencer(registry, session_maker, LocalWorkQueue())
"""

from __future__ import annotations

from litestar_stepqueue.__metadata__ import __project__, __version__
from litestar_stepqueue.core import (
    JobStatus,
    SequenceStatus,
    StepData,
    StepExecutionContext,
    StepStatus,
    StepType,
)
from litestar_stepqueue.engine import (
    ChannelsStepEventEmitter,
    InMemoryStepEventEmitter,
    LocalWorkQueue,
    SequencerConfig,
    StepHandlerRegistry,
    StepSequencer,
)
from litestar_stepqueue.exceptions import (
    HandlerAlreadyRegisteredError,
    HandlerNotFoundError,
    InvalidStepStateError,
    JobNotFoundError,
    JobRejectedError,
    StepExecutionError,
    StepNotFoundError,
    StepQueueError,
    StepTimeoutError,
    UnknownJobError,
)
from litestar_stepqueue.plugin import StepQueuePlugin, StepQueuePluginConfig

__all__ = (
    "ChannelsStepEventEmitter",
    "HandlerAlreadyRegisteredError",
    "HandlerNotFoundError",
    "InMemoryStepEventEmitter",
    "InvalidStepStateError",
    "JobNotFoundError",
    "JobRejectedError",
    "JobStatus",
    "LocalWorkQueue",
    "SequenceStatus",
    "SequencerConfig",
    "StepData",
    "StepExecutionContext",
    "StepExecutionError",
    "StepHandlerRegistry",
    "StepNotFoundError",
    "StepQueueError",
    "StepQueuePlugin",
    "StepQueuePluginConfig",
    "StepSequencer",
    "StepStatus",
    "StepTimeoutError",
    "StepType",
    "UnknownJobError",
    "__project__",
    "__version__",
)
