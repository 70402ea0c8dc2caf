"""Core domain module for litestar-stepqueue.

This module exports the fundamental building blocks of the sequencer: types,
protocols, the execution context, data snapshots and events.
"""

from __future__ import annotations

from litestar_stepqueue.core.context import StepExecutionContext
from litestar_stepqueue.core.events import StepEvent, StepStatusChanged
from litestar_stepqueue.core.models import (
    JobData,
    RetryResult,
    SequenceStatus,
    StepData,
    StepJobPayload,
    StepSummary,
)
from litestar_stepqueue.core.protocols import StepEventEmitter, StepHandler, WorkQueue
from litestar_stepqueue.core.types import (
    DEFAULT_JOB_NAME,
    DEFAULT_QUEUE_NAME,
    JobStatus,
    Payload,
    StepStatus,
    StepType,
    job_type_for,
)

__all__ = [
    "DEFAULT_JOB_NAME",
    "DEFAULT_QUEUE_NAME",
    "JobData",
    "JobStatus",
    "Payload",
    "RetryResult",
    "SequenceStatus",
    "StepData",
    "StepEvent",
    "StepEventEmitter",
    "StepExecutionContext",
    "StepHandler",
    "StepJobPayload",
    "StepStatus",
    "StepStatusChanged",
    "StepSummary",
    "StepType",
    "WorkQueue",
    "job_type_for",
]
