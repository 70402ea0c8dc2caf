"""Core type definitions for litestar-stepqueue.

This module defines the status enums and step type tags used throughout the
sequencer, together with the naming rule that derives a job type from a step type.
"""

from __future__ import annotations

import sys
from enum import Enum
from typing import Any, TypeAlias

# StrEnum backport for Python < 3.11
if sys.version_info >= (3, 11):
    from enum import StrEnum
else:

    class StrEnum(str, Enum):
        """String enumeration compatibility for Python < 3.11."""

        def __str__(self) -> str:
            return str(self.value)


__all__ = [
    "DEFAULT_JOB_NAME",
    "DEFAULT_QUEUE_NAME",
    "JobStatus",
    "Payload",
    "StepStatus",
    "StepType",
    "job_type_for",
]

DEFAULT_QUEUE_NAME = "step-processing"
"""Name of the background queue that carries step jobs."""

DEFAULT_JOB_NAME = "process-step"
"""Name of the job consumed by step-processing workers."""


class StepStatus(StrEnum):
    """Lifecycle status of a processing step.

    Attributes:
        PENDING: Step is waiting for its turn (or was reset by a retry).
        PROCESSING: Step is currently executing.
        COMPLETED: Step finished successfully. Terminal.
        FAILED: Step failed. Terminal until retried.
    """

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class JobStatus(StrEnum):
    """Lifecycle status of a job, one execution attempt of a step.

    Attributes:
        PENDING: Job was created and enqueued.
        PROCESSING: A worker picked the job up.
        COMPLETED: The handler returned a result.
        FAILED: The attempt failed.
    """

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class StepType(StrEnum):
    """Built-in step type tags.

    The persisted step type is a plain string, so applications may register
    handlers for tags that are not members of this enum.

    Attributes:
        WEBSITE_LOADING: Fetch a website and hand its content to later steps.
    """

    WEBSITE_LOADING = "WEBSITE_LOADING"


Payload: TypeAlias = dict[str, Any]
"""Type alias for opaque, schema-less step data and job results."""


def job_type_for(step_type: str) -> str:
    """Derive the job type recorded for an attempt of the given step type.

    Args:
        step_type: The step type tag.

    Returns:
        The job type, ``STEP_<TYPE>``.

    Example:
        >>> job_type_for("website_loading")
        'STEP_WEBSITE_LOADING'
    """
    return f"STEP_{str(step_type).upper()}"
