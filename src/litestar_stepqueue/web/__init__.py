"""REST API for litestar-stepqueue.

The controller is registered by :class:`~litestar_stepqueue.plugin.StepQueuePlugin`
when ``enable_api`` is set (the default). Endpoints, relative to ``api_path_prefix``:

- ``POST /queue/sequence`` - create a sequence
- ``GET /queue/sequence/{ids}/status`` - progress of a sequence
- ``POST /queue/step/{id}/retry`` - retry a failed step
- ``POST /queue/sequence/{ids}/process-next`` - run the next step synchronously
"""

from __future__ import annotations

from litestar_stepqueue.web.controllers import StepQueueController, parse_step_ids
from litestar_stepqueue.web.dto import (
    CreateSequenceDTO,
    ProcessNextDTO,
    RetryStepDTO,
    SequenceCreatedDTO,
    SequenceStatusDTO,
    StepDTO,
    StepSummaryDTO,
)
from litestar_stepqueue.web.exceptions import exception_handlers

__all__ = [
    "CreateSequenceDTO",
    "ProcessNextDTO",
    "RetryStepDTO",
    "SequenceCreatedDTO",
    "SequenceStatusDTO",
    "StepDTO",
    "StepQueueController",
    "StepSummaryDTO",
    "exception_handlers",
    "parse_step_ids",
]
