"""Exception handling for step queue web endpoints.

This module maps the sequencer's caller-facing errors to HTTP responses.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from litestar import Response
from litestar.status_codes import HTTP_404_NOT_FOUND, HTTP_409_CONFLICT

from litestar_stepqueue.exceptions import InvalidStepStateError, JobNotFoundError, StepNotFoundError

if TYPE_CHECKING:  # pragma: no cover
    from litestar import Request

    from litestar_stepqueue.exceptions import StepQueueError

__all__ = [
    "exception_handlers",
    "invalid_step_state_handler",
    "not_found_handler",
]


def not_found_handler(_request: Request, exc: StepQueueError) -> Response:
    """Exception handler for missing steps and jobs.

    Args:
        _request: The Litestar request object.
        exc: The StepNotFoundError or JobNotFoundError.

    Returns:
        404 response with error details.
    """
    return Response(
        content={"status_code": HTTP_404_NOT_FOUND, "detail": str(exc)},
        status_code=HTTP_404_NOT_FOUND,
        media_type="application/json",
    )


def invalid_step_state_handler(_request: Request, exc: InvalidStepStateError) -> Response:
    """Exception handler for operations not allowed in the step's status.

    Args:
        _request: The Litestar request object.
        exc: The InvalidStepStateError.

    Returns:
        409 response with error details and the offending status.
    """
    return Response(
        content={
            "status_code": HTTP_409_CONFLICT,
            "detail": str(exc),
            "extra": {"step_id": str(exc.step_id), "status": exc.status, "expected": exc.expected},
        },
        status_code=HTTP_409_CONFLICT,
        media_type="application/json",
    )


exception_handlers = {
    StepNotFoundError: not_found_handler,
    JobNotFoundError: not_found_handler,
    InvalidStepStateError: invalid_step_state_handler,
}
"""Handlers to register on the application or router."""
