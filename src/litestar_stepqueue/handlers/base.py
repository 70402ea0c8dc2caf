"""Base step handler implementation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from litestar_stepqueue.exceptions import StepExecutionError

if TYPE_CHECKING:
    from litestar_stepqueue.core import StepExecutionContext

__all__ = ["BaseStepHandler"]


class BaseStepHandler:
    """Base implementation with common functionality for step handlers.

    Subclass this, set ``step_type`` and implement :meth:`execute`. Handlers are
    stateless between calls; one instance serves every step of its type.
    """

    step_type: str = ""
    """Step type tag the handler is registered under."""

    description: str = ""
    """Human-readable description of what the handler does."""

    async def execute(self, context: StepExecutionContext) -> Any:
        """Execute the step with the given context.

        Args:
            context: The step execution context.

        Returns:
            A JSON-compatible result, stored on the job record.

        Raises:
            NotImplementedError: Must be implemented by subclasses.
        """
        msg = f"{type(self).__name__} must implement execute()"
        raise NotImplementedError(msg)

    def ensure_step_type(self, context: StepExecutionContext) -> None:
        """Fail unless the context belongs to this handler's step type.

        Args:
            context: The step execution context.

        Raises:
            StepExecutionError: If the step type does not match.
        """
        if self.step_type and str(context.step_type) != str(self.step_type):
            raise StepExecutionError(
                str(context.step_type),
                f"Invalid step type {context.step_type} for {type(self).__name__}",
            )
