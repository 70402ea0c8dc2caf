"""Step handler registry.

This module provides the registry that maps step type tags to the handlers that
execute them. It is populated once at startup and only read afterwards.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from litestar_stepqueue.exceptions import HandlerAlreadyRegisteredError, HandlerNotFoundError

if TYPE_CHECKING:
    from litestar_stepqueue.core.protocols import StepHandler

__all__ = ["StepHandlerRegistry"]


class StepHandlerRegistry:
    """Registry for storing and retrieving step handlers.

    Each step type has at most one handler. The registry is constructed during
    application initialization and injected into the sequencer.

    Attributes:
        _handlers: Map of step type tags to their handlers.
    """

    def __init__(self) -> None:
        """Initialize an empty handler registry."""
        self._handlers: dict[str, StepHandler] = {}

    def register(self, step_type: str, handler: StepHandler, *, replace: bool = False) -> None:
        """Register the handler for a step type.

        Args:
            step_type: The step type tag.
            handler: Object exposing ``async execute(context)``.
            replace: Overwrite an existing registration instead of raising.

        Raises:
            HandlerAlreadyRegisteredError: If the type already has a handler and
                ``replace`` is False.

        Example:
            >>> registry = StepHandlerRegistry()
            >>> registry.register(StepType.WEBSITE_LOADING, WebsiteLoadingHandler())
        """
        key = str(step_type)
        if key in self._handlers and not replace:
            raise HandlerAlreadyRegisteredError(key)
        self._handlers[key] = handler

    def get(self, step_type: str) -> StepHandler | None:
        """Look up the handler for a step type.

        Args:
            step_type: The step type tag.

        Returns:
            The registered handler, or None if there is none.
        """
        return self._handlers.get(str(step_type))

    def get_or_raise(self, step_type: str) -> StepHandler:
        """Look up the handler for a step type, failing if it is missing.

        Args:
            step_type: The step type tag.

        Returns:
            The registered handler.

        Raises:
            HandlerNotFoundError: If no handler is registered for the type.
        """
        handler = self.get(step_type)
        if handler is None:
            raise HandlerNotFoundError(str(step_type))
        return handler

    def has_handler(self, step_type: str) -> bool:
        """Check if a handler is registered for a step type.

        Args:
            step_type: The step type tag.

        Returns:
            True if a handler is registered, False otherwise.
        """
        return str(step_type) in self._handlers

    def unregister(self, step_type: str) -> None:
        """Remove the handler for a step type, if any.

        Args:
            step_type: The step type tag.
        """
        self._handlers.pop(str(step_type), None)

    def list_step_types(self) -> list[str]:
        """List every step type with a registered handler.

        Returns:
            The registered step type tags, sorted.
        """
        return sorted(self._handlers)

    def __contains__(self, step_type: object) -> bool:
        return str(step_type) in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)
