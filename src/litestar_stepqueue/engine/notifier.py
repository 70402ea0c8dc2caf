"""Notification emitters for step status changes.

Emitters push a :class:`~litestar_stepqueue.core.events.StepStatusChanged` event
to the listeners of the step owner. Delivery is best effort.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from litestar_stepqueue.core.events import StepStatusChanged

if TYPE_CHECKING:
    from litestar.channels import ChannelsPlugin

    from litestar_stepqueue.core.models import StepData

__all__ = [
    "DEFAULT_CHANNEL_PREFIX",
    "PROCESSING_QUEUE_EVENT",
    "ChannelsStepEventEmitter",
    "InMemoryStepEventEmitter",
]

DEFAULT_CHANNEL_PREFIX = "processing-queue"
"""Prefix of the per-user channel names."""

PROCESSING_QUEUE_EVENT = "processingQueue"
"""Event name clients subscribe to."""


class InMemoryStepEventEmitter:
    """Emitter that keeps every event in memory.

    Useful for tests and for single-process deployments that poll instead of
    subscribing.

    Attributes:
        events: ``(owner_id, event)`` pairs in emission order.
    """

    def __init__(self) -> None:
        """Initialize an emitter with no recorded events."""
        self.events: list[tuple[str, StepStatusChanged]] = []

    async def emit_step_status_changed(self, owner_id: str, step: StepData) -> None:
        """Record a step status change.

        Args:
            owner_id: The user the step belongs to.
            step: The step after the transition.
        """
        self.events.append((owner_id, StepStatusChanged.from_step(step)))

    def for_owner(self, owner_id: str) -> list[StepStatusChanged]:
        """Return the events addressed to one owner.

        Args:
            owner_id: The user id.

        Returns:
            The owner's events in emission order.
        """
        return [event for owner, event in self.events if owner == owner_id]

    def clear(self) -> None:
        """Forget every recorded event."""
        self.events.clear()


class ChannelsStepEventEmitter:
    """Emitter publishing to per-user Litestar channels.

    Each owner gets the channel ``"<prefix>:<owner_id>"``; websocket clients
    subscribed to it receive ``{"event": "processingQueue", "data": {...}}``.

    Example:
        >>> from litestar.channels import ChannelsPlugin
        >>> from litestar.channels.backends.memory import MemoryChannelsBackend
        >>> channels = ChannelsPlugin(backend=MemoryChannelsBackend(), arbitrary_channels_allowed=True)
        >>> emitter = ChannelsStepEventEmitter(channels)
    """

    def __init__(self, channels: ChannelsPlugin, channel_prefix: str = DEFAULT_CHANNEL_PREFIX) -> None:
        """Initialize the emitter.

        Args:
            channels: The application's channels plugin.
            channel_prefix: Prefix of the per-user channel names.
        """
        self.channels = channels
        self.channel_prefix = channel_prefix

    def channel_for(self, owner_id: str) -> str:
        """Name of the channel addressed to an owner.

        Args:
            owner_id: The user id.

        Returns:
            The channel name.
        """
        return f"{self.channel_prefix}:{owner_id}"

    async def emit_step_status_changed(self, owner_id: str, step: StepData) -> None:
        """Publish a step status change to the owner's channel.

        Args:
            owner_id: The user the step belongs to.
            step: The step after the transition.

        Raises:
            RuntimeError: If the channels plugin has not been started.
        """
        event = StepStatusChanged.from_step(step)
        self.channels.publish(
            {"event": PROCESSING_QUEUE_EVENT, "data": event.to_dict()},
            channels=[self.channel_for(owner_id)],
        )
