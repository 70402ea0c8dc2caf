"""Step sequencing engine.

This module provides the sequencer that runs steps in order, the handler
registry, the in-process work queue and the notification emitters.
"""

from __future__ import annotations

from litestar_stepqueue.engine.config import SequencerConfig
from litestar_stepqueue.engine.local import LocalWorkQueue
from litestar_stepqueue.engine.notifier import ChannelsStepEventEmitter, InMemoryStepEventEmitter
from litestar_stepqueue.engine.registry import StepHandlerRegistry
from litestar_stepqueue.engine.sequencer import StepSequencer, find_next_step

__all__ = [
    "ChannelsStepEventEmitter",
    "InMemoryStepEventEmitter",
    "LocalWorkQueue",
    "SequencerConfig",
    "StepHandlerRegistry",
    "StepSequencer",
    "find_next_step",
]
