"""SAQ worker for the full example.

Run with:
    cd examples/full
    uv run saq worker.settings

The worker builds its own sequencer against the same database and queue as the
web application, and publishes status updates through the same Redis channels.
"""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack

from litestar.channels import ChannelsPlugin
from litestar.channels.backends.redis import RedisChannelsPubSubBackend
from redis.asyncio import Redis

from app import REDIS_URL, handlers, queue, sequencer_config, session_maker
from litestar_stepqueue import ChannelsStepEventEmitter, StepHandlerRegistry, StepSequencer
from litestar_stepqueue.contrib.saq import SAQWorkQueue, saq_worker_settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

registry = StepHandlerRegistry()
for step_type, handler in handlers.items():
    registry.register(step_type, handler)

channels = ChannelsPlugin(
    backend=RedisChannelsPubSubBackend(redis=Redis.from_url(REDIS_URL)),
    arbitrary_channels_allowed=True,
)

sequencer = StepSequencer(
    registry=registry,
    session_maker=session_maker,
    work_queue=SAQWorkQueue(queue, timeout=sequencer_config.queue_job_timeout),
    emitter=ChannelsStepEventEmitter(channels),
    config=sequencer_config,
)

settings = saq_worker_settings(queue, sequencer, job_name=sequencer_config.job_name, concurrency=5)
_startup = settings["startup"]


async def startup(ctx: dict) -> None:
    ctx["exit_stack"] = stack = AsyncExitStack()
    await stack.enter_async_context(channels)
    await _startup(ctx)


async def shutdown(ctx: dict) -> None:
    await ctx["exit_stack"].aclose()


settings["startup"] = startup
settings["shutdown"] = shutdown
