"""Full example with a Redis-backed queue and live status updates.

This example shows:
- Steps executed by separate SAQ worker processes (see ``worker.py``)
- Per-user websocket channels receiving every step status change
- PostgreSQL or SQLite persistence through the SQLAlchemy plugin
- The built-in step queue REST API under ``/api``

Run with:
    cd examples/full
    uv run litestar run --port 8001
    uv run saq worker.settings

Environment:
    DATABASE_URL: SQLAlchemy async connection string
        (default ``sqlite+aiosqlite:///./steps.db``).
    REDIS_URL: Redis connection string (default ``redis://localhost:6379/0``).

API Endpoints:
    POST /api/queue/sequence                        - Create a sequence
    GET  /api/queue/sequence/{ids}/status           - Sequence progress
    POST /api/queue/step/{id}/retry                 - Retry a failed step
    POST /api/queue/sequence/{ids}/process-next     - Run the next step inline
    WS   /ws/processing-queue:{user_id}             - Status updates for a user

Example API Usage:
    # Listen for updates (any websocket client)
    websocat ws://localhost:8001/ws/processing-queue:alice

    # Start a sequence
    curl -X POST http://localhost:8001/api/queue/sequence \\
        -H "Content-Type: application/json" \\
        -d '{"step_types": ["WEBSITE_LOADING"], "user_id": "alice",
             "data": {"url": "https://litestar.dev"}}'
"""

from __future__ import annotations

import os

from litestar import Litestar, get
from litestar.channels import ChannelsPlugin
from litestar.channels.backends.redis import RedisChannelsPubSubBackend
from litestar.logging import LoggingConfig
from litestar.openapi import OpenAPIConfig
from litestar.plugins.sqlalchemy import AsyncSessionConfig, SQLAlchemyAsyncConfig, SQLAlchemyPlugin
from redis.asyncio import Redis
from saq import Queue

from litestar_stepqueue import SequencerConfig, StepQueuePlugin, StepQueuePluginConfig, StepType
from litestar_stepqueue.contrib.saq import SAQWorkQueue
from litestar_stepqueue.db import StepModel
from litestar_stepqueue.handlers import WebsiteLoadingHandler

DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite+aiosqlite:///./steps.db")
REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")

sequencer_config = SequencerConfig(step_timeout=60.0)

# Shared with worker.py
sqlalchemy_config = SQLAlchemyAsyncConfig(
    connection_string=DATABASE_URL,
    metadata=StepModel.metadata,
    create_all=True,
    session_config=AsyncSessionConfig(expire_on_commit=False),
)
session_maker = sqlalchemy_config.create_session_maker()
queue = Queue.from_url(REDIS_URL, name=sequencer_config.queue_name)
handlers = {StepType.WEBSITE_LOADING: WebsiteLoadingHandler(timeout=15.0)}

channels = ChannelsPlugin(
    backend=RedisChannelsPubSubBackend(redis=Redis.from_url(REDIS_URL)),
    arbitrary_channels_allowed=True,
    create_ws_route_handlers=True,
    ws_handler_base_path="/ws",
)


@get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "litestar-stepqueue-example"}


async def connect_queue() -> None:
    await queue.connect()


async def disconnect_queue() -> None:
    await queue.disconnect()


app = Litestar(
    route_handlers=[health_check],
    plugins=[
        SQLAlchemyPlugin(config=sqlalchemy_config),
        channels,
        StepQueuePlugin(
            config=StepQueuePluginConfig(
                session_maker=session_maker,
                handlers=handlers,
                work_queue=SAQWorkQueue(queue, timeout=sequencer_config.queue_job_timeout),
                channels=channels,
                sequencer_config=sequencer_config,
                api_path_prefix="/api",
            )
        ),
    ],
    on_startup=[connect_queue],
    on_shutdown=[disconnect_queue],
    logging_config=LoggingConfig(
        loggers={"litestar_stepqueue": {"level": "INFO", "handlers": ["queue_listener"], "propagate": False}},
    ),
    openapi_config=OpenAPIConfig(
        title="Litestar Step Queue - Full Example",
        version="1.0.0",
        description="Ordered background step sequences with live status updates.",
    ),
)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8001)
