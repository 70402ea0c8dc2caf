"""Minimal example of litestar-stepqueue integration.

This example runs a two-step sequence (load a website, then count its words)
on the in-process work queue, with SQLite persistence.

Run with:
    cd examples/minimal
    litestar run

Or:
    uvicorn app:app --reload

Try it:
    curl -X POST http://localhost:8000/queue/sequence \\
        -H "Content-Type: application/json" \\
        -d '{"step_types": ["WEBSITE_LOADING", "WORD_COUNT"], "user_id": "alice",
             "data": {"url": "https://example.com"}}'

    curl http://localhost:8000/queue/sequence/<id>,<id>/status
"""

from __future__ import annotations

from typing import Any

from litestar import Litestar, get
from litestar.logging import LoggingConfig
from litestar.plugins.sqlalchemy import AsyncSessionConfig, SQLAlchemyAsyncConfig, SQLAlchemyPlugin

from litestar_stepqueue import (
    StepExecutionContext,
    StepQueuePlugin,
    StepQueuePluginConfig,
    StepType,
)
from litestar_stepqueue.db import StepModel
from litestar_stepqueue.handlers import BaseStepHandler, WebsiteLoadingHandler

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./steps.db"

# =============================================================================
# Step Handlers
# =============================================================================


class WordCountHandler(BaseStepHandler):
    """Count the words of a text passed in the step data."""

    step_type = "WORD_COUNT"
    description = "Count the words of the supplied text"

    async def execute(self, context: StepExecutionContext) -> dict[str, Any]:
        """Count the words."""
        text = context.data.get("text", "")
        return {"words": len(text.split()), "step": f"{context.current_step_number}/{context.total_steps}"}


# =============================================================================
# Health Check
# =============================================================================


@get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


# =============================================================================
# Application
# =============================================================================


def create_app(database_url: str = DEFAULT_DATABASE_URL) -> Litestar:
    """Build the example application.

    Args:
        database_url: SQLAlchemy async connection string.

    Returns:
        The Litestar application.
    """
    sqlalchemy_config = SQLAlchemyAsyncConfig(
        connection_string=database_url,
        metadata=StepModel.metadata,
        create_all=True,
        session_config=AsyncSessionConfig(expire_on_commit=False),
    )

    step_queue_config = StepQueuePluginConfig(
        session_maker=sqlalchemy_config.create_session_maker(),
        handlers={
            StepType.WEBSITE_LOADING: WebsiteLoadingHandler(timeout=10.0),
            WordCountHandler.step_type: WordCountHandler(),
        },
    )

    return Litestar(
        route_handlers=[health_check],
        plugins=[
            SQLAlchemyPlugin(config=sqlalchemy_config),
            StepQueuePlugin(config=step_queue_config),
        ],
        logging_config=LoggingConfig(
            loggers={"litestar_stepqueue": {"level": "INFO", "handlers": ["queue_listener"], "propagate": False}},
        ),
        debug=True,
    )


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
