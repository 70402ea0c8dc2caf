"""Built-in step handlers for litestar-stepqueue."""

from __future__ import annotations

from litestar_stepqueue.handlers.base import BaseStepHandler
from litestar_stepqueue.handlers.website import WebsiteLoadingHandler

__all__ = [
    "BaseStepHandler",
    "WebsiteLoadingHandler",
]
