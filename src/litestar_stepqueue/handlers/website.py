"""Website loading step handler."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from litestar_stepqueue.core.types import StepType
from litestar_stepqueue.exceptions import StepExecutionError
from litestar_stepqueue.handlers.base import BaseStepHandler

if TYPE_CHECKING:
    from litestar_stepqueue.core import StepExecutionContext

__all__ = ["WebsiteLoadingHandler"]

logger = logging.getLogger(__name__)


class WebsiteLoadingHandler(BaseStepHandler):
    """Handler that fetches the website named in the step data.

    The step data must carry a ``url``. Any non-2xx response, or a transport
    error, fails the step.

    Example:
        >>> registry.register(StepType.WEBSITE_LOADING, WebsiteLoadingHandler(timeout=10))
    """

    step_type: str = StepType.WEBSITE_LOADING
    description: str = "Load a website so later steps can use its content"

    def __init__(
        self,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Initialize the handler.

        Args:
            timeout: Request timeout in seconds.
            transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests.
            headers: Extra request headers.
        """
        self.timeout = timeout
        self.transport = transport
        self.headers = headers or {}

    async def execute(self, context: StepExecutionContext) -> dict[str, Any]:
        """Fetch the website.

        Args:
            context: The step execution context.

        Returns:
            ``success``, ``message``, ``url``, ``status_code`` and ``content_length``.

        Raises:
            StepExecutionError: If the step type does not match, no URL was given,
                or the request failed.
        """
        self.ensure_step_type(context)

        url = context.data.get("url")
        if not url:
            raise StepExecutionError(str(context.step_type), "Website loading requires a 'url' in the step data")

        logger.info("Loading website %s for step %s", url, context.step_id)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self.transport,
                headers=self.headers,
                follow_redirects=True,
            ) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            raise StepExecutionError(str(context.step_type), f"Failed to load {url}: {e}") from e

        if not response.is_success:
            raise StepExecutionError(
                str(context.step_type),
                f"Failed to load {url}: HTTP {response.status_code}",
            )

        return {
            "success": True,
            "message": "Website loaded successfully",
            "url": str(response.url),
            "status_code": response.status_code,
            "content_length": len(response.content),
        }
