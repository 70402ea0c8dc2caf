"""Litestar plugin for step queue integration.

This module provides the StepQueuePlugin for wiring the sequencer, its handler
registry and its REST API into a Litestar application.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from litestar.di import Provide
from litestar.exceptions import ImproperlyConfiguredException
from litestar.plugins import InitPluginProtocol

from litestar_stepqueue.engine.config import SequencerConfig
from litestar_stepqueue.engine.local import LocalWorkQueue
from litestar_stepqueue.engine.notifier import ChannelsStepEventEmitter
from litestar_stepqueue.engine.registry import StepHandlerRegistry
from litestar_stepqueue.engine.sequencer import StepSequencer

if TYPE_CHECKING:
    from litestar.channels import ChannelsPlugin
    from litestar.config.app import AppConfig
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from litestar_stepqueue.core.protocols import StepEventEmitter, StepHandler, WorkQueue

__all__ = ["StepQueuePlugin", "StepQueuePluginConfig"]


@dataclass
class StepQueuePluginConfig:
    """Configuration for the StepQueuePlugin.

    Attributes:
        session_maker: Factory for database sessions. Required; create it with
            ``expire_on_commit=False``.
        registry: Optional pre-configured StepHandlerRegistry. If not provided,
            a new one will be created.
        handlers: Handlers to register at startup, keyed by step type.
        work_queue: Background work queue. If not provided, an in-process
            LocalWorkQueue is created and wired to the sequencer.
        emitter: Notification emitter for step status changes.
        channels: Litestar channels plugin; used to build a channels emitter
            when ``emitter`` is not given.
        sequencer_config: Queue names and execution policy.
        dependency_key_registry: The key used for dependency injection of
            the StepHandlerRegistry. Defaults to "step_handler_registry".
        dependency_key_sequencer: The key used for dependency injection of
            the StepSequencer. Defaults to "step_sequencer".
        enable_api: Whether to enable the REST API endpoints. Defaults to True.
        api_path_prefix: URL path prefix for the API router. Defaults to "/".
        api_guards: List of Litestar guards to apply to the API endpoints.
        api_tags: OpenAPI tags to apply to the API endpoints.
        include_api_in_schema: Whether to include API endpoints in OpenAPI schema.
            Defaults to True.
    """

    session_maker: async_sessionmaker[AsyncSession] | None = None
    registry: StepHandlerRegistry | None = None
    handlers: dict[str, StepHandler] = field(default_factory=dict)
    work_queue: WorkQueue | None = None
    emitter: StepEventEmitter | None = None
    channels: ChannelsPlugin | None = None
    sequencer_config: SequencerConfig = field(default_factory=SequencerConfig)
    dependency_key_registry: str = "step_handler_registry"
    dependency_key_sequencer: str = "step_sequencer"
    enable_api: bool = True
    api_path_prefix: str = "/"
    api_guards: list[Any] = field(default_factory=list)
    api_tags: list[str] = field(default_factory=lambda: ["Step Queue"])
    include_api_in_schema: bool = True


class StepQueuePlugin(InitPluginProtocol):
    """Litestar plugin for step sequencing.

    This plugin builds the handler registry and the sequencer once, provides both
    through dependency injection and registers the step queue REST API.

    Example:
        Basic usage with the in-process queue::

            from litestar import Litestar
            from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
            from litestar_stepqueue import StepQueuePlugin, StepQueuePluginConfig, StepType
            from litestar_stepqueue.handlers import WebsiteLoadingHandler

            engine = create_async_engine("sqlite+aiosqlite:///steps.db")
            app = Litestar(
                plugins=[
                    StepQueuePlugin(
                        config=StepQueuePluginConfig(
                            session_maker=async_sessionmaker(engine, expire_on_commit=False),
                            handlers={StepType.WEBSITE_LOADING: WebsiteLoadingHandler()},
                        )
                    )
                ]
            )

        Using in a route handler::

            @post("/documents/{url:str}/ingest")
            async def ingest(url: str, step_sequencer: StepSequencer) -> list[UUID]:
                return await step_sequencer.create_sequence(
                    [StepType.WEBSITE_LOADING], user_id="user-1", data={"url": url}
                )
    """

    __slots__ = ("_config", "_owned_queue", "_registry", "_sequencer")

    def __init__(self, config: StepQueuePluginConfig | None = None) -> None:
        """Initialize the plugin.

        Args:
            config: Optional configuration for the plugin.
        """
        self._config = config or StepQueuePluginConfig()
        self._registry: StepHandlerRegistry | None = None
        self._sequencer: StepSequencer | None = None
        self._owned_queue: LocalWorkQueue | None = None

    @property
    def registry(self) -> StepHandlerRegistry:
        """Get the step handler registry.

        Returns:
            The StepHandlerRegistry instance.

        Raises:
            RuntimeError: If accessed before plugin initialization.
        """
        if self._registry is None:
            msg = "StepQueuePlugin has not been initialized. Access registry after app startup."
            raise RuntimeError(msg)
        return self._registry

    @property
    def sequencer(self) -> StepSequencer:
        """Get the step sequencer.

        Returns:
            The StepSequencer instance.

        Raises:
            RuntimeError: If accessed before plugin initialization.
        """
        if self._sequencer is None:
            msg = "StepQueuePlugin has not been initialized. Access sequencer after app startup."
            raise RuntimeError(msg)
        return self._sequencer

    def on_app_init(self, app_config: AppConfig) -> AppConfig:
        """Initialize the plugin when the Litestar app starts.

        This method:
        1. Creates or uses the provided StepHandlerRegistry and registers handlers
        2. Creates the StepSequencer, with a LocalWorkQueue unless one is given
        3. Adds dependency providers to the app config
        4. Optionally registers the REST API controller if enable_api=True

        Args:
            app_config: The Litestar application configuration.

        Returns:
            The modified application configuration.

        Raises:
            ImproperlyConfiguredException: If no session maker is configured.
        """
        config = self._config
        if config.session_maker is None:
            msg = "StepQueuePluginConfig.session_maker is required"
            raise ImproperlyConfiguredException(msg)

        self._registry = config.registry or StepHandlerRegistry()
        for step_type, handler in config.handlers.items():
            self._registry.register(step_type, handler)

        emitter = config.emitter
        if emitter is None and config.channels is not None:
            emitter = ChannelsStepEventEmitter(config.channels)

        work_queue = config.work_queue
        if work_queue is None:
            self._owned_queue = work_queue = LocalWorkQueue()

        self._sequencer = StepSequencer(
            registry=self._registry,
            session_maker=config.session_maker,
            work_queue=work_queue,
            emitter=emitter,
            config=config.sequencer_config,
        )

        if self._owned_queue is not None:
            self._owned_queue.register_job(
                config.sequencer_config.job_name,
                self._sequencer.process_step_job,
                queue_name=config.sequencer_config.queue_name,
            )
            app_config.on_shutdown.append(self._owned_queue.close)

        # Create dependency providers
        def provide_registry() -> StepHandlerRegistry:
            return self._registry  # type: ignore[return-value]

        def provide_sequencer() -> StepSequencer:
            return self._sequencer  # type: ignore[return-value]

        app_config.dependencies[config.dependency_key_registry] = Provide(
            provide_registry,
            sync_to_thread=False,
        )
        app_config.dependencies[config.dependency_key_sequencer] = Provide(
            provide_sequencer,
            sync_to_thread=False,
        )

        if config.enable_api:
            from litestar import Router

            from litestar_stepqueue.web.controllers import StepQueueController
            from litestar_stepqueue.web.exceptions import exception_handlers

            step_queue_router = Router(
                path=config.api_path_prefix,
                route_handlers=[StepQueueController],
                guards=config.api_guards,
                tags=config.api_tags,
                include_in_schema=config.include_api_in_schema,
            )
            app_config.route_handlers.append(step_queue_router)
            app_config.exception_handlers.update(exception_handlers)  # type: ignore[arg-type]

        return app_config
