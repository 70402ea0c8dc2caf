"""Tests for StepHandlerRegistry."""

from __future__ import annotations

import pytest

from litestar_stepqueue.core.protocols import StepHandler
from litestar_stepqueue.core.types import StepType
from litestar_stepqueue.engine.registry import StepHandlerRegistry
from litestar_stepqueue.exceptions import HandlerAlreadyRegisteredError, HandlerNotFoundError
from litestar_stepqueue.handlers import WebsiteLoadingHandler
from tests.conftest import RecordingHandler


@pytest.fixture
def registry() -> StepHandlerRegistry:
    """Create an empty registry."""
    return StepHandlerRegistry()


@pytest.mark.unit
class TestStepHandlerRegistry:
    """Tests for StepHandlerRegistry."""

    def test_register_and_get(self, registry: StepHandlerRegistry) -> None:
        """Test registering a handler and looking it up."""
        handler = RecordingHandler()
        registry.register("OK", handler)

        assert registry.get("OK") is handler
        assert registry.get_or_raise("OK") is handler
        assert registry.has_handler("OK")
        assert "OK" in registry
        assert len(registry) == 1

    def test_enum_and_string_keys_match(self, registry: StepHandlerRegistry) -> None:
        """Test an enum member and its value address the same handler."""
        handler = WebsiteLoadingHandler()
        registry.register(StepType.WEBSITE_LOADING, handler)

        assert registry.get("WEBSITE_LOADING") is handler

    def test_missing_handler(self, registry: StepHandlerRegistry) -> None:
        """Test lookups for an unregistered type."""
        assert registry.get("NOPE") is None
        assert not registry.has_handler("NOPE")

        with pytest.raises(HandlerNotFoundError, match="No handler registered for step type: NOPE"):
            registry.get_or_raise("NOPE")

    def test_duplicate_registration(self, registry: StepHandlerRegistry) -> None:
        """Test one handler per step type unless replacement is asked for."""
        first, second = RecordingHandler(), RecordingHandler()
        registry.register("OK", first)

        with pytest.raises(HandlerAlreadyRegisteredError):
            registry.register("OK", second)
        assert registry.get("OK") is first

        registry.register("OK", second, replace=True)
        assert registry.get("OK") is second

    def test_unregister(self, registry: StepHandlerRegistry) -> None:
        """Test removing a handler, including one that is not there."""
        registry.register("OK", RecordingHandler())

        registry.unregister("OK")
        registry.unregister("OK")

        assert len(registry) == 0

    def test_list_step_types(self, registry: StepHandlerRegistry) -> None:
        """Test registered types are listed sorted."""
        registry.register("B", RecordingHandler())
        registry.register("A", RecordingHandler())

        assert registry.list_step_types() == ["A", "B"]

    def test_handlers_satisfy_protocol(self) -> None:
        """Test the built-in and sample handlers satisfy StepHandler."""
        assert isinstance(WebsiteLoadingHandler(), StepHandler)
        assert isinstance(RecordingHandler(), StepHandler)
