"""Shared test fixtures and utilities."""

import pytest
from loguru import logger

from arbor.core.container import ComponentContainer
from arbor.core.decorators import reset_container
from arbor.core.events import LifecycleEvent
from arbor.core.registry import ComponentRegistry


@pytest.fixture
def registry():
    """Create a fresh, empty registry."""
    return ComponentRegistry()


@pytest.fixture
def make_container(registry):
    """Register classes on the registry fixture and build a container over it."""

    def factory(*classes, **kwargs):
        for cls in classes:
            registry.register_class(cls)
        return ComponentContainer(registry, **kwargs)

    return factory


@pytest.fixture
def recorded_events():
    """A listener that records every event it receives."""
    events: list[LifecycleEvent] = []

    def record(event):
        events.append(event)

    record.events = events
    return record


@pytest.fixture(autouse=True)
def clean_default_container():
    """Reset the process-wide default container around every test."""
    reset_container()
    yield
    reset_container()


@pytest.fixture
def log_messages():
    """Capture loguru messages emitted during a test."""
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)

