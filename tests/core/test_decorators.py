"""Tests for the global decorators and the default container."""

import pytest

from arbor.core.config import ContainerConfig
from arbor.core.container import ContainerState
from arbor.core.decorators import (
    component,
    get_container,
    get_default_listeners,
    get_default_registry,
    lifecycle_listener,
    prototype,
    reset_container,
    singleton,
)
from arbor.core.errors import DuplicateRegistrationError
from arbor.core.events import ComponentCreated, InitializationCompleted
from arbor.core.registry import ComponentRegistry, Scope


class Clock:
    pass


class Scheduler:
    def __init__(self, clock: Clock):
        self.clock = clock


@pytest.mark.unit
class TestComponentDecorator:
    def test_bare_decorator(self):
        decorated = component(Clock)
        assert decorated is Clock
        descriptor = get_default_registry().get(Clock)
        assert descriptor.scope is Scope.SINGLETON
        assert descriptor.dependencies == ()

    def test_with_options(self):
        component(scope=Scope.PROTOTYPE, type_id="clock", name="WallClock")(Clock)
        descriptor = get_default_registry().get("clock")
        assert descriptor.scope is Scope.PROTOTYPE
        assert descriptor.name == "WallClock"

    def test_custom_registry(self):
        registry = ComponentRegistry()
        component(Clock, registry=registry)
        assert Clock in registry
        assert Clock not in get_default_registry()

    def test_singleton_and_prototype_helpers(self):
        singleton(Clock)
        prototype(Scheduler)
        assert get_default_registry().get(Clock).scope is Scope.SINGLETON
        assert get_default_registry().get(Scheduler).scope is Scope.PROTOTYPE

    def test_duplicate(self):
        component(Clock)
        with pytest.raises(DuplicateRegistrationError):
            component(Clock)

    def test_rejects_functions(self):
        with pytest.raises(TypeError, match="only be applied to classes"):

            @component
            def make_clock():
                return Clock()

    def test_local_class(self):
        @component
        class Local:
            pass

        assert Local in get_default_registry()


@pytest.mark.unit
class TestLifecycleListenerDecorator:
    def test_collects_definition(self):
        @lifecycle_listener(ComponentCreated, name="timer")
        def on_created(event):
            pass

        [definition] = get_default_listeners()
        assert definition.name == "timer"
        assert definition.listener is on_created
        assert definition.event_types == (ComponentCreated,)

    def test_name_defaults_to_qualname(self):
        @lifecycle_listener()
        def on_anything(event):
            pass

        [definition] = get_default_listeners()
        assert definition.name.endswith("on_anything")
        assert definition.event_types == ()

    def test_bare_usage_rejected(self):
        with pytest.raises(TypeError, match="not a lifecycle event type"):

            @lifecycle_listener
            def on_anything(event):
                pass


@pytest.mark.unit
class TestDefaultContainer:
    def test_built_from_default_feeds(self):
        created = []
        component(Scheduler)
        component(Clock)
        lifecycle_listener(ComponentCreated)(lambda e: created.append(e.type_id))

        container = get_container()
        container.initialize()

        assert container.state is ContainerState.READY
        assert container[Scheduler].clock is container[Clock]
        assert created == [Clock, Scheduler]

    def test_same_instance_until_reset(self):
        first = get_container()
        assert get_container() is first
        reset_container()
        assert get_container() is not first

    def test_config_applies_on_first_call(self):
        container = get_container(ContainerConfig(name="jobs"))
        assert container.config.name == "jobs"
        assert get_container(ContainerConfig(name="ignored")).config.name == "jobs"

    def test_reset_clears_feeds(self):
        component(Clock)
        lifecycle_listener(InitializationCompleted)(lambda e: None)
        get_container().initialize()

        reset_container()
        assert len(get_default_registry()) == 0
        assert not get_default_registry().frozen
        assert get_default_listeners() == []

    def test_listener_declared_after_container_is_delivered(self):
        container = get_container()
        created = []

        @lifecycle_listener(ComponentCreated)
        def on_created(event):
            created.append(event.type_id)

        component(Clock)
        container.initialize()

        assert created == [Clock]
        assert len(get_default_listeners()) == 1
