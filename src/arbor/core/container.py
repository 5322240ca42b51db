"""The component container: registration, initialization and lookup.

A container consumes a registry feed of component descriptors, validates
their dependency graph, constructs them in dependency order and then serves
the resulting instances to any number of concurrent callers.

States:
    CREATED       Feed loaded, nothing built; manual registration allowed
    INITIALIZING  Graph validated, components being built on one thread
    READY         Terminal success; concurrent lookups and registrations
    FAILED        Terminal error; the first fatal error is kept in ``error``

Example:
    >>> registry = ComponentRegistry()
    >>> registry.register_class(Database)
    >>> registry.register_class(UserRepository)
    >>> container = ComponentContainer(registry)
    >>> container.initialize()
    >>> container.get_component(UserRepository).db is container[Database]
    True
"""

from __future__ import annotations

import threading
import time
from enum import Enum
from typing import Any, Hashable, Iterable, TypeVar, Union

from loguru import logger

from .config import ContainerConfig
from .errors import (
    AlreadyRegisteredError,
    ComponentNotFoundError,
    ContainerStateError,
    RegistrationError,
    type_name,
)
from .events import InitializationStarted, LifecycleEventBus, Listener, ListenerDefinition
from .graph import build_plan
from .registry import ComponentRegistry, Scope
from .resolver import Resolver
from .store import ComponentStats, ComponentStore

T = TypeVar("T")


class ContainerState(Enum):
    """Lifecycle states of a container."""

    CREATED = "created"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


class ComponentContainer:
    """Inversion-of-control container for application components.

    Args:
        registry: Descriptor feed (a fresh empty registry if omitted)
        listeners: Lifecycle listeners or ListenerDefinitions to subscribe up front
        config: Container settings
    """

    def __init__(
        self,
        registry: ComponentRegistry | None = None,
        *,
        listeners: Iterable[Union[Listener, ListenerDefinition]] = (),
        config: ContainerConfig | None = None,
    ):
        self.registry = registry if registry is not None else ComponentRegistry()
        self.config = config or ContainerConfig()
        self.store = ComponentStore()
        self.event_bus = LifecycleEventBus()

        self._state = ContainerState.CREATED
        self._error: BaseException | None = None
        self._state_lock = threading.RLock()
        self._initializing_thread: int | None = None
        self._resolver: Resolver | None = None

        for listener in listeners:
            if isinstance(listener, ListenerDefinition):
                self.subscribe(listener.listener, *listener.event_types, name=listener.name)
            else:
                self.subscribe(listener)

    # State

    @property
    def state(self) -> ContainerState:
        return self._state

    @property
    def error(self) -> BaseException | None:
        """The fatal error that failed initialization, if any."""
        return self._error

    @property
    def is_ready(self) -> bool:
        return self._state is ContainerState.READY

    @property
    def component_count(self) -> int:
        """Number of stored instances visible to the caller."""
        with self._state_lock:
            if self._hidden_from_caller():
                return 0
            return len(self.store)

    def _on_initializing_thread(self) -> bool:
        return self._initializing_thread == threading.get_ident()

    def _hidden_from_caller(self) -> bool:
        """True while the partial store must look empty to the calling thread.

        Call with ``_state_lock`` held.
        """
        return (
            self._state is ContainerState.INITIALIZING
            and self.config.thread_isolation
            and not self._on_initializing_thread()
        )

    def _check_usable(self) -> None:
        if self._state is ContainerState.FAILED:
            raise ContainerStateError(
                f"Container '{self.config.name}' failed to initialize and is unusable: {self._error}"
            )

    # Initialization

    def initialize(self) -> None:
        """Build every component in the registry feed.

        Runs once per container. On success the container is READY; on any
        error it is FAILED, the partially built instances are discarded and
        the error is re-raised.

        Raises:
            DuplicateRegistrationError, MissingDependencyError,
            CircularDependencyError: Graph validation failures
            ComponentConstructionError: A factory raised or returned None
            ContainerStateError: initialize() was already called
        """
        with self._state_lock:
            if self._state is not ContainerState.CREATED:
                raise ContainerStateError(
                    f"Container '{self.config.name}' cannot initialize from state "
                    f"'{self._state.value}'"
                )
            self._state = ContainerState.INITIALIZING
            self._initializing_thread = threading.get_ident()

        started_at = time.perf_counter()
        try:
            self.registry.freeze()
            descriptors = self.registry.all_descriptors()
            logger.info(
                f"Initializing container '{self.config.name}' with {len(descriptors)} components"
            )
            self.event_bus.publish(
                InitializationStarted(expected_count=len(descriptors), container=self)
            )
            # Listeners may have registered instances above; they count as provided
            plan = build_plan(descriptors, provided=self.store.keys())
            self._resolver = Resolver(
                self.store,
                {d.type_id: d for d in descriptors},
                self.event_bus,
                container=self,
                eager_prototypes=self.config.eager_prototypes,
            )
            count = self._resolver.resolve(plan, started_at=started_at)
        except BaseException as exc:
            self._fail(exc)
            raise

        with self._state_lock:
            self._state = ContainerState.READY
            self._initializing_thread = None
        logger.info(
            f"Container '{self.config.name}' ready with {count} components "
            f"in {time.perf_counter() - started_at:.3f}s"
        )

    def _fail(self, exc: BaseException) -> None:
        with self._state_lock:
            self._state = ContainerState.FAILED
            self._error = exc
            self._initializing_thread = None
            self._resolver = None
            # Drop everything built so far along with the failed container
            self.store = ComponentStore()
        logger.error(f"Container '{self.config.name}' failed to initialize: {exc}")

    # Registration

    def register_component(self, instance: Any, type_id: Hashable | None = None) -> None:
        """Store a ready-made instance, bypassing factories and the graph.

        Args:
            instance: The object to store
            type_id: Key to store it under (defaults to ``type(instance)``)

        Raises:
            AlreadyRegisteredError: If the key is occupied by an instance or descriptor
            ContainerStateError: If the container failed, or another thread is initializing it
        """
        if instance is None:
            raise RegistrationError("Cannot register None as a component")
        key = type(instance) if type_id is None else type_id

        with self._state_lock:
            self._check_usable()
            if self._state is ContainerState.INITIALIZING and not self._on_initializing_thread():
                raise ContainerStateError(
                    f"Cannot register '{type_name(key)}' while container "
                    f"'{self.config.name}' is initializing on another thread"
                )
            if key in self.registry:
                raise AlreadyRegisteredError(key)
            self.store.insert(key, instance)

        logger.debug(f"Registered instance of {type_name(key)}")

    # Lookup

    def get_component(self, type_id: type[T] | Hashable) -> T | None:
        """Get the component for a type identifier, or None if there is none.

        Singletons are returned from the store; prototypes are built fresh on
        every call once the container is ready.

        Raises:
            ContainerStateError: If the container failed to initialize
            ComponentConstructionError: If a prototype factory fails
        """
        with self._state_lock:
            self._check_usable()
            if self._hidden_from_caller():
                return None
            resolver = self._resolver
            store = self.store

        if resolver is not None:
            return resolver.lookup(type_id)
        return store.get(type_id)

    def get_component_or_fail(self, type_id: type[T] | Hashable) -> T:
        """Get the component for a type identifier.

        Raises:
            ComponentNotFoundError: If no component is available for the key
        """
        instance = self.get_component(type_id)
        if instance is None:
            raise ComponentNotFoundError(type_id)
        return instance

    def has_component(self, type_id: Hashable) -> bool:
        """True if a lookup of the key would currently produce an instance."""
        with self._state_lock:
            if self._hidden_from_caller():
                return False
            if type_id in self.store:
                return True
            descriptor = self.registry.get(type_id)
            return (
                self.is_ready
                and descriptor is not None
                and descriptor.scope is Scope.PROTOTYPE
            )

    def get_stats(self, type_id: Hashable) -> ComponentStats | None:
        """Creation and access statistics of a stored component."""
        with self._state_lock:
            if self._hidden_from_caller():
                return None
            return self.store.stats(type_id)

    # Events

    def subscribe(
        self, listener: Listener, *event_types: type, name: str | None = None
    ) -> Listener:
        """Register a lifecycle listener for some event kinds (all if none given)."""
        return self.event_bus.subscribe(listener, *event_types, name=name)

    def unsubscribe(self, listener: Listener) -> bool:
        return self.event_bus.unsubscribe(listener)

    # Dict-like access

    def __getitem__(self, type_id: Hashable) -> Any:
        return self.get_component_or_fail(type_id)

    def __contains__(self, type_id: Hashable) -> bool:
        return self.has_component(type_id)

    def __repr__(self) -> str:
        return (
            f"ComponentContainer(name={self.config.name!r}, state={self._state.value}, "
            f"components={len(self.store)})"
        )
