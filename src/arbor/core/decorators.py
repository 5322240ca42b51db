"""Global decorators feeding the process-wide default container.

Decorated classes and listeners are collected at import time into a default
registry and a default listener feed. The first call to get_container()
builds a container from both feeds; reset_container() discards it so the
next call starts over.

Decorators:
    @component: Register a class (singleton unless scope says otherwise)
    @singleton: Register a singleton class
    @prototype: Register a prototype class (new instance per retrieval)
    @lifecycle_listener: Collect a named lifecycle listener

Functions:
    get_default_registry: The registry the decorators write into
    get_container: Get or create the default container
    reset_container: Forget the default container and clear both feeds

Example:
    >>> from arbor import component, get_container
    >>>
    >>> @component
    ... class Database:
    ...     pass
    >>>
    >>> @component
    ... class UserService:
    ...     def __init__(self, db: Database):
    ...         self.db = db  # Auto-injected
    >>>
    >>> container = get_container()
    >>> container.initialize()
    >>> container[UserService].db is container[Database]
    True

Note:
    These decorators use global state. For more control or multiple
    containers, build a ComponentRegistry and pass it to ComponentContainer.
"""

from __future__ import annotations

import inspect
import threading
from typing import Callable, Hashable, TypeVar

from .config import ContainerConfig
from .container import ComponentContainer
from .events import LifecycleEvent, Listener, ListenerDefinition, _listener_name
from .registry import ComponentRegistry, Scope

T = TypeVar("T")

_default_registry = ComponentRegistry()
_default_listeners: list[ListenerDefinition] = []
_default_container: ComponentContainer | None = None
_lock = threading.Lock()


def get_default_registry() -> ComponentRegistry:
    """The registry that @component writes into."""
    return _default_registry


def get_default_listeners() -> list[ListenerDefinition]:
    """Listener definitions collected by @lifecycle_listener."""
    return list(_default_listeners)


def component(
    cls: type[T] | None = None,
    *,
    scope: Scope = Scope.SINGLETON,
    type_id: Hashable | None = None,
    name: str | None = None,
    registry: ComponentRegistry | None = None,
) -> type[T] | Callable[[type[T]], type[T]]:
    """Register a class as a component.

    Dependencies are read from the class ``__init__`` type hints. Uses the
    default registry unless 'registry' is given.

    Args:
        cls: The class to register (when used without parentheses)
        scope: Component scope (default: singleton)
        type_id: Key to register under (defaults to the class)
        name: Display name (defaults to the key's qualified name)
        registry: Target registry

    Returns:
        The class itself, unchanged

    Examples:
        >>> @component
        ... class Database:
        ...     pass

        >>> @component(type_id=Cache, scope=Scope.PROTOTYPE)
        ... class RedisCache(Cache):
        ...     pass
    """

    def decorator(cls: type[T]) -> type[T]:
        if not inspect.isclass(cls):
            raise TypeError("@component decorator can only be applied to classes")
        target = registry if registry is not None else _default_registry
        target.register_class(cls, scope=scope, type_id=type_id, name=name)
        return cls

    if cls is None:
        return decorator
    return decorator(cls)


def singleton(
    cls: type[T] | None = None,
    *,
    type_id: Hashable | None = None,
    name: str | None = None,
    registry: ComponentRegistry | None = None,
) -> type[T] | Callable[[type[T]], type[T]]:
    """Register a class as a singleton component."""
    return component(cls, scope=Scope.SINGLETON, type_id=type_id, name=name, registry=registry)


def prototype(
    cls: type[T] | None = None,
    *,
    type_id: Hashable | None = None,
    name: str | None = None,
    registry: ComponentRegistry | None = None,
) -> type[T] | Callable[[type[T]], type[T]]:
    """Register a class as a prototype component."""
    return component(cls, scope=Scope.PROTOTYPE, type_id=type_id, name=name, registry=registry)


def lifecycle_listener(
    *event_types: type[LifecycleEvent], name: str | None = None
) -> Callable[[Listener], Listener]:
    """Collect a listener for the default container.

    If the default container already exists the listener is subscribed to it
    as well; events it has already published are not replayed.

    Examples:
        >>> @lifecycle_listener(ComponentCreated, name="startup-timer")
        ... def log_creation(event):
        ...     print(event.name, event.duration)
    """
    for event_type in event_types:
        if not (isinstance(event_type, type) and issubclass(event_type, LifecycleEvent)):
            raise TypeError(
                f"{event_type!r} is not a lifecycle event type; "
                "use @lifecycle_listener() without positional arguments for all events"
            )

    def decorator(listener: Listener) -> Listener:
        definition = ListenerDefinition(
            name=name or _listener_name(listener),
            listener=listener,
            event_types=tuple(event_types),
        )
        with _lock:
            _default_listeners.append(definition)
            # A default container built earlier still receives later listeners
            if _default_container is not None:
                _default_container.subscribe(
                    definition.listener, *definition.event_types, name=definition.name
                )
        return listener

    return decorator


def get_container(config: ContainerConfig | None = None) -> ComponentContainer:
    """Get or create the default container.

    The container is built from the default registry and listener feed on
    the first call; 'config' only applies to that first call.
    """
    global _default_container
    with _lock:
        if _default_container is None:
            _default_container = ComponentContainer(
                _default_registry,
                listeners=_default_listeners,
                config=config,
            )
        return _default_container


def reset_container() -> None:
    """Discard the default container and empty both default feeds."""
    global _default_container, _default_registry
    with _lock:
        _default_container = None
        # The old registry may be frozen; start from a fresh one
        _default_registry = ComponentRegistry()
        _default_listeners.clear()
