"""Lifecycle events and their synchronous dispatch.

The container publishes three kinds of events while it initializes:

    InitializationStarted(expected_count)
    ComponentCreated(name, type_id, duration)
    InitializationCompleted(count, duration)

Events are immutable values; nothing keeps them after dispatch. Listeners run
synchronously on the publishing thread, in subscription order, so a slow
listener delays the next component. A listener that raises is logged and
skipped; it never stops the remaining listeners or the container.

Example:
    >>> bus = LifecycleEventBus()
    >>> created = []
    >>> bus.subscribe(lambda e: created.append(e.name), ComponentCreated)
    >>> bus.publish(ComponentCreated(name="Database", type_id=Database, duration=0.01))
    >>> created
    ['Database']
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Hashable, Protocol, Union, runtime_checkable

from loguru import logger

if TYPE_CHECKING:
    from .container import ComponentContainer


@dataclass(frozen=True)
class LifecycleEvent:
    """Base class for all container lifecycle events."""

    timestamp: float = field(default_factory=time.time, compare=False, kw_only=True)
    container: ComponentContainer | None = field(
        default=None, compare=False, repr=False, kw_only=True
    )


@dataclass(frozen=True)
class InitializationStarted(LifecycleEvent):
    """Emitted when initialization begins, before any component is built."""

    expected_count: int = 0


@dataclass(frozen=True)
class ComponentCreated(LifecycleEvent):
    """Emitted after each component's factory succeeds, in construction order."""

    name: str = ""
    type_id: Hashable = None
    duration: float = 0.0


@dataclass(frozen=True)
class InitializationCompleted(LifecycleEvent):
    """Emitted once every descriptor has been built."""

    count: int = 0
    duration: float = 0.0


@runtime_checkable
class LifecycleListener(Protocol):
    """Object-style listener interface."""

    def on_lifecycle_event(self, event: LifecycleEvent) -> None: ...


Listener = Union[Callable[[LifecycleEvent], Any], LifecycleListener]


@dataclass
class _Subscription:
    listener: Listener
    event_types: tuple[type[LifecycleEvent], ...]
    name: str

    def accepts(self, event: LifecycleEvent) -> bool:
        return not self.event_types or isinstance(event, self.event_types)

    def deliver(self, event: LifecycleEvent) -> None:
        if isinstance(self.listener, LifecycleListener):
            self.listener.on_lifecycle_event(event)
        else:
            self.listener(event)


def _listener_name(listener: Listener) -> str:
    return getattr(listener, "__qualname__", None) or type(listener).__qualname__


class LifecycleEventBus:
    """Synchronous, ordered dispatcher of lifecycle events."""

    def __init__(self):
        self._subscriptions: list[_Subscription] = []
        self._lock = threading.Lock()

    def subscribe(
        self,
        listener: Listener,
        *event_types: type[LifecycleEvent],
        name: str | None = None,
    ) -> Listener:
        """Register a listener for some event kinds (all kinds if none given).

        Returns the listener, so this works as a decorator.
        """
        if not (callable(listener) or isinstance(listener, LifecycleListener)):
            raise TypeError(f"Listener must be callable, got {type(listener).__name__}")
        for event_type in event_types:
            if not (isinstance(event_type, type) and issubclass(event_type, LifecycleEvent)):
                raise TypeError(f"{event_type!r} is not a lifecycle event type")

        with self._lock:
            self._subscriptions.append(
                _Subscription(listener, tuple(event_types), name or _listener_name(listener))
            )
        logger.debug(
            f"Registered lifecycle listener {name or _listener_name(listener)} for "
            f"{', '.join(t.__name__ for t in event_types) or 'all events'}"
        )
        return listener

    def unsubscribe(self, listener: Listener) -> bool:
        """Remove every subscription of a listener. Returns True if any existed."""
        with self._lock:
            before = len(self._subscriptions)
            self._subscriptions = [s for s in self._subscriptions if s.listener is not listener]
            return len(self._subscriptions) != before

    def publish(self, event: LifecycleEvent) -> None:
        """Dispatch an event to every interested listener, in subscription order."""
        # Snapshot so listeners may subscribe from inside a callback
        with self._lock:
            subscriptions = list(self._subscriptions)
        for subscription in subscriptions:
            if not subscription.accepts(event):
                continue
            try:
                subscription.deliver(event)
            except Exception:
                logger.exception(
                    f"Lifecycle listener {subscription.name} failed on {type(event).__name__}"
                )

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscriptions)


@dataclass(frozen=True)
class ListenerDefinition:
    """A named listener collected before the container exists."""

    name: str
    listener: Listener
    event_types: tuple[type[LifecycleEvent], ...] = ()
