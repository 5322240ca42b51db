"""Thread-safe storage for constructed component instances.

The store owns the single reference the container keeps to each singleton.
Inserts happen only while the resolver runs or through explicit manual
registration; lookups never insert. All access goes through one re-entrant
lock so a reader never observes a half-written entry.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Hashable

from .errors import AlreadyRegisteredError, ComponentNotFoundError


@dataclass
class ComponentStats:
    """Creation and access statistics for a stored component.

    Attributes:
        created_at: Monotonic time the instance was stored
        last_accessed: Monotonic time of the most recent lookup
        access_count: Number of successful lookups, including creation
        creation_time: Seconds spent in the factory (0.0 for manual registration)
    """

    created_at: float | None = None
    last_accessed: float | None = None
    access_count: int = 0
    creation_time: float = 0.0


class ComponentStore:
    """Map from type identifier to instance, safe for concurrent use."""

    def __init__(self):
        self._instances: dict[Hashable, Any] = {}
        self._stats: dict[Hashable, ComponentStats] = {}
        self._lock = threading.RLock()

    def insert(self, type_id: Hashable, instance: Any, creation_time: float = 0.0) -> None:
        """Store an instance under a type identifier (first write wins).

        Raises:
            AlreadyRegisteredError: If the key is already occupied
        """
        with self._lock:
            if type_id in self._instances:
                raise AlreadyRegisteredError(type_id)
            now = time.monotonic()
            self._instances[type_id] = instance
            self._stats[type_id] = ComponentStats(
                created_at=now,
                last_accessed=now,
                access_count=1,
                creation_time=creation_time,
            )

    def get(self, type_id: Hashable) -> Any | None:
        """Get an instance, or None if nothing is stored under the key."""
        with self._lock:
            instance = self._instances.get(type_id)
            if instance is not None:
                stats = self._stats[type_id]
                stats.access_count += 1
                stats.last_accessed = time.monotonic()
            return instance

    def get_or_fail(self, type_id: Hashable) -> Any:
        """Get an instance.

        Raises:
            ComponentNotFoundError: If nothing is stored under the key
        """
        instance = self.get(type_id)
        if instance is None:
            raise ComponentNotFoundError(type_id)
        return instance

    def peek(self, type_id: Hashable) -> Any | None:
        """Get an instance without touching its statistics."""
        with self._lock:
            return self._instances.get(type_id)

    def stats(self, type_id: Hashable) -> ComponentStats | None:
        """A snapshot of the statistics for a key."""
        with self._lock:
            stats = self._stats.get(type_id)
            return None if stats is None else ComponentStats(**vars(stats))

    def keys(self) -> list[Hashable]:
        with self._lock:
            return list(self._instances)

    def __contains__(self, type_id: Hashable) -> bool:
        with self._lock:
            return type_id in self._instances

    def __len__(self) -> int:
        with self._lock:
            return len(self._instances)
