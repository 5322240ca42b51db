"""Arbor - a dependency-ordered component container for Python applications.

Arbor builds an application's long-lived components exactly once, in
dependency order, from a set of component descriptors. It validates the
whole dependency graph before constructing anything, so missing and
circular dependencies are reported up front with the offending path.

Key Features:
    - Dependencies derived from constructor type hints
    - Singleton and prototype scopes
    - Optional dependencies that resolve to None when absent
    - Lifecycle events for startup timing and diagnostics
    - Thread-safe lookups once the container is ready

Quick Start:
    >>> from arbor import component, get_container
    >>>
    >>> @component
    ... class Database:
    ...     def __init__(self):
    ...         self.url = "postgresql://localhost/app"
    >>>
    >>> @component
    ... class UserService:
    ...     def __init__(self, db: Database):  # Automatically injected
    ...         self.db = db
    >>>
    >>> container = get_container()
    >>> container.initialize()
    >>> container[UserService].db.url
    'postgresql://localhost/app'
"""

__version__ = "0.1.0"

from arbor.core.config import ContainerConfig
from arbor.core.container import ComponentContainer, ContainerState
from arbor.core.decorators import (
    component,
    get_container,
    lifecycle_listener,
    prototype,
    reset_container,
    singleton,
)
from arbor.core.errors import (
    AlreadyRegisteredError,
    ArborError,
    CircularDependencyError,
    ComponentConstructionError,
    ComponentNotFoundError,
    ContainerStateError,
    DuplicateRegistrationError,
    MissingDependencyError,
)
from arbor.core.events import (
    ComponentCreated,
    InitializationCompleted,
    InitializationStarted,
    LifecycleEvent,
    LifecycleListener,
)
from arbor.core.registry import ComponentDescriptor, ComponentRegistry, Dependency, Scope

__all__ = [
    # Container
    "ComponentContainer",
    "ContainerState",
    "ContainerConfig",
    # Registration
    "ComponentRegistry",
    "ComponentDescriptor",
    "Dependency",
    "Scope",
    "component",
    "singleton",
    "prototype",
    # Lifecycle
    "LifecycleEvent",
    "InitializationStarted",
    "ComponentCreated",
    "InitializationCompleted",
    "LifecycleListener",
    "lifecycle_listener",
    # Default container
    "get_container",
    "reset_container",
    # Errors
    "ArborError",
    "DuplicateRegistrationError",
    "AlreadyRegisteredError",
    "MissingDependencyError",
    "CircularDependencyError",
    "ComponentConstructionError",
    "ComponentNotFoundError",
    "ContainerStateError",
]
