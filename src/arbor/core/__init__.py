"""Core components of the Arbor component container.

This module provides the building blocks of Arbor's inversion-of-control
container: descriptors, the dependency graph, the resolver, the component
store and the lifecycle event bus.

Key Components:
    ComponentRegistry: Ordered feed of component descriptors
    DependencyGraph: Validates a feed and derives its construction order
    Resolver: Builds components in order and wires their dependencies
    ComponentStore: Thread-safe instance storage with access statistics
    LifecycleEventBus: Synchronous dispatch of lifecycle events
    ComponentContainer: Ties the above together behind a small API

Usage Example:
    >>> from arbor.core import ComponentContainer, ComponentRegistry
    >>>
    >>> registry = ComponentRegistry()
    >>> registry.register_class(Database)
    >>> registry.register_class(UserService)
    >>>
    >>> container = ComponentContainer(registry)
    >>> container.initialize()
    >>> service = container[UserService]

For more detailed examples, see the individual module documentation.
"""

from arbor.core.analyzer import InjectDecision, TypeAnalyzer
from arbor.core.config import ContainerConfig
from arbor.core.container import ComponentContainer, ContainerState
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
from arbor.core.errors import (
    AlreadyRegisteredError,
    ArborError,
    CircularDependencyError,
    ComponentConstructionError,
    ComponentNotFoundError,
    ConfigurationError,
    ContainerStateError,
    DuplicateRegistrationError,
    MissingDependencyError,
    RegistrationError,
    ResolutionError,
    TypeAnalysisError,
)
from arbor.core.events import (
    ComponentCreated,
    InitializationCompleted,
    InitializationStarted,
    LifecycleEvent,
    LifecycleEventBus,
    LifecycleListener,
    ListenerDefinition,
)
from arbor.core.graph import ConstructionPlan, DependencyGraph, build_plan
from arbor.core.registry import (
    ComponentDescriptor,
    ComponentRegistry,
    Dependency,
    ResolvedDependencies,
    Scope,
)
from arbor.core.resolver import Resolver
from arbor.core.store import ComponentStats, ComponentStore

__all__ = [
    # Container
    "ComponentContainer",
    "ContainerState",
    "ContainerConfig",
    # Registry
    "ComponentRegistry",
    "ComponentDescriptor",
    "Dependency",
    "ResolvedDependencies",
    "Scope",
    # Graph and resolution
    "DependencyGraph",
    "ConstructionPlan",
    "build_plan",
    "Resolver",
    "TypeAnalyzer",
    "InjectDecision",
    # Store
    "ComponentStore",
    "ComponentStats",
    # Events
    "LifecycleEvent",
    "InitializationStarted",
    "ComponentCreated",
    "InitializationCompleted",
    "LifecycleEventBus",
    "LifecycleListener",
    "ListenerDefinition",
    # Decorators
    "component",
    "singleton",
    "prototype",
    "lifecycle_listener",
    "get_container",
    "get_default_registry",
    "get_default_listeners",
    "reset_container",
    # Errors
    "ArborError",
    "RegistrationError",
    "DuplicateRegistrationError",
    "AlreadyRegisteredError",
    "ResolutionError",
    "MissingDependencyError",
    "CircularDependencyError",
    "ComponentConstructionError",
    "ComponentNotFoundError",
    "ContainerStateError",
    "ConfigurationError",
    "TypeAnalysisError",
]
