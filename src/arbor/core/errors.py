"""Exception hierarchy for clear error reporting in the component container.

Each exception type represents one failure mode of building or using the
container and carries the context needed to act on it.

Exception Hierarchy:
    ArborError: Base exception for all arbor errors
    ├── RegistrationError: Component registration failures
    │   ├── DuplicateRegistrationError: Two descriptors for one type
    │   └── AlreadyRegisteredError: Instance key already occupied
    ├── ResolutionError: Component resolution failures
    │   ├── MissingDependencyError: Required dependency has no provider
    │   ├── CircularDependencyError: Cycle among required dependencies
    │   ├── ComponentConstructionError: A factory failed
    │   └── ComponentNotFoundError: Lookup of an unknown component
    ├── ContainerStateError: Operation not allowed in the current state
    ├── TypeAnalysisError: Constructor type hints cannot be analyzed
    └── ConfigurationError: Invalid container configuration

Usage Patterns:
    - MissingDependencyError: consumer, missing
    - CircularDependencyError: cycle (ordered path ending with the repeat)
    - ComponentConstructionError: type_id, cause
    - ComponentNotFoundError: type_id

Example:
    >>> try:
    ...     container.initialize()
    ... except CircularDependencyError as e:
    ...     print(" -> ".join(type_name(t) for t in e.cycle))
    ... except ArborError as e:
    ...     print(f"Container failed: {e}")
"""

from __future__ import annotations

from typing import Any, Hashable, Sequence


def type_name(type_id: Any) -> str:
    """Human readable name for a type identifier."""
    name = getattr(type_id, "__qualname__", None) or getattr(type_id, "__name__", None)
    return name if isinstance(name, str) else str(type_id)


class ArborError(Exception):
    """Base exception for all arbor errors."""

    pass


class RegistrationError(ArborError):
    """Raised when a descriptor or instance cannot be registered."""

    def __init__(self, message: str, type_id: Hashable | None = None):
        super().__init__(message)
        self.type_id = type_id


class DuplicateRegistrationError(RegistrationError):
    """Raised when a second descriptor is registered for the same type.

    Detected either when the descriptor is added to the registry or when the
    dependency graph is built, always before any component is constructed.
    """

    def __init__(self, type_id: Hashable, reason: str | None = None):
        message = f"Component '{type_name(type_id)}' is already registered"
        if reason:
            message += f" ({reason})"
        super().__init__(message, type_id=type_id)


class AlreadyRegisteredError(RegistrationError):
    """Raised when an instance is stored under an occupied key."""

    def __init__(self, type_id: Hashable):
        super().__init__(
            f"An instance of '{type_name(type_id)}' is already registered in the container",
            type_id=type_id,
        )


class ResolutionError(ArborError):
    """Raised when a component or one of its dependencies cannot be resolved."""

    def __init__(
        self, message: str, type_id: Hashable | None = None, cause: Exception | None = None
    ):
        super().__init__(message)
        self.type_id = type_id
        self.cause = cause


class MissingDependencyError(ResolutionError):
    """Raised when a required dependency has no descriptor and no instance."""

    def __init__(self, consumer: Hashable, missing: Hashable):
        self.consumer = consumer
        self.missing = missing
        super().__init__(
            f"Component '{type_name(consumer)}' requires '{type_name(missing)}', "
            f"but no component provides it"
            f"\n\nHint: Register '{type_name(missing)}' or declare the dependency optional",
            type_id=consumer,
        )


class CircularDependencyError(ResolutionError):
    """Raised when the required dependencies of some components form a cycle.

    The cycle is the ordered path of type identifiers starting and ending
    with the repeated node, e.g. ``[X, Y, X]``.
    """

    def __init__(self, cycle: Sequence[Hashable]):
        self.cycle = list(cycle)
        cycle_str = " → ".join(type_name(t) for t in self.cycle)

        super().__init__(
            f"Circular dependency detected: {cycle_str}",
            type_id=self.cycle[0] if self.cycle else None,
        )


class ComponentConstructionError(ResolutionError):
    """Raised when a component factory fails or returns no instance."""

    def __init__(self, type_id: Hashable, cause: Exception | None = None):
        reason = f"{type(cause).__name__}: {cause}" if cause is not None else "factory returned None"
        super().__init__(
            f"Failed to create component '{type_name(type_id)}': {reason}",
            type_id=type_id,
            cause=cause,
        )


class ComponentNotFoundError(ResolutionError):
    """Raised by strict lookups when no instance or descriptor exists."""

    def __init__(self, type_id: Hashable):
        super().__init__(f"Component '{type_name(type_id)}' not found", type_id=type_id)


class ContainerStateError(ArborError):
    """Raised when an operation is not allowed in the container's current state.

    This occurs when:
    - initialize() is called a second time
    - The container is used after a failed initialization
    """

    pass


class ConfigurationError(ArborError):
    """Raised when the container configuration is invalid."""

    pass


class TypeAnalysisError(ArborError):
    """Raised when a constructor's type hints cannot be turned into dependencies.

    This occurs when:
    - Forward references cannot be resolved
    - A parameter is annotated with a Union of several component types
    """

    def __init__(self, message: str, type_hint: Any = None):
        super().__init__(message)
        self.type_hint = type_hint
