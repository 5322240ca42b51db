"""Component descriptors and the registry feed consumed by the container.

This module implements the component registry, the single source of truth
for every component the container may build. A registry is populated before
the container initializes (by hand, by the ``@component`` decorator, or by a
generated table) and is frozen once initialization starts.

Classes:
    Scope: Enumeration of component lifecycle scopes (singleton, prototype)
    Dependency: One declared dependency of a component
    ComponentDescriptor: Complete static metadata for a component
    ResolvedDependencies: Read-only bundle of dependency instances for a factory
    ComponentRegistry: Ordered registry of descriptors keyed by type identifier

Key Concepts:
    - Components are identified by a type identifier, normally the class itself
    - Each descriptor has a scope determining its lifecycle
    - Dependencies are required (absence is fatal) or optional (resolve to None)
    - Iteration order is registration order, which fixes construction order

Example:
    >>> registry = ComponentRegistry()
    >>> registry.register_class(Database)
    >>> registry.register(
    ...     ComponentDescriptor(
    ...         type_id=UserRepository,
    ...         factory=lambda deps: UserRepository(deps[Database]),
    ...         dependencies=(Dependency(Database),),
    ...     )
    ... )
    >>> [d.name for d in registry.all_descriptors()]
    ['Database', 'UserRepository']

See Also:
    - arbor.core.graph: Turns the descriptors into a construction plan
    - arbor.core.analyzer: Derives dependencies from constructor type hints
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Hashable, Iterator, Mapping

from .errors import DuplicateRegistrationError, RegistrationError, type_name


class Scope(Enum):
    """Component lifecycle scopes."""

    SINGLETON = "singleton"  # One cached instance per container
    PROTOTYPE = "prototype"  # New instance for each retrieval


@dataclass(frozen=True)
class Dependency:
    """A single declared dependency of a component.

    Attributes:
        target: Type identifier of the component depended upon
        required: False if the dependency resolves to None when unavailable
        name: Keyword used when passing the value to a class constructor
    """

    target: Hashable
    required: bool = True
    name: str | None = None


class ResolvedDependencies(Mapping):
    """Read-only mapping of dependency type identifiers to instances.

    Declared optional dependencies that could not be resolved map to None.
    Looking up an undeclared key raises KeyError.
    """

    def __init__(self, values: dict[Hashable, Any]):
        self._values = dict(values)

    def __getitem__(self, key: Hashable) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        names = ", ".join(
            f"{type_name(k)}={'absent' if v is None else type(v).__name__}"
            for k, v in self._values.items()
        )
        return f"ResolvedDependencies({names})"


Factory = Callable[[ResolvedDependencies], Any]


@dataclass(frozen=True)
class ComponentDescriptor:
    """Complete static metadata for a component.

    Descriptors are immutable once created; the container only ever reads
    them.

    Attributes:
        type_id: Unique identifier of the component's declared type
        factory: Callable taking a ResolvedDependencies bundle, returning an instance
        name: Display name used in diagnostics and events
        scope: Lifecycle scope for the component
        dependencies: Ordered declared dependencies
    """

    type_id: Hashable
    factory: Factory
    name: str = ""
    scope: Scope = Scope.SINGLETON
    dependencies: tuple[Dependency, ...] = field(default_factory=tuple)

    def __post_init__(self):
        """Validate and normalize descriptor data."""
        if not callable(self.factory):
            raise RegistrationError(
                f"Factory for '{type_name(self.type_id)}' must be callable, "
                f"got {type(self.factory).__name__}",
                type_id=self.type_id,
            )
        if not isinstance(self.scope, Scope):
            raise RegistrationError(
                f"Scope for '{type_name(self.type_id)}' must be a Scope, got {self.scope!r}",
                type_id=self.type_id,
            )
        # Frozen dataclass: normalize through object.__setattr__
        if not self.name:
            object.__setattr__(self, "name", type_name(self.type_id))
        deps = tuple(self.dependencies)
        for dep in deps:
            if not isinstance(dep, Dependency):
                raise RegistrationError(
                    f"Dependencies of '{self.name}' must be Dependency objects, got {dep!r}",
                    type_id=self.type_id,
                )
        object.__setattr__(self, "dependencies", deps)

    @classmethod
    def for_class(
        cls,
        component_cls: type,
        *,
        scope: Scope = Scope.SINGLETON,
        type_id: Hashable | None = None,
        name: str | None = None,
    ) -> ComponentDescriptor:
        """Build a descriptor whose factory calls the class constructor.

        Dependencies are derived from the ``__init__`` type hints: ``T`` is a
        required dependency, ``Optional[T]`` an optional one. Parameters that
        are not injected keep their default values.

        Args:
            component_cls: The class to construct
            scope: Component scope (default: singleton)
            type_id: Key to register under (defaults to the class)
            name: Display name (defaults to the class name)
        """
        from .analyzer import TypeAnalyzer

        dependencies = tuple(TypeAnalyzer().dependencies_for(component_cls))

        def factory(deps: ResolvedDependencies) -> Any:
            kwargs = {dep.name: deps.get(dep.target) for dep in dependencies}
            return component_cls(**kwargs)

        factory.__qualname__ = f"{component_cls.__qualname__}.__init__"

        return cls(
            type_id=component_cls if type_id is None else type_id,
            factory=factory,
            name=name or type_name(component_cls),
            scope=scope,
            dependencies=dependencies,
        )

    @property
    def required_dependencies(self) -> tuple[Dependency, ...]:
        return tuple(d for d in self.dependencies if d.required)

    @property
    def optional_dependencies(self) -> tuple[Dependency, ...]:
        return tuple(d for d in self.dependencies if not d.required)


class ComponentRegistry:
    """Ordered registry of component descriptors.

    The registry only grows, and only until it is frozen. Iteration always
    follows registration order.
    """

    def __init__(self, descriptors: list[ComponentDescriptor] | None = None):
        """Initialize a registry, optionally pre-populated."""
        self._descriptors: dict[Hashable, ComponentDescriptor] = {}
        self._frozen = False

        for descriptor in descriptors or []:
            self.register(descriptor)

    def register(self, descriptor: ComponentDescriptor) -> ComponentDescriptor:
        """Add a descriptor to the registry.

        Raises:
            DuplicateRegistrationError: If the type identifier is already taken
            RegistrationError: If the registry is frozen
        """
        if self._frozen:
            raise RegistrationError(
                f"Cannot register '{descriptor.name}': the registry is frozen",
                type_id=descriptor.type_id,
            )
        if descriptor.type_id in self._descriptors:
            raise DuplicateRegistrationError(descriptor.type_id)

        self._descriptors[descriptor.type_id] = descriptor
        return descriptor

    def register_class(
        self,
        component_cls: type,
        *,
        scope: Scope = Scope.SINGLETON,
        type_id: Hashable | None = None,
        name: str | None = None,
    ) -> ComponentDescriptor:
        """Register a class using dependencies derived from its constructor."""
        return self.register(
            ComponentDescriptor.for_class(component_cls, scope=scope, type_id=type_id, name=name)
        )

    def get(self, type_id: Hashable) -> ComponentDescriptor | None:
        """Get the descriptor for a type identifier, or None."""
        return self._descriptors.get(type_id)

    def all_descriptors(self) -> list[ComponentDescriptor]:
        """All descriptors in registration order."""
        return list(self._descriptors.values())

    def freeze(self) -> None:
        """Make the registry read-only."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def copy(self) -> ComponentRegistry:
        """An unfrozen registry with the same descriptors."""
        return ComponentRegistry(self.all_descriptors())

    def clear(self) -> None:
        """Remove all descriptors from an unfrozen registry."""
        if self._frozen:
            raise RegistrationError("Cannot clear a frozen registry")
        self._descriptors.clear()

    def __len__(self) -> int:
        return len(self._descriptors)

    def __contains__(self, type_id: Hashable) -> bool:
        return type_id in self._descriptors

    def __iter__(self) -> Iterator[ComponentDescriptor]:
        return iter(list(self._descriptors.values()))
