"""Instantiation engine: builds components in construction-plan order.

The resolver walks a validated ConstructionPlan once per container lifetime.
For every descriptor it gathers already-built dependencies, calls the
factory, stores singletons, and publishes a ComponentCreated event before
moving on, so listeners observe components strictly in construction order.

Dependency lookup rules:
    - Singleton dependencies come from the store
    - Prototype dependencies are built fresh for each consumer
    - Optional dependencies whose provider has not been processed yet, or
      does not exist, resolve to None

Any factory failure aborts the walk with ComponentConstructionError; the
caller is responsible for discarding the partially filled store.
"""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING, Any, Hashable, Mapping

from loguru import logger

from .errors import ComponentConstructionError, MissingDependencyError, type_name
from .events import ComponentCreated, InitializationCompleted, LifecycleEventBus
from .graph import ConstructionPlan
from .registry import ComponentDescriptor, ResolvedDependencies, Scope
from .store import ComponentStore

if TYPE_CHECKING:
    from .container import ComponentContainer


class Resolver:
    """Constructs components and wires their dependencies.

    Args:
        store: Where singleton instances are kept
        descriptors: Type identifier → descriptor for every known component
        event_bus: Receives ComponentCreated and InitializationCompleted events
        container: Back-reference attached to published events
        eager_prototypes: Build prototype descriptors once while resolving the plan
    """

    def __init__(
        self,
        store: ComponentStore,
        descriptors: Mapping[Hashable, ComponentDescriptor],
        event_bus: LifecycleEventBus,
        *,
        container: ComponentContainer | None = None,
        eager_prototypes: bool = True,
    ):
        self.store = store
        self.descriptors = dict(descriptors)
        self.event_bus = event_bus
        self.container = container
        self.eager_prototypes = eager_prototypes
        self._processed: set[Hashable] = set()
        self._local = threading.local()

    def resolve(self, plan: ConstructionPlan, started_at: float | None = None) -> int:
        """Build every descriptor in the plan.

        Args:
            plan: Validated construction plan
            started_at: perf_counter value initialization began at

        Returns:
            Number of instances in the store afterwards

        Raises:
            ComponentConstructionError: When a factory fails
            AlreadyRegisteredError: If a singleton key is written twice
        """
        started_at = time.perf_counter() if started_at is None else started_at

        for descriptor in plan:
            if descriptor.scope is Scope.PROTOTYPE and not self.eager_prototypes:
                self._processed.add(descriptor.type_id)
                logger.debug(f"Deferring prototype {descriptor.name} until first retrieval")
                continue

            instance, duration = self._construct(descriptor)
            if descriptor.scope is Scope.SINGLETON:
                self.store.insert(descriptor.type_id, instance, creation_time=duration)
            self._processed.add(descriptor.type_id)

            logger.debug(f"Created {descriptor.scope.value} {descriptor.name} in {duration:.6f}s")
            self.event_bus.publish(
                ComponentCreated(
                    name=descriptor.name,
                    type_id=descriptor.type_id,
                    duration=duration,
                    container=self.container,
                )
            )

        count = len(self.store)
        self.event_bus.publish(
            InitializationCompleted(
                count=count,
                duration=time.perf_counter() - started_at,
                container=self.container,
            )
        )
        return count

    def create(self, descriptor: ComponentDescriptor) -> Any:
        """Build a fresh, uncached instance (prototype retrieval)."""
        instance, duration = self._construct(descriptor)
        logger.debug(f"Created prototype {descriptor.name} in {duration:.6f}s")
        return instance

    def _constructing(self) -> set[Hashable]:
        """Thread-local set of type identifiers whose factories are on the stack."""
        if not hasattr(self._local, "constructing"):
            self._local.constructing = set()
        return self._local.constructing

    def _construct(self, descriptor: ComponentDescriptor) -> tuple[Any, float]:
        constructing = self._constructing()
        constructing.add(descriptor.type_id)
        try:
            deps = self._gather(descriptor)
        finally:
            constructing.discard(descriptor.type_id)

        start = time.perf_counter()
        try:
            instance = descriptor.factory(deps)
        except Exception as exc:
            raise ComponentConstructionError(descriptor.type_id, exc) from exc
        duration = time.perf_counter() - start

        if instance is None:
            raise ComponentConstructionError(descriptor.type_id)
        return instance, duration

    def _gather(self, descriptor: ComponentDescriptor) -> ResolvedDependencies:
        values: dict[Hashable, Any] = {}
        for dep in descriptor.dependencies:
            value = self.lookup(dep.target)
            if value is None and dep.required:
                # The plan orders required providers first; reaching this is a bug
                raise MissingDependencyError(descriptor.type_id, dep.target)
            if value is None:
                logger.debug(
                    f"Optional dependency {type_name(dep.target)} of {descriptor.name} is absent"
                )
            values[dep.target] = value
        return ResolvedDependencies(values)

    def lookup(self, target: Hashable) -> Any | None:
        """Instance for a type identifier as the plan currently stands, or None."""
        instance = self.store.get(target)
        if instance is not None:
            return instance

        provider = self.descriptors.get(target)
        if (
            provider is not None
            and provider.scope is Scope.PROTOTYPE
            and target in self._processed
            # Optional cycles between prototypes resolve to None on re-entry
            and target not in self._constructing()
        ):
            return self.create(provider)
        return None
