"""Dependency graph validation and construction ordering.

The graph builder turns the registry feed into a ConstructionPlan: the
descriptors in an order where every component comes strictly after all of
its required dependencies. Nodes are descriptors keyed by type identifier;
edges are required dependencies. Optional edges are recorded but take no
part in ordering or cycle detection.

Validation happens in full before any component is built:
    1. Duplicate type identifiers (in the feed or against provided instances)
    2. Required dependencies with no descriptor and no provided instance
    3. Cycles among required edges, found by a three-color depth-first search

Ordering is deterministic: roots are visited in registration order and each
node's required dependencies in declaration order, so the same registration
sequence always yields the same plan.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Hashable, Iterable

from loguru import logger

from .errors import CircularDependencyError, DuplicateRegistrationError, MissingDependencyError
from .registry import ComponentDescriptor, Dependency


class _Mark(Enum):
    UNVISITED = 0
    IN_PROGRESS = 1
    DONE = 2


_END = object()


@dataclass
class ConstructionPlan:
    """Validated construction order for a set of descriptors.

    Attributes:
        order: Descriptors in construction order
        optional_edges: Consumer type identifier → optional dependencies it declares
        provided: Type identifiers satisfied by pre-registered instances
    """

    order: list[ComponentDescriptor] = field(default_factory=list)
    optional_edges: dict[Hashable, tuple[Dependency, ...]] = field(default_factory=dict)
    provided: frozenset = frozenset()

    def __len__(self) -> int:
        return len(self.order)

    def __iter__(self):
        return iter(self.order)

    @property
    def type_ids(self) -> list[Hashable]:
        return [d.type_id for d in self.order]

    def position(self, type_id: Hashable) -> int:
        """Index of a type identifier in the construction order."""
        return self.type_ids.index(type_id)


class DependencyGraph:
    """Directed graph of components over their required dependencies."""

    def __init__(
        self,
        descriptors: Iterable[ComponentDescriptor],
        provided: Iterable[Hashable] = (),
    ):
        """Index descriptors and check identifiers are unique.

        Args:
            descriptors: The registry feed, in registration order
            provided: Type identifiers already satisfied by stored instances

        Raises:
            DuplicateRegistrationError: On a repeated or already provided type identifier
        """
        self.provided = frozenset(provided)
        self.nodes: dict[Hashable, ComponentDescriptor] = {}

        for descriptor in descriptors:
            if descriptor.type_id in self.nodes:
                raise DuplicateRegistrationError(descriptor.type_id)
            if descriptor.type_id in self.provided:
                raise DuplicateRegistrationError(
                    descriptor.type_id, reason="an instance was registered manually"
                )
            self.nodes[descriptor.type_id] = descriptor

        self.edges: dict[Hashable, list[Hashable]] = {
            type_id: [dep.target for dep in d.required_dependencies]
            for type_id, d in self.nodes.items()
        }

    def validate(self) -> None:
        """Check every required dependency has a provider.

        Raises:
            MissingDependencyError: Naming the first consumer and missing type
        """
        for type_id, targets in self.edges.items():
            for target in targets:
                if target not in self.nodes and target not in self.provided:
                    raise MissingDependencyError(type_id, target)

    def topological_order(self) -> list[ComponentDescriptor]:
        """Depth-first topological sort over required edges.

        Raises:
            CircularDependencyError: With the ordered cycle path
        """
        marks = {type_id: _Mark.UNVISITED for type_id in self.nodes}
        order: list[ComponentDescriptor] = []

        for root in self.nodes:
            if marks[root] is not _Mark.UNVISITED:
                continue

            # Iterative: chains may be deeper than the recursion limit
            path: list[Hashable] = [root]
            pending = [iter(self.edges[root])]
            marks[root] = _Mark.IN_PROGRESS

            while pending:
                target = next(pending[-1], _END)
                if target is _END:
                    done = path.pop()
                    pending.pop()
                    marks[done] = _Mark.DONE
                    order.append(self.nodes[done])
                    continue

                # Provided instances are leaves outside the graph
                if target not in self.nodes or marks[target] is _Mark.DONE:
                    continue
                if marks[target] is _Mark.IN_PROGRESS:
                    start = path.index(target)
                    raise CircularDependencyError([*path[start:], target])

                marks[target] = _Mark.IN_PROGRESS
                path.append(target)
                pending.append(iter(self.edges[target]))

        return order

    def build_plan(self) -> ConstructionPlan:
        """Validate the graph and produce the construction plan."""
        self.validate()
        order = self.topological_order()

        optional_edges = {
            d.type_id: d.optional_dependencies for d in order if d.optional_dependencies
        }
        logger.debug(
            f"Construction plan: {' → '.join(d.name for d in order) or '(empty)'}"
        )
        return ConstructionPlan(order=order, optional_edges=optional_edges, provided=self.provided)


def build_plan(
    descriptors: Iterable[ComponentDescriptor], provided: Iterable[Hashable] = ()
) -> ConstructionPlan:
    """Build a validated construction plan from a descriptor feed."""
    return DependencyGraph(descriptors, provided).build_plan()
