"""Tests for the resolver that builds components in plan order."""

from typing import Optional

import pytest

from arbor.core.errors import ComponentConstructionError
from arbor.core.events import ComponentCreated, InitializationCompleted, LifecycleEventBus
from arbor.core.graph import build_plan
from arbor.core.registry import ComponentDescriptor, Dependency, Scope
from arbor.core.resolver import Resolver
from arbor.core.store import ComponentStore


class Database:
    pass


class Repository:
    def __init__(self, db: Database):
        self.db = db


class Session:
    """Prototype component."""

    def __init__(self, db: Database):
        self.db = db


class Handler:
    def __init__(self, session: Session):
        self.session = session


class Metrics:
    def __init__(self, reporter: Optional["Reporter"] = None):
        self.reporter = reporter


class Reporter:
    def __init__(self, metrics: Optional[Metrics] = None):
        self.metrics = metrics


def run(descriptors, *, eager_prototypes=True, store=None):
    store = store if store is not None else ComponentStore()
    bus = LifecycleEventBus()
    events = []
    bus.subscribe(events.append)
    resolver = Resolver(
        store,
        {d.type_id: d for d in descriptors},
        bus,
        eager_prototypes=eager_prototypes,
    )
    count = resolver.resolve(build_plan(descriptors, provided=store.keys()))
    return resolver, store, events, count


@pytest.mark.unit
class TestSingletons:
    def test_builds_in_order_and_shares_instances(self):
        descriptors = [
            ComponentDescriptor.for_class(Repository),
            ComponentDescriptor.for_class(Database),
        ]
        _, store, events, count = run(descriptors)

        assert count == 2
        assert store.get(Repository).db is store.get(Database)
        created = [e.type_id for e in events if isinstance(e, ComponentCreated)]
        assert created == [Database, Repository]

    def test_completed_event_last(self):
        _, _, events, _ = run([ComponentDescriptor.for_class(Database)])
        assert isinstance(events[-1], InitializationCompleted)
        assert events[-1].count == 1
        assert events[-1].duration >= 0

    def test_created_event_carries_duration(self):
        _, _, events, _ = run([ComponentDescriptor.for_class(Database)])
        created = events[0]
        assert created.name == "Database"
        assert created.duration >= 0

    def test_creation_time_recorded(self):
        _, store, _, _ = run([ComponentDescriptor.for_class(Database)])
        assert store.stats(Database).creation_time >= 0

    def test_provided_instance_is_used(self):
        store = ComponentStore()
        db = Database()
        store.insert(Database, db)
        _, store, events, count = run([ComponentDescriptor.for_class(Repository)], store=store)
        assert store.get(Repository).db is db
        assert count == 2
        assert [e.type_id for e in events if isinstance(e, ComponentCreated)] == [Repository]

    def test_factory_receives_resolved_dependencies(self):
        seen = {}

        def factory(deps):
            seen.update(deps)
            return "configured"

        descriptors = [
            ComponentDescriptor.for_class(Database),
            ComponentDescriptor(
                type_id="config",
                factory=factory,
                dependencies=(Dependency(Database), Dependency(Repository, required=False)),
            ),
        ]
        _, store, _, _ = run(descriptors)
        assert store.get("config") == "configured"
        assert isinstance(seen[Database], Database)
        assert seen[Repository] is None


@pytest.mark.unit
class TestFailures:
    def test_factory_exception_wrapped(self):
        def factory(deps):
            raise ValueError("boom")

        with pytest.raises(ComponentConstructionError) as exc_info:
            run([ComponentDescriptor(type_id=Database, factory=factory)])
        assert isinstance(exc_info.value.cause, ValueError)
        assert exc_info.value.__cause__ is exc_info.value.cause

    def test_factory_returning_none(self):
        with pytest.raises(ComponentConstructionError, match="factory returned None"):
            run([ComponentDescriptor(type_id=Database, factory=lambda deps: None)])

    def test_failure_stops_later_components(self):
        built = []

        def ok(deps):
            built.append("ok")
            return object()

        def broken(deps):
            raise RuntimeError("down")

        descriptors = [
            ComponentDescriptor(type_id="a", factory=ok),
            ComponentDescriptor(type_id="b", factory=broken),
            ComponentDescriptor(type_id="c", factory=ok),
        ]
        with pytest.raises(ComponentConstructionError):
            run(descriptors)
        assert built == ["ok"]


@pytest.mark.unit
class TestPrototypes:
    def descriptors(self):
        return [
            ComponentDescriptor.for_class(Database),
            ComponentDescriptor.for_class(Session, scope=Scope.PROTOTYPE),
            ComponentDescriptor.for_class(Handler),
        ]

    def test_prototype_not_stored(self):
        _, store, events, count = run(self.descriptors())
        assert Session not in store
        assert count == 2
        created = [e.type_id for e in events if isinstance(e, ComponentCreated)]
        assert created == [Database, Session, Handler]

    def test_consumer_gets_fresh_prototype(self):
        resolver, store, _, _ = run(self.descriptors())
        handler = store.get(Handler)
        assert isinstance(handler.session, Session)
        assert handler.session.db is store.get(Database)
        assert resolver.lookup(Session) is not handler.session

    def test_lookup_builds_new_instance_each_time(self):
        resolver, _, _, _ = run(self.descriptors())
        first = resolver.lookup(Session)
        second = resolver.lookup(Session)
        assert isinstance(first, Session)
        assert first is not second

    def test_deferred_prototypes(self):
        resolver, _, events, _ = run(self.descriptors(), eager_prototypes=False)
        created = [e.type_id for e in events if isinstance(e, ComponentCreated)]
        assert created == [Database, Handler]
        assert isinstance(resolver.lookup(Session), Session)

    def test_create_builds_uncached_instance(self):
        resolver, store, _, _ = run(self.descriptors())
        session = resolver.create(resolver.descriptors[Session])
        assert isinstance(session, Session)
        assert Session not in store


@pytest.mark.unit
class TestOptionalDependencies:
    def test_optional_cycle_resolves_to_absence(self):
        descriptors = [
            ComponentDescriptor.for_class(Metrics),
            ComponentDescriptor.for_class(Reporter),
        ]
        _, store, _, _ = run(descriptors)
        metrics = store.get(Metrics)
        reporter = store.get(Reporter)
        assert metrics.reporter is None
        assert reporter.metrics is metrics

    def test_optional_prototype_cycle_terminates(self):
        descriptors = [
            ComponentDescriptor.for_class(Metrics, scope=Scope.PROTOTYPE),
            ComponentDescriptor.for_class(Reporter, scope=Scope.PROTOTYPE),
        ]
        resolver, _, _, _ = run(descriptors)
        metrics = resolver.lookup(Metrics)
        assert isinstance(metrics.reporter, Reporter)
        assert metrics.reporter.metrics is None

    def test_absent_optional_logged(self, log_messages):
        run([ComponentDescriptor.for_class(Metrics)])
        assert any("Optional dependency Reporter of Metrics is absent" in m for m in log_messages)
