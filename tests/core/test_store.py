"""Tests for the thread-safe component store."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from arbor.core.errors import AlreadyRegisteredError, ComponentNotFoundError
from arbor.core.store import ComponentStats, ComponentStore


class Database:
    pass


@pytest.fixture
def store():
    return ComponentStore()


@pytest.mark.unit
class TestComponentStore:
    def test_insert_and_get(self, store):
        db = Database()
        store.insert(Database, db)
        assert store.get(Database) is db
        assert Database in store
        assert len(store) == 1
        assert store.keys() == [Database]

    def test_get_missing_returns_none(self, store):
        assert store.get(Database) is None
        assert Database not in store

    def test_get_or_fail(self, store):
        with pytest.raises(ComponentNotFoundError):
            store.get_or_fail(Database)
        db = Database()
        store.insert(Database, db)
        assert store.get_or_fail(Database) is db

    def test_first_write_wins(self, store):
        first = Database()
        store.insert(Database, first)
        with pytest.raises(AlreadyRegisteredError):
            store.insert(Database, Database())
        assert store.get(Database) is first

    def test_peek_leaves_stats_alone(self, store):
        store.insert(Database, Database())
        store.peek(Database)
        assert store.stats(Database).access_count == 1


@pytest.mark.unit
class TestComponentStats:
    def test_recorded_on_insert(self, store):
        store.insert(Database, Database(), creation_time=0.25)
        stats = store.stats(Database)
        assert isinstance(stats, ComponentStats)
        assert stats.access_count == 1
        assert stats.creation_time == 0.25
        assert stats.created_at == stats.last_accessed

    def test_updated_on_lookup(self, store):
        store.insert(Database, Database())
        store.get(Database)
        store.get(Database)
        stats = store.stats(Database)
        assert stats.access_count == 3
        assert stats.last_accessed >= stats.created_at

    def test_missing_lookup_not_counted(self, store):
        store.get(Database)
        assert store.stats(Database) is None

    def test_snapshot_is_a_copy(self, store):
        store.insert(Database, Database())
        snapshot = store.stats(Database)
        snapshot.access_count = 100
        assert store.stats(Database).access_count == 1


@pytest.mark.unit
class TestConcurrentAccess:
    def test_concurrent_lookups_count_every_access(self, store):
        store.insert(Database, Database())
        num_threads = 8
        lookups = 250

        def hammer():
            return [store.get(Database) for _ in range(lookups)]

        with ThreadPoolExecutor(max_workers=num_threads) as executor:
            results = [f.result() for f in [executor.submit(hammer) for _ in range(num_threads)]]

        instances = {id(i) for batch in results for i in batch}
        assert len(instances) == 1
        assert store.stats(Database).access_count == 1 + num_threads * lookups

    def test_concurrent_inserts_of_one_key(self, store):
        barrier = threading.Barrier(4)
        winners = []
        losers = []

        def insert():
            barrier.wait()
            try:
                store.insert(Database, Database())
                winners.append(threading.get_ident())
            except AlreadyRegisteredError:
                losers.append(threading.get_ident())

        threads = [threading.Thread(target=insert) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(winners) == 1
        assert len(losers) == 3
