"""
Tests for the sequence allocator: strictly increasing, never duplicated,
even when many threads allocate at once.
"""
from concurrent.futures import ThreadPoolExecutor

import pytest

from shorturl_app.exceptions import StoreError
from shorturl_app.services.sequence_allocator import SequenceAllocator
from shorturl_app.storage.strategies import InMemoryLinkStore


def allocate_concurrently(allocator, workers=8, per_worker=25):
    def burst(_):
        return [allocator.next() for _ in range(per_worker)]

    with ThreadPoolExecutor(max_workers=workers) as pool:
        batches = list(pool.map(burst, range(workers)))
    return [value for batch in batches for value in batch]


class FailingCounterStore(InMemoryLinkStore):
    def increment_and_fetch(self, name):
        raise StoreError("connection lost")


class TestSequenceAllocator:

    def test_sequential_values(self, memory_store):
        allocator = SequenceAllocator(memory_store)

        assert [allocator.next() for _ in range(3)] == [1, 2, 3]

    def test_named_counters_are_independent(self, memory_store):
        urls = SequenceAllocator(memory_store, name="urlid")
        other = SequenceAllocator(memory_store, name="other")

        urls.next()
        urls.next()

        assert other.next() == 1
        assert urls.next() == 3

    def test_failure_propagates(self):
        allocator = SequenceAllocator(FailingCounterStore())

        with pytest.raises(StoreError):
            allocator.next()

    def test_concurrent_allocations_memory(self, memory_store):
        allocator = SequenceAllocator(memory_store)

        values = allocate_concurrently(allocator)

        assert sorted(values) == list(range(1, 201))

    def test_concurrent_allocations_sql(self, sql_store):
        """No duplicates and no gaps when 8 threads share one SQLite database"""
        allocator = SequenceAllocator(sql_store)

        values = allocate_concurrently(allocator)

        assert len(set(values)) == len(values) == 200
        assert sorted(values) == list(range(1, 201))
        assert sql_store.increment_and_fetch("urlid") == 201
