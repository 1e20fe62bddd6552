"""
Tests for TieredThreadCache: tier state machine, promotion and LRU bounds.
"""
import asyncio

import pytest

from conftest import run_async
from threadcache.cache import (
    EntryState,
    ThreadConstructionError,
    TieredThreadCache,
    TtlPolicy,
)
from threadcache.gmail import FullMailThread, MailMessage, SlimMailThread


# =============================================================================
# Test Fixtures
# =============================================================================

class FakeThreadSource:
    """Counts summary/complete fetches per thread id."""

    def __init__(self):
        self.summary_calls = {}
        self.complete_calls = {}
        self.summary_gate = None
        self.complete_error = None

    async def fetch_summary(self, thread_id):
        self.summary_calls[thread_id] = self.summary_calls.get(thread_id, 0) + 1
        if self.summary_gate is not None:
            await self.summary_gate.wait()
        return SlimMailThread(id=thread_id, snippet=f"summary of {thread_id}")

    async def fetch_complete(self, thread_id):
        self.complete_calls[thread_id] = self.complete_calls.get(thread_id, 0) + 1
        if self.complete_error is not None:
            raise self.complete_error
        return FullMailThread(
            id=thread_id,
            messages=[MailMessage(id=f"{thread_id}-1", label_ids=["INBOX"])],
            subject=f"Subject {thread_id}",
        )


@pytest.fixture
def source():
    return FakeThreadSource()


def make_cache(source, clock, capacity=100, max_age=60.0):
    return TieredThreadCache(
        fetch_summary=source.fetch_summary,
        fetch_complete=source.fetch_complete,
        capacity=capacity,
        summary_policy=TtlPolicy(max_age=max_age),
        complete_policy=TtlPolicy(max_age=max_age),
        clock=clock,
    )


# =============================================================================
# State machine
# =============================================================================

def test_get_on_absent_fetches_summary(source, clock):
    async def scenario():
        cache = make_cache(source, clock)
        assert cache.state("t1") is EntryState.ABSENT

        thread = await cache.get("t1")

        assert isinstance(thread, SlimMailThread)
        assert cache.state("t1") is EntryState.CACHED_SUMMARY
        assert source.summary_calls == {"t1": 1}
        assert source.complete_calls == {}

    run_async(scenario())


def test_concurrent_gets_share_one_summary_fetch(source, clock):
    async def scenario():
        cache = make_cache(source, clock)
        results = await asyncio.gather(*(cache.get("t1") for _ in range(4)))

        assert all(result.id == "t1" for result in results)
        assert source.summary_calls == {"t1": 1}

    run_async(scenario())


def test_get_complete_on_absent_skips_summary(source, clock):
    async def scenario():
        cache = make_cache(source, clock)
        thread = await cache.get_complete("t1")

        assert isinstance(thread, FullMailThread)
        assert cache.state("t1") is EntryState.CACHED_COMPLETE
        assert source.summary_calls == {}
        assert source.complete_calls == {"t1": 1}

    run_async(scenario())


def test_promotion_replaces_summary_with_complete(source, clock):
    """One complete fetch on promotion, then get() serves the complete record."""
    async def scenario():
        cache = make_cache(source, clock)
        await cache.get("t1")

        full = await cache.get_complete("t1")
        again = await cache.get("t1")

        assert isinstance(full, FullMailThread)
        assert again is full
        assert cache.state("t1") is EntryState.CACHED_COMPLETE
        assert source.summary_calls == {"t1": 1}
        assert source.complete_calls == {"t1": 1}
        assert cache.get_stats()["promotions"] == 1

    run_async(scenario())


def test_get_complete_on_complete_entry_reuses_cell(source, clock):
    async def scenario():
        cache = make_cache(source, clock)
        first = await cache.get_complete("t1")
        second = await cache.get_complete("t1")

        assert second is first
        assert source.complete_calls == {"t1": 1}

    run_async(scenario())


def test_promotion_discards_in_flight_summary_fetch(source, clock):
    """A summary fetch still running at promotion time cannot downgrade the entry."""
    async def scenario():
        source.summary_gate = asyncio.Event()
        cache = make_cache(source, clock)

        pending_summary = asyncio.create_task(cache.get("t1"))
        await asyncio.sleep(0)

        full = await cache.get_complete("t1")
        source.summary_gate.set()
        slim = await pending_summary

        assert isinstance(slim, SlimMailThread)
        assert cache.state("t1") is EntryState.CACHED_COMPLETE
        assert await cache.get("t1") is full

    run_async(scenario())


def test_seed_summary_never_downgrades(source, clock):
    async def scenario():
        cache = make_cache(source, clock)
        full = await cache.get_complete("t1")

        assert cache.seed_summary("t1", SlimMailThread(id="t1")) is False
        assert await cache.get("t1") is full

    run_async(scenario())


def test_seed_summary_serves_without_fetch(source, clock):
    async def scenario():
        cache = make_cache(source, clock)
        seeded = SlimMailThread(id="t1", snippet="listed")

        assert cache.seed_summary("t1", seeded) is True
        assert await cache.get("t1") is seeded
        assert source.summary_calls == {}

    run_async(scenario())


def test_seed_summary_rejects_invalid_record(source, clock):
    cache = make_cache(source, clock)

    assert cache.seed_summary("t1", SlimMailThread(id="")) is False
    assert cache.state("t1") is EntryState.ABSENT


# =============================================================================
# Expiry, invalidation and eviction
# =============================================================================

def test_expired_entry_refetches_same_tier(source, clock):
    async def scenario():
        cache = make_cache(source, clock, max_age=1.0)
        await cache.get_complete("t1")

        clock.advance(2.0)
        await cache.get("t1")

        assert source.complete_calls == {"t1": 2}
        assert source.summary_calls == {}

    run_async(scenario())


def test_invalidate_forces_fetch(source, clock):
    async def scenario():
        cache = make_cache(source, clock)
        await cache.get("t1")

        assert cache.invalidate("t1") is True
        assert cache.invalidate("missing") is False
        await cache.get("t1")

        assert source.summary_calls == {"t1": 2}

    run_async(scenario())


def test_capacity_evicts_least_recently_used_thread(source, clock):
    async def scenario():
        cache = make_cache(source, clock, capacity=2)
        await cache.get("a")
        await cache.get("b")
        await cache.get("a")
        await cache.get("c")

        assert cache.state("b") is EntryState.ABSENT
        assert cache.state("a") is EntryState.CACHED_SUMMARY
        assert cache.state("c") is EntryState.CACHED_SUMMARY
        assert len(cache) == 2
        assert cache.get_stats()["evictions"] == 1

    run_async(scenario())


def test_discard_and_clear(source, clock):
    async def scenario():
        cache = make_cache(source, clock)
        await cache.get("a")
        await cache.get("b")

        assert cache.discard("a") is True
        assert cache.state("a") is EntryState.ABSENT
        assert cache.clear() == 1

    run_async(scenario())


# =============================================================================
# Failures
# =============================================================================

def test_construction_error_surfaces_and_allows_retry(source, clock):
    async def scenario():
        source.complete_error = ThreadConstructionError("Thread t1 has no messages")
        cache = make_cache(source, clock)

        with pytest.raises(ThreadConstructionError):
            await cache.get_complete("t1")

        source.complete_error = None
        thread = await cache.get_complete("t1")

        assert isinstance(thread, FullMailThread)
        assert source.complete_calls == {"t1": 2}

    run_async(scenario())
