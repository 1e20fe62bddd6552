"""
Bounded two-tier thread cache.

Each thread id maps to one TtlCell that fetches either the summary or the
complete record. A summary entry is replaced by a fresh complete-fetching
cell the first time a caller needs the complete record; complete entries
are never downgraded.
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, Hashable, Optional, TypeVar

from .core import EntryState, ThreadTier
from .lru import DEFAULT_CAPACITY, BoundedKeyedCache
from .ttl import TtlCell
from .ttl_policies import TtlPolicy, get_ttl_for_tier

logger = logging.getLogger("cache.manager")

K = TypeVar("K", bound=Hashable)
S = TypeVar("S")
C = TypeVar("C")


@dataclass
class TieredEntry:
    """A cached cell tagged with the tier it fetches."""
    tier: ThreadTier
    cell: TtlCell


def has_id(record: Any) -> bool:
    """Summary validator: any record carrying a non-empty id."""
    return record is not None and bool(getattr(record, "id", None))


def has_messages(record: Any) -> bool:
    """Complete validator: a complete-tier record with at least one message."""
    return (
        has_id(record)
        and getattr(record, "tier", None) is ThreadTier.COMPLETE
        and bool(getattr(record, "messages", None))
    )


class TieredThreadCache(Generic[K, S, C]):
    """
    LRU cache of per-thread TtlCells with summary to complete promotion.

    Usage:
        cache = TieredThreadCache(
            fetch_summary=client.get_slim_thread,
            fetch_complete=client.get_full_thread,
        )
        slim_or_full = await cache.get(thread_id)
        full = await cache.get_complete(thread_id)
    """

    def __init__(
        self,
        fetch_summary: Callable[[K], Awaitable[S]],
        fetch_complete: Callable[[K], Awaitable[C]],
        capacity: int = DEFAULT_CAPACITY,
        summary_policy: Optional[TtlPolicy] = None,
        complete_policy: Optional[TtlPolicy] = None,
        summary_validator: Callable[[Any], bool] = has_id,
        complete_validator: Callable[[Any], bool] = has_messages,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the tiered cache.

        Args:
            fetch_summary: Coroutine function fetching the summary record for a key
            fetch_complete: Coroutine function fetching the complete record for a key
            capacity: Maximum number of thread ids cached at once
            summary_policy: TTL policy for summary cells (tier default if None)
            complete_policy: TTL policy for complete cells (tier default if None)
            summary_validator: Acceptance check for summary fetch results
            complete_validator: Acceptance check for complete fetch results
            clock: Time source shared by every cell
        """
        self._fetchers: Dict[ThreadTier, Callable[[K], Awaitable[Any]]] = {
            ThreadTier.SUMMARY: fetch_summary,
            ThreadTier.COMPLETE: fetch_complete,
        }
        self._policies: Dict[ThreadTier, TtlPolicy] = {
            ThreadTier.SUMMARY: summary_policy or get_ttl_for_tier(ThreadTier.SUMMARY),
            ThreadTier.COMPLETE: complete_policy or get_ttl_for_tier(ThreadTier.COMPLETE),
        }
        self._validators: Dict[ThreadTier, Callable[[Any], bool]] = {
            ThreadTier.SUMMARY: summary_validator,
            ThreadTier.COMPLETE: complete_validator,
        }
        self._clock = clock
        self._entries: BoundedKeyedCache[K, TieredEntry] = BoundedKeyedCache(capacity)

        self._stats = {
            "summary_cells": 0,
            "complete_cells": 0,
            "promotions": 0,
        }

    # =========================================================================
    # Reads
    # =========================================================================

    async def get(self, key: K) -> Any:
        """
        Get whatever is cached for ``key``, fetching the summary tier on a miss.

        Returns:
            The summary or complete record, per the entry's state

        Raises:
            Exception: The fetch failure of the underlying cell
        """
        entry = self._entries.get(key)
        if entry is None:
            logger.info(f"CACHE MISS: {key} (fetching summary)")
            entry = self._insert(key, ThreadTier.SUMMARY)
        return await entry.cell.get_data()

    async def get_complete(self, key: K) -> C:
        """
        Get the complete record for ``key``.

        A cached summary entry is replaced by a new complete-fetching cell;
        the old cell (and any fetch it still runs) is dropped.

        Raises:
            Exception: The fetch failure of the underlying cell
        """
        entry = self._entries.get(key)
        if entry is not None and entry.tier is ThreadTier.COMPLETE:
            return await entry.cell.get_data()

        if entry is None:
            logger.info(f"CACHE MISS: {key} (fetching complete)")
        else:
            logger.info(f"PROMOTE: {key} summary -> complete")
            self._stats["promotions"] += 1
        entry = self._insert(key, ThreadTier.COMPLETE)
        return await entry.cell.get_data()

    def state(self, key: K) -> EntryState:
        """Current state of ``key``, without touching recency."""
        entry = self._entries.peek(key)
        if entry is None:
            return EntryState.ABSENT
        if entry.tier is ThreadTier.COMPLETE:
            return EntryState.CACHED_COMPLETE
        return EntryState.CACHED_SUMMARY

    # =========================================================================
    # Writes
    # =========================================================================

    def seed_summary(self, key: K, record: S) -> bool:
        """
        Cache an already-fetched summary for an absent key.

        Existing entries are left alone, so a complete entry is never
        downgraded by a listing.

        Returns:
            True if a new entry was inserted
        """
        if key in self._entries:
            return False
        if not self._validators[ThreadTier.SUMMARY](record):
            logger.warning(f"Not seeding {key}: summary record failed validation")
            return False
        self._insert(key, ThreadTier.SUMMARY, pre_load=record)
        return True

    def invalidate(self, key: K) -> bool:
        """
        Force the next read of ``key`` to block on a fetch.

        Returns:
            True if the key was cached
        """
        entry = self._entries.peek(key)
        if entry is None:
            return False
        entry.cell.invalidate()
        logger.info(f"Invalidated cache: {key}")
        return True

    def discard(self, key: K) -> bool:
        """Drop ``key`` entirely. Returns True if it was cached."""
        return self._entries.delete(key)

    def clear(self) -> int:
        """
        Drop every entry.

        Returns:
            Number of entries cleared
        """
        count = self._entries.clear()
        logger.info(f"Cleared {count} cache entries")
        return count

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        stats = self._entries.get_stats()
        stats.update(self._stats)
        return stats

    # =========================================================================
    # Internals
    # =========================================================================

    def _insert(self, key: K, tier: ThreadTier, pre_load: Any = None) -> TieredEntry:
        entry = TieredEntry(tier=tier, cell=self._new_cell(key, tier, pre_load))
        self._entries.set(key, entry)
        self._stats[f"{tier.value}_cells"] += 1
        return entry

    def _new_cell(self, key: K, tier: ThreadTier, pre_load: Any = None) -> TtlCell:
        fetcher = self._fetchers[tier]
        policy = self._policies[tier]

        def fetch() -> Awaitable[Any]:
            return fetcher(key)

        return TtlCell(
            fetch=fetch,
            max_age=policy.max_age,
            early_refresh=policy.early_refresh,
            stale_grace=policy.stale_grace,
            validator=self._validators[tier],
            pre_load=pre_load,
            clock=self._clock,
            name=f"{tier.value}:{key}",
        )
