"""
Async caching primitives: TTL cells, a bounded LRU map, and the tiered thread cache.
"""
from .core import EntryState, ThreadTier, TtlStatus
from .errors import (
    FetchFailure,
    InvalidFetchResult,
    ThreadCacheError,
    ThreadConstructionError,
)
from .ttl import TtlCell
from .lru import BoundedKeyedCache
from .ttl_policies import TTL_CONFIG, TtlPolicy, get_ttl_for_tier
from .manager import TieredEntry, TieredThreadCache

__all__ = [
    # Core types
    "EntryState",
    "ThreadTier",
    "TtlStatus",
    # Errors
    "FetchFailure",
    "InvalidFetchResult",
    "ThreadCacheError",
    "ThreadConstructionError",
    # Cells and maps
    "TtlCell",
    "BoundedKeyedCache",
    # TTL policies
    "TTL_CONFIG",
    "TtlPolicy",
    "get_ttl_for_tier",
    # Tiered cache
    "TieredEntry",
    "TieredThreadCache",
]
