"""
Core cache data structures.
"""
from dataclasses import dataclass
from enum import Enum


class ThreadTier(Enum):
    """Completeness tier of a cached thread record."""
    SUMMARY = "summary"     # id/history/snippet only, used for list views
    COMPLETE = "complete"   # every message in the thread


class EntryState(Enum):
    """State of one key inside the tiered thread cache."""
    ABSENT = "absent"
    CACHED_SUMMARY = "cached-summary"
    CACHED_COMPLETE = "cached-complete"


@dataclass(frozen=True)
class TtlStatus:
    """
    Outcome of a freshness check on a TtlCell.

    ``fresh`` means the current data may be served right now (possibly while
    a refresh runs). ``fetch`` means a fetch should be started or joined.
    """
    fresh: bool
    fetch: bool


# Shared instances, the decision table only ever produces these three
MUST_FETCH = TtlStatus(fresh=False, fetch=True)
SERVE_AND_REFRESH = TtlStatus(fresh=True, fetch=True)
SERVE = TtlStatus(fresh=True, fetch=False)
