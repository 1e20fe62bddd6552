"""
Error types raised (or recorded) by the thread cache.
"""
from typing import Any, Optional


class ThreadCacheError(Exception):
    """Base class for thread cache errors."""


class FetchFailure(ThreadCacheError):
    """
    A fetch could not be applied to a cell.

    Raised to every waiter of the fetch when the cell's validator itself
    blows up on the fetched value. The original exception is chained.
    """

    def __init__(self, message: str, cell_name: Optional[str] = None):
        super().__init__(message)
        self.cell_name = cell_name


class InvalidFetchResult(ThreadCacheError):
    """
    A fetch resolved with a value the validator rejected.

    Never raised to callers; stored on the cell as ``last_error`` and logged.
    """

    def __init__(self, value: Any, cell_name: Optional[str] = None):
        super().__init__(f"Fetch for {cell_name or 'cell'} returned invalid value: {value!r}")
        self.value = value
        self.cell_name = cell_name


class ThreadConstructionError(ThreadCacheError, ValueError):
    """A raw thread/message record cannot be turned into a thread object."""
