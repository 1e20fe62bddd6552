"""
Single-slot async time-to-live cell with fetch coalescing.

A TtlCell holds one value, knows when it expires, and knows how to fetch a
replacement. Concurrent readers that need a fetch all share the same
in-flight task, so the fetch closure never runs twice at once for one cell.
"""
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from .core import MUST_FETCH, SERVE, SERVE_AND_REFRESH, TtlStatus
from .errors import FetchFailure, InvalidFetchResult

logger = logging.getLogger("cache.ttl")

T = TypeVar("T")


class TtlCell(Generic[T]):
    """
    Async TTL holder for a single piece of data.

    Freshness is decided on every read:
    - no data yet, or data no longer valid: block on a fetch
    - inside the stale grace window after expiry: serve old data, refresh in background
    - beyond the stale grace window: block on a fetch
    - inside the early refresh lead before expiry: serve data, refresh in background
    - otherwise: serve while ``now <= expiry``, block on a fetch after

    Usage:
        cell = TtlCell(fetch=lambda: client.get_slim_thread(thread_id), max_age=900)
        thread = await cell.get_data()
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[T]],
        max_age: float,
        early_refresh: Optional[float] = None,
        stale_grace: Optional[float] = None,
        validator: Optional[Callable[[T], bool]] = None,
        pre_load: Optional[T] = None,
        clock: Callable[[], float] = time.monotonic,
        name: Optional[str] = None,
    ):
        """
        Initialize the cell.

        Args:
            fetch: Zero-argument coroutine function producing a new value
            max_age: Seconds a stored value stays fresh
            early_refresh: Seconds before expiry to start a background refresh
            stale_grace: Seconds after expiry during which old data is still served
            validator: Predicate a value must pass to be stored (default: truthiness)
            pre_load: Initial value; when missing or invalid a fetch starts immediately
            clock: Time source in seconds
            name: Label used in log messages
        """
        self._fetch = fetch
        self._max_age = max_age
        self._early_refresh = early_refresh
        self._stale_grace = stale_grace
        self._is_valid: Callable[[Any], bool] = validator or bool
        self._clock = clock
        self.name = name or f"cell@{id(self):x}"

        self._data: Optional[T] = None
        self._expiry: Optional[float] = None
        self._in_flight: Optional["asyncio.Task[Optional[T]]"] = None
        self._fetch_count = 0
        self._last_error: Optional[Exception] = None

        if pre_load is None or not self.update(pre_load):
            self._start_eager_fetch()

    # =========================================================================
    # Inspection
    # =========================================================================

    @property
    def loaded(self) -> bool:
        """True once any value was accepted by ``update``."""
        return self._expiry is not None

    @property
    def expiry(self) -> Optional[float]:
        return self._expiry

    @property
    def fetching(self) -> bool:
        """True while a fetch is in flight."""
        return self._in_flight is not None

    @property
    def fetch_count(self) -> int:
        """Number of times the fetch closure has been invoked."""
        return self._fetch_count

    @property
    def last_error(self) -> Optional[Exception]:
        """Most recent fetch failure or rejected fetch result."""
        return self._last_error

    def peek(self) -> Optional[T]:
        """Current data, without any freshness check or fetch."""
        return self._data

    def status(self) -> TtlStatus:
        """Evaluate the freshness rules against the current clock."""
        if self._expiry is None or not self._accepts(self._data):
            return MUST_FETCH

        now = self._clock()

        if self._stale_grace is not None:
            stale_until = self._expiry + self._stale_grace
            # Too stale to serve at all
            if now > stale_until:
                return MUST_FETCH
            # Past expiry, but still servable while we revalidate
            if self._expiry < now:
                return SERVE_AND_REFRESH

        if self._early_refresh is not None:
            if self._expiry - self._early_refresh <= now <= self._expiry:
                return SERVE_AND_REFRESH

        if now <= self._expiry:
            return SERVE
        return MUST_FETCH

    # =========================================================================
    # Mutation
    # =========================================================================

    def update(self, value: T) -> bool:
        """
        Store ``value`` if it passes validation and restart the expiry clock.

        Returns:
            True if the value was stored; False if it is invalid or the
            validator raised
        """
        if not self._accepts(value):
            return False
        self._store(value)
        return True

    def refresh_expiry(self) -> None:
        """Restart the expiry clock without touching the data."""
        self._expiry = self._clock() + self._max_age

    def invalidate(self) -> None:
        """
        Mark the data as expired so the next read blocks on a fetch.

        Data is kept; only the expiry moves. Calling this repeatedly is the
        same as calling it once.
        """
        if self._expiry is not None:
            self._expiry = float("-inf")

    # =========================================================================
    # Reading
    # =========================================================================

    async def get_data(
        self,
        on_refreshed: Optional[Callable[[Optional[T]], Any]] = None,
    ) -> Optional[T]:
        """
        Return the current data, fetching as the freshness rules require.

        When the data can be served while a refresh runs, the current value
        is returned at once and ``on_refreshed`` fires with the new value
        once the background fetch completes. When it cannot be served, this
        waits for the fetch.

        Args:
            on_refreshed: Called with the fetch result once a fetch started or
                joined by this call succeeds

        Returns:
            The cached value, or None if no valid value was ever obtained

        Raises:
            FetchFailure: The validator raised on the fetched value
            Exception: Any error raised by the fetch closure
        """
        status = self.status()
        if not status.fetch:
            return self._data

        task = self._do_fetch()
        if on_refreshed is not None:
            task.add_done_callback(lambda done: self._notify_refreshed(done, on_refreshed))

        if status.fresh:
            logger.debug(f"Serving {self.name} while refreshing in background")
            return self._data

        # Shielded so one cancelled waiter does not cancel the shared fetch
        return await asyncio.shield(task)

    # =========================================================================
    # Fetching
    # =========================================================================

    def _do_fetch(self) -> "asyncio.Task[Optional[T]]":
        """Start a fetch, or hand back the one already in flight."""
        if self._in_flight is not None:
            logger.debug(f"Coalescing onto in-flight fetch for {self.name}")
            return self._in_flight

        task = asyncio.get_running_loop().create_task(self._run_fetch())
        task.add_done_callback(self._log_outcome)
        self._in_flight = task
        return task

    async def _run_fetch(self) -> Optional[T]:
        self._fetch_count += 1
        try:
            result = await self._fetch()
            if self._validate(result):
                self._store(result)
                self._last_error = None
            else:
                self._last_error = InvalidFetchResult(result, cell_name=self.name)
                logger.warning(f"Failed to update {self.name}: fetch returned an invalid value")
            return self._data
        except Exception as e:
            self._last_error = e
            raise
        finally:
            self._in_flight = None

    def _validate(self, value: Any) -> bool:
        """
        Run the validator, converting any exception it raises.

        Raises:
            FetchFailure: The validator raised; the original error is chained
        """
        try:
            return bool(self._is_valid(value))
        except Exception as e:
            raise FetchFailure(
                f"Validator raised while checking a value for {self.name}",
                cell_name=self.name,
            ) from e

    def _accepts(self, value: Any) -> bool:
        """Validator check where a raising validator counts as rejection."""
        try:
            return self._validate(value)
        except FetchFailure as e:
            self._last_error = e
            logger.warning(f"{e} ({e.__cause__!r}), treating value as invalid")
            return False

    def _store(self, value: T) -> None:
        self._data = value
        self.refresh_expiry()

    def _start_eager_fetch(self) -> None:
        try:
            self._do_fetch()
        except RuntimeError:
            # No running loop: the first get_data call performs the fetch
            logger.debug(f"No running event loop, deferring initial fetch for {self.name}")

    def _log_outcome(self, task: "asyncio.Task[Optional[T]]") -> None:
        # Retrieving the exception keeps fire-and-forget fetches from warning
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"Fetch failed for {self.name}: {error!r}")

    @staticmethod
    def _notify_refreshed(
        task: "asyncio.Task[Optional[T]]",
        callback: Callable[[Optional[T]], Any],
    ) -> None:
        if task.cancelled() or task.exception() is not None:
            return
        callback(task.result())
