"""
Query Cache - keyed store of server state with explicit mutation interface.

Every cached value belongs to a query key (a tuple such as ``("dreams", False)``).
Call sites never mutate cached objects in place: they go through
``set_query_data`` with an updater, take ``snapshot``s before optimistic
patches and ``restore`` them on failure, and ``invalidate_queries`` to pull
the authoritative state back from the server.

Key matching follows prefix semantics: ``("dreams",)`` addresses both
``("dreams", False)`` and ``("dreams", True)``.
"""
import copy
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from hekate.core.config import settings
from hekate.domain.exceptions import HekateError

logger = logging.getLogger(__name__)

QueryKey = Tuple[Any, ...]
Fetcher = Callable[[], Awaitable[Any]]
Listener = Callable[[QueryKey, Any], None]


@dataclass
class QueryEntry:
    """Cached value plus what is needed to refresh it."""
    data: Any = None
    updated_at: Optional[float] = None  # Clock reading of last write, None if never loaded
    is_invalidated: bool = False
    fetcher: Optional[Fetcher] = None


def matches(key: QueryKey, prefix: QueryKey) -> bool:
    """True if ``prefix`` addresses ``key``."""
    return key[:len(prefix)] == tuple(prefix)


class QueryCache:
    """
    In-memory query cache shared by every operation.

    Reads retry transient failures (``QUERY_RETRY_ATTEMPTS`` extra attempts
    with exponential backoff); writes go straight through.
    """

    def __init__(
        self,
        stale_seconds: float | None = None,
        retry_attempts: int | None = None,
        retry_wait: wait_base | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            stale_seconds: How long fetched data counts as fresh
            retry_attempts: Extra attempts for a failing fetch (0 disables retry)
            retry_wait: tenacity wait strategy between attempts
            clock: Monotonic time source (injectable for tests)
        """
        self.stale_seconds = settings.QUERY_STALE_SECONDS if stale_seconds is None else stale_seconds
        self.retry_attempts = settings.QUERY_RETRY_ATTEMPTS if retry_attempts is None else retry_attempts
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=30)
        self._clock = clock
        self._entries: Dict[QueryKey, QueryEntry] = {}
        self._listeners: List[Tuple[QueryKey, Listener]] = []

    # ─────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────

    async def fetch_query(self, key: QueryKey, fetcher: Fetcher) -> Any:
        """
        Fetch from the server and store the result under ``key``.

        The fetcher is remembered so later invalidations can refetch.

        Raises:
            HekateError: When every attempt failed
        """
        key = tuple(key)
        entry = self._entries.setdefault(key, QueryEntry())
        entry.fetcher = fetcher

        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(HekateError),
            stop=stop_after_attempt(self.retry_attempts + 1),
            wait=self.retry_wait,
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.info(f"Retrying query {key} (attempt {attempt.retry_state.attempt_number})")
                data = await fetcher()

        self._write(key, data)
        return data

    async def ensure_query_data(self, key: QueryKey, fetcher: Fetcher) -> Any:
        """Return cached data while fresh, otherwise fetch."""
        key = tuple(key)
        entry = self._entries.get(key)
        if entry is not None and entry.updated_at is not None and not self.is_stale(key):
            entry.fetcher = entry.fetcher or fetcher
            return entry.data
        return await self.fetch_query(key, fetcher)

    def get_query_data(self, key: QueryKey) -> Any:
        entry = self._entries.get(tuple(key))
        return entry.data if entry else None

    def is_stale(self, key: QueryKey) -> bool:
        entry = self._entries.get(tuple(key))
        if entry is None or entry.updated_at is None or entry.is_invalidated:
            return True
        return self._clock() - entry.updated_at > self.stale_seconds

    def find_keys(self, prefix: QueryKey) -> List[QueryKey]:
        return [key for key in self._entries if matches(key, prefix)]

    # ─────────────────────────────────────────────────────────────
    # Writes
    # ─────────────────────────────────────────────────────────────

    def set_query_data(self, key: QueryKey, updater: Any) -> Any:
        """
        Replace the cached value.

        ``updater`` is either the new value or a function of the old one,
        which receives ``None`` when nothing is cached yet.
        """
        key = tuple(key)
        old = self.get_query_data(key)
        new = updater(old) if callable(updater) else updater
        self._write(key, new)
        return new

    def snapshot(self, key: QueryKey) -> Any:
        """Deep copy of the cached value, for rollback."""
        return copy.deepcopy(self.get_query_data(key))

    def restore(self, key: QueryKey, snapshot: Any) -> None:
        """Put a snapshot back, keeping the entry's fetcher."""
        self._write(tuple(key), snapshot)

    def _write(self, key: QueryKey, data: Any) -> None:
        entry = self._entries.setdefault(key, QueryEntry())
        entry.data = data
        entry.updated_at = self._clock()
        entry.is_invalidated = False
        self._notify(key, data)

    # ─────────────────────────────────────────────────────────────
    # Invalidation
    # ─────────────────────────────────────────────────────────────

    def mark_stale(self, *prefixes: QueryKey) -> List[QueryKey]:
        """Flag matching entries stale without refetching."""
        keys = [key for prefix in prefixes for key in self.find_keys(prefix)]
        for key in keys:
            self._entries[key].is_invalidated = True
        return keys

    async def invalidate_queries(self, *prefixes: QueryKey) -> None:
        """
        Mark matching entries stale and refetch the ones with a known fetcher.

        A failed refetch leaves the stale data in place; the error is logged,
        not raised, so a reconciling refetch never undoes a successful mutation.
        """
        for key in dict.fromkeys(self.mark_stale(*prefixes)):
            await self._refetch(key)

    async def reset_queries(self, *prefixes: QueryKey) -> None:
        """Drop matching data back to the initial state, then refetch."""
        keys = [key for prefix in prefixes for key in self.find_keys(prefix)]
        for key in dict.fromkeys(keys):
            entry = self._entries[key]
            entry.data = None
            entry.updated_at = None
            entry.is_invalidated = True
            self._notify(key, None)
            await self._refetch(key)

    async def _refetch(self, key: QueryKey) -> None:
        fetcher = self._entries[key].fetcher
        if fetcher is None:
            return
        try:
            await self.fetch_query(key, fetcher)
        except HekateError as e:
            logger.warning(f"Refetch of {key} failed, keeping stale data: {e}")

    def remove_queries(self, *prefixes: QueryKey) -> None:
        for key in [key for prefix in prefixes for key in self.find_keys(prefix)]:
            self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    # ─────────────────────────────────────────────────────────────
    # Observers
    # ─────────────────────────────────────────────────────────────

    def subscribe(self, prefix: QueryKey, listener: Listener) -> Callable[[], None]:
        """
        Call ``listener(key, data)`` whenever a matching entry changes.

        Returns:
            Function that removes the subscription
        """
        subscription = (tuple(prefix), listener)
        self._listeners.append(subscription)

        def unsubscribe() -> None:
            if subscription in self._listeners:
                self._listeners.remove(subscription)

        return unsubscribe

    def _notify(self, key: QueryKey, data: Any) -> None:
        for prefix, listener in list(self._listeners):
            if matches(key, prefix):
                listener(key, data)
