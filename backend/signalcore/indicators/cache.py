"""In-process cache for indicator results.

Bounded LRU with a per-entry TTL. All state is guarded by one asyncio
lock, and at most one computation per key is in flight at a time:
concurrent callers for the same key await the first caller's result.

Data structure:
- indicator:{kind}:{asset}:{params}:{fingerprint} -> (expires_at, result)
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from typing import Awaitable, Callable, Generic, TypeVar

from signalcore.indicators.types import CacheStats

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Default bound on stored results (oldest-used evicted first)
DEFAULT_MAX_ENTRIES = 1024
# Default lifetime of an entry in seconds
DEFAULT_TTL_SECONDS = 300.0


def _mark_retrieved(future: asyncio.Future) -> None:
    # Silence "exception was never retrieved" when nobody else was waiting
    if not future.cancelled():
        future.exception()


class IndicatorCache(Generic[T]):
    """Bounded TTL cache with per-key in-flight deduplication.

    Parameters
    ----------
    max_entries : int
        Maximum number of stored results. Least recently used entries
        are evicted first.
    ttl_seconds : float
        Entry lifetime. Expired entries are dropped on access.
    clock : callable
        Monotonic time source (injectable for tests).
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries <= 0:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")

        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock

        self._entries: OrderedDict[str, tuple[float, T]] = OrderedDict()
        self._in_flight: dict[str, asyncio.Future] = {}
        self._lock = asyncio.Lock()

        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._deduplicated = 0

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Internal helpers (must be called while holding _lock)
    # ------------------------------------------------------------------

    def _lookup(self, key: str) -> T | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return value

    def _store(self, key: str, value: T) -> None:
        self._entries[key] = (self._clock() + self.ttl_seconds, value)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            self._evictions += 1
            logger.debug(f"Indicator cache evicted {evicted}")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get(self, key: str) -> T | None:
        """Get a live entry, or None if missing or expired."""
        async with self._lock:
            value = self._lookup(key)
            if value is None:
                self._misses += 1
            else:
                self._hits += 1
            return value

    async def set(self, key: str, value: T) -> None:
        """Store (or refresh) an entry."""
        async with self._lock:
            self._store(key, value)

    async def get_or_compute(
        self,
        key: str,
        compute: Callable[[], Awaitable[T]],
    ) -> tuple[T, bool]:
        """Return the cached value for ``key`` or compute and store it.

        Args:
            key: Cache key
            compute: Coroutine factory producing the value on a miss

        Returns:
            Tuple of (value, served_from_cache). A caller that awaited a
            computation started by a concurrent caller counts as served
            from cache.

        Raises:
            Whatever ``compute`` raises. Concurrent waiters on the same
            key receive the same exception; nothing is stored.
        """
        async with self._lock:
            value = self._lookup(key)
            if value is not None:
                self._hits += 1
                return value, True

            pending = self._in_flight.get(key)
            if pending is None:
                self._misses += 1
                pending = asyncio.get_running_loop().create_future()
                pending.add_done_callback(_mark_retrieved)
                self._in_flight[key] = pending
                owner = True
            else:
                self._deduplicated += 1
                owner = False

        if not owner:
            return await asyncio.shield(pending), True

        try:
            value = await compute()
        except asyncio.CancelledError:
            async with self._lock:
                self._in_flight.pop(key, None)
            pending.cancel()
            raise
        except Exception as e:
            async with self._lock:
                self._in_flight.pop(key, None)
            pending.set_exception(e)
            raise

        async with self._lock:
            self._store(key, value)
            self._in_flight.pop(key, None)
        pending.set_result(value)
        return value, False

    async def clear(self) -> int:
        """Drop every entry. Returns the number of entries removed."""
        async with self._lock:
            removed = len(self._entries)
            self._entries.clear()
            return removed

    def stats(self) -> CacheStats:
        """Snapshot of cache counters."""
        return CacheStats(
            hits=self._hits,
            misses=self._misses,
            evictions=self._evictions,
            size=len(self._entries),
            max_entries=self.max_entries,
            ttl_seconds=self.ttl_seconds,
            deduplicated=self._deduplicated,
        )
