"""Request-coalescing cache for transit data fetches.

Every fetch goes through a keyed entry that is Pending while the request is in
flight and Ready/Failed once it settles. Concurrent callers for the same key
share one request. Entries never expire unless an eviction policy is
configured.
"""

import asyncio
import logging
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EntryState(str, Enum):
    """Lifecycle of a cache entry."""

    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


@dataclass
class CacheEntry(Generic[T]):
    """One keyed fetch and its outcome."""

    key: Hashable
    state: EntryState = EntryState.PENDING
    value: T | None = None
    error: BaseException | None = None
    fetched_at: float | None = None  # time.monotonic() at settle
    task: "asyncio.Future[T] | None" = field(default=None, repr=False)


class DataCache:
    """Keyed memo of in-flight and completed fetches.

    Single event loop only; no locking is needed because entries are only
    touched between awaits.
    """

    def __init__(self, max_entries: int | None = None, ttl: float | None = None):
        """Initialize the cache.

        Args:
            max_entries: Evict least recently used settled entries beyond this
                size. None keeps everything.
            ttl: Seconds after which a Ready entry is refetched. None disables
                expiry.
        """
        self._max_entries = max_entries
        self._ttl = ttl
        self._entries: OrderedDict[Hashable, CacheEntry[Any]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key) is not None

    def get(self, key: Hashable) -> CacheEntry[Any] | None:
        """Get the entry for a key, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is not None and self._is_expired(entry):
            del self._entries[key]
            return None
        return entry

    async def fetch(
        self,
        key: Hashable,
        producer: Callable[[], Awaitable[T]],
        refresh: bool = False,
    ) -> T:
        """Return the value for a key, invoking the producer only when needed.

        A Pending entry is always joined. A Ready entry is returned as-is
        unless `refresh` is set. A Failed or missing entry starts a new fetch.

        Args:
            key: Normalized request parameters.
            producer: Zero-argument callable returning the awaitable to run.
            refresh: Bypass a Ready entry (still joins a Pending one).

        Returns:
            The fetched value.

        Raises:
            Whatever the producer raised; every caller sharing the request
            sees the same exception.
        """
        entry = self.get(key)
        if entry is not None:
            if entry.state is EntryState.PENDING and entry.task is not None:
                return await asyncio.shield(entry.task)
            if entry.state is EntryState.READY and not refresh:
                self._entries.move_to_end(key)
                return entry.value

        task: asyncio.Future[T] = asyncio.ensure_future(producer())
        entry = CacheEntry(key=key, task=task)
        self._entries[key] = entry
        self._entries.move_to_end(key)
        task.add_done_callback(lambda done: self._settle(entry, done))
        self._evict()

        # shield so a cancelled caller does not cancel the request other callers share
        return await asyncio.shield(task)

    def invalidate(self, key: Hashable) -> bool:
        """Drop one entry. Returns True if it existed."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()

    def _settle(self, entry: CacheEntry[Any], task: "asyncio.Future[Any]") -> None:
        entry.task = None
        if task.cancelled():
            entry.state = EntryState.FAILED
            entry.error = asyncio.CancelledError()
            # a cancelled fetch is not a real outcome; let the next caller retry
            if self._entries.get(entry.key) is entry:
                del self._entries[entry.key]
            return

        error = task.exception()
        if error is not None:
            entry.state = EntryState.FAILED
            entry.error = error
            logger.debug(f"Fetch failed for {entry.key!r}: {error}")
            return

        entry.state = EntryState.READY
        entry.value = task.result()
        entry.fetched_at = time.monotonic()

    def _is_expired(self, entry: CacheEntry[Any]) -> bool:
        if self._ttl is None or entry.state is not EntryState.READY or entry.fetched_at is None:
            return False
        return time.monotonic() - entry.fetched_at >= self._ttl

    def _evict(self) -> None:
        if self._max_entries is None:
            return
        while len(self._entries) > self._max_entries:
            victim = next(
                (k for k, e in self._entries.items() if e.state is not EntryState.PENDING),
                None,
            )
            if victim is None:
                return
            del self._entries[victim]
