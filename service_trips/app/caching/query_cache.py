"""
Keyed query cache with per-kind staleness and in-flight deduplication.

All operations are synchronous and run on the event loop thread; only the
fetcher suspends. A read that needs data schedules a single fetch task per
key and returns a snapshot immediately. Settlement is delivered to
subscribers, or awaited explicitly with ``ensure``.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

from shared.config import CacheTTLs
from shared.errors import FetchError
from shared.logging import get_logger

from .query_keys import KeyLike, QueryKey


Fetcher = Callable[[], Awaitable[Any]]
Listener = Callable[["QueryState"], None]


@dataclass(frozen=True)
class QueryState:
    """Read-only view of a cache entry handed to the view layer."""

    key: QueryKey
    status: str
    data: Any = None
    error: Optional[FetchError] = None
    fetched_at: Optional[float] = None
    is_stale: bool = True

    @property
    def is_fetching(self) -> bool:
        return self.status == "fetching"

    @property
    def has_data(self) -> bool:
        return self.fetched_at is not None


@dataclass
class CacheEntry:
    """Mutable cache record. Only ``QueryCache`` touches these."""

    key: QueryKey
    ttl: float
    status: str = "idle"  # idle | success | error
    data: Any = None
    error: Optional[FetchError] = None
    fetched_at: Optional[float] = None
    invalidated: bool = False
    generation: int = 0

    def is_stale(self, now: float) -> bool:
        if self.fetched_at is None or self.invalidated:
            return True
        return now - self.fetched_at >= self.ttl


@dataclass
class InFlightRequest:
    """The single running fetch for a key; concurrent readers share it."""

    key: QueryKey
    entry: CacheEntry
    generation: int
    future: "asyncio.Future[QueryState]"
    task: Optional["asyncio.Task[None]"] = None
    started_at: float = field(default=0.0)


class QueryCache:
    """Query cache owned by one view tree. Construct one per isolated context."""

    def __init__(self, ttls: Optional[CacheTTLs] = None, *, clock: Callable[[], float] = time.monotonic):
        self.ttls = ttls or CacheTTLs()
        self._clock = clock
        self.logger = get_logger("trips.cache")

        self._entries: Dict[QueryKey, CacheEntry] = {}
        self._in_flight: Dict[QueryKey, InFlightRequest] = {}
        # Fetches for evicted entries, still running; new fetches for the key wait on them
        self._draining: Dict[QueryKey, InFlightRequest] = {}
        self._listeners: Dict[QueryKey, List[Listener]] = {}
        self._tasks: Set["asyncio.Task[None]"] = set()

    # Public operations

    def read(self, key: KeyLike, fetcher: Fetcher, ttl: Optional[float] = None) -> QueryState:
        """Return the cached state, starting a deduplicated fetch when stale.

        Never raises for fetch failures; those land on the entry as
        ``status="error"`` with any previous data kept.
        """
        key = QueryKey.coerce(key)
        entry = self._entries.get(key)
        if entry is None:
            entry = CacheEntry(key=key, ttl=self._ttl_for(key, ttl))
            self._entries[key] = entry
        elif ttl is not None:
            entry.ttl = ttl

        if key in self._in_flight:
            return self._snapshot(entry)

        if not entry.is_stale(self._clock()):
            return self._snapshot(entry)

        self._start_fetch(entry, fetcher)
        return self._snapshot(entry)

    async def ensure(self, key: KeyLike, fetcher: Fetcher, ttl: Optional[float] = None) -> QueryState:
        """``read`` and wait for the in-flight request, if any, to settle."""
        key = QueryKey.coerce(key)
        state = self.read(key, fetcher, ttl)
        request = self._in_flight.get(key)
        if request is None:
            return state
        return await asyncio.shield(request.future)

    def invalidate(self, key_or_prefix: KeyLike) -> int:
        """Mark matching entries stale without dropping their data."""
        prefix = QueryKey.coerce(key_or_prefix)
        matched = [entry for key, entry in self._entries.items() if key.starts_with(prefix)]
        for entry in matched:
            entry.invalidated = True
            entry.generation += 1
        for entry in matched:
            self._notify(entry.key)

        self.logger.debug("Invalidated cache entries", prefix=repr(prefix), count=len(matched))
        return len(matched)

    def remove(self, key_or_prefix: KeyLike) -> int:
        """Evict matching entries.

        In-flight fetches for evicted keys still resolve their callers but no
        longer write to the cache. A fetch started for the same key afterwards
        waits for them to finish before calling its fetcher.
        """
        prefix = QueryKey.coerce(key_or_prefix)
        matched = [key for key in self._entries if key.starts_with(prefix)]
        for key in matched:
            del self._entries[key]
            request = self._in_flight.pop(key, None)
            if request is not None:
                self._draining[key] = request
        for key in matched:
            self._notify(key)

        self.logger.debug("Removed cache entries", prefix=repr(prefix), count=len(matched))
        return len(matched)

    def write(self, key: KeyLike, value: Any) -> QueryState:
        """Seed or overwrite an entry as a fresh success."""
        key = QueryKey.coerce(key)
        entry = self._entries.get(key)
        if entry is None:
            entry = CacheEntry(key=key, ttl=self._ttl_for(key, None))
            self._entries[key] = entry

        entry.data = value
        entry.status = "success"
        entry.error = None
        entry.fetched_at = self._clock()
        entry.invalidated = False
        entry.generation += 1

        self._notify(key)
        return self._snapshot(entry)

    def subscribe(self, key: KeyLike, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for changes to ``key``; returns the unsubscriber."""
        key = QueryKey.coerce(key)
        listeners = self._listeners.setdefault(key, [])
        listeners.append(listener)

        def unsubscribe() -> None:
            current = self._listeners.get(key)
            if current and listener in current:
                current.remove(listener)
                if not current:
                    del self._listeners[key]

        return unsubscribe

    # Accessors

    def peek(self, key: KeyLike) -> Optional[QueryState]:
        key = QueryKey.coerce(key)
        entry = self._entries.get(key)
        return self._snapshot(entry) if entry is not None else None

    def is_fetching(self, key: KeyLike) -> bool:
        return QueryKey.coerce(key) in self._in_flight

    def keys(self) -> List[QueryKey]:
        return list(self._entries)

    async def settle_all(self) -> None:
        """Wait until every running fetch task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    # Internals

    def _ttl_for(self, key: QueryKey, ttl: Optional[float]) -> float:
        if ttl is not None:
            return ttl
        return self.ttls.for_kind(key.kind)

    def _start_fetch(self, entry: CacheEntry, fetcher: Fetcher) -> None:
        loop = asyncio.get_running_loop()
        request = InFlightRequest(
            key=entry.key,
            entry=entry,
            generation=entry.generation,
            future=loop.create_future(),
            started_at=self._clock(),
        )
        self._in_flight[entry.key] = request

        task = loop.create_task(self._run_fetch(request, fetcher, after=self._draining.get(entry.key)))
        request.task = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        self.logger.debug("Fetch started", key=repr(entry.key))
        self._notify(entry.key)

    async def _run_fetch(self, request: InFlightRequest, fetcher: Fetcher,
                         after: Optional[InFlightRequest] = None) -> None:
        try:
            if after is not None:
                await asyncio.wait({after.future})
            value = await fetcher()
        except asyncio.CancelledError:
            self._release(request)
            request.future.cancel()
            raise
        except Exception as exc:
            self._settle(request, error=exc)
        else:
            self._settle(request, value=value)

    def _release(self, request: InFlightRequest) -> bool:
        """Drop the in-flight handle; True if the entry is still cached."""
        if self._in_flight.get(request.key) is request:
            del self._in_flight[request.key]
        if self._draining.get(request.key) is request:
            del self._draining[request.key]
        return self._entries.get(request.key) is request.entry

    def _settle(self, request: InFlightRequest, value: Any = None, error: Optional[Exception] = None) -> None:
        entry = request.entry
        live = self._release(request)

        if error is not None:
            entry.status = "error"
            entry.error = FetchError(error)
            self.logger.warning(
                "Fetch failed",
                key=repr(request.key),
                error=str(error),
                kept_previous_data=entry.fetched_at is not None,
            )
        else:
            entry.data = value
            entry.status = "success"
            entry.error = None
            entry.fetched_at = self._clock()
            # Invalidated or overwritten while in flight: keep the result, refetch on next read
            entry.invalidated = entry.generation != request.generation
            self.logger.debug(
                "Fetch settled",
                key=repr(request.key),
                duration=entry.fetched_at - request.started_at,
                superseded=entry.invalidated,
            )

        state = self._snapshot(entry)
        if live:
            self._notify(request.key)
        else:
            self.logger.debug("Settled fetch for evicted entry discarded", key=repr(request.key))

        if not request.future.done():
            request.future.set_result(state)

    def _snapshot(self, entry: CacheEntry) -> QueryState:
        fetching = self._in_flight.get(entry.key)
        status = "fetching" if fetching is not None and fetching.entry is entry else entry.status
        return QueryState(
            key=entry.key,
            status=status,
            data=entry.data,
            error=entry.error,
            fetched_at=entry.fetched_at,
            is_stale=entry.is_stale(self._clock()),
        )

    def _notify(self, key: QueryKey) -> None:
        listeners = self._listeners.get(key)
        if not listeners:
            return

        entry = self._entries.get(key)
        state = self._snapshot(entry) if entry is not None else QueryState(key=key, status="idle")
        for listener in list(listeners):
            try:
                listener(state)
            except Exception as exc:
                self.logger.error("Cache listener failed", key=repr(key), error=str(exc))
