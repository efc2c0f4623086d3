import asyncio
import copy
import time
from collections import Counter
from collections.abc import Callable
from logging import getLogger
from typing import Any
from typing import Optional

from swr_cachex.backoff import FailureBackoff
from swr_cachex.exceptions import CooldownActiveError
from swr_cachex.inflight import InFlightRegistry
from swr_cachex.models import CacheStats
from swr_cachex.models import EntryInfo
from swr_cachex.policy import CachePolicy
from swr_cachex.policy import SWRCacheConfig
from swr_cachex.stores import BaseCacheStore
from swr_cachex.stores import MemoryStore
from swr_cachex.types import CacheEntry
from swr_cachex.types import Clock
from swr_cachex.types import FetchResult
from swr_cachex.types import Loader
from swr_cachex.types import Subscriber

logger = getLogger(__name__)

_MISSING: Any = object()


class SWRCache:
    """Stale-while-revalidate cache with in-flight deduplication and failure cooldown.

    A single instance is meant to be built at application start and handed
    to every consumer (see ``CacheProxy``). Only this class writes the store;
    callers may read through ``get``/``peek`` and drop entries through the
    ``invalidate*`` methods.

    Args:
        store: Where entries live (defaults to a ``MemoryStore`` on ``clock``)
        config: Per-family TTL and cooldown settings
        clock: Monotonic time source in seconds
        name: Label used in log messages
    """

    def __init__(
        self,
        store: Optional[BaseCacheStore] = None,
        *,
        config: Optional[SWRCacheConfig] = None,
        clock: Clock = time.monotonic,
        name: str = "default",
    ) -> None:
        self.clock = clock
        self.store = store if store is not None else MemoryStore(clock=clock)
        self.config = config if config is not None else SWRCacheConfig()
        self.name = name
        self._inflight = InFlightRegistry()
        self._backoff = FailureBackoff(clock=clock)
        self._generations: dict[str, int] = {}
        self._floors: dict[str, int] = {}
        self._running: dict[str, int] = {}
        self._errors: dict[str, BaseException] = {}
        self._subscribers: list[tuple[str, Subscriber]] = []
        self._tasks: set[asyncio.Future[Any]] = set()
        self._counters: Counter[str] = Counter()

    def policy_for(self, key: str) -> CachePolicy:
        return self.config.policy_for(key)

    async def get(
        self,
        key: str,
        loader: Loader,
        *,
        ttl: Optional[float] = None,
        cooldown: Optional[float] = None,
        force_refresh: bool = False,
        default: Any = _MISSING,
        store: bool = True,
    ) -> FetchResult:
        """Return the value for ``key``, loading or revalidating it as needed.

        A cached value is returned immediately, stale or not; once it is
        older than ``ttl`` (or ``force_refresh`` is set) a background
        refresh is started. Without a cached value the caller waits on the
        shared retrieval and its failure is raised. While a failure
        cooldown is active and nothing is cached, ``loader`` is not called
        and ``default`` is returned with a ``CooldownActiveError``.

        Args:
            key: Cache key, see ``resource_key`` and ``request_key``
            loader: Zero-argument callable returning an awaitable
            ttl: Overrides the policy TTL in seconds
            cooldown: Overrides the policy cooldown in seconds
            force_refresh: Always hit the network, ignoring TTL, cooldown
                and any pending retrieval
            default: Overrides the policy's unavailable value
            store: When False, only deduplicate concurrent calls and keep nothing

        Raises:
            Exception: Whatever ``loader`` raised, when no cached value exists
        """
        policy = self.policy_for(key)
        ttl = policy.ttl if ttl is None else ttl
        cooldown = policy.cooldown if cooldown is None else cooldown

        entry = self.store.read(key) if store else None
        if entry is not None:
            is_stale = self._is_stale(entry, ttl)
            if is_stale:
                self._counters["stale_hits"] += 1
            else:
                self._counters["hits"] += 1
            if is_stale or force_refresh:
                self._revalidate(key, loader, cooldown, force_refresh)
            return FetchResult(
                value=entry.value, is_stale=is_stale, error=self._errors.get(key)
            )

        if not force_refresh:
            remaining = self._backoff.remaining(key)
            if remaining > 0:
                self._counters["cooldown_skips"] += 1
                logger.debug(
                    "Skipping retrieval for <%s>: cooling down for %.1fs", key, remaining
                )
                if default is _MISSING:
                    default = policy.default
                return FetchResult(
                    value=copy.deepcopy(default),
                    error=CooldownActiveError(key, remaining),
                )

        self._counters["misses"] += 1
        future = self._start(key, loader, cooldown, store=store, replace=force_refresh)
        value = await asyncio.shield(future)
        return FetchResult(value=value)

    def peek(self, key: str, ttl: Optional[float] = None) -> Optional[FetchResult]:
        """Return the cached value for ``key`` without loading anything."""
        entry = self.store.read(key)
        if entry is None:
            return None
        if ttl is None:
            ttl = self.policy_for(key).ttl
        return FetchResult(
            value=entry.value,
            is_stale=self._is_stale(entry, ttl),
            error=self._errors.get(key),
        )

    def last_error(self, key: str) -> Optional[BaseException]:
        return self._errors.get(key)

    def is_cooling_down(self, key: str) -> bool:
        return self._backoff.is_active(key)

    def _is_stale(self, entry: CacheEntry, ttl: float) -> bool:
        return self.clock() - entry.fetched_at >= ttl

    def _revalidate(
        self, key: str, loader: Loader, cooldown: Optional[float], force: bool
    ) -> None:
        self._counters["revalidations"] += 1
        logger.debug("Revalidating <%s> in the background", key)
        self._start(key, loader, cooldown, store=True, replace=force)

    def _start(
        self,
        key: str,
        loader: Loader,
        cooldown: Optional[float],
        *,
        store: bool,
        replace: bool,
    ) -> "asyncio.Future[Any]":
        def run() -> Any:
            if not store:
                # Nothing is written, so nothing needs fencing
                return self._retrieve(key, loader, 0, cooldown, store)
            entry = self.store.read(key)
            generation = max(
                self._generations.get(key, 0),
                entry.generation if entry is not None else 0,
            ) + 1
            self._generations[key] = generation
            self._running[key] = self._running.get(key, 0) + 1
            return self._retrieve(key, loader, generation, cooldown, store)

        future = self._inflight.get_or_start(key, run, replace=replace)
        if not future.done():
            self._tasks.add(future)
            future.add_done_callback(self._tasks.discard)
        return future

    async def _retrieve(
        self,
        key: str,
        loader: Loader,
        generation: int,
        cooldown: Optional[float],
        store: bool,
    ) -> Any:
        try:
            try:
                value = await loader()
            except Exception as exc:
                if store:
                    self._record_failure(key, exc, generation, cooldown)
                else:
                    self._counters["failures"] += 1
                raise

            if store:
                self._commit(key, value, generation)
            return value
        finally:
            if store:
                self._release(key)

    def _release(self, key: str) -> None:
        running = self._running.get(key, 0) - 1
        if running > 0:
            self._running[key] = running
            return
        # Stored entries carry their own generation; counters are only
        # needed while a retrieval for the key can still write
        self._running.pop(key, None)
        self._generations.pop(key, None)
        self._floors.pop(key, None)

    def _is_current(self, key: str, generation: int) -> bool:
        if generation <= self._floors.get(key, 0):
            return False
        entry = self.store.read(key)
        return entry is None or generation > entry.generation

    def _commit(self, key: str, value: Any, generation: int) -> None:
        if not self._is_current(key, generation):
            self._counters["discarded_writes"] += 1
            logger.debug(
                "Discarding out-of-order result for <%s> (generation %d)", key, generation
            )
            return

        self.store.write(key, value, generation)
        self._errors.pop(key, None)
        self._backoff.clear(key)
        self._notify(key, value)

    def _record_failure(
        self,
        key: str,
        exc: Exception,
        generation: int,
        cooldown: Optional[float],
    ) -> None:
        self._counters["failures"] += 1
        if not self._is_current(key, generation):
            logger.debug("Ignoring failure of superseded retrieval for <%s>", key)
            return

        self._errors[key] = exc
        self._backoff.record_failure(key, cooldown)
        logger.warning("Retrieval for <%s> failed: %r", key, exc)

    def subscribe(self, callback: Subscriber, prefix: str = "") -> Callable[[], None]:
        """Call ``callback(key, value)`` after every accepted write under ``prefix``.

        Returns:
            A function that removes the subscription
        """
        subscription = (prefix, callback)
        self._subscribers.append(subscription)

        def unsubscribe() -> None:
            for index, existing in enumerate(self._subscribers):
                if existing is subscription:
                    del self._subscribers[index]
                    return

        return unsubscribe

    def _notify(self, key: str, value: Any) -> None:
        for prefix, callback in list(self._subscribers):
            if not key.startswith(prefix):
                continue
            try:
                callback(key, value)
            except Exception:
                logger.exception("Cache subscriber %r failed for <%s>", callback, key)

    def invalidate(self, key: str) -> bool:
        """Drop the entry for ``key``; pending retrievals can no longer write it."""
        removed = self.store.delete(key)
        self._fence(key)
        self._backoff.clear(key)
        self._errors.pop(key, None)
        self._inflight.discard(key)
        logger.info("Invalidated <%s> in cache <%s>", key, self.name)
        return removed

    def invalidate_by_prefix(self, prefix: str) -> int:
        """Drop every entry whose key starts with ``prefix``.

        Returns:
            Number of stored entries removed
        """
        removed = self.store.delete_prefix(prefix)
        for key in list(self._running):
            if key.startswith(prefix):
                self._fence(key)
        for key in [k for k in self._errors if k.startswith(prefix)]:
            del self._errors[key]
        self._backoff.clear_prefix(prefix)
        self._inflight.discard_prefix(prefix)
        logger.info(
            "Invalidated %d entries with prefix <%s> in cache <%s>",
            removed,
            prefix,
            self.name,
        )
        return removed

    def invalidate_all(self) -> int:
        removed = len(self.store.get_all_keys())
        self.store.clear()
        for key in list(self._running):
            self._fence(key)
        self._errors.clear()
        self._backoff.reset()
        self._inflight.discard_prefix("")
        logger.info("Invalidated all %d entries in cache <%s>", removed, self.name)
        return removed

    def _fence(self, key: str) -> None:
        if key in self._running:
            self._floors[key] = self._generations.get(key, 0)

    def inspect(self) -> list[EntryInfo]:
        """Describe every stored entry and every pending retrieval."""
        now = self.clock()
        data = self.store.get_cache_data()
        infos = []
        for key, entry in data.items():
            error = self._errors.get(key)
            infos.append(
                EntryInfo(
                    key=key,
                    age=now - entry.fetched_at,
                    is_stale=self._is_stale(entry, self.policy_for(key).ttl),
                    generation=entry.generation,
                    cooldown_remaining=self._backoff.remaining(key),
                    in_flight=key in self._inflight,
                    error=repr(error) if error is not None else None,
                )
            )
        for key in self._inflight.keys():
            if key not in data:
                infos.append(
                    EntryInfo(
                        key=key,
                        generation=self._generations.get(key, 0),
                        cooldown_remaining=self._backoff.remaining(key),
                        in_flight=True,
                    )
                )
        return infos

    def stats(self) -> CacheStats:
        return CacheStats(
            **self._counters,
            entries=len(self.store.get_all_keys()),
            in_flight=len(self._inflight),
        )

    async def wait_idle(self) -> None:
        """Wait until every retrieval started by this cache has settled."""
        while True:
            pending = [f for f in self._tasks if not f.done()]
            if not pending:
                return
            await asyncio.gather(
                *(asyncio.shield(f) for f in pending), return_exceptions=True
            )
