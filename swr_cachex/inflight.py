"""Registry of retrievals in progress, keyed by cache key."""

import asyncio
from logging import getLogger
from typing import Any
from typing import Optional

from swr_cachex.types import InFlightEntry
from swr_cachex.types import Loader

logger = getLogger(__name__)


class InFlightRegistry:
    """Share one pending retrieval between every caller of the same key."""

    def __init__(self) -> None:
        self._pending: dict[str, InFlightEntry] = {}

    def get(self, key: str) -> Optional[InFlightEntry]:
        return self._pending.get(key)

    def get_or_start(
        self,
        key: str,
        loader: Loader,
        *,
        replace: bool = False,
    ) -> "asyncio.Future[Any]":
        """Return the pending future for ``key``, starting ``loader`` if there is none.

        Args:
            key: Cache key identifying the retrieval
            loader: Zero-argument callable returning an awaitable
            replace: Start a new retrieval even if one is pending; the older
                future keeps running but is no longer handed out

        Returns:
            A future shared by every caller until it settles
        """
        if not replace:
            entry = self._pending.get(key)
            if entry is not None:
                logger.debug("Joining in-flight retrieval for <%s>", key)
                return entry.future

        try:
            awaitable = loader()
        except Exception as exc:
            # Never registered, so nothing to remove
            future = asyncio.get_running_loop().create_future()
            future.set_exception(exc)
            future.add_done_callback(_consume_exception)
            return future

        future = asyncio.ensure_future(awaitable)
        self._pending[key] = InFlightEntry(future=future)
        future.add_done_callback(lambda f: self._settle(key, f))
        return future

    def _settle(self, key: str, future: "asyncio.Future[Any]") -> None:
        entry = self._pending.get(key)
        if entry is not None and entry.future is future:
            del self._pending[key]
        _consume_exception(future)

    def discard(self, key: str) -> bool:
        """Stop handing out the pending future for ``key`` without cancelling it."""
        return self._pending.pop(key, None) is not None

    def discard_prefix(self, prefix: str) -> int:
        matched = [k for k in self._pending if k.startswith(prefix)]
        for key in matched:
            del self._pending[key]
        return len(matched)

    def keys(self) -> list[str]:
        return list(self._pending.keys())

    def __contains__(self, key: object) -> bool:
        return key in self._pending

    def __len__(self) -> int:
        return len(self._pending)


def _consume_exception(future: "asyncio.Future[Any]") -> None:
    # Mark the exception retrieved; waiters still receive it
    if not future.cancelled():
        future.exception()
