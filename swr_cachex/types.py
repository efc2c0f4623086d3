"""Type definitions and type aliases for SWR-CacheX."""

import asyncio
from collections.abc import Awaitable
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from typing import Optional

# Cache key separator - using ||| to avoid conflicts with port numbers in host (e.g., 127.0.0.1:8000)
CACHE_KEY_SEPARATOR = "|||"

Loader = Callable[[], Awaitable[Any]]
Clock = Callable[[], float]
Subscriber = Callable[[str, Any], None]


@dataclass
class CacheEntry:
    """Latest known-good value for a key.

    Args:
        value: The cached value
        fetched_at: Clock reading when the value was written
        generation: Retrieval generation that produced the value
    """

    value: Any
    fetched_at: float
    generation: int = 0


@dataclass
class InFlightEntry:
    """A retrieval in progress for a key."""

    future: "asyncio.Future[Any]"


@dataclass
class CooldownEntry:
    """End of the backoff window after a failed retrieval."""

    until: float


@dataclass
class FetchResult:
    """What a cache lookup hands back to the caller.

    Args:
        value: The cached or freshly loaded value, or the unavailable default
        is_stale: True when the value is older than its TTL
        error: The last background failure, or the cooldown that suppressed a load
    """

    value: Any = None
    is_stale: bool = False
    error: Optional[BaseException] = None
