import time
from dataclasses import replace
from typing import Any
from typing import Optional

from swr_cachex.types import CacheEntry
from swr_cachex.types import Clock

from .base import BaseCacheStore


class MemoryStore(BaseCacheStore):
    """In-memory cache store implementation."""

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self.cache: dict[str, CacheEntry] = {}
        self.clock = clock

    def read(self, key: str) -> Optional[CacheEntry]:
        return self.cache.get(key)

    def write(self, key: str, value: Any, generation: int = 0) -> CacheEntry:
        entry = CacheEntry(value=value, fetched_at=self.clock(), generation=generation)
        self.cache[key] = entry
        return entry

    def delete(self, key: str) -> bool:
        return self.cache.pop(key, None) is not None

    def delete_prefix(self, prefix: str) -> int:
        matched = [k for k in self.cache if k.startswith(prefix)]
        for key in matched:
            self.cache.pop(key, None)
        return len(matched)

    def clear(self) -> None:
        self.cache.clear()

    def get_all_keys(self) -> list[str]:
        return list(self.cache.keys())

    def get_cache_data(self) -> dict[str, CacheEntry]:
        return {k: replace(v) for k, v in self.cache.items()}

    def __len__(self) -> int:
        return len(self.cache)
