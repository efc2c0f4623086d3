"""Cache store implementations for SWR-CacheX."""

from .base import BaseCacheStore
from .memory import MemoryStore

__all__ = [
    "BaseCacheStore",
    "MemoryStore",
]
