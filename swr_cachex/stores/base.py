from abc import ABC
from abc import abstractmethod
from typing import Any
from typing import Optional

from swr_cachex.types import CacheEntry


class BaseCacheStore(ABC):
    """Base class for all cache stores.

    Stores are plain synchronous data holders: the orchestrator relies on
    no suspension point between reading an entry and registering a
    retrieval for it.
    """

    @abstractmethod
    def read(self, key: str) -> Optional[CacheEntry]:
        """Retrieve the entry for a key."""

    @abstractmethod
    def write(self, key: str, value: Any, generation: int = 0) -> CacheEntry:
        """Store a value stamped with the current time, overwriting any entry."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove an entry from the store."""

    @abstractmethod
    def delete_prefix(self, prefix: str) -> int:
        """Remove every entry whose key starts with ``prefix``."""

    @abstractmethod
    def clear(self) -> None:
        """Remove all entries."""

    @abstractmethod
    def get_all_keys(self) -> list[str]:
        """Return every stored key."""

    @abstractmethod
    def get_cache_data(self) -> dict[str, CacheEntry]:
        """Return a snapshot of every stored entry."""
