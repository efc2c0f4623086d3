"""Proxy holding the application-wide cache instance."""

from logging import getLogger
from typing import TYPE_CHECKING
from typing import Optional

from .exceptions import CacheNotFoundError

if TYPE_CHECKING:
    from .cache import SWRCache

_default_cache: Optional["SWRCache"] = None
logger = getLogger(__name__)


class CacheProxy:
    """SWR-CacheX Proxy for cache instance management."""

    @staticmethod
    def get_cache() -> "SWRCache":
        """Get the registered cache instance.

        Returns:
            The cache built at application start

        Raises:
            CacheNotFoundError: If no cache has been set
        """
        if _default_cache is None:
            msg = "Cache is not set. Please set the cache first."
            raise CacheNotFoundError(msg)

        return _default_cache

    @staticmethod
    def set_cache(cache: Optional["SWRCache"]) -> None:
        """Set the cache instance shared by the application.

        Args:
            cache: The cache to share, or None to clear the current one
        """
        global _default_cache
        logger.info(
            "Setting cache to: <%s>",
            cache.name if cache is not None else "None",
        )
        _default_cache = cache
