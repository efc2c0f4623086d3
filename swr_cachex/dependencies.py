"""FastAPI dependencies for accessing the cache."""

from typing import Annotated

from fastapi import Depends

from .cache import SWRCache
from .proxy import CacheProxy


def get_swr_cache() -> SWRCache:
    """Return the cache registered with ``CacheProxy``.

    Raises:
        CacheNotFoundError: If no cache has been set
    """
    return CacheProxy.get_cache()


SWRCacheDep = Annotated[SWRCache, Depends(get_swr_cache)]
