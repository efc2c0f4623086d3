"""SWR-CacheX: stale-while-revalidate fetch cache with request deduplication."""

from .cache import SWRCache as SWRCache
from .client import DedupClient as DedupClient
from .decorator import cached as cached
from .dependencies import SWRCacheDep as SWRCacheDep
from .dependencies import get_swr_cache as get_swr_cache
from .keys import request_key as request_key
from .keys import resource_key as resource_key
from .policy import CachePolicy as CachePolicy
from .policy import SWRCacheConfig as SWRCacheConfig
from .proxy import CacheProxy as CacheProxy
from .routes import add_routes as add_routes
from .types import FetchResult as FetchResult

__all__ = [
    "CachePolicy",
    "CacheProxy",
    "DedupClient",
    "FetchResult",
    "SWRCache",
    "SWRCacheConfig",
    "SWRCacheDep",
    "add_routes",
    "cached",
    "get_swr_cache",
    "request_key",
    "resource_key",
]
