"""Diagnostics routes exposing the state of the registered cache."""

from logging import getLogger
from typing import Optional

from fastapi import APIRouter
from fastapi import FastAPI
from fastapi import Query
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.status import HTTP_503_SERVICE_UNAVAILABLE

from .cache import SWRCache
from .dependencies import SWRCacheDep
from .exceptions import CacheNotFoundError
from .models import CacheStats
from .models import EntriesResponse
from .proxy import CacheProxy

logger = getLogger(__name__)


def _current_cache() -> Optional[SWRCache]:
    try:
        return CacheProxy.get_cache()
    except CacheNotFoundError:
        return None


async def _cache_not_found_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    return JSONResponse(
        status_code=HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc)},
    )


def add_routes(app: FastAPI, prefix: str = "/swr-cache") -> None:
    """Mount the cache diagnostics routes on ``app``.

    Routes:
        GET    {prefix}/entries  list stored entries and pending retrievals
        DELETE {prefix}/entries  invalidate by ``prefix`` query (all when omitted)
        GET    {prefix}/stats    cache counters
    """
    router = APIRouter(prefix=prefix, tags=["swr-cache"])

    @router.get("/entries", response_model=EntriesResponse)
    async def list_entries() -> EntriesResponse:
        cache = _current_cache()
        if cache is None:
            return EntriesResponse()

        entries = sorted(cache.inspect(), key=lambda e: e.key)
        return EntriesResponse(
            entries=entries,
            total=len(entries),
            stale=sum(1 for e in entries if e.is_stale),
            stats=cache.stats(),
        )

    @router.delete("/entries")
    async def invalidate_entries(
        key_prefix: Optional[str] = Query(default=None, alias="prefix"),
    ) -> dict[str, int]:
        cache = _current_cache()
        if cache is None:
            return {"invalidated": 0}

        if key_prefix:
            invalidated = cache.invalidate_by_prefix(key_prefix)
        else:
            invalidated = cache.invalidate_all()
        return {"invalidated": invalidated}

    @router.get("/stats", response_model=CacheStats)
    async def cache_stats(cache: SWRCacheDep) -> CacheStats:
        return cache.stats()

    app.include_router(router)
    app.add_exception_handler(CacheNotFoundError, _cache_not_found_handler)
    logger.info("Added cache diagnostics routes under <%s>", prefix)
