import inspect
from collections.abc import Callable
from functools import wraps
from logging import getLogger
from typing import Any
from typing import Optional

from swr_cachex.cache import SWRCache
from swr_cachex.exceptions import CacheError
from swr_cachex.exceptions import CacheNotFoundError
from swr_cachex.keys import resource_key
from swr_cachex.proxy import CacheProxy

logger = getLogger(__name__)

KeyBuilder = Callable[..., str]


def _resolve_cache(cache: Optional[SWRCache]) -> SWRCache:
    if cache is not None:
        return cache
    try:
        return CacheProxy.get_cache()
    except CacheNotFoundError:
        # Fallback to a fresh cache if none is registered
        fallback = SWRCache(name="fallback")
        logger.warning(
            "No cache registered, creating fallback cache <%s> with default policies",
            fallback.name,
        )
        CacheProxy.set_cache(fallback)
        return fallback


def cached(
    resource: str,
    *,
    cache: Optional[SWRCache] = None,
    ttl: Optional[float] = None,
    cooldown: Optional[float] = None,
    key_builder: Optional[KeyBuilder] = None,
) -> Callable:
    """Serve an async loader through the stale-while-revalidate cache.

    The key is ``resource`` plus the bound call arguments, so
    ``fetch_doctors(page=2)`` and ``fetch_doctors(2)`` share an entry.
    The wrapped function takes an extra ``force_refresh`` keyword and
    returns the (possibly stale) value.

    Example:
        @cached("doctors", ttl=300, cooldown=10)
        async def fetch_doctors(page: int = 1) -> list[dict]:
            ...
    """

    def decorator(func: Callable) -> Callable:
        if not inspect.iscoroutinefunction(func):
            msg = f"@cached requires an async function, got {func!r}"
            raise CacheError(msg)

        sig = inspect.signature(func)
        if "force_refresh" in sig.parameters:
            msg = f"{func.__qualname__} declares force_refresh, which @cached reserves"
            raise CacheError(msg)

        def key_for(*args: Any, **kwargs: Any) -> str:
            if key_builder is not None:
                return key_builder(*args, **kwargs)
            bound = sig.bind(*args, **kwargs)
            bound.apply_defaults()
            return resource_key(resource, dict(bound.arguments))

        @wraps(func)
        async def wrapper(*args: Any, force_refresh: bool = False, **kwargs: Any) -> Any:
            result = await _resolve_cache(cache).get(
                key_for(*args, **kwargs),
                lambda: func(*args, **kwargs),
                ttl=ttl,
                cooldown=cooldown,
                force_refresh=force_refresh,
            )
            return result.value

        def invalidate(*args: Any, **kwargs: Any) -> bool:
            return _resolve_cache(cache).invalidate(key_for(*args, **kwargs))

        def invalidate_all() -> int:
            return _resolve_cache(cache).invalidate_by_prefix(resource)

        wrapper.key_for = key_for  # type: ignore[attr-defined]
        wrapper.invalidate = invalidate  # type: ignore[attr-defined]
        wrapper.invalidate_all = invalidate_all  # type: ignore[attr-defined]
        return wrapper

    return decorator
