from typing import Optional


class SWRCacheXError(Exception):
    """Base class for all exceptions in SWR-CacheX."""


class CacheError(SWRCacheXError):
    """Exception raised for cache-related errors."""


class CacheNotFoundError(CacheError):
    """Exception raised when no cache instance has been registered."""


class CooldownActiveError(SWRCacheXError):
    """A retrieval was skipped because the key is cooling down after a failure."""

    def __init__(self, key: str, remaining: float) -> None:
        self.key = key
        self.remaining = remaining
        super().__init__(f"Cooldown active for {key!r} ({remaining:.1f}s remaining)")


class NetworkFailure(SWRCacheXError):
    """Exception raised when a loader's HTTP call fails.

    Args:
        message: Human readable reason, taken from the response body when present
        status_code: HTTP status of the response (None for transport errors)
        url: The requested URL
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.url = url
        super().__init__(message)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(status_code={self.status_code!r}, "
            f"message={self.message!r}, url={self.url!r})"
        )
