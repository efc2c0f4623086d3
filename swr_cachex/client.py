"""HTTP client that collapses concurrent identical GET requests."""

from collections.abc import Callable
from collections.abc import Mapping
from logging import getLogger
from typing import Any
from typing import Optional

import httpx

from .cache import SWRCache
from .exceptions import NetworkFailure
from .keys import request_key
from .policy import DEDUP_ONLY

logger = getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]


class DedupClient:
    """Thin wrapper around ``httpx.AsyncClient`` for a JSON REST backend.

    GET requests with the same url, params and explicit headers that
    overlap in time share a single round trip; once it settles the next
    call goes to the network again. Other methods are sent as-is. Every
    failure is raised as ``NetworkFailure``, including timeouts, non-2xx
    statuses and bodies that are not JSON.

    Args:
        base_url: Backend root, e.g. ``http://localhost:5000/api``
        cache: Cache whose in-flight registry deduplicates GETs (a private one by default)
        timeout: Per-request timeout in seconds
        token_provider: Returns the bearer token to attach, or None
        transport: Optional httpx transport, mostly for tests
    """

    def __init__(
        self,
        base_url: str,
        *,
        cache: Optional[SWRCache] = None,
        timeout: float = 30.0,
        token_provider: Optional[TokenProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.cache = cache if cache is not None else SWRCache(name="http-dedup")
        self.token_provider = token_provider
        self._client = httpx.AsyncClient(
            base_url=base_url, timeout=timeout, transport=transport
        )

    async def __aenter__(self) -> "DedupClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self, headers: Optional[Mapping[str, str]]) -> dict[str, str]:
        merged = dict(headers or {})
        if self.token_provider is None:
            return merged
        if any(k.lower() == "authorization" for k in merged):
            return merged
        token = self.token_provider()
        if token:
            merged["Authorization"] = f"Bearer {token}"
        return merged

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """Send a request and return the decoded JSON body (None when empty)."""
        try:
            response = await self._client.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers(headers),
            )
        except httpx.TimeoutException as exc:
            msg = f"Request timed out: {method} {url}"
            raise NetworkFailure(msg, url=url) from exc
        except httpx.HTTPError as exc:
            msg = f"Request failed: {method} {url}: {exc}"
            raise NetworkFailure(msg, url=url) from exc

        if response.is_error:
            raise NetworkFailure(
                _error_message(response),
                status_code=response.status_code,
                url=str(response.request.url),
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            msg = f"Invalid JSON response: {method} {url}"
            raise NetworkFailure(
                msg, status_code=response.status_code, url=str(response.request.url)
            ) from exc

    async def get(
        self,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        key = request_key("GET", url, params, headers)
        result = await self.cache.get(
            key,
            lambda: self.request("GET", url, params=params, headers=headers),
            ttl=DEDUP_ONLY.ttl,
            cooldown=DEDUP_ONLY.cooldown,
            store=False,
        )
        return result.value

    async def post(self, url: str, json: Any = None, **kwargs: Any) -> Any:
        return await self.request("POST", url, json=json, **kwargs)

    async def put(self, url: str, json: Any = None, **kwargs: Any) -> Any:
        return await self.request("PUT", url, json=json, **kwargs)

    async def patch(self, url: str, json: Any = None, **kwargs: Any) -> Any:
        return await self.request("PATCH", url, json=json, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", url, **kwargs)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HTTP {response.status_code}: {response.reason_phrase}"
