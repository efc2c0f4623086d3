"""Deterministic cache keys for resources and raw requests."""

import json
from collections.abc import Mapping
from typing import Any
from typing import Optional

from swr_cachex.types import CACHE_KEY_SEPARATOR


def canonical_params(params: Optional[Mapping[str, Any]]) -> str:
    """Serialize query or filter arguments independent of their ordering.

    ``None`` values are dropped the same way a query string would drop them.
    """
    if not params:
        return ""
    cleaned = {str(k): v for k, v in params.items() if v is not None}
    if not cleaned:
        return ""
    return json.dumps(cleaned, sort_keys=True, separators=(",", ":"), default=str)


def resource_key(resource: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """Build the key for a logical resource and its filter arguments.

    A resource without arguments is keyed by its bare name, so a prefix
    invalidation on the resource name reaches every filtered variant.

    Example:
        >>> resource_key("doctors", {"page": 2, "limit": 100})
        'doctors|||{"limit":100,"page":2}'
    """
    serialized = canonical_params(params)
    if not serialized:
        return resource
    return f"{resource}{CACHE_KEY_SEPARATOR}{serialized}"


def request_key(
    method: str,
    url: str,
    params: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> str:
    """Build the key for a raw HTTP request: ``METHOD|||url|||params``.

    Explicit headers are appended as a fourth segment with lowercased names,
    so requests sent with different credentials never share a response.
    """
    parts = [method.upper(), url, canonical_params(params)]
    if headers:
        parts.append(canonical_params({k.lower(): v for k, v in headers.items()}))
    return CACHE_KEY_SEPARATOR.join(parts)
