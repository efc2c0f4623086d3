"""Cached admin dashboard resources backed by the clinic REST API."""

import asyncio
import copy
import time
from collections.abc import Callable
from collections.abc import Mapping
from dataclasses import dataclass
from logging import getLogger
from typing import Any
from typing import Optional

from .cache import SWRCache
from .client import DedupClient
from .exceptions import NetworkFailure
from .keys import resource_key
from .policy import CachePolicy
from .policy import SWRCacheConfig
from .types import Subscriber

logger = getLogger(__name__)

MEDICINES_PAGE_SIZE = 24
DOCTORS_DEFAULT_LIMIT = 100

ADMIN_POLICIES: dict[str, CachePolicy] = {
    "stats": CachePolicy(ttl=300),
    "doctors": CachePolicy(ttl=300, cooldown=10, default=[], cache_bust_param="_t"),
    "medicines": CachePolicy(
        ttl=300, default={"medicines": [], "pagination": None}
    ),
    "medicine-categories": CachePolicy(ttl=1500, default=[]),
    "lab-bookings": CachePolicy(ttl=300),
    "orders": CachePolicy(ttl=300),
}


def admin_cache_config() -> SWRCacheConfig:
    return SWRCacheConfig(families=copy.deepcopy(ADMIN_POLICIES))


@dataclass
class MutationResult:
    """Outcome of a write against the backend."""

    success: bool
    data: Any = None
    error: Optional[str] = None


def _is_active(medicine: Any) -> bool:
    if not isinstance(medicine, dict):
        return False
    flag = medicine.get("isActive")
    if flag is False:
        return False
    return str(flag).lower() not in ("false", "0")


def _doctors_list(body: Any) -> list[Any]:
    doctors = body.get("doctors") if isinstance(body, dict) else None
    return list(doctors) if isinstance(doctors, list) else []


def _clean_filters(filters: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    cleaned = {}
    for name, value in (filters or {}).items():
        if value is None or value == "":
            continue
        if isinstance(value, float) and value != value:
            continue
        if name == "category" and value == "all":
            continue
        cleaned[name] = value
    return cleaned


class AdminStore:
    """Admin dashboard data: stats, doctors, medicines, lab bookings and orders.

    Reads go through the stale-while-revalidate cache, so once a resource
    has loaded the dashboard keeps showing it even while the backend is
    failing. Read methods never raise on network failures; they fall back
    to the family's unavailable value. Doctor mutations invalidate the
    doctors lists and the stats they feed.
    """

    def __init__(self, client: DedupClient, cache: Optional[SWRCache] = None) -> None:
        self.client = client
        self.cache = (
            cache
            if cache is not None
            else SWRCache(config=admin_cache_config(), name="admin")
        )
        self._preloaded = False

    def subscribe(self, callback: Subscriber, prefix: str = "") -> Callable[[], None]:
        return self.cache.subscribe(callback, prefix)

    async def _fetch(
        self,
        family: str,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        force_refresh: bool = False,
        transform: Optional[Callable[[Any], Any]] = None,
    ) -> Any:
        policy = self.cache.policy_for(family)
        key = resource_key(family, params)

        async def load() -> Any:
            query = dict(params or {})
            if force_refresh and policy.cache_bust_param:
                query[policy.cache_bust_param] = int(time.time() * 1000)
            body = await self.client.get(url, query or None)
            return transform(body) if transform is not None else body

        try:
            result = await self.cache.get(key, load, force_refresh=force_refresh)
        except NetworkFailure as exc:
            logger.warning("Failed to fetch <%s>: %s", key, exc.message)
            return copy.deepcopy(policy.default)
        return result.value

    async def fetch_stats(self, force_refresh: bool = False) -> Any:
        return await self._fetch("stats", "/admin/stats", force_refresh=force_refresh)

    async def fetch_doctors(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        force_refresh: bool = False,
    ) -> list[dict[str, Any]]:
        params = {"limit": DOCTORS_DEFAULT_LIMIT, **_clean_filters(filters)}
        return await self._fetch(
            "doctors",
            "/admin/doctors",
            params,
            force_refresh=force_refresh,
            transform=_doctors_list,
        )

    async def fetch_medicines(
        self,
        page: int = 1,
        filters: Optional[Mapping[str, Any]] = None,
        force_refresh: bool = False,
    ) -> dict[str, Any]:
        params = {"page": page, "limit": MEDICINES_PAGE_SIZE, **_clean_filters(filters)}

        def visible(body: Any) -> dict[str, Any]:
            if not isinstance(body, dict):
                body = {}
            medicines = body.get("medicines")
            if not isinstance(medicines, list):
                medicines = []
            return {
                "medicines": [m for m in medicines if _is_active(m)],
                "pagination": body.get("pagination"),
            }

        return await self._fetch(
            "medicines",
            "/medicines",
            params,
            force_refresh=force_refresh,
            transform=visible,
        )

    async def fetch_categories(self, force_refresh: bool = False) -> list[Any]:
        return await self._fetch(
            "medicine-categories",
            "/medicines/categories",
            force_refresh=force_refresh,
        )

    async def fetch_lab_bookings(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        force_refresh: bool = False,
    ) -> Any:
        return await self._fetch(
            "lab-bookings",
            "/lab-bookings/admin/all",
            _clean_filters(filters),
            force_refresh=force_refresh,
        )

    async def fetch_orders(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        force_refresh: bool = False,
    ) -> Any:
        return await self._fetch(
            "orders",
            "/orders/admin/all",
            _clean_filters(filters),
            force_refresh=force_refresh,
        )

    async def get_doctor(self, doctor_id: str) -> MutationResult:
        # Detail views are never cached, only deduplicated
        try:
            doctor = await self.client.get(f"/admin/doctors/{doctor_id}")
        except NetworkFailure as exc:
            logger.warning("Failed to fetch doctor <%s>: %s", doctor_id, exc.message)
            return MutationResult(success=False, error=exc.message)
        return MutationResult(success=True, data=doctor)

    async def _mutate(
        self, method: str, url: str, json: Any = None, *, action: str
    ) -> MutationResult:
        try:
            body = await self.client.request(method, url, json=json)
        except NetworkFailure as exc:
            logger.warning("Failed to %s: %s", action, exc.message)
            return MutationResult(success=False, error=exc.message)

        self.cache.invalidate_by_prefix("doctors")
        self.cache.invalidate("stats")
        return MutationResult(success=True, data=body)

    async def add_doctor(self, doctor: Mapping[str, Any]) -> MutationResult:
        return await self._mutate(
            "POST", "/admin/doctors", dict(doctor), action="add doctor"
        )

    async def update_doctor(
        self, doctor_id: str, changes: Mapping[str, Any]
    ) -> MutationResult:
        return await self._mutate(
            "PUT", f"/admin/doctors/{doctor_id}", dict(changes), action="update doctor"
        )

    async def toggle_doctor_status(self, doctor_id: str) -> MutationResult:
        return await self._mutate(
            "PATCH",
            f"/admin/doctors/{doctor_id}/toggle-status",
            action="toggle doctor status",
        )

    async def delete_doctor(self, doctor_id: str) -> MutationResult:
        return await self._mutate(
            "DELETE", f"/admin/doctors/{doctor_id}", action="delete doctor"
        )

    async def preload(self) -> None:
        """Warm the dashboard resources once; later calls do nothing."""
        if self._preloaded:
            return
        self._preloaded = True

        results = await asyncio.gather(
            self.fetch_stats(),
            self.fetch_doctors(),
            self.fetch_medicines(),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, Exception):
                logger.warning("Preloading admin data failed: %r", result)
