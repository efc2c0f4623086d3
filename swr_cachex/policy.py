"""Per resource family cache settings."""

from typing import Any
from typing import Optional

from pydantic import BaseModel
from pydantic import Field


class CachePolicy(BaseModel):
    """Cache settings for one resource family."""

    ttl: float = Field(
        default=300.0,
        ge=0.0,
        description="Seconds after which an entry is stale and triggers a background refresh (0 = always revalidate)",
    )
    cooldown: Optional[float] = Field(
        default=None,
        ge=0.0,
        description="Seconds to suppress uncached retries after a failure (None = no cooldown)",
    )
    default: Any = Field(
        default=None,
        description="Value handed back when a retrieval is suppressed by cooldown",
    )
    cache_bust_param: Optional[str] = Field(
        default=None,
        description="Query parameter stamped with the current time on forced refreshes",
    )


# Request-level deduplication: share the in-flight call, keep nothing afterwards
DEDUP_ONLY = CachePolicy(ttl=0.0, cooldown=None)


class SWRCacheConfig(BaseModel):
    """Cache-wide configuration: a default policy plus per-family overrides."""

    default_policy: CachePolicy = Field(
        default_factory=CachePolicy,
        description="Policy for keys that match no family",
    )
    families: dict[str, CachePolicy] = Field(
        default_factory=dict,
        description="Policies keyed by resource family, matched as a key prefix",
    )

    def policy_for(self, key: str) -> CachePolicy:
        """Return the policy of the longest family name prefixing ``key``."""
        best: Optional[str] = None
        for family in self.families:
            if key.startswith(family) and (best is None or len(family) > len(best)):
                best = family
        if best is None:
            return self.default_policy
        return self.families[best]
