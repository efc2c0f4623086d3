"""Pydantic models describing cache state for diagnostics."""

from typing import Optional

from pydantic import BaseModel
from pydantic import Field


class CacheStats(BaseModel):
    """Counters accumulated by a cache instance."""

    hits: int = Field(default=0, description="Fresh entries served")
    stale_hits: int = Field(default=0, description="Stale entries served while revalidating")
    misses: int = Field(default=0, description="Lookups that had to wait for a retrieval")
    revalidations: int = Field(default=0, description="Background refreshes requested")
    failures: int = Field(default=0, description="Retrievals that raised")
    cooldown_skips: int = Field(default=0, description="Retrievals suppressed by cooldown")
    discarded_writes: int = Field(default=0, description="Out-of-order results dropped")
    entries: int = Field(default=0, description="Entries currently stored")
    in_flight: int = Field(default=0, description="Retrievals currently pending")


class EntryInfo(BaseModel):
    """State of a single cache key."""

    key: str
    age: Optional[float] = Field(default=None, description="Seconds since the value was fetched")
    is_stale: bool = False
    generation: int = 0
    cooldown_remaining: float = 0.0
    in_flight: bool = False
    error: Optional[str] = None


class EntriesResponse(BaseModel):
    entries: list[EntryInfo] = Field(default_factory=list)
    total: int = 0
    stale: int = 0
    stats: Optional[CacheStats] = None
