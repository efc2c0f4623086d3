"""Per-key cooldown after failed retrievals."""

import time
from typing import Optional

from swr_cachex.types import Clock
from swr_cachex.types import CooldownEntry


class FailureBackoff:
    """Track cooldown windows that suppress new retrievals of a failing key.

    Windows expire by comparison against the clock; no timers are involved.
    """

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self._cooldowns: dict[str, CooldownEntry] = {}
        self.clock = clock

    def record_failure(self, key: str, cooldown: Optional[float]) -> Optional[CooldownEntry]:
        """Start a cooldown window for ``key``; a missing or zero cooldown records nothing."""
        if not cooldown or cooldown <= 0:
            return None
        entry = CooldownEntry(until=self.clock() + cooldown)
        self._cooldowns[key] = entry
        return entry

    def remaining(self, key: str) -> float:
        entry = self._cooldowns.get(key)
        if entry is None:
            return 0.0
        remaining = entry.until - self.clock()
        if remaining <= 0:
            del self._cooldowns[key]
            return 0.0
        return remaining

    def is_active(self, key: str) -> bool:
        return self.remaining(key) > 0

    def clear(self, key: str) -> None:
        self._cooldowns.pop(key, None)

    def clear_prefix(self, prefix: str) -> int:
        matched = [k for k in self._cooldowns if k.startswith(prefix)]
        for key in matched:
            del self._cooldowns[key]
        return len(matched)

    def reset(self) -> None:
        self._cooldowns.clear()
