"""In-memory fixed-window rate limiter keyed per (method, client), with priority tiers."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Callable

from mcpforge.protocol.types import Priority

DEFAULT_PRIORITY_LIMITS: dict[Priority, int] = {
    Priority.LOW: 10,
    Priority.NORMAL: 30,
    Priority.HIGH: 60,
    Priority.CRITICAL: 100,
}


@dataclass
class RateLimitEntry:
    count: int
    reset_time: float
    limit: int


@dataclass
class RateLimitCheckResult:
    allowed: bool
    current: int
    limit: int
    reset_time_ms: int
    remaining: int

    def retry_after_seconds(self, now: float) -> int:
        """Whole seconds until the window resets, never less than 1."""
        return max(1, math.ceil(self.reset_time_ms / 1000.0 - now))

    def to_dict(self) -> dict[str, int]:
        return {
            "current": self.current,
            "limit": self.limit,
            "remaining": self.remaining,
            "resetTime": self.reset_time_ms,
        }


class RateLimiter:
    """Fixed-window counter per (method, client).

    The tier limit is chosen by the priority of the request that opens a
    window and holds until that window resets.
    """

    def __init__(
        self,
        *,
        window_seconds: float = 60.0,
        priority_limits: dict[Priority, int] | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._window = float(window_seconds)
        self._limits = dict(DEFAULT_PRIORITY_LIMITS)
        if priority_limits:
            self._limits.update(priority_limits)
        self._clock = clock
        self._entries: dict[str, RateLimitEntry] = {}

    @property
    def window_seconds(self) -> float:
        return self._window

    def limit_for(self, priority: Priority) -> int:
        return self._limits.get(priority, self._limits[Priority.NORMAL])

    def _key(self, method: str, client_id: str | None) -> str:
        client = (client_id or "").strip() or "unknown"
        return f"rate_limit:{method}:{client}"

    def check_and_consume(self, method: str, client_id: str | None, priority: Priority) -> RateLimitCheckResult:
        now = self._clock()
        key = self._key(method, client_id)
        entry = self._entries.get(key)
        if entry is None or now > entry.reset_time:
            entry = RateLimitEntry(count=0, reset_time=now + self._window, limit=self.limit_for(priority))
            self._entries[key] = entry

        reset_ms = int(entry.reset_time * 1000)
        if entry.count >= entry.limit:
            return RateLimitCheckResult(
                allowed=False,
                current=entry.count,
                limit=entry.limit,
                reset_time_ms=reset_ms,
                remaining=0,
            )

        entry.count += 1
        return RateLimitCheckResult(
            allowed=True,
            current=entry.count,
            limit=entry.limit,
            reset_time_ms=reset_ms,
            remaining=entry.limit - entry.count,
        )

    def prune(self) -> int:
        """Drop expired windows; returns how many were removed."""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if now > e.reset_time]
        for k in expired:
            del self._entries[k]
        return len(expired)

    def size(self) -> int:
        return len(self._entries)
