"""Memoized handler results keyed by method plus canonical parameters."""

from __future__ import annotations

import fnmatch
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable

from loguru import logger

from mcpforge.utils.helpers import canonical_json


def cache_key(method: str, params: dict[str, Any] | None) -> str:
    """Pure key derivation; logically equal parameter bags give the same key."""
    return f"{method}:{canonical_json(params or {})}"


@dataclass
class CacheEntry:
    value: Any
    inserted_at: float


_MISSING = object()


class ResultCache:
    """Insertion-ordered cache with optional TTL and a size bound.

    When full, the oldest inserted entry is evicted first.
    """

    def __init__(
        self,
        *,
        max_entries: int = 1000,
        ttl_seconds: float = 0.0,
        clock: Callable[[], float] = time.time,
    ):
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self.hits = 0
        self.misses = 0
        self.sets = 0
        self.evictions = 0

    def _expired(self, entry: CacheEntry, now: float) -> bool:
        return self.ttl_seconds > 0 and now - entry.inserted_at > self.ttl_seconds

    def lookup(self, method: str, params: dict[str, Any] | None) -> tuple[bool, Any]:
        """Return (hit, value); distinguishes a cached None from a miss."""
        key = cache_key(method, params)
        entry = self._entries.get(key)
        if entry is not None and self._expired(entry, self._clock()):
            del self._entries[key]
            entry = None
        if entry is None:
            self.misses += 1
            return False, None
        self.hits += 1
        return True, entry.value

    def get(self, method: str, params: dict[str, Any] | None, default: Any = None) -> Any:
        hit, value = self.lookup(method, params)
        return value if hit else default

    def put(self, method: str, params: dict[str, Any] | None, value: Any) -> str:
        key = cache_key(method, params)
        if key in self._entries:
            del self._entries[key]
        elif self.max_entries > 0 and len(self._entries) >= self.max_entries:
            oldest, _ = self._entries.popitem(last=False)
            self.evictions += 1
            logger.debug("Result cache full, evicted {}", oldest)
        self._entries[key] = CacheEntry(value=value, inserted_at=self._clock())
        self.sets += 1
        return key

    def evict(self, key: str) -> bool:
        return self._entries.pop(key, _MISSING) is not _MISSING

    def evict_pattern(self, pattern: str) -> int:
        """Evict keys matching a shell-style glob pattern."""
        doomed = [k for k in self._entries if fnmatch.fnmatchcase(k, pattern)]
        for k in doomed:
            del self._entries[k]
        return len(doomed)

    def evict_method(self, method: str) -> int:
        prefix = f"{method}:"
        doomed = [k for k in self._entries if k.startswith(prefix)]
        for k in doomed:
            del self._entries[k]
        return len(doomed)

    def clear_all(self) -> int:
        cleared = len(self._entries)
        self._entries.clear()
        return cleared

    def purge_expired(self) -> int:
        if self.ttl_seconds <= 0:
            return 0
        now = self._clock()
        doomed = [k for k, e in self._entries.items() if self._expired(e, now)]
        for k in doomed:
            del self._entries[k]
        return len(doomed)

    def keys(self) -> list[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> dict[str, Any]:
        lookups = self.hits + self.misses
        return {
            "size": len(self._entries),
            "maxSize": self.max_entries,
            "ttlSeconds": self.ttl_seconds,
            "hits": self.hits,
            "misses": self.misses,
            "sets": self.sets,
            "evictions": self.evictions,
            "hitRate": round(self.hits / lookups * 100, 2) if lookups else 0.0,
        }
