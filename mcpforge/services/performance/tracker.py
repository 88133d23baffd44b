"""Additive per-method request statistics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class PerformanceRecord:
    total_requests: int = 0
    total_duration_ms: float = 0.0
    success_count: int = 0
    failure_count: int = 0
    cache_hits: int = 0

    @property
    def average_duration_ms(self) -> float:
        return self.total_duration_ms / self.total_requests if self.total_requests else 0.0

    @property
    def success_rate(self) -> float:
        return self.success_count / self.total_requests * 100 if self.total_requests else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalRequests": self.total_requests,
            "averageDurationMs": round(self.average_duration_ms, 3),
            "successRatePercent": round(self.success_rate, 2),
            "successCount": self.success_count,
            "failureCount": self.failure_count,
            "cacheHits": self.cache_hits,
        }


class PerformanceTracker:
    """Purely additive; records are never evicted."""

    def __init__(self) -> None:
        self._records: dict[str, PerformanceRecord] = {}

    def _record(self, method: str) -> PerformanceRecord:
        rec = self._records.get(method)
        if rec is None:
            rec = self._records[method] = PerformanceRecord()
        return rec

    def record(self, method: str, duration_ms: float, success: bool) -> None:
        rec = self._record(method)
        rec.total_requests += 1
        rec.total_duration_ms += max(0.0, float(duration_ms))
        if success:
            rec.success_count += 1
        else:
            rec.failure_count += 1

    def record_cache_hit(self, method: str) -> None:
        """Count a replayed result as a success without adding latency."""
        rec = self._record(method)
        rec.total_requests += 1
        rec.success_count += 1
        rec.cache_hits += 1

    def get_stats(self, method: str) -> dict[str, Any]:
        rec = self._records.get(method) or PerformanceRecord()
        return {"method": method, **rec.to_dict()}

    def get(self, method: str) -> PerformanceRecord | None:
        return self._records.get(method)

    def all_stats(self) -> dict[str, dict[str, Any]]:
        return {method: rec.to_dict() for method, rec in sorted(self._records.items())}

    def totals(self) -> dict[str, Any]:
        total = sum(r.total_requests for r in self._records.values())
        ok = sum(r.success_count for r in self._records.values())
        return {
            "methods": len(self._records),
            "totalRequests": total,
            "successCount": ok,
            "failureCount": sum(r.failure_count for r in self._records.values()),
            "successRatePercent": round(ok / total * 100, 2) if total else 0.0,
        }
