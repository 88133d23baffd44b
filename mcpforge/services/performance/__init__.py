"""Per-method latency and outcome accounting."""

from mcpforge.services.performance.tracker import PerformanceRecord, PerformanceTracker

__all__ = ["PerformanceRecord", "PerformanceTracker"]
