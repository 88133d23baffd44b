"""Bounded admission for in-flight requests and batches."""

from __future__ import annotations

from loguru import logger

from mcpforge.protocol.types import Priority


class ConcurrencyGovernor:
    """Tracks the active request set and the active batch count.

    Critical requests are always admitted, even above the ceiling; they still
    occupy a slot in the active set while running.
    """

    def __init__(self, *, max_concurrent_requests: int = 50, max_concurrent_batches: int = 10):
        self.max_concurrent_requests = max_concurrent_requests
        self.max_concurrent_batches = max_concurrent_batches
        self._active: dict[str, object] = {}
        self._batches: set[str] = set()

    def try_admit(self, request_id: str, priority: Priority, correlation_id: object = None) -> bool:
        if priority is not Priority.CRITICAL and len(self._active) >= self.max_concurrent_requests:
            return False
        self._active[request_id] = correlation_id
        return True

    def release(self, request_id: str) -> None:
        self._active.pop(request_id, None)

    def try_begin_batch(self, batch_id: str) -> bool:
        if len(self._batches) >= self.max_concurrent_batches:
            logger.warning(
                "Concurrent batch limit reached active={} max={}",
                len(self._batches),
                self.max_concurrent_batches,
            )
            return False
        self._batches.add(batch_id)
        return True

    def end_batch(self, batch_id: str) -> None:
        self._batches.discard(batch_id)

    @property
    def active_requests(self) -> int:
        return len(self._active)

    @property
    def active_batches(self) -> int:
        return len(self._batches)

    def active_correlation_ids(self) -> list[object]:
        return list(self._active.values())
