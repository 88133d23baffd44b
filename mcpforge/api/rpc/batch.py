"""Batch coordinator: all-or-nothing validation, priority-ordered sequential execution."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from loguru import logger

from mcpforge.api.rpc.validation import RequestValidator
from mcpforge.gateway.concurrency import ConcurrencyGovernor
from mcpforge.protocol.types import Priority
from mcpforge.utils.exceptions import (
    ConcurrencyLimitError,
    McpForgeError,
    StructuralValidationError,
)

# run_item(request, batch_index, client_id) -> response envelope
RunItem = Callable[[dict[str, Any], int, str], Awaitable[dict[str, Any]]]
# reject(exc, started) -> error envelope with id "batch"
RejectBatch = Callable[[McpForgeError, float], dict[str, Any]]


@dataclass(slots=True)
class BatchStats:
    processed: int = 0
    rejected: int = 0
    items: int = 0
    last_size: int = 0
    last_duration_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "processedBatches": self.processed,
            "rejectedBatches": self.rejected,
            "processedItems": self.items,
            "lastBatchSize": self.last_size,
            "lastBatchDurationMs": round(self.last_duration_ms, 3),
        }


class BatchCoordinator:
    """Runs a validated batch through the per-item pipeline.

    The whole batch is rejected when any item fails validation. Items execute
    one at a time, highest priority first (input order among equals), and the
    responses come back in input order tagged with their original index.
    """

    def __init__(
        self,
        *,
        validator: RequestValidator,
        governor: ConcurrencyGovernor,
        resolve_priority: Callable[[dict[str, Any]], Priority],
        run_item: RunItem,
        reject: RejectBatch,
        max_batch_size: int = 100,
        retry_after: int = 30,
    ):
        self.validator = validator
        self.governor = governor
        self.resolve_priority = resolve_priority
        self.run_item = run_item
        self.reject = reject
        self.max_batch_size = max_batch_size
        self.retry_after = retry_after
        self.stats = BatchStats()

    def _structural_error(self, requests: Any) -> StructuralValidationError | None:
        if not isinstance(requests, list):
            return StructuralValidationError(
                "Batch request must be an array",
                data={
                    "reason": "Batch request must be an array",
                    "expected": "array",
                    "received": type(requests).__name__,
                },
                suggested_action="Send the batch as a JSON array of request objects",
            )
        if not requests:
            return StructuralValidationError(
                "Batch request must not be empty",
                suggested_action="Include at least one request in the batch",
            )
        if len(requests) > self.max_batch_size:
            reason = f"Batch size {len(requests)} exceeds limit of {self.max_batch_size}"
            return StructuralValidationError(
                reason,
                data={"reason": reason, "current": len(requests), "maxAllowed": self.max_batch_size},
                suggested_action="Split the batch into smaller batches",
            )

        failures: list[str] = []
        for index, item in enumerate(requests):
            result = self.validator.validate(item)
            if not result.is_valid:
                failures.append(f"Request {index}: {', '.join(result.errors)}")
        if failures:
            return StructuralValidationError(
                "Batch validation failed",
                data={"reason": "Batch validation failed", "errors": failures},
                suggested_action="Fix the listed requests; no request in the batch was executed",
            )
        return None

    async def run(self, requests: Any, client_id: str = "unknown") -> list[dict[str, Any]]:
        """Execute a batch, raising McpForgeError when the batch as a whole is rejected."""
        started = time.perf_counter()
        error = self._structural_error(requests)
        if error is not None:
            raise error

        batch_id = f"batch_{uuid.uuid4().hex[:12]}"
        if not self.governor.try_begin_batch(batch_id):
            raise ConcurrencyLimitError(
                "Concurrent batch limit exceeded",
                active=self.governor.active_batches,
                max_concurrent=self.governor.max_concurrent_batches,
                retry_after=self.retry_after,
            )

        try:
            order = sorted(
                range(len(requests)),
                key=lambda i: -self.resolve_priority(requests[i]).rank,
            )
            logger.debug("Batch {} executing {} requests", batch_id, len(requests))
            responses: list[dict[str, Any]] = [{}] * len(requests)
            for index in order:
                responses[index] = await self.run_item(requests[index], index, client_id)
        finally:
            self.governor.end_batch(batch_id)

        self.stats.processed += 1
        self.stats.items += len(requests)
        self.stats.last_size = len(requests)
        self.stats.last_duration_ms = (time.perf_counter() - started) * 1000
        logger.info("Batch {} completed: {} requests", batch_id, len(requests))
        return responses

    async def process(self, requests: Any, client_id: str = "unknown") -> list[dict[str, Any]] | dict[str, Any]:
        """Return one response per item, or a single error envelope for the batch."""
        started = time.perf_counter()
        try:
            return await self.run(requests, client_id)
        except McpForgeError as e:
            self.stats.rejected += 1
            logger.warning("Batch rejected: {}", e.message)
            return self.reject(e, started)
