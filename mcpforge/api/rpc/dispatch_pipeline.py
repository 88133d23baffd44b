"""Utilities for sequential request-processing pipelines."""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, Iterable


StageResult = dict[str, Any] | None
PipelineStage = Callable[[], Awaitable[StageResult] | StageResult]


async def run_handler_pipeline(stages: Iterable[PipelineStage]) -> StageResult:
    """Run stages in order and return the first non-None result."""
    for stage in stages:
        outcome = stage()
        result = await outcome if inspect.isawaitable(outcome) else outcome
        if result is not None:
            return result
    return None
