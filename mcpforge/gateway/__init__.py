"""Admission control: rate limiting and concurrency ceilings."""

from mcpforge.gateway.concurrency import ConcurrencyGovernor
from mcpforge.gateway.rate_limit import RateLimitCheckResult, RateLimiter

__all__ = ["ConcurrencyGovernor", "RateLimitCheckResult", "RateLimiter"]
