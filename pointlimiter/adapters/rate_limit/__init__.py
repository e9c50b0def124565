"""Rate limiting adapters.

This package provides a small abstraction layer so callers can start with an
in-memory limiter and later migrate to a shared store without changing call
sites.
"""

from pointlimiter.adapters.rate_limit.base import (
    AbstractRateLimiter,
    ConsumerBudget,
    ConsumptionEvent,
    LimiterHooks,
    ResetEvent,
)
from pointlimiter.adapters.rate_limit.in_memory import InMemoryPointRateLimiter
from pointlimiter.adapters.rate_limit.scheduler import PeriodicTask, ThreadPeriodicTask

__all__ = [
    "AbstractRateLimiter",
    "ConsumerBudget",
    "ConsumptionEvent",
    "InMemoryPointRateLimiter",
    "LimiterHooks",
    "PeriodicTask",
    "ResetEvent",
    "ThreadPeriodicTask",
]
