"""In-process point-based rate limiter with a periodic hard reset."""

from pointlimiter.adapters.rate_limit import (
    AbstractRateLimiter,
    ConsumerBudget,
    ConsumptionEvent,
    InMemoryPointRateLimiter,
    LimiterHooks,
    ResetEvent,
)
from pointlimiter.core.errors import (
    AlreadyRunningError,
    AlreadyStoppedError,
    AppError,
    ConfigError,
    ExceedsMaxError,
    InvalidAmountError,
    InvalidKeyError,
    NotEnoughPointsError,
    NotRunningError,
)
from pointlimiter.core.logging import configure_logging
from pointlimiter.core.rate_limit import create_rate_limiter, get_rate_limiter

__all__ = [
    "AbstractRateLimiter",
    "AlreadyRunningError",
    "AlreadyStoppedError",
    "AppError",
    "ConfigError",
    "ConsumerBudget",
    "ConsumptionEvent",
    "ExceedsMaxError",
    "InMemoryPointRateLimiter",
    "InvalidAmountError",
    "InvalidKeyError",
    "LimiterHooks",
    "NotEnoughPointsError",
    "NotRunningError",
    "ResetEvent",
    "configure_logging",
    "create_rate_limiter",
    "get_rate_limiter",
]
