"""Construction helpers for point limiters.

``create_rate_limiter`` builds a fresh limiter from settings and/or explicit
arguments. ``get_rate_limiter`` keeps one process-wide instance around so
state survives between callers, rebuilding it when configuration changes.
"""

from __future__ import annotations

import logging
import threading

from pointlimiter.adapters.rate_limit.base import Points
from pointlimiter.adapters.rate_limit.in_memory import InMemoryPointRateLimiter
from pointlimiter.adapters.rate_limit.scheduler import PeriodicTaskFactory, ThreadPeriodicTask
from pointlimiter.core.config import LimiterSettings, settings
from pointlimiter.core.errors import AlreadyStoppedError

logger = logging.getLogger(__name__)


_limiter: InMemoryPointRateLimiter | None = None
_limiter_config: tuple[Points | None, Points] | None = None
_limiter_lock = threading.Lock()


def create_rate_limiter(
    limiter_settings: LimiterSettings | None = None,
    *,
    max_points: Points | None = None,
    reset_interval_ms: Points | None = None,
    task_factory: PeriodicTaskFactory = ThreadPeriodicTask,
) -> InMemoryPointRateLimiter:
    """Build a running limiter.

    Explicit arguments take precedence over ``limiter_settings``, which
    defaults to the global settings.

    Args:
        limiter_settings: Settings to read defaults from.
        max_points: Maximum points per consumer per window.
        reset_interval_ms: Milliseconds between resets (unset or 0 means 1000).
        task_factory: Periodic task builder, mainly for tests.

    Returns:
        InMemoryPointRateLimiter: A limiter that is already running.

    Raises:
        ConfigError: If the resolved configuration is invalid.
    """

    cfg = limiter_settings or settings.limiter

    return InMemoryPointRateLimiter(
        max_points=max_points if max_points is not None else cfg.max_points,
        reset_interval_ms=reset_interval_ms if reset_interval_ms is not None else cfg.reset_interval_ms,
        task_factory=task_factory,
    )


def get_rate_limiter() -> InMemoryPointRateLimiter:
    """Return a process-wide limiter instance.

    If configuration changes (primarily in tests), the previous limiter is
    stopped and a new one is built.

    Returns:
        InMemoryPointRateLimiter: Configured limiter instance.
    """

    global _limiter, _limiter_config

    config = (settings.limiter.max_points, settings.limiter.reset_interval_ms)

    with _limiter_lock:
        if _limiter is None or _limiter_config != config:
            if _limiter is not None:
                _stop_quietly(_limiter)
            _limiter = create_rate_limiter(settings.limiter)
            _limiter_config = config
            logger.info(
                "limiter.cached",
                extra={"max_points": config[0], "reset_interval_ms": config[1]},
            )

        return _limiter


def reset_rate_limiter_cache() -> None:
    """Stop and forget the process-wide limiter."""

    global _limiter, _limiter_config

    with _limiter_lock:
        if _limiter is not None:
            _stop_quietly(_limiter)
        _limiter = None
        _limiter_config = None


def _stop_quietly(limiter: InMemoryPointRateLimiter) -> None:
    try:
        limiter.stop()
    except AlreadyStoppedError:
        logger.debug("limiter.already_stopped")
