"""In-memory point limiter with a periodic hard reset.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: a single re-entrant lock guards the budget mapping, so a reset
  sweep and a consumption are always fully ordered with respect to each other.
- Consumer entries are created lazily and never removed; a reset zeroes them.
"""

from __future__ import annotations

import logging
import math
import threading
from numbers import Real
from types import MappingProxyType
from typing import Any, Callable

from pointlimiter.adapters.rate_limit.base import (
    AbstractRateLimiter,
    ConsumerBudget,
    ConsumptionEvent,
    ConsumptionHook,
    LimiterHooks,
    Points,
    ResetEvent,
    ResetHook,
)
from pointlimiter.adapters.rate_limit.scheduler import (
    PeriodicTask,
    PeriodicTaskFactory,
    ThreadPeriodicTask,
)
from pointlimiter.core.config import DEFAULT_RESET_INTERVAL_MS
from pointlimiter.core.errors import (
    AlreadyRunningError,
    AlreadyStoppedError,
    ConfigError,
    ExceedsMaxError,
    InvalidAmountError,
    InvalidKeyError,
    NotEnoughPointsError,
    NotRunningError,
)
from pointlimiter.core.logging import hash_consumer_key

logger = logging.getLogger(__name__)


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


class InMemoryPointRateLimiter(AbstractRateLimiter):
    """Point limiter whose budgets all drop to zero every reset interval.

    Consumers accumulate points until ``max_points``; every
    ``reset_interval_ms`` a background task zeroes every known consumer at
    once. The limiter is already running when the constructor returns.

    Important:
        Hooks are invoked synchronously while the internal lock is held. They
        should not block, and an exception raised by a consumption hook
        propagates to the caller of ``consume``.
    """

    def __init__(
        self,
        *,
        max_points: Points | None,
        reset_interval_ms: Points | None = None,
        task_factory: PeriodicTaskFactory = ThreadPeriodicTask,
    ) -> None:
        """Validate configuration and start the reset schedule.

        Args:
            max_points: Maximum points any consumer may hold per window.
            reset_interval_ms: Milliseconds between resets; unset or 0 means 1000.
            task_factory: Builds the periodic task from (interval_seconds, callback).

        Raises:
            ConfigError: If max_points or reset_interval_ms are invalid.
        """
        if not reset_interval_ms:
            reset_interval_ms = DEFAULT_RESET_INTERVAL_MS

        if not _is_number(reset_interval_ms) or reset_interval_ms < 1:
            raise ConfigError("INVALID_RESET_INTERVAL", field="reset_interval_ms", value=reset_interval_ms)
        if not _is_number(max_points) or max_points < 1:  # type: ignore[operator]
            raise ConfigError("INVALID_MAX_POINTS", field="max_points", value=max_points)

        self._max_points: Points = max_points  # type: ignore[assignment]
        self._reset_interval_ms: Points = reset_interval_ms
        self._task_factory = task_factory
        self._lock = threading.RLock()
        self._budgets: dict[str, ConsumerBudget] = {}
        self._hooks = LimiterHooks()
        self._running = False
        self._task: PeriodicTask | None = None
        self._hook_thread: int | None = None

        self.start()

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"InMemoryPointRateLimiter(max_points={self._max_points}, "
            f"reset_interval_ms={self._reset_interval_ms}, running={self._running}, "
            f"consumers={len(self._budgets)})"
        )

    @property
    def max_points(self) -> Points:
        return self._max_points

    @property
    def reset_interval_ms(self) -> Points:
        return self._reset_interval_ms

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._running

    def __len__(self) -> int:
        with self._lock:
            return len(self._budgets)

    def __contains__(self, consumer_key: object) -> bool:
        with self._lock:
            return consumer_key in self._budgets

    def get_budget(self, consumer_key: str) -> ConsumerBudget | None:
        """Return the consumer's budget, or None if it has never consumed."""
        with self._lock:
            return self._budgets.get(consumer_key)

    def budgets(self) -> dict[str, ConsumerBudget]:
        """Return a point-in-time copy of every known consumer's budget."""
        with self._lock:
            return dict(self._budgets)

    def start(self) -> None:
        """Transition stopped -> running and schedule periodic resets.

        Raises:
            AlreadyRunningError: If the limiter is already running.
        """
        with self._lock:
            if self._running:
                raise AlreadyRunningError()

            task = self._task_factory(self._reset_interval_ms / 1000, self._reset)
            task.start()
            self._task = task
            self._running = True

        logger.info(
            "limiter.started",
            extra={"max_points": self._max_points, "reset_interval_ms": self._reset_interval_ms},
        )

    def stop(self) -> None:
        """Transition running -> stopped; budgets are kept.

        Once this returns no further reset will change any budget. An
        overlapping ``consume`` is not waited for. Called from a hook, the
        reset thread is only signalled, since a firing blocked on the lock
        cannot finish; such a firing sees the stopped state and does nothing.

        Raises:
            AlreadyStoppedError: If the limiter is already stopped.
        """
        with self._lock:
            if not self._running:
                raise AlreadyStoppedError()

            task = self._task
            self._task = None
            self._running = False
            # A hook still holds the lock, so a firing blocked on it could never finish.
            wait = self._hook_thread != threading.get_ident()

        # Cancel outside the lock: a firing in progress needs the lock to finish.
        if task is not None:
            task.cancel(wait=wait)

        logger.info("limiter.stopped", extra={"consumers": len(self)})

    def attach_hooks(
        self,
        *,
        before_consumption: ConsumptionHook | None = None,
        after_consumption: ConsumptionHook | None = None,
        before_reset: ResetHook | None = None,
        after_reset: ResetHook | None = None,
    ) -> None:
        """Replace the given hook slots; omitted slots keep their current hook."""
        with self._lock:
            if before_consumption is not None:
                self._hooks.before_consumption = before_consumption
            if after_consumption is not None:
                self._hooks.after_consumption = after_consumption
            if before_reset is not None:
                self._hooks.before_reset = before_reset
            if after_reset is not None:
                self._hooks.after_reset = after_reset

    def consume(self, consumer_key: str, points: Points) -> ConsumerBudget:
        """Charge ``points`` against ``consumer_key``'s budget.

        Args:
            consumer_key: Non-empty consumer identifier.
            points: Points to consume, between 1 and ``max_points``.

        Returns:
            The consumer's budget after the charge.

        Raises:
            InvalidKeyError: If consumer_key is empty.
            NotRunningError: If the limiter is stopped.
            InvalidAmountError: If points is below 1.
            ExceedsMaxError: If points is above max_points.
            NotEnoughPointsError: If the charge would push the consumer past
                max_points. Nothing is mutated in that case.
        """
        if not isinstance(consumer_key, str) or not consumer_key:
            raise InvalidKeyError()

        with self._lock:
            if not self._running:
                raise NotRunningError()
            if not _is_number(points) or points < 1:
                raise InvalidAmountError(points)
            if points > self._max_points:
                raise ExceedsMaxError(points, self._max_points)

            current = self._budgets.get(consumer_key, ConsumerBudget())
            new_total = current.points + points

            if new_total > self._max_points:
                logger.info(
                    "limiter.rejected",
                    extra={
                        "key_hash": hash_consumer_key(consumer_key),
                        "current_points": current.points,
                        "requested_points": points,
                        "max_points": self._max_points,
                    },
                )
                raise NotEnoughPointsError(
                    current_points=current.points,
                    requested_points=points,
                    max_points=self._max_points,
                )

            hooks = self._hooks
            if hooks.before_consumption is not None:
                self._call_hook(
                    hooks.before_consumption,
                    ConsumptionEvent(consumer_key=consumer_key, budget=current, requested_points=points),
                )

            updated = ConsumerBudget(points=new_total)
            self._budgets[consumer_key] = updated

            if hooks.after_consumption is not None:
                self._call_hook(
                    hooks.after_consumption,
                    ConsumptionEvent(consumer_key=consumer_key, budget=updated, requested_points=points),
                )

        logger.debug(
            "limiter.consumed",
            extra={
                "key_hash": hash_consumer_key(consumer_key),
                "points": updated.points,
                "requested_points": points,
                "max_points": self._max_points,
            },
        )
        return updated

    def _call_hook(self, hook: Callable[[Any], None], event: Any) -> None:
        # Caller holds self._lock; stop() reads _hook_thread to avoid joining the reset thread.
        previous = self._hook_thread
        self._hook_thread = threading.get_ident()
        try:
            hook(event)
        finally:
            self._hook_thread = previous

    def _reset(self) -> None:
        """Zero every known consumer; called only by the periodic task."""
        with self._lock:
            # A firing that raced with stop() must not reset a stopped limiter.
            if not self._running:
                return

            view = MappingProxyType(self._budgets)
            hooks = self._hooks
            if hooks.before_reset is not None:
                self._call_hook(hooks.before_reset, ResetEvent(budgets=view))

            zeroed = ConsumerBudget()
            for consumer_key in self._budgets:
                self._budgets[consumer_key] = zeroed

            if hooks.after_reset is not None:
                self._call_hook(hooks.after_reset, ResetEvent(budgets=view))

            consumers = len(self._budgets)

        logger.debug("limiter.reset", extra={"consumers": consumers})
