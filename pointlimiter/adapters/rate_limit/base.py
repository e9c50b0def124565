"""Rate limiter interfaces and value types.

Callers should depend on this abstraction (not the concrete implementation)
so the storage backend can be swapped without touching call sites.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Callable, Union

Points = Union[int, float]


@dataclass(frozen=True)
class ConsumerBudget:
    """A consumer's accumulated points within the active reset window.

    Attributes:
        points: Points consumed since the last reset (never negative).
    """

    points: Points = 0


@dataclass(frozen=True)
class ConsumptionEvent:
    """Payload passed to the consumption hooks.

    Attributes:
        consumer_key: Key of the consumer being charged.
        budget: Budget before the mutation for ``before_consumption``,
            after the mutation for ``after_consumption``.
        requested_points: Points requested by the call.
    """

    consumer_key: str
    budget: ConsumerBudget
    requested_points: Points


@dataclass(frozen=True)
class ResetEvent:
    """Payload passed to the reset hooks.

    Attributes:
        budgets: Read-only live view of every known consumer's budget.
    """

    budgets: Mapping[str, ConsumerBudget]


ConsumptionHook = Callable[[ConsumptionEvent], None]
ResetHook = Callable[[ResetEvent], None]


@dataclass
class LimiterHooks:
    """Single-slot observer callbacks; attaching a hook replaces the previous one."""

    before_consumption: ConsumptionHook | None = None
    after_consumption: ConsumptionHook | None = None
    before_reset: ResetHook | None = None
    after_reset: ResetHook | None = None


class AbstractRateLimiter(ABC):
    """Interface for point-based rate limiters."""

    @abstractmethod
    def consume(self, consumer_key: str, points: Points) -> ConsumerBudget:
        """Charge ``points`` against ``consumer_key``'s budget.

        Args:
            consumer_key: Unique identifier (e.g., API key, IP address).
            points: Points to consume (at least 1, at most ``max_points``).

        Returns:
            The consumer's budget after the charge.

        Raises:
            NotEnoughPointsError: If the charge would exceed ``max_points``.
        """
        raise NotImplementedError

    @abstractmethod
    def start(self) -> None:
        """Begin periodic resets."""
        raise NotImplementedError

    @abstractmethod
    def stop(self) -> None:
        """Cancel periodic resets, keeping current budgets."""
        raise NotImplementedError

    @abstractmethod
    def attach_hooks(
        self,
        *,
        before_consumption: ConsumptionHook | None = None,
        after_consumption: ConsumptionHook | None = None,
        before_reset: ResetHook | None = None,
        after_reset: ResetHook | None = None,
    ) -> None:
        """Replace the given hook slots; omitted slots are left untouched."""
        raise NotImplementedError

    @property
    @abstractmethod
    def is_running(self) -> bool:
        raise NotImplementedError
