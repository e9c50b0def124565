"""Limiter exception types.

Two families of errors live here:
- Programmer errors (bad configuration, lifecycle misuse, invalid arguments).
  These are raised immediately and are not meant to be retried.
- Capacity errors (``NotEnoughPointsError``). These are a routine outcome of
  normal operation and carry structured data so callers can decide when to
  retry.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypedDict

ERROR_MESSAGES: dict[str, str] = {
    "NOT_ENOUGH_POINTS": "The consumer doesn't have the required points for consumption.",
    "NOT_RUNNING": "Can't consume while the ratelimiter is stopped.",
    "INVALID_KEY": "consumerKey can't be empty.",
    "INVALID_AMOUNT": "Can't consume less than 1 point.",
    "EXCEEDS_MAX": "Can't consume more points than maxPoints at once.",
    "ALREADY_RUNNING": "The rate-limiter has already started!",
    "ALREADY_STOPPED": "The rate-limiter is already stopped!",
    "INVALID_RESET_INTERVAL": "clearDelay should be higher than 1ms.",
    "INVALID_MAX_POINTS": "maxPoints should be higher than 1.",
}


class ErrorDetails(TypedDict, total=False):
    """Structured error context for callers and logs."""

    field: str
    actual_value: Any
    hint: str
    current_points: float
    requested_points: float
    max_points: float


@dataclass
class AppError(Exception):
    """Base error for limiter failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when configuration or call arguments are invalid."""


class LifecycleAppError(AppError):
    """Raised when the limiter is used in the wrong running state."""


class CapacityAppError(AppError):
    """Raised when a consumer has exhausted its budget for the window."""


class ConfigError(ValidationAppError):
    """Invalid ``max_points`` or ``reset_interval_ms``."""

    def __init__(self, code: str, *, field: str, value: Any) -> None:
        super().__init__(
            code=code,
            message=ERROR_MESSAGES[code],
            details={"field": field, "actual_value": value},
        )


class InvalidKeyError(ValidationAppError):
    """Consumer key is empty or not a string."""

    def __init__(self) -> None:
        super().__init__(
            code="INVALID_KEY",
            message=ERROR_MESSAGES["INVALID_KEY"],
            details={"field": "consumer_key", "hint": "use a non-empty string key"},
        )


class InvalidAmountError(ValidationAppError):
    """Requested points are below 1 or not a number."""

    def __init__(self, requested_points: Any) -> None:
        super().__init__(
            code="INVALID_AMOUNT",
            message=ERROR_MESSAGES["INVALID_AMOUNT"],
            details={"field": "points", "actual_value": requested_points},
        )


class ExceedsMaxError(ValidationAppError):
    """A single request asks for more than the global maximum."""

    def __init__(self, requested_points: float, max_points: float) -> None:
        super().__init__(
            code="EXCEEDS_MAX",
            message=ERROR_MESSAGES["EXCEEDS_MAX"],
            details={"requested_points": requested_points, "max_points": max_points},
        )


class NotRunningError(LifecycleAppError):
    def __init__(self) -> None:
        super().__init__(code="NOT_RUNNING", message=ERROR_MESSAGES["NOT_RUNNING"])


class AlreadyRunningError(LifecycleAppError):
    def __init__(self) -> None:
        super().__init__(code="ALREADY_RUNNING", message=ERROR_MESSAGES["ALREADY_RUNNING"])


class AlreadyStoppedError(LifecycleAppError):
    def __init__(self) -> None:
        super().__init__(code="ALREADY_STOPPED", message=ERROR_MESSAGES["ALREADY_STOPPED"])


class NotEnoughPointsError(CapacityAppError):
    """The consumer's accumulated points plus the request exceed ``max_points``.

    Attributes:
        current_points: Points already consumed in the active window.
        requested_points: Points asked for by the rejected call.
        max_points: Global maximum per window.
    """

    def __init__(self, *, current_points: float, requested_points: float, max_points: float) -> None:
        super().__init__(
            code="NOT_ENOUGH_POINTS",
            message=ERROR_MESSAGES["NOT_ENOUGH_POINTS"],
            details={
                "current_points": current_points,
                "requested_points": requested_points,
                "max_points": max_points,
            },
        )
        self.current_points = current_points
        self.requested_points = requested_points
        self.max_points = max_points

    @property
    def remaining_points(self) -> float:
        """Points still available to the consumer before the next reset."""
        return max(0, self.max_points - self.current_points)
