"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment variables are set before any import that might load settings.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("LIMITER_MAX_POINTS", "10")
os.environ.setdefault("LIMITER_RESET_INTERVAL_MS", "60000")

from typing import Callable, Iterator  # noqa: E402

import pytest  # noqa: E402

from pointlimiter.adapters.rate_limit.in_memory import InMemoryPointRateLimiter  # noqa: E402
from pointlimiter.adapters.rate_limit.scheduler import PeriodicTask  # noqa: E402


class ManualPeriodicTask(PeriodicTask):
    """Periodic task that only fires when a test calls ``fire()``."""

    def __init__(self, interval_seconds: float, callback: Callable[[], None]) -> None:
        self.interval_seconds = interval_seconds
        self.callback = callback
        self.started = False
        self.cancelled = False
        self.waited: bool | None = None

    def start(self) -> None:
        self.started = True

    def cancel(self, *, wait: bool = True) -> None:
        self.cancelled = True
        self.waited = wait

    def fire(self) -> None:
        if self.started and not self.cancelled:
            self.callback()


class ManualTaskFactory:
    """Records every task a limiter creates so tests can drive resets."""

    def __init__(self) -> None:
        self.tasks: list[ManualPeriodicTask] = []

    def __call__(self, interval_seconds: float, callback: Callable[[], None]) -> ManualPeriodicTask:
        task = ManualPeriodicTask(interval_seconds, callback)
        self.tasks.append(task)
        return task

    @property
    def current(self) -> ManualPeriodicTask:
        return self.tasks[-1]

    def fire(self) -> None:
        """Fire the most recently created task, as one elapsed interval."""
        self.current.fire()


@pytest.fixture
def task_factory() -> ManualTaskFactory:
    return ManualTaskFactory()


@pytest.fixture
def make_limiter(task_factory: ManualTaskFactory) -> Iterator[Callable[..., InMemoryPointRateLimiter]]:
    """Build limiters on the manual scheduler and stop them after the test."""

    created: list[InMemoryPointRateLimiter] = []

    def _make(max_points: float = 10, reset_interval_ms: float | None = 1000) -> InMemoryPointRateLimiter:
        limiter = InMemoryPointRateLimiter(
            max_points=max_points,
            reset_interval_ms=reset_interval_ms,
            task_factory=task_factory,
        )
        created.append(limiter)
        return limiter

    yield _make

    for limiter in created:
        if limiter.is_running:
            limiter.stop()
