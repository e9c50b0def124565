"""Periodic task used to drive limiter resets.

Notes:
- One daemon thread per running task; it sleeps on ``threading.Event.wait``
  so cancellation wakes it immediately.
- ``cancel()`` joins the thread by default, so once it returns the callback
  will not fire again. ``cancel(wait=False)`` only signals; callers that hold
  a lock the callback needs must use it.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable

logger = logging.getLogger(__name__)


class PeriodicTask(ABC):
    """A cancellable job that calls a callback on a fixed interval."""

    @abstractmethod
    def start(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def cancel(self, *, wait: bool = True) -> None:
        """Stop the schedule.

        With ``wait`` no firing may begin or still be running after this
        returns. Without it the schedule is only signalled to stop.
        """
        raise NotImplementedError


PeriodicTaskFactory = Callable[[float, Callable[[], None]], PeriodicTask]


class ThreadPeriodicTask(PeriodicTask):
    """Run ``callback`` every ``interval_seconds`` on a background thread.

    The schedule does not wait for callers to go quiet; each firing happens
    one interval after the previous one finished.
    """

    def __init__(
        self,
        interval_seconds: float,
        callback: Callable[[], None],
        *,
        name: str = "pointlimiter-reset",
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")

        self._interval = interval_seconds
        self._callback = callback
        self._name = name
        self._cancelled = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("periodic task already started")

        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()

    def cancel(self, *, wait: bool = True) -> None:
        self._cancelled.set()
        thread = self._thread
        # A callback (or hook) cancelling its own task cannot join itself.
        if wait and thread is not None and thread is not threading.current_thread():
            thread.join()

    def _run(self) -> None:
        logger.debug("periodic_task.started", extra={"task": self._name, "interval_s": self._interval})

        while not self._cancelled.wait(self._interval):
            try:
                self._callback()
            except Exception:  # pylint: disable=broad-except
                # Keep the schedule alive; there is no caller to propagate to.
                logger.exception("periodic_task.callback_failed", extra={"task": self._name})

        logger.debug("periodic_task.stopped", extra={"task": self._name})
