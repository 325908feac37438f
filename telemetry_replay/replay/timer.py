"""Fixed-rate background timer."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

LOGGER = logging.getLogger(__name__)


class FixedRateTimer:
    """Invokes `action` every `interval_seconds` on a daemon thread.

    Deadlines are scheduled at a fixed rate from the start time. When an
    action overruns its period the missed deadlines are skipped instead of
    being fired back-to-back. An exception raised by the action is logged
    and never stops the timer.
    """

    def __init__(
        self,
        action: Callable[[], object],
        *,
        interval_seconds: float,
        name: str = "replay-timer",
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self._action = action
        self._interval = float(interval_seconds)
        self._name = name
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()
        LOGGER.info("Timer started", extra={"interval_seconds": self._interval})

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None
        LOGGER.info("Timer stopped")

    def _run(self) -> None:
        next_deadline = time.monotonic() + self._interval
        while not self._stop.wait(max(0.0, next_deadline - time.monotonic())):
            try:
                self._action()
            except Exception:  # pylint: disable=broad-exception-caught
                LOGGER.exception("Timer action failed")

            next_deadline += self._interval
            now = time.monotonic()
            if next_deadline < now:
                skipped = int((now - next_deadline) // self._interval) + 1
                next_deadline += skipped * self._interval
                LOGGER.warning("Timer overrun; skipped deadlines", extra={"skipped": skipped})
