"""Timer-driven replay scheduler.

One tick pulls the next batch from the dataset cursor and dispatches it to
the persistence sink and every live subscriber. The scheduler owns its
state explicitly; control operations are the only writers.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

from telemetry_replay.core.domain.dataset_cursor import DatasetCursor
from telemetry_replay.core.domain.scheduler_state import SchedulerState, is_valid_transition
from telemetry_replay.core.events.broadcaster import Broadcaster
from telemetry_replay.replay.dispatch import BatchDispatcher

if TYPE_CHECKING:
    from telemetry_replay.runtime.prometheus_metrics import ReplayMetrics

LOGGER = logging.getLogger(__name__)

STATUS_MESSAGES: dict[str, str] = {
    "started": "Real-time data replay started",
    "stopped": "Real-time data replay stopped",
    "restarted": "Real-time data replay restarted",
}


@dataclass(frozen=True, slots=True)
class TickOutcome:
    """What a single tick did."""

    emitted: int
    skipped_reason: str | None = None

    @property
    def skipped(self) -> bool:
        return self.skipped_reason is not None


class ReplayScheduler:
    """Two-state replay loop (STOPPED / RUNNING).

    Invariant:
    - tick() reads the state once at its top; stop() is effective for every
      tick that starts after it returns, not for one already in flight.
    - restart() does not rewind the cursor.
    - No downstream failure escapes tick().
    """

    def __init__(
        self,
        *,
        cursor: DatasetCursor,
        dispatcher: BatchDispatcher,
        batch_size: int,
        metrics: ReplayMetrics | None = None,
    ) -> None:
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        self._cursor = cursor
        self._dispatcher = dispatcher
        self._batch_size = batch_size
        self._metrics = metrics

        self._state = SchedulerState.STOPPED
        self._state_lock = threading.Lock()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> SchedulerState:
        with self._state_lock:
            return self._state

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def cursor(self) -> DatasetCursor:
        return self._cursor

    def is_enabled(self) -> bool:
        return self.state is SchedulerState.RUNNING

    # ------------------------------------------------------------------
    # Control operations
    # ------------------------------------------------------------------

    def start(self) -> None:
        self._transition(SchedulerState.RUNNING)
        LOGGER.info("Replay started")
        self._announce("started")

    def stop(self) -> None:
        self._transition(SchedulerState.STOPPED)
        LOGGER.info("Replay stopped")
        self._announce("stopped")

    def restart(self) -> None:
        # The cursor position is kept: a restart resumes where the replay
        # left off rather than rewinding the dataset.
        with self._state_lock:
            self._set_state(SchedulerState.STOPPED)
            self._set_state(SchedulerState.RUNNING)
        LOGGER.info("Replay restarted", extra={"position": self._cursor.progress()[0]})
        self._announce("restarted")

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self) -> TickOutcome:
        if self.state is not SchedulerState.RUNNING:
            return self._skip("stopped")

        if not self._cursor.has_next():
            LOGGER.info("No data left to replay")
            return self._skip("exhausted")

        batch = self._cursor.next_batch(self._batch_size)
        if not batch:
            LOGGER.warning("Cursor returned an empty batch")
            return self._skip("empty")

        self._dispatcher.dispatch(batch)

        current, total = self._cursor.progress()
        if self._metrics is not None:
            self._metrics.record_tick("emitted")
            self._metrics.set_position(current)

        LOGGER.info(
            "Replay progress",
            extra={
                "position": current,
                "total": total,
                "percent": round(current / total * 100, 1) if total else 0.0,
                "records": len(batch),
            },
        )
        return TickOutcome(emitted=len(batch))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _skip(self, reason: str) -> TickOutcome:
        if self._metrics is not None:
            self._metrics.record_tick(reason)
        return TickOutcome(emitted=0, skipped_reason=reason)

    def _transition(self, next_state: SchedulerState) -> None:
        with self._state_lock:
            self._set_state(next_state)

    def _set_state(self, next_state: SchedulerState) -> None:
        prev_state = self._state

        # Transition validation is observability only; the control
        # operation always takes effect.
        if not is_valid_transition(prev_state, next_state):
            LOGGER.warning(
                "Unexpected scheduler transition",
                extra={"prev_state": prev_state.value, "next_state": next_state.value},
            )

        self._state = next_state
        LOGGER.debug(
            "Scheduler state transition",
            extra={"prev_state": prev_state.value, "next_state": next_state.value},
        )

    def _announce(self, status: str) -> None:
        broadcaster: Broadcaster = self._dispatcher.broadcaster
        try:
            broadcaster.publish_status(status, STATUS_MESSAGES[status])
        except Exception:  # pylint: disable=broad-exception-caught
            LOGGER.exception("Status announcement failed", extra={"status": status})
