"""Per-connection event stream.

A StreamConnection is the broadcaster-side half of one server-sent event
stream. Sends only enqueue; the HTTP response drains the queue and writes
frames. Sends never block the broadcast sweep: a full queue is reported as
an io failure and an expired or closed stream as transport closed.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
import uuid
from typing import Callable

from telemetry_replay.core.events.events import OutboundEvent
from telemetry_replay.core.ports.connection import SendResult

LOGGER = logging.getLogger(__name__)


def format_frame(event: OutboundEvent) -> str:
    """Render one event in text/event-stream framing."""
    lines = [f"event: {event.name}"]
    lines.extend(f"data: {line}" for line in event.data.split("\n"))
    return "\n".join(lines) + "\n\n"


class StreamConnection:
    def __init__(
        self,
        *,
        lifetime_seconds: float,
        max_pending_events: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._connection_id = str(uuid.uuid4())
        self._clock = clock
        self._deadline = clock() + lifetime_seconds
        self._queue: queue.Queue[OutboundEvent] = queue.Queue(maxsize=max_pending_events)
        self._closed = threading.Event()

    @property
    def connection_id(self) -> str:
        return self._connection_id

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def expired(self) -> bool:
        return self._clock() >= self._deadline

    def send(self, event: OutboundEvent) -> SendResult:
        if self.closed:
            return SendResult.transport_closed("stream closed")
        if self.expired():
            self.close()
            return SendResult.transport_closed("stream lifetime elapsed")
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            return SendResult.io_failure("stream backlog full")
        return SendResult.delivered()

    def next_frame(self, timeout: float) -> str | None:
        """Wait up to `timeout` seconds for the next frame.

        Returns None when nothing arrived in time. Queued events are still
        drained after close so a final status event reaches the client.
        """
        try:
            event = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        return format_frame(event)

    def close(self) -> None:
        if self._closed.is_set():
            return
        self._closed.set()
        LOGGER.debug("Stream closed", extra={"connection_id": self._connection_id})
