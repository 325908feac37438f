"""
Connection registry and push fan-out.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Sequence

from telemetry_replay.core.domain.page_sample import PageSample
from telemetry_replay.core.events.events import (
    OutboundEvent,
    batch_event,
    connected_event,
    single_event,
    status_event,
)
from telemetry_replay.core.ports.connection import Connection, SendResult, SendStatus

if TYPE_CHECKING:
    from telemetry_replay.runtime.prometheus_metrics import ReplayMetrics

LOGGER = logging.getLogger(__name__)

WELCOME_MESSAGE = "Stream connected"


@dataclass(slots=True)
class DeliveryReport:
    """Result of one broadcast sweep."""

    event: str
    delivered: int = 0
    pruned: dict[str, SendStatus] = field(default_factory=dict)

    @property
    def attempted(self) -> int:
        return self.delivered + len(self.pruned)


class Broadcaster:
    """Distributes push events to every live connection.

    Invariant:
    - A sweep iterates over a snapshot taken at its start; registrations
      and removals during the sweep only affect later sweeps.
    - A connection whose send fails is removed after the sweep and never
      retried. Other connections are unaffected.
    - Sends happen outside the registry lock.
    - Connection ids are unique; a second registration under a live or
      in-flight id is rejected.
    - unregister() during the welcome wins: the connection is closed and
      never joins the registry.
    """

    def __init__(
        self,
        *,
        metrics: ReplayMetrics | None = None,
        welcome_message: str = WELCOME_MESSAGE,
    ) -> None:
        self._connections: dict[str, Connection] = {}
        # ids whose welcome is in flight; unregister() cancels them
        self._pending: set[str] = set()
        self._lock = threading.Lock()
        self._metrics = metrics
        self._welcome_message = welcome_message

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def register(self, connection: Connection) -> bool:
        """Greet and add a connection.

        Returns False when the id is already taken, when the greeting failed,
        or when the connection was unregistered while it was being greeted.
        """
        connection_id = connection.connection_id
        with self._lock:
            existing = self._connections.get(connection_id)
            duplicate = existing is not None or connection_id in self._pending
            if not duplicate:
                self._pending.add(connection_id)

        if duplicate:
            LOGGER.error(
                "Connection id already registered; connection rejected",
                extra={"connection_id": connection_id},
            )
            if existing is not connection:
                self._close(connection)
            return False

        result = self._send(connection, connected_event(self._welcome_message))
        if not result.ok:
            with self._lock:
                self._pending.discard(connection_id)
            LOGGER.error(
                "Welcome event failed; connection discarded",
                extra={
                    "connection_id": connection_id,
                    "status": result.status.value,
                    "detail": result.detail,
                },
            )
            self._close(connection)
            return False

        with self._lock:
            wanted = connection_id in self._pending
            self._pending.discard(connection_id)
            if wanted:
                self._connections[connection_id] = connection
            count = len(self._connections)

        if not wanted:
            LOGGER.info(
                "Connection unregistered during welcome; discarded",
                extra={"connection_id": connection_id},
            )
            self._close(connection)
            return False

        LOGGER.info(
            "Connection registered",
            extra={"connection_id": connection_id, "connections": count},
        )
        self._observe_count(count)
        return True

    def unregister(self, connection: Connection) -> None:
        with self._lock:
            self._pending.discard(connection.connection_id)
            removed = self._connections.pop(connection.connection_id, None)
            count = len(self._connections)

        if removed is None:
            return

        LOGGER.info(
            "Connection unregistered",
            extra={"connection_id": connection.connection_id, "connections": count},
        )
        self._observe_count(count)

    def count(self) -> int:
        with self._lock:
            return len(self._connections)

    def snapshot(self) -> list[Connection]:
        with self._lock:
            return list(self._connections.values())

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    def publish_batch(self, batch: Sequence[PageSample]) -> DeliveryReport:
        if not batch:
            LOGGER.debug("Empty batch; nothing to publish")
            return DeliveryReport(event="batch-data")
        if self.count() == 0:
            LOGGER.debug("No live connections; batch not published")
            return DeliveryReport(event="batch-data")
        report = self._sweep(batch_event(batch))
        if report.delivered:
            LOGGER.info(
                "Batch published",
                extra={"records": len(batch), "delivered": report.delivered},
            )
        return report

    def publish_single(self, sample: PageSample) -> DeliveryReport:
        if self.count() == 0:
            LOGGER.debug("No live connections; record not published")
            return DeliveryReport(event="single-data")
        return self._sweep(single_event(sample))

    def publish_status(self, status: str, message: str) -> DeliveryReport:
        if self.count() == 0:
            return DeliveryReport(event="status")
        LOGGER.debug("Publishing status", extra={"status": status})
        return self._sweep(status_event(status, message))

    def close(self) -> None:
        """Close and drop every connection (process shutdown)."""
        with self._lock:
            connections = list(self._connections.values())
            self._connections.clear()
            self._pending.clear()
        for connection in connections:
            self._close(connection)
        self._observe_count(0)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _sweep(self, event: OutboundEvent) -> DeliveryReport:
        report = DeliveryReport(event=event.name)
        dead: list[Connection] = []

        for connection in self.snapshot():
            result = self._send(connection, event)
            if result.ok:
                report.delivered += 1
                continue

            self._log_failure(connection, event, result)
            report.pruned[connection.connection_id] = result.status
            dead.append(connection)

        if dead:
            with self._lock:
                for connection in dead:
                    self._connections.pop(connection.connection_id, None)
                count = len(self._connections)

            for connection in dead:
                self._close(connection)
                if self._metrics is not None:
                    self._metrics.record_pruned(report.pruned[connection.connection_id].value)

            LOGGER.info(
                "Dead connections pruned",
                extra={"pruned": len(dead), "connections": count},
            )
            self._observe_count(count)

        return report

    @staticmethod
    def _send(connection: Connection, event: OutboundEvent) -> SendResult:
        # Transports report failures as results; an exception here is a
        # transport bug and is classified as unexpected.
        try:
            return connection.send(event)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            LOGGER.exception(
                "Connection send raised",
                extra={"connection_id": connection.connection_id},
            )
            return SendResult.unexpected(repr(exc))

    @staticmethod
    def _log_failure(connection: Connection, event: OutboundEvent, result: SendResult) -> None:
        extra = {
            "connection_id": connection.connection_id,
            "event": event.name,
            "detail": result.detail,
        }
        if result.status is SendStatus.TRANSPORT_CLOSED:
            LOGGER.warning("Send failed (connection closed); pruning", extra=extra)
        elif result.status is SendStatus.IO_FAILURE:
            LOGGER.warning("Send failed (io failure); pruning", extra=extra)
        else:
            LOGGER.error("Send failed (unexpected); pruning", extra=extra)

    @staticmethod
    def _close(connection: Connection) -> None:
        try:
            connection.close()
        except Exception:  # pylint: disable=broad-exception-caught
            LOGGER.warning(
                "Connection close raised",
                extra={"connection_id": connection.connection_id},
                exc_info=True,
            )

    def _observe_count(self, count: int) -> None:
        if self._metrics is not None:
            self._metrics.set_connections(count)
