"""Fan-out of emitted records to the persistence sink and live subscribers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from telemetry_replay.core.domain.page_sample import PageSample
from telemetry_replay.core.events.broadcaster import Broadcaster, DeliveryReport
from telemetry_replay.core.ports.record_sink import RecordSink

if TYPE_CHECKING:
    from telemetry_replay.runtime.prometheus_metrics import ReplayMetrics

LOGGER = logging.getLogger(__name__)


class BatchDispatcher:
    """Hands the same records to the sink and the broadcaster.

    The two deliveries are isolated from each other: a sink failure never
    prevents the broadcast and a broadcast failure never reaches the caller.
    """

    def __init__(
        self,
        *,
        sink: RecordSink,
        broadcaster: Broadcaster,
        metrics: ReplayMetrics | None = None,
    ) -> None:
        self._sink = sink
        self._broadcaster = broadcaster
        self._metrics = metrics

    @property
    def broadcaster(self) -> Broadcaster:
        return self._broadcaster

    def dispatch(self, batch: Sequence[PageSample]) -> DeliveryReport | None:
        if not batch:
            LOGGER.warning("No records to dispatch")
            return None

        try:
            self._sink.submit(batch)
        except Exception:  # pylint: disable=broad-exception-caught
            LOGGER.exception("Sink submit failed", extra={"records": len(batch)})
            if self._metrics is not None:
                self._metrics.record_sink_failure()

        report: DeliveryReport | None = None
        try:
            report = self._broadcaster.publish_batch(batch)
        except Exception:  # pylint: disable=broad-exception-caught
            LOGGER.exception("Batch broadcast failed", extra={"records": len(batch)})

        if self._metrics is not None:
            self._metrics.record_emitted(len(batch))
        return report

    def dispatch_single(self, sample: PageSample) -> DeliveryReport | None:
        try:
            self._sink.submit_one(sample)
        except Exception:  # pylint: disable=broad-exception-caught
            LOGGER.exception("Sink submit failed", extra={"row_key": sample.row_key})
            if self._metrics is not None:
                self._metrics.record_sink_failure()

        report: DeliveryReport | None = None
        try:
            report = self._broadcaster.publish_single(sample)
        except Exception:  # pylint: disable=broad-exception-caught
            LOGGER.exception("Single broadcast failed", extra={"row_key": sample.row_key})

        if self._metrics is not None:
            self._metrics.record_emitted(1)
        return report
