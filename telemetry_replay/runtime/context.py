"""Process-wide wiring of the replay service."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from telemetry_replay.core.domain.dataset_cursor import DatasetCursor
from telemetry_replay.core.events.broadcaster import Broadcaster
from telemetry_replay.core.events.sinks.file_recorder import FileRecorderSink
from telemetry_replay.core.events.sinks.null_sink import NullRecordSink
from telemetry_replay.core.events.sinks.sink_logging import LoggingRecordSink
from telemetry_replay.core.ports.dataset_source import DatasetSource
from telemetry_replay.core.ports.record_sink import RecordSink
from telemetry_replay.io.backend_sink import HttpRecordSink
from telemetry_replay.io.object_storage import ObjectStorageReader
from telemetry_replay.io.tabular import FileDatasetSource, ObjectStorageDatasetSource, load_dataset
from telemetry_replay.replay.dispatch import BatchDispatcher
from telemetry_replay.replay.replay_config import DatasetConfig, ReplayConfig, SinkConfig
from telemetry_replay.replay.scheduler import ReplayScheduler
from telemetry_replay.replay.timer import FixedRateTimer
from telemetry_replay.runtime.prometheus_metrics import ReplayMetrics
from telemetry_replay.scenarios.anomalies import AnomalyScenarios
from telemetry_replay.transport.topic import TopicChannel

LOGGER = logging.getLogger(__name__)

METRICS_JOB = "telemetry_replay"


@dataclass(slots=True)
class ReplayRuntime:
    """
    Everything the HTTP surface needs, built once per process.

    start() begins the tick timer (and the replay itself when configured);
    close() stops it and releases the sink, connections and metrics.
    """

    config: ReplayConfig
    metrics: ReplayMetrics
    cursor: DatasetCursor
    broadcaster: Broadcaster
    sink: RecordSink
    dispatcher: BatchDispatcher
    scheduler: ReplayScheduler
    timer: FixedRateTimer
    topic: TopicChannel
    scenarios: AnomalyScenarios

    def start(self) -> None:
        self.timer.start()
        if self.config.schedule.start_enabled:
            self.scheduler.start()

    def close(self) -> None:
        self.timer.stop(timeout=self.config.schedule.interval_seconds * 2)
        self.broadcaster.close()

        close_sink = getattr(self.sink, "close", None)
        if callable(close_sink):
            close_sink()

        try:
            self.metrics.push_all(job=METRICS_JOB)
        except Exception:  # pylint: disable=broad-exception-caught
            LOGGER.warning("Prometheus metrics push failed", exc_info=True)


def build_source(config: DatasetConfig) -> DatasetSource:
    if config.uses_object_storage:
        storage = ObjectStorageReader(
            region=config.region,
            auth_mode=config.auth_mode,
            oci_config_file=config.oci_config_file,
            oci_profile=config.oci_profile,
        )
        return ObjectStorageDatasetSource(
            storage=storage,
            bucket=config.bucket,
            key=config.key,
            encoding=config.encoding or "euc-kr",
        )
    return FileDatasetSource(config.path, encoding=config.encoding or "utf-8")


def build_sink(config: SinkConfig, *, metrics: ReplayMetrics | None = None) -> RecordSink:
    if config.kind == "http":
        return HttpRecordSink(
            base_url=config.base_url,
            timeout_seconds=config.timeout_seconds,
            max_pending=config.max_pending,
            metrics=metrics,
        )
    if config.kind == "file":
        return FileRecorderSink(config.path)
    if config.kind == "log":
        return LoggingRecordSink(logging.getLogger("telemetry_replay.records"))
    return NullRecordSink()


def build_runtime(
    config: ReplayConfig,
    *,
    source: DatasetSource | None = None,
    sink: RecordSink | None = None,
    metrics: ReplayMetrics | None = None,
) -> ReplayRuntime:
    """Wire a runtime from configuration; source, sink and metrics can be injected."""
    metrics = metrics if metrics is not None else ReplayMetrics()

    if source is None:
        source = build_source(config.dataset)
    samples = load_dataset(source)
    LOGGER.info("Dataset ready", extra={"source": source.name_hint, "records": len(samples)})

    cursor = DatasetCursor(samples, loop=config.dataset.loop)
    broadcaster = Broadcaster(metrics=metrics)
    if sink is None:
        sink = build_sink(config.sink, metrics=metrics)
    dispatcher = BatchDispatcher(sink=sink, broadcaster=broadcaster, metrics=metrics)
    scheduler = ReplayScheduler(
        cursor=cursor,
        dispatcher=dispatcher,
        batch_size=config.schedule.batch_size,
        metrics=metrics,
    )
    timer = FixedRateTimer(
        scheduler.tick,
        interval_seconds=config.schedule.interval_seconds,
        name="replay-tick",
    )

    topic = TopicChannel(
        broadcaster=broadcaster,
        max_pending_per_subscriber=config.stream.max_pending_events,
    )

    return ReplayRuntime(
        config=config,
        metrics=metrics,
        cursor=cursor,
        broadcaster=broadcaster,
        sink=sink,
        dispatcher=dispatcher,
        scheduler=scheduler,
        timer=timer,
        topic=topic,
        scenarios=AnomalyScenarios(dispatcher=dispatcher),
    )
