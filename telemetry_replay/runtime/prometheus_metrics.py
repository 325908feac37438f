from __future__ import annotations

import json
import logging
import os

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    generate_latest,
    push_to_gateway,
)

LOGGER = logging.getLogger(__name__)


class ReplayMetrics:
    """Prometheus metrics for the replay service.

    Metrics live in a private registry, scraped through the HTTP surface.

    Optional environment:
    - PROMETHEUS_PUSHGATEWAY_URL: when set, push_all() sends a final
      snapshot to the Pushgateway (e.g. on shutdown).
    - PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON: JSON object used as grouping
      key, e.g. {"instance": "replay-demo-1"}.

    Delivery to the Pushgateway is best-effort: callers should treat it as a
    side-effect and never fail because of it.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._pushgateway_url = os.environ.get("PROMETHEUS_PUSHGATEWAY_URL")
        self._grouping_key = self._load_grouping_key()
        self.registry = registry if registry is not None else CollectorRegistry()

        self._records_emitted = Counter(
            "replay_records_emitted",
            "Records handed to the sink and broadcaster",
            registry=self.registry,
        )
        self._ticks = Counter(
            "replay_ticks",
            "Scheduler ticks by outcome",
            labelnames=["outcome"],
            registry=self.registry,
        )
        self._pruned = Counter(
            "replay_connections_pruned",
            "Connections removed after a failed send",
            labelnames=["reason"],
            registry=self.registry,
        )
        self._sink_failures = Counter(
            "replay_sink_failures",
            "Failed persistence submissions",
            registry=self.registry,
        )
        self._connections = Gauge(
            "replay_live_connections",
            "Currently registered push connections",
            registry=self.registry,
        )
        self._position = Gauge(
            "replay_cursor_position",
            "Current dataset cursor position",
            registry=self.registry,
        )

    def is_push_enabled(self) -> bool:
        return self._pushgateway_url is not None

    @staticmethod
    def _load_grouping_key() -> dict[str, str]:
        raw = os.environ.get("PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON")
        if not raw:
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            LOGGER.warning(
                "Invalid PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON; ignoring"
            )
            return {}

        if not isinstance(data, dict):
            return {}

        grouping: dict[str, str] = {}
        for key, value in data.items():
            if isinstance(key, str) and isinstance(value, str):
                grouping[key] = value
        return grouping

    # ------------------------------------------------------------------

    def record_emitted(self, count: int) -> None:
        self._records_emitted.inc(count)

    def record_tick(self, outcome: str) -> None:
        self._ticks.labels(outcome=outcome).inc()

    def record_pruned(self, reason: str) -> None:
        self._pruned.labels(reason=reason).inc()

    def record_sink_failure(self) -> None:
        self._sink_failures.inc()

    def set_connections(self, count: int) -> None:
        self._connections.set(count)

    def set_position(self, position: int) -> None:
        self._position.set(position)

    def render(self) -> bytes:
        """Return the text exposition format of every metric."""
        return generate_latest(self.registry)

    def push_all(self, *, job: str) -> None:
        if not self._pushgateway_url:
            return

        push_to_gateway(
            gateway=self._pushgateway_url,
            job=job,
            registry=self.registry,
            grouping_key=self._grouping_key,
        )

        LOGGER.info(
            "Prometheus metrics pushed",
            extra={"job": job, "grouping_key": self._grouping_key},
        )
