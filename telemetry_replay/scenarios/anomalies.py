"""Synthetic anomaly producers for demo scenarios.

Each scenario manufactures page samples that look like a specific incident
(slow country, 5xx burst, TCP errors, a misbehaving browser) or like a
recovery, and sends them through the same dispatcher the replay scheduler
uses.
"""

from __future__ import annotations

import logging
import random
import uuid
from datetime import datetime
from typing import Callable

from telemetry_replay.core.domain.page_sample import PageSample
from telemetry_replay.replay.dispatch import BatchDispatcher

LOGGER = logging.getLogger(__name__)


class AnomalyScenarios:
    def __init__(
        self,
        *,
        dispatcher: BatchDispatcher,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._dispatcher = dispatcher
        self._rng = rng if rng is not None else random.Random()
        self._clock = clock

    # ------------------------------------------------------------------
    # Scenarios
    # ------------------------------------------------------------------

    def slow_country(self, country: str = "KR", count: int = 20) -> list[PageSample]:
        LOGGER.warning("Scenario: slow country", extra={"country": country, "count": count})
        samples = [
            self._bad_sample(
                country_name_req=country,
                ts_page=self._between(15000.0, 20000.0),
                ts_page_res=self._between(10000.0, 13000.0),
            )
            for _ in range(count)
        ]
        return self._emit("slow-country", samples)

    def error_spike(self, count: int = 30) -> list[PageSample]:
        LOGGER.warning("Scenario: 5xx error spike", extra={"count": count})
        samples = [
            self._bad_sample(
                http_res_code="500",
                res_code_5xx_cnt=1,
                ts_page=self._between(8000.0, 10000.0),
            )
            for _ in range(count)
        ]
        return self._emit("error-spike", samples)

    def tcp_error(self, count: int = 25) -> list[PageSample]:
        LOGGER.warning("Scenario: TCP errors", extra={"count": count})
        samples = [
            self._bad_sample(
                tcp_error_cnt=self._rng.randrange(5, 15),
                retransmission_cnt=self._rng.randrange(3, 8),
                ts_page=self._between(6000.0, 8000.0),
            )
            for _ in range(count)
        ]
        return self._emit("tcp-error", samples)

    def browser_issue(self, browser: str = "Firefox", count: int = 15) -> list[PageSample]:
        LOGGER.warning("Scenario: browser issue", extra={"browser": browser, "count": count})
        samples = [
            self._bad_sample(
                user_agent_software_name=browser,
                ts_page=self._between(12000.0, 15000.0),
                http_res_code="408",
            )
            for _ in range(count)
        ]
        return self._emit("browser-issue", samples)

    def recover(self, count: int = 50) -> list[PageSample]:
        LOGGER.info("Scenario: recovery", extra={"count": count})
        samples = [self._normal_sample() for _ in range(count)]
        return self._emit("recover", samples)

    def single(self) -> PageSample:
        """Emit one normal sample as a single-record event."""
        sample = self._normal_sample()
        self._dispatcher.dispatch_single(sample)
        return sample

    # ------------------------------------------------------------------
    # Sample factories
    # ------------------------------------------------------------------

    def _bad_sample(self, **overrides: object) -> PageSample:
        now = self._clock()
        values: dict[str, object] = {
            "row_key": str(uuid.uuid4()),
            "src_ip": f"192.168.1.{self._rng.randrange(255)}",
            "dst_ip": f"10.0.0.{self._rng.randrange(255)}",
            "src_port": 50000 + self._rng.randrange(10000),
            "dst_port": 80,
            "ts_server": now,
            "country_name_req": "KR",
            "user_agent_software_name": "Chrome",
            "user_agent_hardware_type": "Desktop",
            "http_method": "GET",
            "http_host": "example.com",
            "http_uri": "/api/slow",
            "http_res_code": "200",
            "page_http_cnt_req": 1,
            "page_http_cnt_res": 1,
            "created_at": now,
        }
        values.update(overrides)
        return PageSample.model_validate(values)

    def _normal_sample(self) -> PageSample:
        return self._bad_sample(
            ts_page=self._between(1000.0, 2000.0),
            ts_page_res=self._between(500.0, 1000.0),
            http_res_code="200",
            tcp_error_cnt=0,
        )

    def _between(self, low: float, high: float) -> float:
        return low + self._rng.random() * (high - low)

    def _emit(self, scenario: str, samples: list[PageSample]) -> list[PageSample]:
        if not samples:
            return samples
        self._dispatcher.dispatch(samples)
        LOGGER.info("Scenario records sent", extra={"scenario": scenario, "count": len(samples)})
        return samples
