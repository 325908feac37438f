"""Shared test doubles for the semantic test suite."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Sequence

import pytest

from telemetry_replay.core.domain.page_sample import PageSample
from telemetry_replay.core.events.events import OutboundEvent
from telemetry_replay.core.ports.connection import SendResult


class RecordingConnection:
    """Connection that records events and can be told how to fail."""

    def __init__(self, connection_id: str, *, result: SendResult | None = None, raises: bool = False) -> None:
        self._connection_id = connection_id
        self.result = result
        self.raises = raises
        self.events: list[OutboundEvent] = []
        self.close_calls = 0

    @property
    def connection_id(self) -> str:
        return self._connection_id

    def send(self, event: OutboundEvent) -> SendResult:
        if self.raises:
            raise RuntimeError("transport bug")
        if self.result is not None:
            return self.result
        self.events.append(event)
        return SendResult.delivered()

    def close(self) -> None:
        self.close_calls += 1

    @property
    def event_names(self) -> list[str]:
        return [event.name for event in self.events]


class RecordingSink:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.batches: list[list[PageSample]] = []
        self.singles: list[PageSample] = []

    def submit(self, batch: Sequence[PageSample]) -> None:
        if self.fail:
            raise RuntimeError("backend unavailable")
        self.batches.append(list(batch))

    def submit_one(self, sample: PageSample) -> None:
        if self.fail:
            raise RuntimeError("backend unavailable")
        self.singles.append(sample)


@pytest.fixture
def make_samples() -> Callable[[int], list[PageSample]]:
    def _make(count: int) -> list[PageSample]:
        return [
            PageSample(
                row_key=f"orig-{index}",
                src_ip=f"192.168.1.{index}",
                http_uri=f"/page/{index}",
                ts_page=float(index),
                ts_server=datetime(2024, 1, 1, 0, 0, 0),
                created_at=datetime(2024, 1, 1, 0, 0, 0),
            )
            for index in range(count)
        ]

    return _make


@pytest.fixture
def make_connection() -> Callable[..., RecordingConnection]:
    return RecordingConnection


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def failing_sink() -> RecordingSink:
    return RecordingSink(fail=True)
