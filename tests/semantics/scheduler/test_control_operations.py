"""
Semantic test: start / stop / restart.

Invariant:
start and stop are idempotent and each call announces exactly one status
event to live connections. restart leaves the scheduler running and does
not rewind the dataset cursor. A transition outside the allowed table is
logged and still takes effect.
"""

from __future__ import annotations

import json
import logging

import pytest

from telemetry_replay.core.domain.dataset_cursor import DatasetCursor
from telemetry_replay.core.domain.scheduler_state import SchedulerState
from telemetry_replay.core.events.broadcaster import Broadcaster
from telemetry_replay.replay.dispatch import BatchDispatcher
from telemetry_replay.replay.scheduler import ReplayScheduler


def _scheduler(samples, sink, broadcaster=None, batch_size=2) -> ReplayScheduler:
    return ReplayScheduler(
        cursor=DatasetCursor(samples, loop=True),
        dispatcher=BatchDispatcher(sink=sink, broadcaster=broadcaster or Broadcaster()),
        batch_size=batch_size,
    )


def _statuses(connection) -> list[str]:
    return [json.loads(event.data)["status"] for event in connection.events if event.name == "status"]


def test_stop_is_idempotent_and_announced_each_time(make_samples, recording_sink, make_connection) -> None:
    broadcaster = Broadcaster()
    connection = make_connection("c1")
    broadcaster.register(connection)
    scheduler = _scheduler(make_samples(3), recording_sink, broadcaster)

    scheduler.stop()
    scheduler.stop()

    assert scheduler.state is SchedulerState.STOPPED
    assert _statuses(connection) == ["stopped", "stopped"]


def test_start_is_idempotent(make_samples, recording_sink, make_connection) -> None:
    broadcaster = Broadcaster()
    connection = make_connection("c1")
    broadcaster.register(connection)
    scheduler = _scheduler(make_samples(3), recording_sink, broadcaster)

    scheduler.start()
    scheduler.start()

    assert scheduler.is_enabled()
    assert _statuses(connection) == ["started", "started"]


def test_restart_keeps_cursor_position(make_samples, recording_sink, make_connection) -> None:
    broadcaster = Broadcaster()
    connection = make_connection("c1")
    broadcaster.register(connection)
    scheduler = _scheduler(make_samples(10), recording_sink, broadcaster, batch_size=3)

    scheduler.start()
    scheduler.tick()
    scheduler.restart()

    assert scheduler.is_enabled()
    assert scheduler.cursor.progress() == (3, 10)
    assert _statuses(connection) == ["started", "restarted"]

    scheduler.tick()
    assert [sample.http_uri for sample in recording_sink.batches[-1]] == ["/page/3", "/page/4", "/page/5"]


def test_stop_prevents_later_ticks(make_samples, recording_sink) -> None:
    scheduler = _scheduler(make_samples(3), recording_sink)

    scheduler.start()
    scheduler.tick()
    scheduler.stop()

    assert scheduler.tick().skipped_reason == "stopped"
    assert len(recording_sink.batches) == 1


def test_non_positive_batch_size_is_rejected(make_samples, recording_sink) -> None:
    with pytest.raises(ValueError):
        _scheduler(make_samples(3), recording_sink, batch_size=0)


def test_unexpected_transition_is_logged_not_raised(make_samples, recording_sink, monkeypatch, caplog) -> None:
    scheduler = _scheduler(make_samples(3), recording_sink)
    monkeypatch.setattr(
        "telemetry_replay.replay.scheduler.is_valid_transition", lambda prev, nxt: False
    )

    with caplog.at_level(logging.WARNING, logger="telemetry_replay.replay.scheduler"):
        scheduler.start()

    assert scheduler.state is SchedulerState.RUNNING
    assert "Unexpected scheduler transition" in caplog.messages
