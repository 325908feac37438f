"""
Semantic test: downstream failures stay inside the tick.

Invariant:
A failing sink never prevents the broadcast and never escapes tick();
the cursor still advances so the next tick moves on.
"""

from __future__ import annotations

from telemetry_replay.core.domain.dataset_cursor import DatasetCursor
from telemetry_replay.core.events.broadcaster import Broadcaster
from telemetry_replay.replay.dispatch import BatchDispatcher
from telemetry_replay.replay.scheduler import ReplayScheduler


class _ExplodingBroadcaster(Broadcaster):
    def publish_batch(self, batch):
        raise RuntimeError("broadcast bug")


def test_sink_failure_does_not_block_broadcast(make_samples, failing_sink, make_connection) -> None:
    broadcaster = Broadcaster()
    connection = make_connection("c1")
    broadcaster.register(connection)
    scheduler = ReplayScheduler(
        cursor=DatasetCursor(make_samples(4)),
        dispatcher=BatchDispatcher(sink=failing_sink, broadcaster=broadcaster),
        batch_size=2,
    )
    scheduler.start()

    outcome = scheduler.tick()

    assert outcome.emitted == 2
    assert "batch-data" in connection.event_names
    assert scheduler.cursor.progress() == (2, 4)


def test_broadcast_failure_does_not_escape_tick(make_samples, recording_sink) -> None:
    scheduler = ReplayScheduler(
        cursor=DatasetCursor(make_samples(4)),
        dispatcher=BatchDispatcher(sink=recording_sink, broadcaster=_ExplodingBroadcaster()),
        batch_size=2,
    )
    scheduler.start()

    assert scheduler.tick().emitted == 2
    assert scheduler.tick().emitted == 2
    assert len(recording_sink.batches) == 2
