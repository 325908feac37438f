"""
Semantic test: broadcast isolation.

Invariant:
With three live connections where the second fails, the other two still
receive the batch, the failed one is removed after the sweep and closed,
and the live count drops to two. Later sweeps never retry it.
"""

from __future__ import annotations

import pytest

from telemetry_replay.core.events.broadcaster import Broadcaster
from telemetry_replay.core.ports.connection import SendResult, SendStatus


@pytest.mark.parametrize(
    ("failure", "expected"),
    [
        (SendResult.transport_closed("gone"), SendStatus.TRANSPORT_CLOSED),
        (SendResult.io_failure("backlog full"), SendStatus.IO_FAILURE),
        (SendResult.unexpected("boom"), SendStatus.UNEXPECTED),
    ],
)
def test_failed_connection_is_pruned(make_samples, make_connection, failure, expected) -> None:
    broadcaster = Broadcaster()
    first, second, third = (make_connection(f"c{index}") for index in range(3))
    for connection in (first, second, third):
        assert broadcaster.register(connection)

    second.result = failure
    report = broadcaster.publish_batch(make_samples(2))

    assert report.delivered == 2
    assert report.pruned == {"c1": expected}
    assert broadcaster.count() == 2
    assert second.close_calls == 1
    assert first.event_names == ["connected", "batch-data"]
    assert third.event_names == ["connected", "batch-data"]

    second.result = None
    broadcaster.publish_batch(make_samples(1))
    assert second.event_names == ["connected"]


def test_raising_send_is_classified_unexpected(make_samples, make_connection) -> None:
    broadcaster = Broadcaster()
    healthy = make_connection("ok")
    broken = make_connection("broken")
    broadcaster.register(healthy)
    broadcaster.register(broken)

    broken.raises = True
    report = broadcaster.publish_single(make_samples(1)[0])

    assert report.pruned == {"broken": SendStatus.UNEXPECTED}
    assert healthy.event_names == ["connected", "single-data"]
    assert broadcaster.count() == 1
