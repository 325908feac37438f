"""
Semantic test: wrap-around and exhaustion.

Invariant:
With loop enabled the cursor wraps to the start inside a batch, so five
records from a three-record dataset are [0, 1, 2, 0, 1] and the position
ends at 2. Without loop the cursor stops at the end, returns a partial
batch, and every later batch is empty.
"""

from __future__ import annotations

from telemetry_replay.core.domain.dataset_cursor import DatasetCursor


def test_loop_wraps_within_one_batch(make_samples) -> None:
    cursor = DatasetCursor(make_samples(3), loop=True)

    batch = cursor.next_batch(5)

    assert [sample.http_uri for sample in batch] == [
        "/page/0",
        "/page/1",
        "/page/2",
        "/page/0",
        "/page/1",
    ]
    assert cursor.progress() == (2, 3)
    assert cursor.has_next()


def test_no_loop_returns_partial_then_empty(make_samples) -> None:
    cursor = DatasetCursor(make_samples(3), loop=False)

    assert len(cursor.next_batch(2)) == 2
    assert cursor.has_next()

    assert len(cursor.next_batch(2)) == 1
    assert not cursor.has_next()
    assert cursor.progress() == (3, 3)

    assert cursor.next_batch(2) == []


def test_empty_dataset_never_has_next() -> None:
    for loop in (True, False):
        cursor = DatasetCursor([], loop=loop)

        assert cursor.next_batch(4) == []
        assert not cursor.has_next()
        assert cursor.progress() == (0, 0)
