"""
Semantic test: concurrent next_batch calls.

Invariant:
Batches pulled concurrently never overlap or skip records: across all
callers, a non-looping cursor hands out every dataset record exactly once.
"""

from __future__ import annotations

import threading

from telemetry_replay.core.domain.dataset_cursor import DatasetCursor


def test_concurrent_batches_partition_dataset(make_samples) -> None:
    cursor = DatasetCursor(make_samples(400), loop=False)
    seen: list[str] = []
    seen_lock = threading.Lock()

    def drain() -> None:
        while True:
            batch = cursor.next_batch(7)
            if not batch:
                return
            with seen_lock:
                seen.extend(sample.http_uri for sample in batch)

    threads = [threading.Thread(target=drain) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(seen) == sorted(f"/page/{index}" for index in range(400))
