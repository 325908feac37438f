from __future__ import annotations

from typing import Sequence

from telemetry_replay.core.domain.page_sample import PageSample


class NullRecordSink:
    """Record sink that discards everything (used for tests and dry runs)."""

    def submit(self, batch: Sequence[PageSample]) -> None:
        return

    def submit_one(self, sample: PageSample) -> None:
        return
