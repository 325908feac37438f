"""
Record sink interface.

Sinks persist emitted page samples. They are fire-and-forget: a sink must
not block its caller for long and must never raise into it.
"""
from __future__ import annotations

from typing import Protocol, Sequence

from telemetry_replay.core.domain.page_sample import PageSample


class RecordSink(Protocol):
    def submit(self, batch: Sequence[PageSample]) -> None:
        """Hand off a batch for persistence."""

    def submit_one(self, sample: PageSample) -> None:
        """Hand off a single record for persistence."""
