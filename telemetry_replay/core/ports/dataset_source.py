"""Dataset source protocol.

A dataset source produces the full, ordered list of page samples that the
replay cursor iterates over. Malformed rows are the source's concern and
must never reach the caller.
"""

from __future__ import annotations

from typing import Protocol

from telemetry_replay.core.domain.page_sample import PageSample


class DatasetSource(Protocol):
    @property
    def name_hint(self) -> str:
        """File name or object key; its suffix selects the parsing strategy."""

    def load_all(self) -> list[PageSample]:
        """Load and parse every valid record, in dataset order."""
