"""
Logging record sink.
"""
from __future__ import annotations

import logging
from typing import Sequence

from telemetry_replay.core.domain.page_sample import PageSample


class LoggingRecordSink:
    """Logs emitted records instead of persisting them."""

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def submit(self, batch: Sequence[PageSample]) -> None:
        if not batch:
            return
        self._logger.info(
            "records_emitted",
            extra={
                "records": len(batch),
                "first_row_key": batch[0].row_key,
                "last_row_key": batch[-1].row_key,
            },
        )

    def submit_one(self, sample: PageSample) -> None:
        self._logger.info("record_emitted", extra={"row_key": sample.row_key})
