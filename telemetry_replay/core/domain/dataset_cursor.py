"""Cyclic read cursor over a loaded dataset."""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime
from typing import Callable, Sequence

from telemetry_replay.core.domain.page_sample import PageSample

LOGGER = logging.getLogger(__name__)


def _new_row_key() -> str:
    return str(uuid.uuid4())


class DatasetCursor:
    """Slices an immutable record list into batches of refreshed copies.

    Invariant:
    - With loop=True the position wraps to 0 as soon as it reaches the end,
      so 0 <= position < total holds whenever total > 0.
    - With loop=False the position stops at total and every later batch is
      empty.
    - Only next_batch() mutates the position, under a single lock.
    """

    def __init__(
        self,
        samples: Sequence[PageSample],
        *,
        loop: bool = True,
        clock: Callable[[], datetime] = datetime.now,
        key_factory: Callable[[], str] = _new_row_key,
    ) -> None:
        self._samples: tuple[PageSample, ...] = tuple(samples)
        self._loop = loop
        self._clock = clock
        self._key_factory = key_factory

        self._position = 0
        self._lock = threading.Lock()

    @property
    def loop(self) -> bool:
        return self._loop

    def __len__(self) -> int:
        return len(self._samples)

    def next_batch(self, size: int) -> list[PageSample]:
        """Return up to `size` refreshed records and advance the position."""
        if size <= 0:
            raise ValueError(f"batch size must be positive, got {size}")

        total = len(self._samples)
        if total == 0:
            LOGGER.warning("Dataset is empty; no records to replay")
            return []

        batch: list[PageSample] = []
        with self._lock:
            while len(batch) < size:
                if self._position >= total:
                    LOGGER.info("Dataset exhausted", extra={"total": total})
                    break

                sample = self._samples[self._position]
                batch.append(
                    sample.refreshed(row_key=self._key_factory(), now=self._clock())
                )
                self._position += 1

                if self._position >= total and self._loop:
                    self._position = 0
                    LOGGER.info("Dataset wrapped; replaying from the start")

        return batch

    def has_next(self) -> bool:
        # An empty dataset never has a next record, even in loop mode.
        if not self._samples:
            return False
        if self._loop:
            return True
        with self._lock:
            return self._position < len(self._samples)

    def progress(self) -> tuple[int, int]:
        """Return (current position, total size)."""
        with self._lock:
            return self._position, len(self._samples)
