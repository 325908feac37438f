"""
Append-only file recorder sink.
"""
from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Sequence

from telemetry_replay.core.domain.page_sample import PageSample

LOGGER = logging.getLogger(__name__)


class FileRecorderSink:
    """Writes each emitted record as a JSON line to a file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._fh = self._path.open("a", encoding="utf-8")
        self._lock = threading.Lock()
        self._closed = False

    def submit(self, batch: Sequence[PageSample]) -> None:
        lines = "".join(json.dumps(sample.to_wire(), ensure_ascii=False) + "\n" for sample in batch)
        self._write(lines)

    def submit_one(self, sample: PageSample) -> None:
        self._write(json.dumps(sample.to_wire(), ensure_ascii=False) + "\n")

    def _write(self, text: str) -> None:
        with self._lock:
            if self._closed:
                LOGGER.warning("Recorder closed; records dropped", extra={"path": str(self._path)})
                return
            try:
                self._fh.write(text)
                self._fh.flush()
            except OSError:
                LOGGER.exception("Recorder write failed", extra={"path": str(self._path)})

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._fh.flush()
            self._fh.close()
            self._closed = True
