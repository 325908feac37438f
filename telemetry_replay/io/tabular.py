"""Tabular dataset sources (CSV / XLSX, local or in object storage).

Every cell is read as text and coerced to the page sample field type:

- empty numeric cells become 0 / 0.0, empty text cells become ""
- numeric text is parsed as float first, so "12.0" is a valid integer 12
- unparseable numbers fall back to 0 with a warning
- missing header columns are filled with the same defaults

A row that still fails model validation is skipped.
"""

from __future__ import annotations

import io
import logging
from datetime import datetime
from pathlib import Path
from typing import IO, Any, get_args

import pandas as pd
from pydantic import ValidationError

from telemetry_replay.core.domain.page_sample import PageSample
from telemetry_replay.core.ports.dataset_source import DatasetSource
from telemetry_replay.io.object_storage import ObjectStorageReader

LOGGER = logging.getLogger(__name__)

# ts_server / created_at are stamped at load and emission time.
_STAMPED_FIELDS = frozenset({"ts_server", "created_at"})


def _field_kinds() -> dict[str, type]:
    kinds: dict[str, type] = {}
    for name, info in PageSample.model_fields.items():
        if name in _STAMPED_FIELDS:
            continue
        kinds[name] = next(arg for arg in get_args(info.annotation) if arg is not type(None))
    return kinds


FIELD_KINDS: dict[str, type] = _field_kinds()


def coerce_cell(kind: type, raw: Any, *, header: str) -> Any:
    value = "" if raw is None else str(raw).strip()
    if kind is str:
        return value

    if not value:
        return 0 if kind is int else 0.0

    try:
        number = float(value)
        return int(number) if kind is int else number
    except (ValueError, OverflowError):
        LOGGER.warning(
            "Numeric conversion failed; defaulting to 0",
            extra={"header": header, "value": value},
        )
        return 0 if kind is int else 0.0


def parse_frame(frame: pd.DataFrame) -> list[PageSample]:
    """Convert a text-typed data frame into page samples, skipping bad rows."""
    frame = frame.fillna("")
    columns = {str(column).strip(): column for column in frame.columns}

    missing = [name for name in FIELD_KINDS if name not in columns]
    if missing:
        LOGGER.warning(
            "Dataset headers missing; defaults used",
            extra={"missing": missing},
        )

    LOGGER.info("Header mapping complete", extra={"headers": list(columns)})

    loaded_at = datetime.now()
    samples: list[PageSample] = []
    skipped = 0

    for row_number, row in enumerate(frame.to_dict(orient="records"), start=2):
        values: dict[str, Any] = {}
        for name, kind in FIELD_KINDS.items():
            column = columns.get(name)
            raw = row.get(column) if column is not None else None
            values[name] = coerce_cell(kind, raw, header=name)
        values["created_at"] = loaded_at

        try:
            samples.append(PageSample.model_validate(values))
        except ValidationError as exc:
            skipped += 1
            LOGGER.warning(
                "Row parse failed; skipped",
                extra={"row": row_number, "errors": exc.error_count()},
            )

    if skipped:
        LOGGER.warning("Rows skipped during load", extra={"skipped": skipped})
    return samples


def read_frame(stream: IO[bytes], *, name_hint: str, encoding: str) -> pd.DataFrame:
    """Read a CSV (by suffix) or, by default, the first XLSX sheet as text."""
    if name_hint.lower().endswith(".csv"):
        return pd.read_csv(stream, dtype=str, keep_default_na=False, encoding=encoding)
    return pd.read_excel(stream, sheet_name=0, dtype=str, keep_default_na=False)


class FileDatasetSource:
    """Dataset stored in a local CSV or XLSX file."""

    def __init__(self, path: str | Path, *, encoding: str = "utf-8") -> None:
        self._path = Path(path)
        self._encoding = encoding

    @property
    def name_hint(self) -> str:
        return self._path.name

    def load_all(self) -> list[PageSample]:
        with self._path.open("rb") as fh:
            frame = read_frame(fh, name_hint=self.name_hint, encoding=self._encoding)
        samples = parse_frame(frame)
        LOGGER.info(
            "Dataset file loaded",
            extra={"path": str(self._path), "records": len(samples)},
        )
        return samples


class ObjectStorageDatasetSource:
    """Dataset stored as a CSV or XLSX object in a bucket."""

    def __init__(
        self,
        *,
        storage: ObjectStorageReader,
        bucket: str,
        key: str,
        encoding: str = "euc-kr",
    ) -> None:
        self._storage = storage
        self._bucket = bucket
        self._key = key
        self._encoding = encoding

    @property
    def name_hint(self) -> str:
        return self._key

    def load_all(self) -> list[PageSample]:
        raw = self._storage.read_bytes(self._bucket, self._key)
        frame = read_frame(io.BytesIO(raw), name_hint=self.name_hint, encoding=self._encoding)
        samples = parse_frame(frame)
        LOGGER.info(
            "Dataset object loaded",
            extra={"bucket": self._bucket, "key": self._key, "records": len(samples)},
        )
        return samples


def load_dataset(source: DatasetSource) -> list[PageSample]:
    """Load a dataset, turning any failure into an empty dataset."""
    try:
        return source.load_all()
    except Exception:  # pylint: disable=broad-exception-caught
        LOGGER.exception("Dataset load failed; replay starts empty", extra={"source": source.name_hint})
        return []
