"""
Semantic test: tabular dataset loading.

Invariant:
Cells are coerced to their field type with 0 / 0.0 / "" fallbacks, missing
columns take the same defaults, load time is stamped into created_at, and
a failing source yields an empty dataset instead of an error.
"""

from __future__ import annotations

import io
from types import SimpleNamespace

import pandas as pd

from telemetry_replay.io.object_storage import ObjectStorageReader
from telemetry_replay.io.tabular import (
    FileDatasetSource,
    ObjectStorageDatasetSource,
    coerce_cell,
    load_dataset,
)

CSV_TEXT = (
    "row_key,src_ip,src_port,ts_page,http_res_code,country_name_req\n"
    "k1,10.0.0.1,443,1.5,200,KR\n"
    "k2,10.0.0.2,not-a-port,,404,\n"
)


def test_coerce_cell_defaults() -> None:
    assert coerce_cell(int, "12.0", header="src_port") == 12
    assert coerce_cell(int, "", header="src_port") == 0
    assert coerce_cell(int, "abc", header="src_port") == 0
    assert coerce_cell(float, None, header="ts_page") == 0.0
    assert coerce_cell(str, None, header="src_ip") == ""
    assert coerce_cell(str, " KR ", header="country_name_req") == "KR"


def test_csv_file_source(tmp_path) -> None:
    path = tmp_path / "samples.csv"
    path.write_text(CSV_TEXT, encoding="utf-8")

    samples = FileDatasetSource(path).load_all()

    assert [sample.row_key for sample in samples] == ["k1", "k2"]
    assert samples[0].src_port == 443
    assert samples[0].ts_page == 1.5
    assert samples[1].src_port == 0
    assert samples[1].ts_page == 0.0
    assert samples[1].country_name_req == ""
    # columns absent from the file take defaults
    assert samples[0].dst_port == 0
    assert samples[0].created_at is not None
    assert samples[0].ts_server is None


def test_xlsx_file_source(tmp_path) -> None:
    path = tmp_path / "samples.xlsx"
    pd.DataFrame(
        {"row_key": ["x1"], "src_port": ["8080"], "http_res_code": ["200"]}
    ).to_excel(path, index=False)

    samples = FileDatasetSource(path).load_all()

    assert len(samples) == 1
    assert samples[0].src_port == 8080
    assert samples[0].http_res_code == "200"


class _FakeObjectClient:
    def __init__(self, payload: bytes) -> None:
        self._payload = payload
        self.requests: list[tuple[str, str, str]] = []

    def get_object(self, *, namespace_name, bucket_name, object_name):
        self.requests.append((namespace_name, bucket_name, object_name))

        return SimpleNamespace(data=io.BytesIO(self._payload))


def test_object_storage_source_decodes_euc_kr() -> None:
    text = "row_key,country_name_req,domestic_primary_name_req\nk1,KR,서울\n"
    client = _FakeObjectClient(text.encode("euc-kr"))
    storage = ObjectStorageReader(client=client, namespace="ns")

    source = ObjectStorageDatasetSource(storage=storage, bucket="datasets", key="replay/samples.csv")
    samples = source.load_all()

    assert client.requests == [("ns", "datasets", "replay/samples.csv")]
    assert samples[0].domestic_primary_name_req == "서울"


class _BrokenSource:
    name_hint = "broken.csv"

    def load_all(self):
        raise OSError("disk gone")


def test_load_failure_yields_empty_dataset() -> None:
    assert load_dataset(_BrokenSource()) == []
