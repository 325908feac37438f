"""
Semantic test: HTTP persistence sink.

Invariant:
Batches go to /page-samples/batch and single records to /page-samples as
camelCase JSON, in submission order. Backend errors stay in the worker and
are counted; a full backlog or a closed sink drops records without raising.
"""

from __future__ import annotations

import json
import threading

import httpx
from prometheus_client import CollectorRegistry

from telemetry_replay.io.backend_sink import HttpRecordSink
from telemetry_replay.runtime.prometheus_metrics import ReplayMetrics


def _sink(handler, **kwargs) -> HttpRecordSink:
    client = httpx.Client(base_url="http://backend", transport=httpx.MockTransport(handler))
    return HttpRecordSink(base_url="http://backend", client=client, **kwargs)


def test_batch_and_single_paths(make_samples) -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200)

    sink = _sink(handler)
    samples = make_samples(3)

    sink.submit(samples[:2])
    sink.submit_one(samples[2])
    sink.close()

    assert [request.url.path for request in requests] == ["/page-samples/batch", "/page-samples"]
    batch = json.loads(requests[0].content)
    assert [item["rowKey"] for item in batch] == ["orig-0", "orig-1"]
    assert json.loads(requests[1].content)["httpUri"] == "/page/2"


def test_backend_errors_are_counted_not_raised(make_samples) -> None:
    metrics = ReplayMetrics(registry=CollectorRegistry())

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/batch"):
            return httpx.Response(503)
        raise httpx.ConnectError("refused", request=request)

    sink = _sink(handler, metrics=metrics)
    samples = make_samples(2)

    sink.submit(samples)
    sink.submit_one(samples[0])
    sink.close()

    assert metrics.registry.get_sample_value("replay_sink_failures_total") == 2.0


def test_full_backlog_drops(make_samples) -> None:
    release = threading.Event()
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        release.wait(timeout=5)
        seen.append(request.url.path)
        return httpx.Response(200)

    sink = _sink(handler, max_pending=1)
    samples = make_samples(3)

    sink.submit_one(samples[0])
    sink.submit_one(samples[1])
    release.set()
    sink.close()

    assert seen == ["/page-samples"]


def test_closed_sink_drops(make_samples) -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        return httpx.Response(200)

    sink = _sink(handler)
    sink.close()
    sink.submit(make_samples(1))

    assert seen == []
