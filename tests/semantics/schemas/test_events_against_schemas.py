"""Schema conformance tests for push event payloads.

Every event the broadcaster builds must validate against its JSON Schema,
and the schemas must reject payloads that break the push contract.
"""

# pylint: disable=missing-function-docstring
from __future__ import annotations

import json
from pathlib import Path

import pytest
from jsonschema import ValidationError as JsonSchemaValidationError
from jsonschema import validate as jsonschema_validate
from referencing import Registry, Resource
from referencing.jsonschema import DRAFT202012

from telemetry_replay.core.domain.dataset_cursor import DatasetCursor
from telemetry_replay.core.events.events import (
    batch_event,
    connected_event,
    single_event,
    status_event,
)

SCHEMA_DIR = Path(__file__).parent.parent.parent.parent / "telemetry_replay" / "core" / "schemas"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def load_schema(name: str) -> dict:
    with (SCHEMA_DIR / name).open("r", encoding="utf-8") as f:
        return json.load(f)


def build_registry() -> Registry:
    registry = Registry()
    for path in sorted(SCHEMA_DIR.glob("*.schema.json")):
        schema = load_schema(path.name)
        resource = Resource.from_contents(schema, default_specification=DRAFT202012)
        registry = registry.with_resource(schema["$id"], resource)
    return registry


REGISTRY = build_registry()


def assert_valid(instance, schema_name: str) -> None:
    jsonschema_validate(instance=instance, schema=load_schema(schema_name), registry=REGISTRY)


def assert_invalid(instance, schema_name: str) -> None:
    with pytest.raises(JsonSchemaValidationError):
        assert_valid(instance, schema_name)


@pytest.fixture
def emitted(make_samples):
    return DatasetCursor(make_samples(3)).next_batch(3)


# ---------------------------------------------------------------------------
# Valid payloads
# ---------------------------------------------------------------------------

def test_connected_event_valid() -> None:
    assert_valid(connected_event("Stream connected").payload(), "connected_event.schema.json")


def test_status_event_valid() -> None:
    assert_valid(status_event("started", "go").payload(), "status_event.schema.json")


def test_batch_event_valid(emitted) -> None:
    assert_valid(batch_event(emitted).payload(), "batch_event.schema.json")


def test_single_event_valid(emitted) -> None:
    assert_valid(single_event(emitted[0]).payload(), "page_sample.schema.json")


# ---------------------------------------------------------------------------
# Invalid payloads
# ---------------------------------------------------------------------------

def test_connected_event_requires_timestamp() -> None:
    assert_invalid({"message": "hi"}, "connected_event.schema.json")


def test_status_event_rejects_extra_keys() -> None:
    assert_invalid(
        {"status": "started", "message": "go", "timestamp": 1, "extra": True},
        "status_event.schema.json",
    )


def test_status_timestamp_is_epoch_millis() -> None:
    assert_invalid(
        {"status": "started", "message": "go", "timestamp": "2024-01-01T00:00:00"},
        "status_event.schema.json",
    )


def test_empty_batch_is_invalid() -> None:
    assert_invalid([], "batch_event.schema.json")


def test_page_sample_keys_are_camel_case(emitted) -> None:
    payload = single_event(emitted[0]).payload()
    payload["src_ip"] = payload.pop("srcIp")

    assert_invalid(payload, "page_sample.schema.json")


def test_page_sample_requires_row_key(emitted) -> None:
    payload = single_event(emitted[0]).payload()
    del payload["rowKey"]

    assert_invalid(payload, "page_sample.schema.json")
