"""
Push event models.

An OutboundEvent is one named message of the push contract. Its payload is
serialized to JSON once, when the event is built, and the same text is then
handed to every connection of a broadcast sweep.
"""
from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any, Sequence

from telemetry_replay.core.domain.page_sample import PageSample

CONNECTED = "connected"
BATCH_DATA = "batch-data"
SINGLE_DATA = "single-data"
STATUS = "status"


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True, slots=True)
class OutboundEvent:
    name: str
    data: str

    def payload(self) -> Any:
        """Decode the JSON payload (used by tests and diagnostics)."""
        return json.loads(self.data)


def _encode(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def connected_event(message: str, *, timestamp_ms: int | None = None) -> OutboundEvent:
    return OutboundEvent(
        name=CONNECTED,
        data=_encode(
            {
                "message": message,
                "timestamp": now_ms() if timestamp_ms is None else timestamp_ms,
            }
        ),
    )


def batch_event(samples: Sequence[PageSample]) -> OutboundEvent:
    return OutboundEvent(
        name=BATCH_DATA,
        data=_encode([sample.to_wire() for sample in samples]),
    )


def single_event(sample: PageSample) -> OutboundEvent:
    return OutboundEvent(name=SINGLE_DATA, data=_encode(sample.to_wire()))


def status_event(status: str, message: str, *, timestamp_ms: int | None = None) -> OutboundEvent:
    return OutboundEvent(
        name=STATUS,
        data=_encode(
            {
                "status": status,
                "message": message,
                "timestamp": now_ms() if timestamp_ms is None else timestamp_ms,
            }
        ),
    )
