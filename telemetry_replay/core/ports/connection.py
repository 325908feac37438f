"""Subscriber connection protocol for push delivery.

This module defines the boundary between the broadcaster and concrete push
transports (per-connection event streams, topic channels). A send never
raises: it reports its outcome as a tagged SendResult, and any outcome
other than DELIVERED routes the connection to pruning.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from telemetry_replay.core.events.events import OutboundEvent


class SendStatus(str, Enum):
    DELIVERED = "delivered"
    TRANSPORT_CLOSED = "transport_closed"
    IO_FAILURE = "io_failure"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True, slots=True)
class SendResult:
    """Outcome of one send attempt on one connection."""

    status: SendStatus
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is SendStatus.DELIVERED

    @classmethod
    def delivered(cls) -> SendResult:
        return _DELIVERED

    @classmethod
    def transport_closed(cls, detail: str | None = None) -> SendResult:
        return cls(status=SendStatus.TRANSPORT_CLOSED, detail=detail)

    @classmethod
    def io_failure(cls, detail: str | None = None) -> SendResult:
        return cls(status=SendStatus.IO_FAILURE, detail=detail)

    @classmethod
    def unexpected(cls, detail: str) -> SendResult:
        return cls(status=SendStatus.UNEXPECTED, detail=detail)


_DELIVERED = SendResult(status=SendStatus.DELIVERED)


class Connection(Protocol):
    """One live subscriber as seen by the broadcaster."""

    @property
    def connection_id(self) -> str:
        """Stable identifier, unique within the registry."""

    def send(self, event: OutboundEvent) -> SendResult:
        """Attempt a bounded, non-blocking delivery of one event."""

    def close(self) -> None:
        """Release the transport. Must be idempotent."""
