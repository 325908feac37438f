"""Public API for the telemetry_replay package.

Only symbols imported here are considered part of the stable,
supported external interface.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ----------------------------------------------------------------------
# Domain
# ----------------------------------------------------------------------
from telemetry_replay.core.domain.dataset_cursor import DatasetCursor
from telemetry_replay.core.domain.page_sample import PageSample
from telemetry_replay.core.domain.scheduler_state import SchedulerState

# ----------------------------------------------------------------------
# Push delivery
# ----------------------------------------------------------------------
from telemetry_replay.core.events.broadcaster import Broadcaster, DeliveryReport
from telemetry_replay.core.events.events import OutboundEvent
from telemetry_replay.core.ports.connection import Connection, SendResult, SendStatus
from telemetry_replay.core.ports.record_sink import RecordSink

# ----------------------------------------------------------------------
# Replay
# ----------------------------------------------------------------------
from telemetry_replay.replay.dispatch import BatchDispatcher
from telemetry_replay.replay.replay_config import ReplayConfig
from telemetry_replay.replay.scheduler import ReplayScheduler, TickOutcome

# ----------------------------------------------------------------------
# Runtime
# ----------------------------------------------------------------------
from telemetry_replay.runtime.context import ReplayRuntime, build_runtime

# ----------------------------------------------------------------------
# Public API definition
# ----------------------------------------------------------------------

__all__ = [
    # Domain
    "PageSample",
    "DatasetCursor",
    "SchedulerState",

    # Push delivery
    "Broadcaster",
    "DeliveryReport",
    "OutboundEvent",
    "Connection",
    "SendResult",
    "SendStatus",
    "RecordSink",

    # Replay
    "BatchDispatcher",
    "ReplayScheduler",
    "TickOutcome",
    "ReplayConfig",

    # Runtime
    "ReplayRuntime",
    "build_runtime",

    # Version
    "__version__",
]

# ----------------------------------------------------------------------
# Package version
# ----------------------------------------------------------------------

try:
    __version__ = version("telemetry-replay")
except PackageNotFoundError:
    __version__ = "0.0.0"
