"""
Replay scheduler state definitions.

The scheduler has exactly two states. Every transition is driven by an
explicit control operation (start / stop / restart); ticks only read the
state, they never change it.
"""

from __future__ import annotations

from enum import Enum


class SchedulerState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


# Allowed scheduler state transitions.
#
# Key   : current state
# Value : states reachable through a control operation
#
# Notes:
# - start() on a running scheduler is a valid self-transition (idempotent).
# - stop() is accepted from any state, including STOPPED.
SCHEDULER_ALLOWED_TRANSITIONS: dict[SchedulerState, frozenset[SchedulerState]] = {
    SchedulerState.STOPPED: frozenset(
        {
            SchedulerState.STOPPED,
            SchedulerState.RUNNING,
        }
    ),

    SchedulerState.RUNNING: frozenset(
        {
            SchedulerState.RUNNING,
            SchedulerState.STOPPED,
        }
    ),
}


def is_valid_transition(prev_state: SchedulerState, next_state: SchedulerState) -> bool:
    """Return True if the transition prev_state -> next_state is allowed."""
    allowed = SCHEDULER_ALLOWED_TRANSITIONS.get(prev_state)
    if allowed is None:
        return False
    return next_state in allowed
