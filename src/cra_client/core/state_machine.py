"""Launch gate state machine for the bootstrap flow."""

from __future__ import annotations

from enum import Enum, auto
import logging


class LaunchState(Enum):
    INITIALIZING = auto()
    CONFIG_ERROR = auto()
    PROBING = auto()
    UNREACHABLE = auto()
    PARITY_BLOCKED = auto()
    PARITY_WARNING = auto()
    LAUNCHED = auto()


class LaunchEvent(Enum):
    CONFIG_OK = auto()
    CONFIG_FAILED = auto()
    PROBE_FAILED = auto()
    PARITY_OK = auto()
    PARITY_FAILED = auto()
    PARITY_WARNED = auto()
    WARNING_SHOWN = auto()
    RETRY = auto()


_TRANSITIONS = {
    LaunchState.INITIALIZING: {
        LaunchEvent.CONFIG_OK: LaunchState.PROBING,
        LaunchEvent.CONFIG_FAILED: LaunchState.CONFIG_ERROR,
    },
    LaunchState.PROBING: {
        LaunchEvent.PROBE_FAILED: LaunchState.UNREACHABLE,
        LaunchEvent.PARITY_OK: LaunchState.LAUNCHED,
        LaunchEvent.PARITY_FAILED: LaunchState.PARITY_BLOCKED,
        LaunchEvent.PARITY_WARNED: LaunchState.PARITY_WARNING,
    },
    LaunchState.UNREACHABLE: {
        LaunchEvent.RETRY: LaunchState.PROBING,
    },
    LaunchState.PARITY_BLOCKED: {
        LaunchEvent.RETRY: LaunchState.PROBING,
    },
    LaunchState.PARITY_WARNING: {
        LaunchEvent.WARNING_SHOWN: LaunchState.LAUNCHED,
    },
    LaunchState.CONFIG_ERROR: {},
    LaunchState.LAUNCHED: {},
}

RETRYABLE_STATES = frozenset(
    state for state, events in _TRANSITIONS.items() if LaunchEvent.RETRY in events
)


class LaunchStateMachine:
    def __init__(self):
        self.state = LaunchState.INITIALIZING

    def can(self, event: LaunchEvent) -> bool:
        return event in _TRANSITIONS.get(self.state, {})

    def transition(self, event: LaunchEvent) -> LaunchState:
        next_state = _TRANSITIONS.get(self.state, {}).get(event, self.state)
        if next_state == self.state and event not in _TRANSITIONS.get(self.state, {}):
            logging.getLogger(__name__).warning(
                "Invalid state transition: %s --%s--> %s", self.state, event, next_state
            )
        self.state = next_state
        return self.state
