# src/safe_load_gate/gate/__init__.py
"""
Gate coordination.

- channel: single-slot result hand-off
- controller: per-notification state machine, runs in the background
- coordinator: applies the marker and blocks for the outcome
"""

from safe_load_gate.gate.channel import ResultChannel
from safe_load_gate.gate.controller import DEFAULT_RECHECK_INTERVAL, GateController
from safe_load_gate.gate.coordinator import (
    DEFAULT_SHUTDOWN_TIMEOUT,
    MARKER_VALUE,
    WaitCoordinator,
    wait_for_gate,
)

__all__ = [
    "DEFAULT_RECHECK_INTERVAL",
    "DEFAULT_SHUTDOWN_TIMEOUT",
    "GateController",
    "MARKER_VALUE",
    "ResultChannel",
    "WaitCoordinator",
    "wait_for_gate",
]
