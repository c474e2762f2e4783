# src/safe_load_gate/__init__.py
# Main package init - exports public API for safe-load-gate.

"""
safe-load-gate: blocks a privileged node bring-up step (such as loading a
kernel driver) until an external authority says it is safe.

On start the gate marks the Node with an annotation, then watches the Node
until somebody else removes that annotation. It exits 0 once the
annotation is gone and non-zero on any failure.

CLI Usage:
    safe-load-gate wait --node-name N --config-path cfg.json
    safe-load-gate wait --node-name N --configmap-name cm --configmap-namespace ns
    safe-load-gate config show --config-path cfg.json
"""

from safe_load_gate.context import Context
from safe_load_gate.core.config import GateConfig, SafeDriverLoadConfig, load_config
from safe_load_gate.errors import (
    ConfigInvalidError,
    GateCanceledError,
    GateError,
    ObserverStoppedError,
    ResourceNotFoundError,
    TransportError,
)
from safe_load_gate.gate import GateController, ResultChannel, WaitCoordinator, wait_for_gate
from safe_load_gate.models import Notification, NotificationType, Outcome, OutcomeStatus, Resource
from safe_load_gate.store import InMemoryResourceStore, ResourceStore, Subscription

__version__ = "0.1.0"
__all__ = [
    # Entry point
    "wait_for_gate",
    "WaitCoordinator",
    "GateController",
    "ResultChannel",
    "Context",
    # Configuration
    "GateConfig",
    "SafeDriverLoadConfig",
    "load_config",
    # Models
    "Notification",
    "NotificationType",
    "Outcome",
    "OutcomeStatus",
    "Resource",
    # Stores
    "InMemoryResourceStore",
    "ResourceStore",
    "Subscription",
    # Errors
    "ConfigInvalidError",
    "GateCanceledError",
    "GateError",
    "ObserverStoppedError",
    "ResourceNotFoundError",
    "TransportError",
]
