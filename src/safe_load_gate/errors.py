# src/safe_load_gate/errors.py
# Error taxonomy for gate invocations.

"""
Every failure a gate invocation can report derives from GateError:

- ConfigInvalidError: precondition failure, raised before any store access
- ResourceNotFoundError: the watched resource is missing or was deleted
- TransportError: any other read/patch/watch failure
- ObserverStoppedError: the notification stream ended while waiting
- GateCanceledError: the caller gave up (cancellation or deadline)
"""


class GateError(Exception):
    """Base class for all gate failures."""


class ConfigInvalidError(GateError):
    """Configuration or options are invalid."""


class ResourceNotFoundError(GateError):
    """The named resource does not exist."""

    def __init__(self, name: str, message: str | None = None) -> None:
        self.name = name
        super().__init__(message or f"resource {name!r} not found")


class TransportError(GateError):
    """Reading, patching or watching the resource failed."""


class ObserverStoppedError(TransportError):
    """The notification stream stopped before the gate reached an outcome."""


class GateCanceledError(GateError):
    """Waiting was canceled by the caller or its deadline expired."""

    CANCELED = "canceled"
    DEADLINE_EXCEEDED = "deadline exceeded"

    def __init__(self, reason: str = CANCELED) -> None:
        self.reason = reason
        super().__init__(f"waiting canceled: {reason}")

    @property
    def deadline_exceeded(self) -> bool:
        return self.reason == self.DEADLINE_EXCEEDED
