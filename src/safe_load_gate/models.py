# src/safe_load_gate/models.py
# Core models: the watched resource, notifications and gate outcomes.

"""
Defines the data structures shared by the gate and the stores:
- Resource: the named object carrying the marker annotation
- Notification: one delivery from a store subscription
- Outcome: the single terminal result of a gate invocation
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from safe_load_gate.errors import GateError


class Resource(BaseModel):
    """Current representation of a watched resource."""

    name: str = Field(..., description="Unique resource name")
    annotations: dict[str, str] = Field(default_factory=dict)
    resource_version: Optional[str] = Field(default=None, description="Store revision")

    def has_marker(self, key: str) -> bool:
        """True when `key` is present with a non-empty value."""
        return bool(self.annotations.get(key))


class NotificationType(str, Enum):
    """Kind of change delivered by a subscription."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    ERROR = "error"


@dataclass
class Notification:
    """A single delivery from a subscription."""

    type: NotificationType
    resource: Optional[Resource] = None
    error: Optional[GateError] = None

    @classmethod
    def of(cls, resource: Resource, type: NotificationType = NotificationType.MODIFIED) -> "Notification":
        return cls(type=type, resource=resource)

    @classmethod
    def deleted(cls, resource: Optional[Resource] = None) -> "Notification":
        return cls(type=NotificationType.DELETED, resource=resource)

    @classmethod
    def failure(cls, error: GateError) -> "Notification":
        return cls(type=NotificationType.ERROR, error=error)


class GateState(str, Enum):
    """State of the gate controller."""

    WAITING = "waiting"
    DONE = "done"


class OutcomeStatus(str, Enum):
    """Terminal status of a gate invocation."""

    OPENED = "opened"
    DISABLED = "disabled"
    FAILED = "failed"


@dataclass(frozen=True)
class Outcome:
    """Result of one gate invocation."""

    status: OutcomeStatus
    error: Optional[GateError] = None

    @classmethod
    def opened(cls) -> "Outcome":
        return cls(status=OutcomeStatus.OPENED)

    @classmethod
    def disabled(cls) -> "Outcome":
        return cls(status=OutcomeStatus.DISABLED)

    @classmethod
    def failed(cls, error: GateError) -> "Outcome":
        return cls(status=OutcomeStatus.FAILED, error=error)

    @property
    def ok(self) -> bool:
        return self.status != OutcomeStatus.FAILED

    def raise_for_status(self) -> None:
        """Raise the failure cause, if any."""
        if self.error is not None:
            raise self.error
