# src/safe_load_gate/store/base.py
# Interfaces for resource stores and their subscriptions.

"""
A ResourceStore is the gate's view of the object store that owns the
gated resource. Implementations must provide:

- get(name): current representation, or ResourceNotFoundError
- patch(name, annotations): merge patch of annotations (None removes a key)
- subscribe(name): a Subscription that delivers the current state at
  least once shortly after subscribing, then every change

Retry and backoff for transport faults belong to the implementation; the
gate treats every error it is handed as final.
"""

from abc import ABC, abstractmethod
from typing import Optional

from safe_load_gate.models import Notification, Resource


class Subscription(ABC):
    """Stream of notifications for one resource."""

    @abstractmethod
    def poll(self, timeout: Optional[float] = None) -> Optional[Notification]:
        """
        Return the next notification, or None if `timeout` seconds pass
        without one.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Stop delivering notifications and release the underlying watch."""
        ...

    @property
    @abstractmethod
    def closed(self) -> bool:
        ...

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *args) -> None:
        self.close()


class ResourceStore(ABC):
    """Named-resource store with get, merge patch and change notification."""

    @property
    @abstractmethod
    def kind(self) -> str:
        """Human-readable kind of the stored resources."""
        ...

    @abstractmethod
    def get(self, name: str) -> Resource:
        ...

    @abstractmethod
    def patch(self, name: str, annotations: dict[str, Optional[str]]) -> Resource:
        """Merge `annotations` into the resource; keys mapped to None are removed."""
        ...

    @abstractmethod
    def subscribe(self, name: str) -> Subscription:
        ...
