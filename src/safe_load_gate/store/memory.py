# src/safe_load_gate/store/memory.py
# In-memory resource store used by the test suite.

"""
InMemoryResourceStore keeps resources in a dict and fans changes out to
subscriptions through queues, the way a watch would.

Besides the ResourceStore interface it offers helpers that play the part
of the external authority and of a misbehaving substrate:

- set_annotation / remove_annotation / delete: external mutations
  (pass notify=False to simulate a missed notification)
- fail_next: make the next get/patch/subscribe raise
- break_subscriptions: end every open subscription with an error

Every call made through the interface is recorded in `calls`.
"""

import queue
import threading
from typing import Iterable, Optional

from safe_load_gate.errors import GateError, ObserverStoppedError, ResourceNotFoundError
from safe_load_gate.models import Notification, NotificationType, Resource
from safe_load_gate.store.base import ResourceStore, Subscription


class MemorySubscription(Subscription):
    """Queue-backed subscription to a single in-memory resource."""

    def __init__(self, store: "InMemoryResourceStore", name: str) -> None:
        self.name = name
        self._store = store
        self._queue: "queue.Queue[Optional[Notification]]" = queue.Queue()
        self._closed = threading.Event()

    def push(self, notification: Notification) -> None:
        if not self._closed.is_set():
            self._queue.put_nowait(notification)

    def poll(self, timeout: Optional[float] = None) -> Optional[Notification]:
        if self._closed.is_set():
            return None
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def close(self) -> None:
        if not self._closed.is_set():
            self._closed.set()
            # wake a poller blocked on the queue
            self._queue.put_nowait(None)
            self._store._unsubscribe(self)

    @property
    def closed(self) -> bool:
        return self._closed.is_set()


class InMemoryResourceStore(ResourceStore):
    """Thread-safe in-memory store."""

    def __init__(self, resources: Iterable[Resource] = ()) -> None:
        self._lock = threading.RLock()
        self._resources: dict[str, Resource] = {}
        self._subscriptions: list[MemorySubscription] = []
        self._failures: dict[str, GateError] = {}
        self._revision = 0
        self.calls: list[tuple[str, str]] = []
        for resource in resources:
            self.add(resource)

    @property
    def kind(self) -> str:
        return "Resource"

    def _bump(self, resource: Resource) -> Resource:
        self._revision += 1
        return resource.model_copy(update={"resource_version": str(self._revision)})

    def _notify(self, name: str, notification: Notification) -> None:
        for sub in list(self._subscriptions):
            if sub.name == name:
                sub.push(notification)

    def _take_failure(self, op: str) -> None:
        error = self._failures.pop(op, None)
        if error is not None:
            raise error

    # ResourceStore interface

    def get(self, name: str) -> Resource:
        with self._lock:
            self.calls.append(("get", name))
            self._take_failure("get")
            try:
                return self._resources[name]
            except KeyError:
                raise ResourceNotFoundError(name) from None

    def patch(self, name: str, annotations: dict[str, Optional[str]]) -> Resource:
        with self._lock:
            self.calls.append(("patch", name))
            self._take_failure("patch")
            if name not in self._resources:
                raise ResourceNotFoundError(name)
            return self._apply(name, annotations, notify=True)

    def subscribe(self, name: str) -> MemorySubscription:
        with self._lock:
            self.calls.append(("subscribe", name))
            self._take_failure("subscribe")
            sub = MemorySubscription(self, name)
            self._subscriptions.append(sub)
            current = self._resources.get(name)
            if current is not None:
                sub.push(Notification.of(current, NotificationType.ADDED))
            return sub

    def _unsubscribe(self, sub: MemorySubscription) -> None:
        with self._lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)

    # External actor helpers

    def add(self, resource: Resource) -> Resource:
        with self._lock:
            stored = self._bump(resource)
            self._resources[resource.name] = stored
            self._notify(resource.name, Notification.of(stored, NotificationType.ADDED))
            return stored

    def _apply(self, name: str, annotations: dict[str, Optional[str]], notify: bool) -> Resource:
        merged = dict(self._resources[name].annotations)
        for key, value in annotations.items():
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = value
        stored = self._bump(self._resources[name].model_copy(update={"annotations": merged}))
        self._resources[name] = stored
        if notify:
            self._notify(name, Notification.of(stored))
        return stored

    def set_annotation(self, name: str, key: str, value: str, notify: bool = True) -> Resource:
        with self._lock:
            return self._apply(name, {key: value}, notify)

    def remove_annotation(self, name: str, key: str, notify: bool = True) -> Resource:
        with self._lock:
            return self._apply(name, {key: None}, notify)

    def delete(self, name: str, notify: bool = True) -> None:
        with self._lock:
            removed = self._resources.pop(name, None)
            if removed is not None and notify:
                self._notify(name, Notification.deleted(removed))

    def fail_next(self, op: str, error: GateError) -> None:
        """Make the next call to `op` ("get", "patch" or "subscribe") raise `error`."""
        if op not in ("get", "patch", "subscribe"):
            raise ValueError(f"Unknown operation: {op}")
        with self._lock:
            self._failures[op] = error

    def break_subscriptions(self, error: Optional[GateError] = None) -> None:
        """Deliver an error to every open subscription."""
        with self._lock:
            for sub in list(self._subscriptions):
                sub.push(Notification.failure(error or ObserverStoppedError("watch closed")))

    # Inspection

    def count(self, op: str) -> int:
        with self._lock:
            return sum(1 for call, _ in self.calls if call == op)

    @property
    def open_subscriptions(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def annotations(self, name: str) -> dict[str, str]:
        with self._lock:
            return dict(self._resources[name].annotations)
