# src/safe_load_gate/store/__init__.py
# Resource stores the gate can watch.

"""
Stores provide get / merge patch / subscribe for named resources.

- InMemoryResourceStore: in-process store used by the tests
- KubeNodeStore: Node objects through the Kubernetes API
"""

from safe_load_gate.store.base import ResourceStore, Subscription
from safe_load_gate.store.memory import InMemoryResourceStore, MemorySubscription

__all__ = [
    "InMemoryResourceStore",
    "MemorySubscription",
    "ResourceStore",
    "Subscription",
]
