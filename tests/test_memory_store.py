# tests/test_memory_store.py
# Tests for the in-memory resource store.

import threading

import pytest

from safe_load_gate.errors import ObserverStoppedError, ResourceNotFoundError, TransportError
from safe_load_gate.models import NotificationType, Resource
from safe_load_gate.store.memory import InMemoryResourceStore


class TestInMemoryStore:
    """Tests for get/patch and the external actor helpers."""

    def test_get(self, store):
        """Test reading an existing resource."""
        node = store.get("node1")
        assert node.annotations == {"existing.io/key": "keep-me"}
        assert node.resource_version is not None

    def test_get_missing(self, store):
        """Test reading a missing resource."""
        with pytest.raises(ResourceNotFoundError):
            store.get("unknown-node")

    def test_patch_merges(self, store):
        """Test patch keeps unrelated annotations."""
        store.patch("node1", {"x/y": "true"})
        assert store.annotations("node1") == {"existing.io/key": "keep-me", "x/y": "true"}

    def test_patch_none_removes(self, store):
        """Test a None value deletes the key."""
        store.patch("node1", {"existing.io/key": None})
        assert store.annotations("node1") == {}

    def test_patch_missing(self, store):
        """Test patching a missing resource."""
        with pytest.raises(ResourceNotFoundError):
            store.patch("unknown-node", {"x/y": "true"})

    def test_patch_bumps_version(self, store):
        """Test each write gets a new version."""
        before = store.get("node1").resource_version
        after = store.patch("node1", {"x/y": "true"}).resource_version
        assert before != after

    def test_calls_recorded(self, store):
        """Test interface calls are recorded in order."""
        store.get("node1")
        store.patch("node1", {"x/y": "true"})
        store.subscribe("node1").close()
        assert store.calls == [("get", "node1"), ("patch", "node1"), ("subscribe", "node1")]
        assert store.count("patch") == 1

    def test_helpers_not_recorded(self, store):
        """Test external mutations are not counted as gate calls."""
        store.set_annotation("node1", "x/y", "true")
        store.remove_annotation("node1", "x/y")
        assert store.calls == []

    def test_fail_next(self, store):
        """Test injected failures fire once."""
        store.fail_next("get", TransportError("boom"))
        with pytest.raises(TransportError):
            store.get("node1")
        assert store.get("node1").name == "node1"

    def test_fail_next_unknown_op(self, store):
        """Test only interface operations can fail."""
        with pytest.raises(ValueError):
            store.fail_next("delete", TransportError("boom"))


class TestMemorySubscription:
    """Tests for subscription delivery."""

    def test_initial_delivery(self, store):
        """Test current state is delivered on subscribe."""
        with store.subscribe("node1") as sub:
            notification = sub.poll(1.0)
            assert notification.type == NotificationType.ADDED
            assert notification.resource.name == "node1"

    def test_no_initial_delivery_for_missing_resource(self, store):
        """Test nothing is delivered for an unknown name."""
        with store.subscribe("unknown-node") as sub:
            assert sub.poll(0.05) is None

    def test_change_delivery(self, store):
        """Test changes are delivered after the initial state."""
        with store.subscribe("node1") as sub:
            sub.poll(1.0)
            store.set_annotation("node1", "x/y", "true")
            notification = sub.poll(1.0)
            assert notification.type == NotificationType.MODIFIED
            assert notification.resource.annotations["x/y"] == "true"

    def test_missed_notification(self, store):
        """Test notify=False changes state without a delivery."""
        with store.subscribe("node1") as sub:
            sub.poll(1.0)
            store.set_annotation("node1", "x/y", "true", notify=False)
            assert sub.poll(0.05) is None
            assert store.get("node1").annotations["x/y"] == "true"

    def test_delete_delivery(self, store):
        """Test deletion is delivered."""
        with store.subscribe("node1") as sub:
            sub.poll(1.0)
            store.delete("node1")
            assert sub.poll(1.0).type == NotificationType.DELETED

    def test_only_matching_name(self):
        """Test subscriptions only see their own resource."""
        store = InMemoryResourceStore([Resource(name="a"), Resource(name="b")])
        with store.subscribe("a") as sub:
            sub.poll(1.0)
            store.set_annotation("b", "k", "v")
            assert sub.poll(0.05) is None

    def test_break_subscriptions(self, store):
        """Test an injected watch failure is delivered as an error."""
        with store.subscribe("node1") as sub:
            sub.poll(1.0)
            store.break_subscriptions()
            notification = sub.poll(1.0)
            assert notification.type == NotificationType.ERROR
            assert isinstance(notification.error, ObserverStoppedError)

    def test_close_wakes_poller(self, store):
        """Test close() unblocks a poll in another thread."""
        sub = store.subscribe("node1")
        sub.poll(1.0)
        result = []
        poller = threading.Thread(target=lambda: result.append(sub.poll(10.0)))
        poller.start()
        sub.close()
        poller.join(2.0)
        assert not poller.is_alive()
        assert result == [None]
        assert sub.closed is True

    def test_close_unsubscribes(self, store):
        """Test closed subscriptions are released."""
        sub = store.subscribe("node1")
        assert store.open_subscriptions == 1
        sub.close()
        sub.close()
        assert store.open_subscriptions == 0
