# src/safe_load_gate/store/kube.py
# Kubernetes-backed store: gates on annotations of a Node object.

"""
Adapters over the official `kubernetes` client:

- KubeNodeStore: get/patch/watch a Node by name
- KubeConfigMapSource: read the gate configuration from a ConfigMap key
- load_kube_api: in-cluster config with a kubeconfig fallback

Watches use a field selector on the node name. A fresh watch lists the
node first, so every (re)opened stream starts with the current state.
The stream is reopened whenever the API server closes it after
`watch_timeout` seconds; any other watch failure ends the subscription
with an ObserverStoppedError.
"""

import logging
import queue
import threading
from pathlib import Path
from typing import Any, Optional

from kubernetes import client, watch
from kubernetes import config as kube_config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import HTTPError

from safe_load_gate.errors import (
    ConfigInvalidError,
    GateError,
    ObserverStoppedError,
    ResourceNotFoundError,
    TransportError,
)
from safe_load_gate.models import Notification, NotificationType, Resource
from safe_load_gate.store.base import ResourceStore, Subscription

DEFAULT_WATCH_TIMEOUT = 300

logger = logging.getLogger(__name__)

_EVENT_TYPES = {
    "ADDED": NotificationType.ADDED,
    "MODIFIED": NotificationType.MODIFIED,
    "DELETED": NotificationType.DELETED,
}


def load_kube_api(kubeconfig: Optional[Path] = None) -> client.CoreV1Api:
    """Build a CoreV1Api from in-cluster config, or from a kubeconfig file."""
    try:
        if kubeconfig is not None:
            kube_config.load_kube_config(config_file=str(kubeconfig))
        else:
            try:
                kube_config.load_incluster_config()
            except ConfigException:
                kube_config.load_kube_config()
    except (ConfigException, OSError) as e:
        raise ConfigInvalidError(f"failed to read config for k8s client: {e}") from e
    return client.CoreV1Api()


def node_to_resource(node: Any) -> Resource:
    metadata = node.metadata
    return Resource(
        name=metadata.name,
        annotations=dict(metadata.annotations or {}),
        resource_version=metadata.resource_version,
    )


def _api_error(e: ApiException, name: str, action: str) -> GateError:
    if e.status == 404:
        return ResourceNotFoundError(name, f"node {name!r} not found")
    return TransportError(f"failed to {action} node {name!r}: {e.status} {e.reason}")


class KubeNodeSubscription(Subscription):
    """Watch on a single Node, pumped into a queue by a daemon thread."""

    def __init__(self, api: client.CoreV1Api, name: str, watch_timeout: int = DEFAULT_WATCH_TIMEOUT) -> None:
        self.name = name
        self._api = api
        self._watch_timeout = watch_timeout
        self._queue: "queue.Queue[Optional[Notification]]" = queue.Queue()
        self._closed = threading.Event()
        self._watch: Optional[watch.Watch] = None
        self._lock = threading.Lock()
        self._thread = threading.Thread(target=self._pump, name=f"node-watch-{name}", daemon=True)
        self._thread.start()

    def _translate(self, event: dict[str, Any]) -> Optional[Notification]:
        event_type = event.get("type")
        if event_type == "ERROR":
            status = event.get("raw_object") or event.get("object") or {}
            message = status.get("message", "unknown error") if isinstance(status, dict) else str(status)
            return Notification.failure(ObserverStoppedError(f"watch error: {message}"))
        if event_type not in _EVENT_TYPES:
            return None
        return Notification(type=_EVENT_TYPES[event_type], resource=node_to_resource(event["object"]))

    def _pump(self) -> None:
        while not self._closed.is_set():
            w = watch.Watch()
            with self._lock:
                self._watch = w
            try:
                for event in w.stream(
                    self._api.list_node,
                    field_selector=f"metadata.name={self.name}",
                    timeout_seconds=self._watch_timeout,
                ):
                    if self._closed.is_set():
                        return
                    notification = self._translate(event)
                    if notification is not None:
                        self._queue.put(notification)
                    if notification is not None and notification.type == NotificationType.ERROR:
                        return
            except ApiException as e:
                self._queue.put(Notification.failure(
                    ObserverStoppedError(f"watch failed: {e.status} {e.reason}")
                ))
                return
            except HTTPError as e:
                if self._closed.is_set():
                    return
                self._queue.put(Notification.failure(ObserverStoppedError(f"watch failed: {e}")))
                return
            except Exception as e:
                if self._closed.is_set():
                    return
                logger.exception("watch for node %s stopped unexpectedly", self.name)
                self._queue.put(Notification.failure(ObserverStoppedError(f"watch failed: {e}")))
                return
            logger.debug("watch for node %s expired, reopening", self.name)

    def poll(self, timeout: Optional[float] = None) -> Optional[Notification]:
        if self._closed.is_set():
            return None
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def close(self) -> None:
        if self._closed.is_set():
            return
        self._closed.set()
        with self._lock:
            w = self._watch
        if w is not None:
            w.stop()
        self._queue.put_nowait(None)

    @property
    def closed(self) -> bool:
        return self._closed.is_set()


class KubeNodeStore(ResourceStore):
    """Node objects of a Kubernetes cluster."""

    def __init__(self, api: client.CoreV1Api, watch_timeout: int = DEFAULT_WATCH_TIMEOUT) -> None:
        self.api = api
        self.watch_timeout = watch_timeout

    @property
    def kind(self) -> str:
        return "Node"

    def get(self, name: str) -> Resource:
        try:
            node = self.api.read_node(name)
        except ApiException as e:
            raise _api_error(e, name, "read") from e
        except HTTPError as e:
            raise TransportError(f"failed to read node {name!r}: {e}") from e
        return node_to_resource(node)

    def patch(self, name: str, annotations: dict[str, Optional[str]]) -> Resource:
        body = {"metadata": {"annotations": dict(annotations)}}
        try:
            node = self.api.patch_node(name, body)
        except ApiException as e:
            raise _api_error(e, name, "patch") from e
        except HTTPError as e:
            raise TransportError(f"failed to patch node {name!r}: {e}") from e
        return node_to_resource(node)

    def subscribe(self, name: str) -> KubeNodeSubscription:
        return KubeNodeSubscription(self.api, name, watch_timeout=self.watch_timeout)


class KubeConfigMapSource:
    """Reads the configuration document from one key of a ConfigMap."""

    def __init__(self, api: client.CoreV1Api, name: str, namespace: str, key: str = "config.json") -> None:
        self.api = api
        self.name = name
        self.namespace = namespace
        self.key = key

    def read(self) -> str:
        try:
            cm = self.api.read_namespaced_config_map(self.name, self.namespace)
        except ApiException as e:
            if e.status == 404:
                raise ConfigInvalidError(
                    f"configmap {self.namespace}/{self.name} not found"
                ) from e
            raise TransportError(
                f"failed to read configmap {self.namespace}/{self.name}: {e.status} {e.reason}"
            ) from e
        except HTTPError as e:
            raise TransportError(f"failed to read configmap {self.namespace}/{self.name}: {e}") from e

        data = cm.data or {}
        if self.key not in data:
            raise ConfigInvalidError(
                f"key {self.key!r} not found in configmap {self.namespace}/{self.name}"
            )
        return data[self.key]
