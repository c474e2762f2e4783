# src/safe_load_gate/gate/controller.py
# Gate controller - watches one resource until its marker is removed.

"""
The GateController turns a stream of notifications for one resource into
exactly one Outcome on a ResultChannel.

States:
    WAITING  marker present, no outcome yet (initial)
    DONE     outcome delivered (terminal; later notifications are ignored)

Transitions:
    WAITING --(marker absent or empty)--> DONE(opened)
    WAITING --(resource missing)--------> DONE(failed: ResourceNotFoundError)
    WAITING --(delivered/read error)----> DONE(failed: error as delivered)

If no notification arrives for `recheck_interval` seconds the controller
re-reads the resource itself, so a missed or coalesced notification in the
watch layer cannot stall the gate.
"""

import logging
import threading
from typing import Optional

from safe_load_gate.errors import GateError, ObserverStoppedError, ResourceNotFoundError
from safe_load_gate.gate.channel import ResultChannel
from safe_load_gate.models import GateState, Notification, NotificationType, Outcome, Resource
from safe_load_gate.store.base import ResourceStore, Subscription

DEFAULT_RECHECK_INTERVAL = 5.0

logger = logging.getLogger(__name__)


class GateController:
    """Evaluates notifications for one resource and reports a single outcome."""

    def __init__(
        self,
        store: ResourceStore,
        name: str,
        marker_key: str,
        channel: ResultChannel,
        recheck_interval: float = DEFAULT_RECHECK_INTERVAL,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.store = store
        self.name = name
        self.marker_key = marker_key
        self.channel = channel
        self.recheck_interval = recheck_interval
        self.log = logging.LoggerAdapter(
            log or logger, {"node": name, "annotation": marker_key}
        )
        self.state = GateState.WAITING
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._subscription: Optional[Subscription] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def done(self) -> bool:
        return self.state == GateState.DONE

    def _finish(self, outcome: Outcome) -> bool:
        with self._lock:
            if self.state == GateState.DONE:
                return False
            self.state = GateState.DONE
        self.channel.offer(outcome)
        return True

    def fail(self, error: GateError) -> GateState:
        if self._finish(Outcome.failed(error)):
            self.log.error("gate failed: %s", error)
        return self.state

    def evaluate(self, resource: Optional[Resource]) -> GateState:
        """Evaluate one observation; None means the resource could not be found."""
        if self.done:
            return self.state

        if resource is None:
            if self._finish(Outcome.failed(ResourceNotFoundError(self.name))):
                self.log.info("%s object not found, exit", self.store.kind)
            return self.state

        if not resource.has_marker(self.marker_key):
            if self._finish(Outcome.opened()):
                self.log.info("annotation removed, unblock loading")
            return self.state

        self.log.info("annotation still present, waiting")
        return self.state

    def handle(self, notification: Notification) -> GateState:
        if notification.type == NotificationType.ERROR:
            return self.fail(notification.error or ObserverStoppedError("watch failed"))
        if notification.type == NotificationType.DELETED:
            return self.evaluate(None)
        return self.evaluate(notification.resource)

    def recheck(self) -> GateState:
        """Re-read the resource directly and evaluate it."""
        try:
            resource = self.store.get(self.name)
        except ResourceNotFoundError:
            return self.evaluate(None)
        except GateError as e:
            self.log.error("failed to get %s object from the store", self.store.kind)
            return self.fail(e)
        return self.evaluate(resource)

    def run(self) -> None:
        """Subscribe and evaluate notifications until DONE or stopped. Blocks."""
        try:
            subscription = self.store.subscribe(self.name)
        except GateError as e:
            self.fail(e)
            return

        with self._lock:
            self._subscription = subscription
        if self._stop.is_set():
            subscription.close()
            return

        try:
            while not self._stop.is_set() and not self.done:
                notification = subscription.poll(self.recheck_interval)
                if self._stop.is_set():
                    break
                if notification is not None:
                    self.handle(notification)
                elif subscription.closed:
                    self.fail(ObserverStoppedError("subscription closed unexpectedly"))
                else:
                    self.recheck()
        except Exception as e:
            self.log.exception("problem running gate controller")
            self.fail(ObserverStoppedError(f"gate controller stopped: {e}"))
        finally:
            subscription.close()

    def start(self) -> threading.Thread:
        """Run the controller on a daemon thread."""
        if self._thread is not None:
            raise RuntimeError("gate controller already started")
        self._thread = threading.Thread(
            target=self.run, name=f"gate-controller-{self.name}", daemon=True
        )
        self._thread.start()
        return self._thread

    def stop(self, timeout: Optional[float] = None) -> bool:
        """
        Ask the controller to stop and wait up to `timeout` seconds.

        Returns True if the background thread has exited.
        """
        self._stop.set()
        with self._lock:
            subscription = self._subscription
        if subscription is not None:
            subscription.close()
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()
