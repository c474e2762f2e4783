# src/safe_load_gate/gate/coordinator.py
# Wait coordinator - drives one gate invocation end to end.

"""
WaitCoordinator runs a single gate invocation:

1. disabled gate -> succeed immediately, no store access
2. get the resource (fail fast if missing or unreadable)
3. merge-patch the marker annotation onto it
4. start the GateController in the background
5. block until an outcome arrives or the context is done

The patch is applied before the controller subscribes, so the first
notification the controller sees already carries the marker.
"""

import logging
from typing import Optional

from safe_load_gate.context import Context
from safe_load_gate.core.config import GateConfig
from safe_load_gate.errors import GateCanceledError
from safe_load_gate.gate.channel import ResultChannel
from safe_load_gate.gate.controller import DEFAULT_RECHECK_INTERVAL, GateController
from safe_load_gate.models import Outcome
from safe_load_gate.store.base import ResourceStore

MARKER_VALUE = "true"
DEFAULT_SHUTDOWN_TIMEOUT = 2.0

logger = logging.getLogger(__name__)


class WaitCoordinator:
    """Single-use driver for one gate invocation against one resource."""

    def __init__(
        self,
        config: GateConfig,
        store: ResourceStore,
        name: str,
        recheck_interval: float = DEFAULT_RECHECK_INTERVAL,
        shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config
        self.store = store
        self.name = name
        self.recheck_interval = recheck_interval
        self.shutdown_timeout = shutdown_timeout
        self.log = log or logger
        self.channel = ResultChannel()
        self.controller: Optional[GateController] = None
        self._used = False

    def run(self, context: Context) -> Outcome:
        """
        Run the gate and return its outcome.

        Raises:
            ConfigInvalidError: gate enabled without a marker key
            ResourceNotFoundError: resource missing at start or deleted while waiting
            TransportError: read, patch or watch failure
            GateCanceledError: `context` was canceled or hit its deadline
        """
        if self._used:
            raise RuntimeError("WaitCoordinator instances are single-use")
        self._used = True

        self.config.ensure_valid()
        if not self.config.enabled:
            self.log.info("safe driver loading is disabled, exit")
            return Outcome.disabled()

        marker_key = self.config.marker_key
        extra = {"node": self.name, "annotation": marker_key}

        context.raise_if_done()
        try:
            self.store.get(self.name)
        except Exception:
            self.log.error("failed to read %s object from the store", self.store.kind, extra=extra)
            raise

        context.raise_if_done()
        try:
            self.store.patch(self.name, {marker_key: MARKER_VALUE})
        except Exception:
            self.log.error("unable to set annotation for %s", self.store.kind, extra=extra)
            raise

        self.log.info("wait for annotation to be removed", extra=extra)

        self.controller = GateController(
            self.store,
            self.name,
            marker_key,
            self.channel,
            recheck_interval=self.recheck_interval,
            log=self.log,
        )
        self.controller.start()
        try:
            outcome = self.channel.wait(context)
        finally:
            if not self.controller.stop(self.shutdown_timeout):
                self.log.warning("gate controller did not stop in time", extra=extra)

        if outcome is None:
            raise context.err() or GateCanceledError()
        outcome.raise_for_status()
        return outcome


def wait_for_gate(
    context: Context,
    config: GateConfig,
    store: ResourceStore,
    name: str,
    recheck_interval: float = DEFAULT_RECHECK_INTERVAL,
    log: Optional[logging.Logger] = None,
) -> Outcome:
    """Run one gate invocation for resource `name`; see WaitCoordinator.run."""
    coordinator = WaitCoordinator(
        config, store, name, recheck_interval=recheck_interval, log=log
    )
    return coordinator.run(context)
