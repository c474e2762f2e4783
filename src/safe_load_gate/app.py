# src/safe_load_gate/app.py
# Application glue: options -> configuration -> store -> gate.

"""
`run()` performs one complete safe-load-gate run for the CLI:

1. read the configuration (file or ConfigMap)
2. exit early if the gate is disabled, before a Node store is built
3. build the Node store and wait for the gate

`cancel_on_signals()` wires SIGINT/SIGTERM to a Context: the first signal
cancels the wait, a second one exits immediately.
"""

import logging
import signal
import sys
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from safe_load_gate import __version__
from safe_load_gate.context import Context
from safe_load_gate.core.config import GateConfig, load_config
from safe_load_gate.core.options import GateOptions
from safe_load_gate.gate.coordinator import wait_for_gate
from safe_load_gate.models import Outcome
from safe_load_gate.store.base import ResourceStore
from safe_load_gate.store.kube import KubeConfigMapSource, KubeNodeStore, load_kube_api

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def read_config(opts: GateOptions) -> GateConfig:
    """Load the configuration the options point at."""
    if not opts.uses_configmap:
        return load_config(path=opts.config_path)
    source = KubeConfigMapSource(
        load_kube_api(opts.kubeconfig),
        opts.configmap_name,
        opts.configmap_namespace,
        opts.configmap_key,
    )
    return load_config(source=source)


def build_store(opts: GateOptions) -> ResourceStore:
    return KubeNodeStore(load_kube_api(opts.kubeconfig))


def run(
    context: Context,
    opts: GateOptions,
    log: Optional[logging.Logger] = None,
    store: Optional[ResourceStore] = None,
) -> Outcome:
    """Run the gate for `opts.node_name`; raises GateError subclasses on failure."""
    log = log or logger
    log.info("start safe-load-gate %s, options: %s", __version__, opts.describe())

    try:
        config = read_config(opts)
    except Exception:
        log.error("failed to read configuration")
        raise
    log.info("safe-load-gate configuration: %s", config.to_json())

    if not config.enabled:
        log.info("safe driver loading is disabled, exit")
        return Outcome.disabled()

    if store is None:
        store = build_store(opts)
    return wait_for_gate(
        context,
        config,
        store,
        opts.node_name,
        recheck_interval=opts.recheck_interval,
        log=log,
    )


@contextmanager
def cancel_on_signals(context: Context) -> Iterator[Context]:
    """
    Cancel `context` on the first shutdown signal; exit(1) on the second.

    The handler only records the signal and must not take the context lock;
    a relay thread performs the cancel.
    """
    received: list[int] = []
    requested = threading.Event()
    leaving = threading.Event()

    def relay() -> None:
        requested.wait()
        if leaving.is_set():
            return
        logger.info("received signal %s, canceling", signal.Signals(received[0]).name)
        context.cancel()

    def handler(signum: int, frame: object) -> None:
        received.append(signum)
        if len(received) > 1:
            sys.exit(1)
        requested.set()

    relay_thread = threading.Thread(target=relay, name="signal-relay", daemon=True)
    relay_thread.start()
    previous = {sig: signal.signal(sig, handler) for sig in SHUTDOWN_SIGNALS}
    try:
        yield context
    finally:
        for sig, prev in previous.items():
            signal.signal(sig, prev)
        if not received:
            leaving.set()
            requested.set()
