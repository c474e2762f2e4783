# tests/conftest.py
# Pytest configuration and fixtures for safe-load-gate tests.

"""
Shared pytest fixtures for testing the gate.

Provides:
- In-memory stores seeded with a test node
- Enabled and disabled gate configurations
- Contexts that are canceled on teardown
- GateThread: runs a gate invocation in the background
"""

import logging
import threading
import time
from typing import Callable, Optional

import pytest

from safe_load_gate.context import Context
from safe_load_gate.core.config import GateConfig, SafeDriverLoadConfig
from safe_load_gate.gate.coordinator import WaitCoordinator
from safe_load_gate.logs import PACKAGE_LOGGER
from safe_load_gate.models import Outcome, Resource
from safe_load_gate.store.memory import InMemoryResourceStore

TEST_NODE = "node1"
TEST_ANNOTATION = "foo.bar/spam"
FAST_RECHECK = 0.05


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.01) -> bool:
    """Poll `predicate` until it is true or `timeout` passes."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


class GateThread:
    """Runs WaitCoordinator.run on a background thread and keeps the result."""

    def __init__(self, coordinator: WaitCoordinator, context: Context) -> None:
        self.coordinator = coordinator
        self.context = context
        self.outcome: Optional[Outcome] = None
        self.error: Optional[BaseException] = None
        self._thread = threading.Thread(target=self._run, daemon=True)

    def _run(self) -> None:
        try:
            self.outcome = self.coordinator.run(self.context)
        except BaseException as e:
            self.error = e

    def start(self) -> "GateThread":
        self._thread.start()
        return self

    def join(self, timeout: float = 5.0) -> bool:
        """Wait for the run to finish; True if it did."""
        self._thread.join(timeout)
        return not self._thread.is_alive()


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo configure_logging() so caplog keeps working across tests."""
    yield
    log = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(log.handlers):
        log.removeHandler(handler)
    log.setLevel(logging.NOTSET)
    log.propagate = True


@pytest.fixture
def node() -> Resource:
    """A node carrying one unrelated annotation."""
    return Resource(name=TEST_NODE, annotations={"existing.io/key": "keep-me"})


@pytest.fixture
def store(node: Resource) -> InMemoryResourceStore:
    """In-memory store holding the test node."""
    return InMemoryResourceStore([node])


@pytest.fixture
def enabled_config() -> GateConfig:
    return GateConfig(safe_driver_load=SafeDriverLoadConfig(enable=True, annotation=TEST_ANNOTATION))


@pytest.fixture
def disabled_config() -> GateConfig:
    return GateConfig(safe_driver_load=SafeDriverLoadConfig(enable=False))


@pytest.fixture
def context():
    """A background context, canceled after the test."""
    ctx = Context.background()
    yield ctx
    ctx.cancel()


@pytest.fixture
def start_gate(store, enabled_config, context):
    """Factory starting a gate invocation for TEST_NODE in the background."""
    runs: list[GateThread] = []

    def _start(
        config: Optional[GateConfig] = None,
        name: str = TEST_NODE,
        ctx: Optional[Context] = None,
        recheck_interval: float = FAST_RECHECK,
    ) -> GateThread:
        coordinator = WaitCoordinator(
            config or enabled_config,
            store,
            name,
            recheck_interval=recheck_interval,
            shutdown_timeout=1.0,
        )
        run = GateThread(coordinator, ctx or context).start()
        runs.append(run)
        return run

    yield _start
    for run in runs:
        run.context.cancel()
        run.join(2.0)


def marker_applied(store: InMemoryResourceStore, key: str = TEST_ANNOTATION) -> Callable[[], bool]:
    return lambda: store.annotations(TEST_NODE).get(key) == "true"


# Markers for special test categories
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "slow: tests that take significant time")
