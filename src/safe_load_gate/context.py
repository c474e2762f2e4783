# src/safe_load_gate/context.py
# Cancellable context with an optional deadline.

"""
A Context carries the caller's cancellation signal into a gate invocation.

It can be canceled explicitly (signal handlers, tests) or by a deadline.
Children derived with `child()` or `with_timeout()` are canceled together
with their parent, never the other way round.

Waiters either block on `wait()` or register `add_done_callback()` to be
woken; callbacks run exactly once, on the thread that cancels the context
(or immediately if it is already done).
"""

import threading
import time
from typing import Callable, Optional

from safe_load_gate.errors import GateCanceledError


class Context:
    """Cancellation signal shared between the caller and a gate invocation."""

    def __init__(self, deadline: Optional[float] = None, parent: Optional["Context"] = None) -> None:
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._reason: Optional[str] = None
        self._callbacks: list[Callable[[], None]] = []
        self._timer: Optional[threading.Timer] = None
        self._parent = parent
        self._on_parent_done: Optional[Callable[[], None]] = None

        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self.deadline = deadline

        if parent is not None:
            self._on_parent_done = lambda: self._finish(parent._reason or GateCanceledError.CANCELED)
            parent.add_done_callback(self._on_parent_done)

        if deadline is not None and not self._done.is_set():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                self._finish(GateCanceledError.DEADLINE_EXCEEDED)
            else:
                self._timer = threading.Timer(
                    remaining, self._finish, args=(GateCanceledError.DEADLINE_EXCEEDED,)
                )
                self._timer.daemon = True
                self._timer.start()

    @classmethod
    def background(cls) -> "Context":
        """A context that is only canceled explicitly."""
        return cls()

    def child(self) -> "Context":
        return Context(parent=self)

    def with_timeout(self, seconds: Optional[float]) -> "Context":
        """Derive a child that expires after `seconds` (None means no deadline)."""
        if seconds is None:
            return self.child()
        return Context(deadline=time.monotonic() + seconds, parent=self)

    def cancel(self) -> None:
        self._finish(GateCanceledError.CANCELED)

    def _finish(self, reason: str) -> None:
        with self._lock:
            if self._done.is_set():
                return
            self._reason = reason
            self._done.set()
            callbacks, self._callbacks = self._callbacks, []
            timer, self._timer = self._timer, None

        if timer is not None:
            timer.cancel()
        if self._parent is not None and self._on_parent_done is not None:
            self._parent.remove_done_callback(self._on_parent_done)
        for callback in callbacks:
            callback()

    def _check_deadline(self) -> None:
        # the timer may not have fired yet
        if self.deadline is not None and not self._done.is_set() and time.monotonic() >= self.deadline:
            self._finish(GateCanceledError.DEADLINE_EXCEEDED)

    def done(self) -> bool:
        self._check_deadline()
        return self._done.is_set()

    def err(self) -> Optional[GateCanceledError]:
        """The cancellation error, or None while the context is live."""
        if not self.done():
            return None
        return GateCanceledError(self._reason or GateCanceledError.CANCELED)

    def raise_if_done(self) -> None:
        err = self.err()
        if err is not None:
            raise err

    def remaining(self) -> Optional[float]:
        """Seconds until the deadline, or None without one."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the context is done or `timeout` elapses."""
        return self._done.wait(timeout)

    def add_done_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if not self._done.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def remove_done_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass
