# src/safe_load_gate/gate/channel.py
"""
Single-slot result hand-off between the gate controller and the coordinator.
"""

import threading
from typing import Optional

from safe_load_gate.context import Context
from safe_load_gate.models import Outcome


class ResultChannel:
    """
    Set-if-unset future holding one Outcome.

    `offer()` never blocks: the first outcome wins and later ones are
    dropped. `wait()` blocks until an outcome is available or the given
    context is done.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._outcome: Optional[Outcome] = None
        self._dropped = 0

    def offer(self, outcome: Outcome) -> bool:
        """Store `outcome` if the slot is empty. Returns whether it was accepted."""
        with self._cond:
            if self._outcome is not None:
                self._dropped += 1
                return False
            self._outcome = outcome
            self._cond.notify_all()
            return True

    @property
    def filled(self) -> bool:
        with self._cond:
            return self._outcome is not None

    @property
    def dropped(self) -> int:
        """Number of offers discarded because the slot was already full."""
        with self._cond:
            return self._dropped

    def peek(self) -> Optional[Outcome]:
        with self._cond:
            return self._outcome

    def _wake(self) -> None:
        with self._cond:
            self._cond.notify_all()

    def wait(self, context: Context) -> Optional[Outcome]:
        """
        Block until an outcome arrives or `context` is done.

        Returns the outcome, or None if the context finished first. An
        outcome that is already present wins over a done context.
        """
        context.add_done_callback(self._wake)
        try:
            with self._cond:
                while self._outcome is None and not context.done():
                    self._cond.wait(context.remaining())
                return self._outcome
        finally:
            context.remove_done_callback(self._wake)
