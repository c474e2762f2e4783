# tests/test_channel.py
# Tests for the single-slot result channel.

import threading
import time

from safe_load_gate.context import Context
from safe_load_gate.errors import TransportError
from safe_load_gate.gate.channel import ResultChannel
from safe_load_gate.models import Outcome, OutcomeStatus


class TestResultChannel:
    """Tests for ResultChannel hand-off semantics."""

    def test_first_offer_wins(self):
        """Test only the first outcome is kept."""
        channel = ResultChannel()
        assert channel.offer(Outcome.opened()) is True
        assert channel.offer(Outcome.failed(TransportError("late"))) is False
        assert channel.peek().status == OutcomeStatus.OPENED
        assert channel.dropped == 1

    def test_empty_channel(self):
        """Test a fresh channel holds nothing."""
        channel = ResultChannel()
        assert channel.filled is False
        assert channel.peek() is None

    def test_wait_returns_ready_outcome(self):
        """Test wait() returns immediately when filled."""
        channel = ResultChannel()
        channel.offer(Outcome.opened())
        assert channel.wait(Context.background()).status == OutcomeStatus.OPENED

    def test_ready_outcome_beats_done_context(self):
        """Test an outcome already present wins over cancellation."""
        channel = ResultChannel()
        channel.offer(Outcome.opened())
        ctx = Context.background()
        ctx.cancel()
        assert channel.wait(ctx) is not None

    def test_wait_returns_none_on_cancel(self):
        """Test cancellation unblocks wait()."""
        channel = ResultChannel()
        ctx = Context.background()
        threading.Timer(0.05, ctx.cancel).start()
        start = time.monotonic()
        assert channel.wait(ctx) is None
        assert time.monotonic() - start < 2.0

    def test_wait_returns_none_on_deadline(self):
        """Test a deadline unblocks wait()."""
        channel = ResultChannel()
        assert channel.wait(Context.background().with_timeout(0.05)) is None

    def test_wait_wakes_on_offer(self):
        """Test an offer from another thread wakes the waiter."""
        channel = ResultChannel()
        threading.Timer(0.05, channel.offer, args=(Outcome.opened(),)).start()
        outcome = channel.wait(Context.background().with_timeout(5))
        assert outcome is not None and outcome.ok

    def test_concurrent_offers_accept_exactly_one(self):
        """Test racing producers yield a single accepted outcome."""
        channel = ResultChannel()
        barrier = threading.Barrier(16)
        accepted = []

        def produce():
            barrier.wait()
            accepted.append(channel.offer(Outcome.opened()))

        threads = [threading.Thread(target=produce) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert accepted.count(True) == 1
        assert channel.dropped == 15

    def test_wait_returns_at_deadline_without_timer(self):
        """Test wait() ends at the deadline when the timer has not fired."""
        channel = ResultChannel()
        ctx = Context.background().with_timeout(0.05)
        ctx._timer.cancel()
        start = time.monotonic()
        assert channel.wait(ctx) is None
        assert time.monotonic() - start < 2.0
        assert ctx.err().deadline_exceeded is True

    def test_wait_unregisters_callback(self):
        """Test wait() does not leave callbacks on a long-lived context."""
        channel = ResultChannel()
        channel.offer(Outcome.opened())
        ctx = Context.background()
        channel.wait(ctx)
        assert ctx._callbacks == []
