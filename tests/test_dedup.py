"""
Tests for the duplicate message guard.
"""

import asyncio

import pytest

from conftest import FakeClock
from workflowsage.conversation.dedup import DeduplicationGuard
from workflowsage.exceptions import DuplicateMessageError


class TestKeys:
    """Tests for in-flight and recency key construction."""

    def test_in_flight_key_uses_prefix(self):
        """Test that the in-flight key keeps only the first 50 characters."""
        guard = DeduplicationGuard()
        text = "x" * 80

        assert guard.in_flight_key("c1", text) == "c1:" + "x" * 50

    def test_recent_key_uses_full_text(self):
        """Test that the recency key keeps the whole message."""
        guard = DeduplicationGuard()

        assert guard.recent_key("c1", "hello world") == "c1:hello world"


class TestInFlightCoalescing:
    """Tests for concurrent submissions sharing one run."""

    async def test_concurrent_identical_calls_share_one_run(self, guard):
        """Test that two concurrent identical submissions run the work once."""
        calls = 0
        release = asyncio.Event()

        async def work():
            nonlocal calls
            calls += 1
            await release.wait()
            return "reply"

        first = asyncio.ensure_future(guard.run("c1", "hello", work))
        second = asyncio.ensure_future(guard.run("c1", "hello", work))
        await asyncio.sleep(0)
        release.set()

        assert await asyncio.gather(first, second) == ["reply", "reply"]
        assert calls == 1

    async def test_same_prefix_coalesces(self, guard):
        """Test that messages sharing the key prefix join the running work."""
        prefix = "p" * 50
        release = asyncio.Event()

        async def work():
            await release.wait()
            return "first"

        async def other_work():
            return "second"

        first = asyncio.ensure_future(guard.run("c1", prefix + " one", work))
        await asyncio.sleep(0)
        second = asyncio.ensure_future(guard.run("c1", prefix + " two", other_work))
        await asyncio.sleep(0)
        release.set()

        assert await asyncio.gather(first, second) == ["first", "first"]

    async def test_different_conversations_run_independently(self, guard):
        """Test that the same text in two conversations is processed twice."""
        calls = []

        async def work_for(cid):
            calls.append(cid)
            await asyncio.sleep(0)
            return cid

        results = await asyncio.gather(
            guard.run("c1", "hello", lambda: work_for("c1")),
            guard.run("c2", "hello", lambda: work_for("c2")),
        )

        assert results == ["c1", "c2"]
        assert sorted(calls) == ["c1", "c2"]

    async def test_failure_is_shared_and_entry_released(self, guard):
        """Test that coalesced callers all see the failure and the key is freed."""

        async def work():
            await asyncio.sleep(0)
            raise RuntimeError("model down")

        results = await asyncio.gather(
            guard.run("c1", "hello", work),
            guard.run("c1", "hello", work),
            return_exceptions=True,
        )

        assert all(isinstance(r, RuntimeError) for r in results)
        assert guard.in_flight_count() == 0

    async def test_entry_released_after_success(self, guard):
        """Test that the in-flight map is empty once work completes."""

        async def work():
            return "ok"

        await guard.run("c1", "hello", work)

        assert guard.in_flight_count() == 0

    async def test_abandoned_caller_does_not_cancel_shared_work(self, guard):
        """Test that cancelling one waiter leaves the work running for others."""
        release = asyncio.Event()

        async def work():
            await release.wait()
            return "done"

        first = asyncio.ensure_future(guard.run("c1", "hello", work))
        second = asyncio.ensure_future(guard.run("c1", "hello", work))
        await asyncio.sleep(0)

        first.cancel()
        await asyncio.sleep(0)
        release.set()

        assert await second == "done"
        with pytest.raises(asyncio.CancelledError):
            await first
        await asyncio.sleep(0)
        assert guard.in_flight_count() == 0


class TestRecencyRejection:
    """Tests for rejecting resubmissions inside the window."""

    async def test_repeat_within_window_is_rejected(self, guard, clock):
        """Test that the same text is rejected 5 seconds after acceptance."""

        async def work():
            return "ok"

        await guard.run("c1", "hello", work)
        clock.advance(5)

        with pytest.raises(DuplicateMessageError) as exc_info:
            await guard.run("c1", "hello", work)

        assert exc_info.value.conversation_id == "c1"
        assert exc_info.value.window_seconds == 10.0

    async def test_repeat_after_window_is_accepted(self, guard, clock):
        """Test that the same text is processed again once the window passes."""
        calls = 0

        async def work():
            nonlocal calls
            calls += 1
            return "ok"

        await guard.run("c1", "hello", work)
        clock.advance(10.5)
        await guard.run("c1", "hello", work)

        assert calls == 2

    async def test_rejected_repeat_does_not_run_work(self, guard, clock):
        """Test that a rejected submission never invokes the work."""
        calls = 0

        async def work():
            nonlocal calls
            calls += 1
            return "ok"

        await guard.run("c1", "hello", work)
        with pytest.raises(DuplicateMessageError):
            await guard.run("c1", "hello", work)

        assert calls == 1

    async def test_window_counts_from_acceptance(self, clock):
        """Test that slow work does not extend the window past acceptance."""
        guard = DeduplicationGuard(window_seconds=10.0, clock=clock)

        async def slow_work():
            clock.advance(8)
            return "ok"

        await guard.run("c1", "hello", slow_work)
        clock.advance(3)

        # 11 seconds after acceptance, even though work finished 3 seconds ago
        assert await guard.run("c1", "hello", slow_work) == "ok"

    async def test_failed_work_still_counts_as_accepted(self, guard, clock):
        """Test that an accepted message that failed is still a recent duplicate."""

        async def work():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await guard.run("c1", "hello", work)

        with pytest.raises(DuplicateMessageError):
            await guard.run("c1", "hello", work)

    async def test_different_text_is_not_a_duplicate(self, guard):
        """Test that a different message in the same conversation is accepted."""

        async def work():
            return "ok"

        await guard.run("c1", "hello", work)

        assert await guard.run("c1", "hello again", work) == "ok"


class TestCleanup:
    """Tests for expiry of old recency entries."""

    async def test_cleanup_runs_past_threshold(self):
        """Test that entries older than twice the window are dropped."""
        clock = FakeClock()
        guard = DeduplicationGuard(window_seconds=10.0, cleanup_threshold=3, clock=clock)

        async def work():
            return "ok"

        for text in ("a", "b", "c"):
            await guard.run("c1", text, work)
        clock.advance(25)
        await guard.run("c1", "d", work)

        # a, b and c are 25s old (> 20s) and removed once the map exceeds 3
        assert guard.recent_count() == 1

    async def test_cleanup_keeps_entries_inside_horizon(self):
        """Test that entries younger than twice the window survive cleanup."""
        clock = FakeClock()
        guard = DeduplicationGuard(window_seconds=10.0, cleanup_threshold=2, clock=clock)

        async def work():
            return "ok"

        await guard.run("c1", "a", work)
        await guard.run("c1", "b", work)
        clock.advance(15)
        await guard.run("c1", "c", work)

        assert guard.recent_count() == 3

    async def test_no_cleanup_below_threshold(self):
        """Test that old entries linger until the threshold is exceeded."""
        clock = FakeClock()
        guard = DeduplicationGuard(window_seconds=10.0, cleanup_threshold=100, clock=clock)

        async def work():
            return "ok"

        await guard.run("c1", "a", work)
        clock.advance(60)
        await guard.run("c1", "b", work)

        assert guard.recent_count() == 2
