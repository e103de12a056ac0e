"""
Duplicate message protection for chat turns.

Two mechanisms are combined:

* In-flight coalescing: while a message is being processed, callers that
  submit the same (conversation, message prefix) await the running work
  instead of starting it again.
* Recency rejection: the same exact text for the same conversation is
  rejected with DuplicateMessageError if it arrives within the dedup window
  after a previous acceptance.

The check-and-register step runs under a lock and never suspends, so it is
atomic for both interleaved asyncio tasks and preemptive threads.
"""

import asyncio
import logging
import threading
import time
from functools import partial
from typing import Awaitable, Callable, Optional, TypeVar

from workflowsage.exceptions import DuplicateMessageError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DeduplicationGuard:
    """Process-local guard owning the in-flight and recency maps.

    One instance should be shared by everything that processes turns for
    the same event loop.
    """

    def __init__(
        self,
        window_seconds: float = 10.0,
        prefix_length: int = 50,
        cleanup_threshold: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the guard.

        Args:
            window_seconds: How long an accepted message blocks identical resubmission
            prefix_length: Characters of message text used for the in-flight key
            cleanup_threshold: Recency map size that triggers expiry of old entries
            clock: Monotonic time source in seconds
        """
        self.window_seconds = window_seconds
        self.prefix_length = prefix_length
        self.cleanup_threshold = cleanup_threshold
        self._clock = clock
        self._lock = threading.Lock()
        self._in_flight: dict[str, asyncio.Future] = {}
        self._recent: dict[str, float] = {}

    def in_flight_key(self, conversation_id: str, text: str) -> str:
        return f"{conversation_id}:{text[: self.prefix_length]}"

    def recent_key(self, conversation_id: str, text: str) -> str:
        return f"{conversation_id}:{text}"

    async def run(
        self,
        conversation_id: str,
        text: str,
        work: Callable[[], Awaitable[T]],
    ) -> T:
        """Run ``work`` for a message unless it is a duplicate.

        Args:
            conversation_id: Conversation the message belongs to
            text: Raw message text
            work: Zero-argument coroutine factory that processes the message

        Returns:
            The result of ``work``, shared by all coalesced callers

        Raises:
            DuplicateMessageError: Same text accepted within the dedup window
        """
        key = self.in_flight_key(conversation_id, text)

        with self._lock:
            task = self._in_flight.get(key)
            if task is not None:
                logger.info(f"Message already being processed, awaiting result: {key!r}")
            else:
                self._accept(conversation_id, text)
                task = asyncio.ensure_future(work())
                self._in_flight[key] = task
                task.add_done_callback(partial(self._release, key))

        # Shielded so an abandoned caller does not cancel work other callers share
        return await asyncio.shield(task)

    def _accept(self, conversation_id: str, text: str) -> None:
        """Apply the recency check and record the acceptance. Caller holds the lock."""
        now = self._clock()
        recent_key = self.recent_key(conversation_id, text)
        seen_at = self._recent.get(recent_key)
        if seen_at is not None and now - seen_at < self.window_seconds:
            logger.info(
                f"Duplicate message detected within deduplication window for "
                f"conversation {conversation_id}"
            )
            raise DuplicateMessageError(conversation_id, self.window_seconds)

        self._recent[recent_key] = now
        if len(self._recent) > self.cleanup_threshold:
            self._cleanup(now)

    def _cleanup(self, now: float) -> int:
        """Drop recency entries older than twice the window. Caller holds the lock."""
        horizon = self.window_seconds * 2
        stale = [k for k, seen_at in self._recent.items() if now - seen_at > horizon]
        for k in stale:
            del self._recent[k]
        logger.debug(f"Cleaned up {len(stale)} old message entries")
        return len(stale)

    def _release(self, key: str, task: asyncio.Future) -> None:
        """Done-callback: forget the in-flight entry however the work ended."""
        with self._lock:
            if self._in_flight.get(key) is task:
                del self._in_flight[key]

        if task.cancelled():
            logger.warning(f"Processing cancelled for {key!r}")
            return
        error: Optional[BaseException] = task.exception()
        if error is not None:
            logger.debug(f"Processing failed for {key!r}: {error}")

    def in_flight_count(self) -> int:
        with self._lock:
            return len(self._in_flight)

    def recent_count(self) -> int:
        with self._lock:
            return len(self._recent)
