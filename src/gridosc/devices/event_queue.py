"""Bounded queue carrying key events from a dispatch thread to the application."""

import logging
import queue
import threading
from collections.abc import Iterator
from typing import Optional

from gridosc.models import ButtonEvent, OverflowPolicy

logger = logging.getLogger(__name__)

# How often a blocked producer re-checks its cancel event (seconds)
PUT_RETRY_INTERVAL = 0.1


class KeyEventQueue:
    """
    Bounded FIFO of ButtonEvents.

    The producer is a session's receive thread; the consumer is the
    application. With OverflowPolicy.BLOCK a full queue makes the producer
    wait, which stalls every further inbound message of that session
    (including /sys announcements) until the application drains the queue.
    With OverflowPolicy.DROP_OLDEST the oldest queued event is discarded
    instead and counted in `dropped`.
    """

    def __init__(self, maxsize: int = 256, policy: OverflowPolicy = OverflowPolicy.BLOCK):
        """
        Initialize the queue.

        Args:
            maxsize: Capacity (must be at least 1)
            policy: Overflow behaviour when the queue is full
        """
        if maxsize < 1:
            raise ValueError(f"maxsize must be at least 1, got {maxsize}")
        self._queue: queue.Queue[ButtonEvent] = queue.Queue(maxsize=maxsize)
        self._policy = policy
        self._drop_lock = threading.Lock()
        self._dropped = 0

    @property
    def policy(self) -> OverflowPolicy:
        return self._policy

    @property
    def maxsize(self) -> int:
        return self._queue.maxsize

    @property
    def dropped(self) -> int:
        """Number of events discarded under DROP_OLDEST."""
        with self._drop_lock:
            return self._dropped

    def put(self, event: ButtonEvent, cancel: Optional[threading.Event] = None) -> bool:
        """
        Enqueue an event according to the overflow policy.

        Args:
            event: The event to deliver
            cancel: Set when the producer is shutting down; a blocked put
                    gives up once it is set

        Returns:
            True if the event was queued, False if the put was cancelled
        """
        if self._policy is OverflowPolicy.DROP_OLDEST:
            self._put_dropping(event)
            return True

        while cancel is None or not cancel.is_set():
            try:
                self._queue.put(event, timeout=PUT_RETRY_INTERVAL)
                return True
            except queue.Full:
                continue
        logger.debug(f"Discarding {event} queued during shutdown")
        return False

    def _put_dropping(self, event: ButtonEvent) -> None:
        # single producer, so space freed here cannot be taken by another put
        while True:
            try:
                self._queue.put_nowait(event)
                return
            except queue.Full:
                try:
                    oldest = self._queue.get_nowait()
                except queue.Empty:
                    continue
                with self._drop_lock:
                    self._dropped += 1
                logger.debug(f"Key event queue full, dropped {oldest}")

    def get(self, timeout: Optional[float] = None) -> ButtonEvent:
        """
        Remove and return the next event.

        Args:
            timeout: Seconds to wait; None waits forever

        Raises:
            queue.Empty: If no event arrived within the timeout
        """
        return self._queue.get(timeout=timeout)

    def get_nowait(self) -> ButtonEvent:
        return self._queue.get_nowait()

    def qsize(self) -> int:
        return self._queue.qsize()

    def empty(self) -> bool:
        return self._queue.empty()

    def __iter__(self) -> Iterator[ButtonEvent]:
        """Yield events as they arrive, forever."""
        while True:
            yield self._queue.get()
