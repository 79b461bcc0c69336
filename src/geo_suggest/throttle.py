"""
Per-trigger request gating.

A suggestion trigger (one button for one file) may not fire again while its
previous request is still running, nor within the retry cooldown after its
previous attempt started. Refused attempts never reach the network.
"""

import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)


class RequestRefused(Exception):
    """Raised when a trigger is in flight or cooling down."""

    def __init__(self, key: str, reason: str, retry_after: float = 0.0):
        super().__init__(f"Request for {key!r} refused: {reason}")
        self.key = key
        self.reason = reason  # "in_flight" or "cooldown"
        self.retry_after = retry_after


class RequestGate:
    """
    Tracks in-flight requests and cooldowns per trigger key.

    Keys are independent of each other. Single event loop only: acquire()
    and release() never await.
    """

    def __init__(
        self,
        cooldown_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.cooldown = cooldown_seconds
        self._clock = clock
        self._in_flight: set[str] = set()
        self._last_started: dict[str, float] = {}

    def is_in_flight(self, key: str) -> bool:
        return key in self._in_flight

    def retry_after(self, key: str) -> float:
        """Seconds until key may fire again (0 if it may fire now)."""
        started = self._last_started.get(key)
        if started is None:
            return 0.0
        return max(0.0, started + self.cooldown - self._clock())

    def _prune(self) -> None:
        """Forget keys whose cooldown has expired and that are not in flight."""
        now = self._clock()
        expired = [
            key
            for key, started in self._last_started.items()
            if started + self.cooldown <= now and key not in self._in_flight
        ]
        for key in expired:
            del self._last_started[key]

    def acquire(self, key: str) -> None:
        """Mark key as started, or raise RequestRefused."""
        self._prune()
        if key in self._in_flight:
            raise RequestRefused(key, "in_flight")

        wait = self.retry_after(key)
        if wait > 0:
            raise RequestRefused(key, "cooldown", retry_after=wait)

        self._in_flight.add(key)
        self._last_started[key] = self._clock()

    def release(self, key: str) -> None:
        """Mark key as settled. The cooldown keeps running."""
        self._in_flight.discard(key)

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Acquire key for the duration of the block."""
        self.acquire(key)
        try:
            yield
        finally:
            self.release(key)
