"""Implementation of a rate limiter.

Controls the frequency of outgoing requests to stay under the remote API's
limits. Uses a token bucket: `capacity` permits, refilled continuously at
`refill_rate` permits per second.
"""

import time
import asyncio
import logging
from threading import Lock
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_REQUESTS_PER_MINUTE = 100
DEFAULT_BURST_CAPACITY = 10

class RateLimiter:
    """Token bucket rate limiter shared by every request of one client."""

    def __init__(
        self,
        capacity: int = DEFAULT_BURST_CAPACITY,
        refill_rate: float = DEFAULT_REQUESTS_PER_MINUTE / 60.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initializes the rate limiter with a full bucket.

        Args:
            capacity: Maximum number of tokens (burst size).
            refill_rate: Tokens added per second.
            clock: Monotonic time source, injectable for tests.
            sleep: Async sleep used while waiting, injectable for tests.
        """
        if capacity <= 0 or refill_rate <= 0:
            raise ValueError("Capacity and refill rate must be positive.")
        self.capacity = capacity
        self.refill_rate = float(refill_rate)
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._last_refill = clock()
        # Guards only the refill/check/decrement arithmetic, never an await
        self._lock = Lock()
        logger.info(f"RateLimiter initialized: capacity={capacity}, refill_rate={self.refill_rate:.3f}/s")

    @classmethod
    def per_minute(cls, requests_per_minute: int, burst_capacity: int, **kwargs) -> "RateLimiter":
        return cls(capacity=burst_capacity, refill_rate=requests_per_minute / 60.0, **kwargs)

    def _refill(self, now: float) -> None:
        elapsed = now - self._last_refill
        if elapsed > 0:
            self._tokens = min(float(self.capacity), self._tokens + elapsed * self.refill_rate)
            self._last_refill = now

    @property
    def tokens(self) -> float:
        """Currently available tokens after lazy refill."""
        with self._lock:
            self._refill(self._clock())
            return self._tokens

    def acquire(self) -> float:
        """Tries to take one token without waiting.

        Returns:
            0.0 if a token was granted, otherwise the number of seconds until
            the next token becomes available. Nothing is taken in that case.
        """
        with self._lock:
            self._refill(self._clock())
            if self._tokens >= 1.0:
                self._tokens -= 1.0
                return 0.0
            return (1.0 - self._tokens) / self.refill_rate

    async def _sleep_unless_cancelled(self, seconds: float, cancel_event: Optional[asyncio.Event]) -> bool:
        """Sleeps for `seconds`. Returns True if `cancel_event` fired first."""
        if cancel_event is None:
            await self._sleep(seconds)
            return False
        sleeper = asyncio.ensure_future(self._sleep(seconds))
        canceller = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({sleeper, canceller}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, canceller):
                if not task.done():
                    task.cancel()
        return cancel_event.is_set()

    async def wait_for_permission(self, cancel_event: Optional[asyncio.Event] = None) -> float:
        """Waits until a token is granted.

        Args:
            cancel_event: Interrupts the wait as soon as it is set; the caller
                checks it afterwards. No token is taken in that case.

        Returns:
            Total seconds spent waiting.
        """
        waited = 0.0
        while True:
            wait_time = self.acquire()
            if wait_time <= 0:
                if waited:
                    logger.debug(f"Rate limit permission granted after {waited:.2f}s.")
                return waited
            if cancel_event is not None and cancel_event.is_set():
                return waited
            logger.debug(f"Rate limit reached. Waiting for {wait_time:.2f} seconds.")
            if await self._sleep_unless_cancelled(wait_time, cancel_event):
                logger.debug("Rate limit wait cancelled.")
                return waited
            waited += wait_time
            # Loop again to re-check; another caller may have taken the token
