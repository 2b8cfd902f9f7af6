"""
Request throttling.

A token bucket shared by every request in a run. Each outbound request
consumes one permit; permits regenerate at a fixed rate and the bucket
never holds more than its capacity.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Awaitable, Callable

from ..logging import get_logger

if TYPE_CHECKING:
    from ..config.models import ThrottleConfig

logger = get_logger(__name__)

Clock = Callable[[], float]
Sleeper = Callable[[float], Awaitable[None]]


class Throttle:
    """Async token-bucket rate gate.

    Features:
    - Configurable capacity and refill period
    - Minimum spacing of ``refill_seconds`` between acquisitions once the
      bucket is drained (always, for capacity 1)
    - Idle time never accumulates beyond ``capacity`` permits
    - Async-safe with a lock; waiters are served one at a time
    - Injectable clock and sleep for tests
    """

    def __init__(
        self,
        capacity: int = 1,
        refill_seconds: float = 1.0,
        *,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ):
        """Initialize throttle.

        Args:
            capacity: Maximum permits held by the bucket
            refill_seconds: Time to regenerate a single permit
            clock: Monotonic time source in seconds
            sleep: Coroutine used to wait
        """
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        if refill_seconds <= 0:
            raise ValueError("refill_seconds must be > 0")

        self.capacity = capacity
        self.refill_seconds = float(refill_seconds)
        self._clock = clock
        self._sleep = sleep

        self._tokens = float(capacity)
        self._updated_at = clock()
        self._lock = asyncio.Lock()
        self._acquired = 0

    @classmethod
    def from_config(cls, config: ThrottleConfig, **kwargs) -> "Throttle":
        return cls(capacity=config.capacity, refill_seconds=config.refill_seconds, **kwargs)

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated_at)
        self._tokens = min(float(self.capacity), self._tokens + elapsed / self.refill_seconds)
        self._updated_at = now

    @property
    def available(self) -> float:
        """Permits currently in the bucket."""
        self._refill()
        return self._tokens

    @property
    def acquired(self) -> int:
        """Total permits handed out."""
        return self._acquired

    async def acquire(self) -> None:
        """Wait for a permit and consume it.

        Cannot fail, only delay. Cancelling the waiting task consumes nothing.
        """
        async with self._lock:
            while True:
                self._refill()
                if self._tokens >= 1.0:
                    self._tokens -= 1.0
                    self._acquired += 1
                    return

                wait_time = (1.0 - self._tokens) * self.refill_seconds
                logger.debug("Throttle waiting %.3fs for a permit", wait_time)
                await self._sleep(wait_time)

    async def __aenter__(self) -> "Throttle":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        return None

    def stats(self) -> dict[str, float | int]:
        """Get throttle statistics."""
        return {
            "capacity": self.capacity,
            "refill_seconds": self.refill_seconds,
            "available": self.available,
            "acquired": self._acquired,
        }
