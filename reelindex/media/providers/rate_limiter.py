"""
Per-provider request admission.

Each provider gets a quota of requests per rolling window plus a minimum
gap between consecutive requests. Callers await acquire() before every
outbound request.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from reelindex.config import ProviderRateLimit

logger = logging.getLogger(__name__)


@dataclass
class RateLimiterState:
    """Mutable limiter bookkeeping, changed only inside acquire()."""

    count: int = 0
    reset_at: Optional[float] = None
    last_request_at: Optional[float] = None


class RateLimiter:
    """
    Window quota plus minimum inter-request delay.

    Usage:
        limiter = RateLimiter("tvmaze", max_requests=20, window_seconds=10,
                              min_delay_seconds=0.5)
        await limiter.acquire()
        response = await client.get(url)
    """

    def __init__(
        self,
        name: str,
        max_requests: int,
        window_seconds: float,
        min_delay_seconds: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_requests <= 0:
            raise ValueError(f"max_requests must be positive, got {max_requests}")
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be positive, got {window_seconds}")

        self.name = name
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.min_delay_seconds = max(0.0, min_delay_seconds)
        self.state = RateLimiterState()

        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, name: str, limits: ProviderRateLimit, **kwargs) -> "RateLimiter":
        return cls(
            name,
            max_requests=limits.requests,
            window_seconds=limits.per_seconds,
            min_delay_seconds=limits.min_delay_seconds,
            **kwargs,
        )

    async def acquire(self) -> None:
        """Wait until one more request is allowed, then record it."""
        async with self._lock:
            state = self.state
            now = self._clock()

            if state.reset_at is None or now >= state.reset_at:
                state.count = 0
                state.reset_at = now + self.window_seconds

            if state.count >= self.max_requests:
                wait = state.reset_at - now
                if wait > 0:
                    logger.info(
                        f"Rate limit reached for {self.name}, waiting {wait:.1f}s"
                    )
                    await self._sleep(wait)
                now = self._clock()
                state.count = 0
                state.reset_at = now + self.window_seconds

            if state.last_request_at is not None:
                gap = self.min_delay_seconds - (now - state.last_request_at)
                if gap > 0:
                    await self._sleep(gap)
                    now = self._clock()

            state.last_request_at = now
            state.count += 1

    @property
    def remaining(self) -> int:
        """Requests left in the current window, ignoring the delay gap."""
        if self.state.reset_at is None or self._clock() >= self.state.reset_at:
            return self.max_requests
        return max(0, self.max_requests - self.state.count)


class RateLimiterRegistry:
    """One RateLimiter per provider name."""

    def __init__(self):
        self._limiters: dict[str, RateLimiter] = {}

    def register(self, limiter: RateLimiter) -> RateLimiter:
        self._limiters[limiter.name] = limiter
        return limiter

    def get(self, name: str) -> Optional[RateLimiter]:
        return self._limiters.get(name)

    def get_or_create(self, name: str, limits: ProviderRateLimit, **kwargs) -> RateLimiter:
        limiter = self._limiters.get(name)
        if limiter is None:
            limiter = self.register(RateLimiter.from_config(name, limits, **kwargs))
        return limiter

    def __contains__(self, name: str) -> bool:
        return name in self._limiters

    def __len__(self) -> int:
        return len(self._limiters)
