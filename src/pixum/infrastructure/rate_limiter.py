"""Fixed-window rate limiter for inbound requests.

Hey future me - this caps how many requests we ACCEPT per time window, so a burst of
visitors can't turn into a burst of upstream calls (the upstream bans aggressive
clients, and then nobody gets images).

ALGORITHM: fixed window bucket
- Bucket holds max_tokens tokens
- At every window boundary the bucket is refilled completely
- Each accepted request takes 1 token
- Empty bucket: wait until the current window ends

So at most max_tokens requests are accepted in any one window, no matter how they
are spread inside it.

USAGE:
    limiter = RateLimiter(RateLimiterConfig(max_tokens=50, window_seconds=10.0))

    async with limiter:
        await handle(request)
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field

from pixum.config import AdmissionSettings

logger = logging.getLogger(__name__)


@dataclass
class RateLimiterConfig:
    """Configuration for rate limiter."""

    max_tokens: int = 50  # Requests accepted per window
    window_seconds: float = 10.0


@dataclass
class RateLimiter:
    """Fixed-window rate limiter.

    Attributes:
        config: Rate limiter configuration
        _tokens: Tokens left in the current window
        _window_start: Monotonic start time of the current window
        _lock: Async lock guarding the bucket
    """

    config: RateLimiterConfig = field(default_factory=RateLimiterConfig)
    name: str = "default"

    # Internal state (not in __init__ signature)
    _tokens: int = field(default=0, init=False)
    _window_start: float = field(default_factory=time.monotonic, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    def __post_init__(self) -> None:
        """Start with a full bucket."""
        self._tokens = self.config.max_tokens

    @classmethod
    def from_settings(cls, settings: AdmissionSettings) -> "RateLimiter":
        """Create the inbound limiter from admission settings."""
        return cls(
            config=RateLimiterConfig(
                max_tokens=settings.rate_limit_requests,
                window_seconds=settings.rate_limit_window_seconds,
            ),
            name="inbound",
        )

    def _refill_tokens(self, now: float) -> None:
        """Refill the bucket if the current window is over."""
        elapsed = now - self._window_start
        if elapsed >= self.config.window_seconds:
            # Skip whole windows that passed without traffic
            windows = int(elapsed // self.config.window_seconds)
            self._window_start += windows * self.config.window_seconds
            self._tokens = self.config.max_tokens

    async def acquire(self) -> None:
        """Take one token, waiting for the next window if the bucket is empty.

        The lock is only held while touching the bucket, never while sleeping,
        so a cancelled waiter can't leave it locked.
        """
        while True:
            async with self._lock:
                now = time.monotonic()
                self._refill_tokens(now)
                if self._tokens >= 1:
                    self._tokens -= 1
                    logger.debug(
                        "RateLimiter[%s]: token acquired, %d remaining",
                        self.name,
                        self._tokens,
                    )
                    return
                wait_time = self._window_start + self.config.window_seconds - now

            logger.debug(
                "RateLimiter[%s]: window exhausted, waiting %.2fs", self.name, wait_time
            )
            await asyncio.sleep(max(wait_time, 0.0))

    async def __aenter__(self) -> "RateLimiter":
        """Enter async context - acquire token."""
        await self.acquire()
        return self

    async def __aexit__(
        self, exc_type: type | None, exc_val: Exception | None, exc_tb: object
    ) -> None:
        """Exit async context (token stays consumed)."""

    @property
    def available_tokens(self) -> int:
        """Tokens left in the current window (for debugging)."""
        self._refill_tokens(time.monotonic())
        return self._tokens


__all__ = ["RateLimiter", "RateLimiterConfig"]
