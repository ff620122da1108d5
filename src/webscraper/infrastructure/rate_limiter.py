"""
Token bucket rate limiter.

Used to pace page navigations and LLM calls. Tokens are credited in whole
units as time passes, up to the bucket capacity.
"""

import asyncio
import logging
import math
import time
from typing import Callable

logger = logging.getLogger(__name__)


class TokenBucketLimiter:
    """
    Token bucket rate limiter for burst handling.

    Allows bursts of up to ``max_tokens`` requests while holding the long
    run average to ``refill_rate`` per second.
    """

    def __init__(
        self,
        max_tokens: int = 5,
        refill_rate: float = 1.0,  # Tokens per second
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize token bucket.

        Args:
            max_tokens: Maximum tokens in bucket (burst size)
            refill_rate: Token generation rate (per second)
            clock: Monotonic time source, overridable for tests
        """
        if max_tokens < 1:
            raise ValueError("max_tokens must be >= 1")
        if refill_rate <= 0:
            raise ValueError("refill_rate must be > 0")

        self.max_tokens = max_tokens
        self.refill_rate = refill_rate
        self._clock = clock
        self._tokens = max_tokens
        self._last_refill = clock()
        self._lock = asyncio.Lock()
        self._total_wait = 0.0
        self._acquired = 0

    async def acquire(self) -> float:
        """
        Take one token, waiting if the bucket is empty.

        Returns:
            Time waited (seconds)
        """
        async with self._lock:
            wait_time = 0.0

            while True:
                self._refill()

                if self._tokens > 0:
                    self._tokens -= 1
                    self._acquired += 1
                    self._total_wait += wait_time
                    if wait_time:
                        logger.debug(f"Rate limiter granted token after {wait_time:.2f}s")
                    return wait_time

                # One refill period yields at least one token
                wait = 1.0 / self.refill_rate
                await asyncio.sleep(wait)
                wait_time += wait

    def _refill(self) -> None:
        """Credit whole tokens for the time elapsed since the last refill."""
        now = self._clock()
        elapsed = now - self._last_refill
        new_tokens = math.floor(elapsed * self.refill_rate)

        if new_tokens <= 0:
            return

        if self._tokens + new_tokens >= self.max_tokens:
            self._tokens = self.max_tokens
            self._last_refill = now
        else:
            self._tokens += new_tokens
            # Keep the fractional remainder for the next refill
            self._last_refill += new_tokens / self.refill_rate

    @property
    def available_tokens(self) -> int:
        """Current available tokens."""
        self._refill()
        return self._tokens

    @property
    def total_wait_time(self) -> float:
        return self._total_wait

    @property
    def tokens_granted(self) -> int:
        return self._acquired
