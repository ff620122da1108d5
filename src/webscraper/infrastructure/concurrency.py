"""
Concurrency gate.

Counting semaphore that bounds how many pages are open at once, with
usage tracking for crawl summaries.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)


class ConcurrencyGate:
    """Bound on simultaneous in-flight page operations."""

    def __init__(self, max_concurrent: int = 5):
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")
        self.capacity = max_concurrent
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._in_use = 0
        self._peak = 0

    async def acquire(self) -> None:
        """Wait until a slot is free, then take it."""
        await self._semaphore.acquire()
        self._in_use += 1
        self._peak = max(self._peak, self._in_use)

    def release(self) -> None:
        """Free one slot and wake one waiter."""
        if self._in_use <= 0:
            raise RuntimeError("ConcurrencyGate released more times than acquired")
        self._in_use -= 1
        self._semaphore.release()

    @asynccontextmanager
    async def slot(self):
        """
        Hold a slot for the duration of the block.

        Usage:
            async with gate.slot():
                await page.goto(url)
        """
        await self.acquire()
        try:
            yield
        finally:
            self.release()

    @property
    def in_use(self) -> int:
        return self._in_use

    @property
    def available(self) -> int:
        return self.capacity - self._in_use

    @property
    def peak(self) -> int:
        """Highest number of slots held at once."""
        return self._peak
