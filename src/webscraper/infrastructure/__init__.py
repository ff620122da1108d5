"""
Infrastructure layer for crawl execution.

Provides:
- TokenBucketLimiter: rate limiting for navigations and LLM calls
- ConcurrencyGate: bound on simultaneously open pages
- PlaywrightPageDriver: pooled Playwright pages behind the PageDriver interface
"""

from .concurrency import ConcurrencyGate
from .rate_limiter import TokenBucketLimiter
from .browser_pool import PlaywrightPageDriver, PoolStatus

__all__ = [
    'ConcurrencyGate',
    'TokenBucketLimiter',
    'PlaywrightPageDriver',
    'PoolStatus',
]
