"""Recursive web crawler with content filtering and LLM summarization."""

__version__ = "0.1.0"

from webscraper.orchestrator import WebScraper
from webscraper.base import PageDriver, ContentPolicy, Summarizer
from webscraper.models import PageResult, PageStatus, CrawlReport
from webscraper.config import ScraperConfig, settings
from webscraper.result_store import ResultStore
from webscraper.storage import ArtifactStore
from webscraper.exceptions import (
    ScraperError,
    InvalidURLError,
    BrowserLaunchError,
    NavigationError,
    ExtractionError,
    ScreenshotError,
    PageTimeoutError,
    ContentPolicyError,
    SummarizerError,
    QuotaExceededError,
    CrawlInterruptedError,
)
from webscraper.content import ContentFilter, ContentValidator, ContentAnalyzer
from webscraper.llm import LLMClient, LLMSummarizer, PassthroughSummarizer
from webscraper.infrastructure import (
    ConcurrencyGate,
    TokenBucketLimiter,
    PlaywrightPageDriver,
)

__all__ = [
    "WebScraper",
    "PageDriver",
    "ContentPolicy",
    "Summarizer",
    "PageResult",
    "PageStatus",
    "CrawlReport",
    "ScraperConfig",
    "settings",
    "ResultStore",
    "ArtifactStore",
    "ScraperError",
    "InvalidURLError",
    "BrowserLaunchError",
    "NavigationError",
    "ExtractionError",
    "ScreenshotError",
    "PageTimeoutError",
    "ContentPolicyError",
    "SummarizerError",
    "QuotaExceededError",
    "CrawlInterruptedError",
    "ContentFilter",
    "ContentValidator",
    "ContentAnalyzer",
    "LLMClient",
    "LLMSummarizer",
    "PassthroughSummarizer",
    "ConcurrencyGate",
    "TokenBucketLimiter",
    "PlaywrightPageDriver",
]
