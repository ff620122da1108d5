"""Exception hierarchy for the web scraper.

Per-page errors (navigation, extraction, screenshot, timeouts, content
policy) are caught by the orchestrator and recorded as failed results.
Invalid root URLs and browser launch failures propagate to the caller.
"""


class ScraperError(Exception):
    """Base class for all scraper errors."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class InvalidURLError(ScraperError, ValueError):
    """Raised when a URL is not an absolute http(s) URL."""


class BrowserLaunchError(ScraperError):
    """Raised when the browser cannot be launched after all retries."""


class NavigationError(ScraperError):
    """Raised when a page fails to load."""


class ExtractionError(ScraperError):
    """Raised when links or text cannot be pulled from a loaded page."""


class ScreenshotError(ScraperError):
    """Raised when a screenshot cannot be captured."""


class PageTimeoutError(ScraperError):
    """Raised when a whole-page operation exceeds its time budget."""


class ContentPolicyError(ScraperError):
    """Raised when a URL is rejected by the content policy."""


class SummarizerError(ScraperError):
    """Raised when the summarizer cannot produce output."""


class QuotaExceededError(SummarizerError):
    """Raised when the LLM provider reports a quota or rate limit (429) error."""


class CrawlInterruptedError(ScraperError):
    """Raised inside a page visit when shutdown has been requested."""
