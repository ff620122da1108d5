"""
Collaborator interfaces for the crawl orchestrator.

The orchestrator depends only on these abstractions: a driver that loads
pages, a policy that screens URLs and text, and a summarizer that turns
page text into processed output.
"""

from abc import ABC, abstractmethod
from typing import Any


class PageDriver(ABC):
    """Loads pages and extracts their links, text and screenshots.

    Handles are opaque to callers. Every method taking a handle may raise
    the matching ScraperError subclass (NavigationError, ExtractionError,
    ScreenshotError).
    """

    @abstractmethod
    async def start(self) -> None:
        """Acquire underlying resources (e.g. launch the browser)."""

    @abstractmethod
    async def stop(self) -> None:
        """Release all resources. Safe to call more than once."""

    @abstractmethod
    async def open(self) -> Any:
        """Return a handle to a ready page."""

    @abstractmethod
    async def navigate(self, handle: Any, url: str, timeout: float) -> None:
        """Load url in the page, failing after timeout seconds."""

    @abstractmethod
    async def extract_links(self, handle: Any) -> list[str]:
        """Return absolute http(s) URLs linked from the loaded page."""

    @abstractmethod
    async def extract_text(self, handle: Any) -> list[str]:
        """Return visible text fragments of the loaded page."""

    @abstractmethod
    async def screenshot(self, handle: Any, path: str) -> str:
        """Write a screenshot to path and return the path."""

    @abstractmethod
    async def close(self, handle: Any, force: bool = False) -> None:
        """Give the page back. With force, discard it instead of reusing it."""


class ContentPolicy(ABC):
    """Screens URLs and text against restricted content lists."""

    @abstractmethod
    def is_restricted(self, url: str) -> bool:
        """Return True if the URL must not be crawled."""

    @abstractmethod
    def filter_text(self, text: str) -> str:
        """Replace disallowed words with a placeholder. Never raises."""


class Summarizer(ABC):
    """Produces processed text from raw page content."""

    @abstractmethod
    async def summarize(self, text: str, url_context: str) -> str:
        """Return processed text. May raise SummarizerError."""
