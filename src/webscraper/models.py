"""Data models for crawl results and the crawl report."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class PageStatus(Enum):
    """Lifecycle of a crawl target within one run."""
    UNSEEN = "unseen"
    CLAIMED = "claimed"
    IN_FLIGHT = "in_flight"
    COMPLETED = "completed"
    FAILED = "failed"


# Failure reasons produced by the orchestrator itself
MAX_DEPTH_REACHED = "max depth reached"
ALREADY_VISITED = "already visited"
SHUTDOWN = "shutdown"
NO_CONTENT = "no content extracted"


@dataclass(frozen=True)
class PageResult:
    """Outcome of processing a single URL.

    A completed result has both content paths set and no error. A failed
    result carries an error message and empty content paths.
    """
    url: str
    content_path: str = ""
    processed_content_path: str = ""
    screenshot_path: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)
    error: Optional[str] = None

    @property
    def status(self) -> PageStatus:
        return PageStatus.FAILED if self.error else PageStatus.COMPLETED

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(
        cls,
        url: str,
        content_path: str,
        processed_content_path: str,
        screenshot_path: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> "PageResult":
        return cls(
            url=url,
            content_path=content_path,
            processed_content_path=processed_content_path,
            screenshot_path=screenshot_path,
            timestamp=timestamp or datetime.now(),
        )

    @classmethod
    def failure(cls, url: str, reason: str) -> "PageResult":
        return cls(url=url, error=reason or "unknown error")

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "url": self.url,
            "content_path": self.content_path,
            "processed_content_path": self.processed_content_path,
            "screenshot_path": self.screenshot_path,
            "timestamp": self.timestamp.isoformat(),
            "error": self.error,
            "status": self.status.value,
        }


@dataclass
class FailedURL:
    url: str
    error: str


@dataclass
class CrawlReport:
    """Summary written to scraping-report.json at the end of a run."""
    timestamp: datetime
    total_urls: int
    successful_urls: int
    failed_urls: list[FailedURL] = field(default_factory=list)
    depth_rejections: int = 0
    interrupted: bool = False
    url_paths: dict[str, list[str]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "totalUrls": self.total_urls,
            "successfulUrls": self.successful_urls,
            "failedUrls": [{"url": f.url, "error": f.error} for f in self.failed_urls],
            "depthRejections": self.depth_rejections,
            "interrupted": self.interrupted,
            "urlPaths": self.url_paths,
        }
