"""Artifact storage: per-route directories of content, processed text and screenshots."""

import json
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

from webscraper.constants import (
    CONTENT_PREFIX,
    LINKS_MANIFEST,
    PROCESSED_PREFIX,
    REPORT_FILENAME,
    SCREENSHOT_PREFIX,
)
from webscraper.models import CrawlReport, PageResult
from webscraper.urls import route_path

logger = logging.getLogger(__name__)


class DateTimeEncoder(json.JSONEncoder):
    """JSON encoder that handles datetime objects."""

    def default(self, obj):
        if isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)


def _timestamp_ms() -> int:
    return int(time.time() * 1000)


class ArtifactStore:
    """Manages the on-disk layout for a crawl.

    Example structure:
        scraping_output/
        ├── scraping-report.json
        ├── root/
        │   ├── content_1718000000000.txt
        │   ├── processed_1718000000450.txt
        │   ├── screenshot_1718000000120.png
        │   └── links.json
        └── blog-first-post/
            └── ...

    Each directory holds at most one file of each kind. Saving a kind that
    already exists returns the existing path untouched, which is what lets
    a rerun resume from disk.
    """

    def __init__(self, output_dir: str = "scraping_output"):
        """Initialize artifact store.

        Args:
            output_dir: Base directory for all crawl outputs
        """
        self.output_dir = Path(output_dir)

    def ensure_output_dir(self) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        return self.output_dir

    def route_dir(self, url: str) -> Path:
        return self.output_dir / route_path(url)

    def find_existing(self, url: str, prefix: str) -> Optional[Path]:
        """Return the existing artifact of a kind for a URL, if any."""
        directory = self.route_dir(url)
        if not directory.is_dir():
            return None
        matches = sorted(directory.glob(f"{prefix}_*"))
        return matches[0] if matches else None

    def save_text(self, url: str, prefix: str, text: str) -> str:
        """Write text as ``<prefix>_<ms>.txt`` unless one already exists.

        Returns:
            Path of the (new or existing) file
        """
        existing = self.find_existing(url, prefix)
        if existing is not None:
            logger.debug(f"Reusing existing {prefix} file for {url}: {existing}")
            return str(existing)

        directory = self.route_dir(url)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{prefix}_{_timestamp_ms()}.txt"
        path.write_text(text, encoding='utf-8')
        return str(path)

    def save_content(self, url: str, text: str) -> str:
        return self.save_text(url, CONTENT_PREFIX, text)

    def save_processed(self, url: str, text: str) -> str:
        return self.save_text(url, PROCESSED_PREFIX, text)

    def screenshot_path(self, url: str) -> str:
        """Path for a page screenshot, the existing one if already captured."""
        existing = self.find_existing(url, SCREENSHOT_PREFIX)
        if existing is not None:
            return str(existing)
        directory = self.route_dir(url)
        directory.mkdir(parents=True, exist_ok=True)
        return str(directory / f"{SCREENSHOT_PREFIX}_{_timestamp_ms()}.png")

    def save_links(self, url: str, links: list[str]) -> str:
        directory = self.route_dir(url)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / LINKS_MANIFEST
        with open(path, 'w', encoding='utf-8') as f:
            json.dump({"url": url, "links": links}, f, indent=2)
        return str(path)

    def load_links(self, url: str) -> list[str]:
        path = self.route_dir(url) / LINKS_MANIFEST
        if not path.exists():
            return []
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Unreadable link manifest {path}: {e}")
            return []
        links = data.get('links', []) if isinstance(data, dict) else []
        return [link for link in links if isinstance(link, str)]

    def load_existing_result(self, url: str) -> Optional[PageResult]:
        """Rebuild a completed result from artifacts left by an earlier run.

        A content file marks the page as done. When the processed file is
        missing (the earlier run stopped mid-page) the raw content is
        copied in as the processed text. A content file that is not valid
        UTF-8 is removed so the page is processed again.
        """
        content = self.find_existing(url, CONTENT_PREFIX)
        if content is None:
            return None

        try:
            text = content.read_text(encoding='utf-8')
        except UnicodeDecodeError as e:
            logger.warning(f"Removing unreadable content file {content}: {e}")
            content.unlink()
            return None

        processed = self.find_existing(url, PROCESSED_PREFIX)
        if processed is None:
            processed_path = self.save_processed(url, text)
        else:
            processed_path = str(processed)

        screenshot = self.find_existing(url, SCREENSHOT_PREFIX)
        return PageResult.success(
            url=url,
            content_path=str(content),
            processed_content_path=processed_path,
            screenshot_path=str(screenshot) if screenshot else None,
            timestamp=datetime.fromtimestamp(content.stat().st_mtime),
        )

    def save_report(self, report: CrawlReport) -> Path:
        """Write scraping-report.json to the output directory."""
        self.ensure_output_dir()
        path = self.output_dir / REPORT_FILENAME
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(report.to_dict(), f, indent=2, cls=DateTimeEncoder)
        logger.info(f"Saved scraping report to {path}")
        return path

    def save_results(self, results: dict[str, PageResult], path: str) -> Path:
        """Write a results mapping to a JSON file."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, 'w', encoding='utf-8') as f:
            json.dump(
                {url: result.to_dict() for url, result in results.items()},
                f,
                indent=2,
                cls=DateTimeEncoder,
            )
        return target
