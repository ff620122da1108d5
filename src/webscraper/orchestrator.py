"""
Crawl orchestration.

WebScraper walks a site's link graph from a root URL. Each URL is claimed
at most once per run; pages are driven through a PageDriver under a rate
limit and a concurrency bound, their text is filtered and summarized, and
artifacts are written to a per-route directory. Links found on a page are
followed one level deeper, a few at a time, until the depth limit.

Shared crawl state (visited set, pending tasks, result cache) is only
changed in code paths with no await between the check and the write, so
the single event loop makes each claim atomic.
"""

import asyncio
import logging
from collections import Counter
from datetime import datetime
from typing import Any, Optional
from urllib.parse import urlparse

from webscraper.base import ContentPolicy, PageDriver, Summarizer
from webscraper.config import ScraperConfig
from webscraper.content.filter import TextProcessor
from webscraper.exceptions import (
    ContentPolicyError,
    CrawlInterruptedError,
    ExtractionError,
    InvalidURLError,
    NavigationError,
    PageTimeoutError,
    ScraperError,
    ScreenshotError,
    SummarizerError,
)
from webscraper.infrastructure.concurrency import ConcurrencyGate
from webscraper.infrastructure.rate_limiter import TokenBucketLimiter
from webscraper.models import (
    ALREADY_VISITED,
    MAX_DEPTH_REACHED,
    NO_CONTENT,
    SHUTDOWN,
    CrawlReport,
    FailedURL,
    PageResult,
    PageStatus,
)
from webscraper.result_store import ResultStore
from webscraper.storage import ArtifactStore
from webscraper.urls import (
    crawlable_links,
    is_valid_url,
    normalize_url,
    origin_of,
    route_path,
)

logger = logging.getLogger(__name__)


class WebScraper:
    """
    Recursive, origin-bounded crawler.

    Features:
    - At most one visit per normalized URL, with concurrent discoveries
      sharing the in-flight task
    - Depth limit, same-origin boundary and non-textual file exclusion
    - Token bucket pacing and a bound on simultaneously open pages
    - Per-page timeouts; failures are recorded, never raised
    - Resume from artifacts written by an earlier run
    - Cooperative shutdown with a final report
    """

    def __init__(
        self,
        driver: PageDriver,
        content_policy: ContentPolicy,
        summarizer: Summarizer,
        config: Optional[ScraperConfig] = None,
        artifacts: Optional[ArtifactStore] = None,
        rate_limiter: Optional[TokenBucketLimiter] = None,
        gate: Optional[ConcurrencyGate] = None,
        results: Optional[ResultStore] = None,
    ):
        """
        Initialize the scraper.

        Args:
            driver: Loads pages and extracts links, text and screenshots
            content_policy: Screens URLs and filters text
            summarizer: Produces processed text for each page
            config: Crawl configuration (defaults if omitted)
            artifacts: On-disk artifact store (built from config.output_dir if omitted)
            rate_limiter: Paces navigations (built from config.rate_limit if omitted)
            gate: Bounds open pages (built from config.max_concurrent_pages if omitted)
            results: Result cache (built from config.cache if omitted)
        """
        self.config = config or ScraperConfig()
        self.config.validate()

        self.driver = driver
        self.content_policy = content_policy
        self.summarizer = summarizer
        self.artifacts = artifacts or ArtifactStore(self.config.output_dir)
        self.rate_limiter = rate_limiter or TokenBucketLimiter(
            max_tokens=self.config.rate_limit.max_tokens,
            refill_rate=self.config.rate_limit.refill_rate,
        )
        self.gate = gate or ConcurrencyGate(self.config.max_concurrent_pages)
        self.results = results or ResultStore(
            max_entries=self.config.cache.max_entries,
            ttl_seconds=self.config.cache.ttl_seconds,
        )

        self._origin: Optional[str] = None
        self._visited: set[str] = set()
        self._pending: dict[str, asyncio.Task] = {}
        self._outcomes: dict[str, PageResult] = {}
        self._status: dict[str, PageStatus] = {}
        self._links: dict[str, list[str]] = {}
        self._depth_rejections = 0
        self._rate_wait = 0.0
        self._shutdown_requested = False
        self._started_at: Optional[datetime] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def scrape_website(self, url: str) -> dict[str, PageResult]:
        """Crawl a site starting from url.

        Args:
            url: Absolute http(s) URL of the crawl root

        Returns:
            Mapping of normalized URL to PageResult for every URL claimed
            during the run, the root included

        Raises:
            InvalidURLError: If url is not an absolute http(s) URL
            BrowserLaunchError: If the driver cannot be started
        """
        if not is_valid_url(url):
            raise InvalidURLError(f"Invalid URL: {url!r}")

        root = normalize_url(url)
        self._reset(root)
        self.artifacts.ensure_output_dir()
        logger.info(
            f"Starting crawl of {root} (max depth {self.config.max_depth}, "
            f"{self.config.max_concurrent_pages} concurrent pages)"
        )

        try:
            await self.driver.start()
            await self.visit(root, 0)
        finally:
            await self._cleanup()
            self.artifacts.save_report(self.build_report())

        summary = self.get_crawl_summary()
        logger.info(
            f"Crawl of {root} finished: {summary['successful']} succeeded, "
            f"{summary['failed']} failed"
        )
        return dict(self._outcomes)

    async def visit(self, url: str, depth: int = 0) -> PageResult:
        """Visit one URL and, if it is claimed here, the links it leads to.

        Returns the URL's result. Concurrent callers for the same URL share
        one in-flight task; only the caller that claimed the URL follows its
        links.
        """
        url = normalize_url(url)
        if self._origin is None:
            self._origin = origin_of(url)

        if self._shutdown_requested:
            return PageResult.failure(url, SHUTDOWN)

        if depth > self.config.max_depth:
            self._depth_rejections += 1
            return PageResult.failure(url, MAX_DEPTH_REACHED)

        if url not in self._visited:
            resumed = self._resume_from_disk(url)
            if resumed is not None:
                await self._fan_out(self.artifacts.load_links(url), depth)
                return resumed

        cached = self.results.get(url)
        if cached is not None:
            logger.debug(f"Cache hit for {url}")
            return cached

        pending = self._pending.get(url)
        if pending is not None:
            return await asyncio.shield(pending)

        if url in self._visited:
            return PageResult.failure(url, ALREADY_VISITED)

        # Claim and register before the first await
        self._visited.add(url)
        self._status[url] = PageStatus.CLAIMED
        task = asyncio.create_task(self._process_page(url))
        self._pending[url] = task
        task.add_done_callback(lambda _: self._pending.pop(url, None))
        logger.debug(f"Claimed {url} at depth {depth}")

        result = await task
        links = self._links.pop(url, [])
        if result.ok:
            await self._fan_out(links, depth)
        return result

    def request_shutdown(self) -> None:
        """Stop starting new work. In-flight page loads finish or time out."""
        if not self._shutdown_requested:
            logger.warning("Shutdown requested, finishing in-flight pages")
        self._shutdown_requested = True

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown_requested

    @property
    def visited(self) -> frozenset[str]:
        return frozenset(self._visited)

    def status_of(self, url: str) -> PageStatus:
        return self._status.get(normalize_url(url), PageStatus.UNSEEN)

    # ------------------------------------------------------------------
    # Page processing
    # ------------------------------------------------------------------

    async def _process_page(self, url: str) -> PageResult:
        """Run the page lifecycle. Always returns a result, never raises."""
        try:
            result = await self._run_page(url)
        except ContentPolicyError as e:
            logger.warning(f"Skipping {url}: {e}")
            result = PageResult.failure(url, str(e))
        except ScraperError as e:
            logger.warning(f"Failed to process {url}: {e}")
            result = PageResult.failure(url, str(e))
        except Exception as e:
            logger.warning(f"Unexpected error processing {url}: {type(e).__name__}: {e}")
            result = PageResult.failure(url, f"{type(e).__name__}: {e}")

        self._record(url, result)
        return result

    async def _run_page(self, url: str) -> PageResult:
        if self.content_policy.is_restricted(url):
            raise ContentPolicyError(f"restricted: {urlparse(url).hostname}")

        self._rate_wait += await self.rate_limiter.acquire()
        self._check_shutdown()

        links, fragments, screenshot = await self._drive_page(url)

        filtered = self.content_policy.filter_text(TextProcessor.prepare(fragments))
        if not filtered.strip():
            return PageResult.failure(url, NO_CONTENT)

        # Manifest before content, resume treats a content file as a finished page
        targets = crawlable_links(links, self._origin)
        self.artifacts.save_links(url, targets)
        self._links[url] = targets

        content_path = self.artifacts.save_content(url, filtered)

        try:
            processed = await self.summarizer.summarize(filtered, url)
        except SummarizerError as e:
            logger.warning(f"Summarizer unavailable for {url}, keeping filtered content: {e}")
            processed = filtered
        if not processed or not processed.strip():
            processed = filtered

        processed_path = self.artifacts.save_processed(url, processed)

        return PageResult.success(
            url=url,
            content_path=content_path,
            processed_content_path=processed_path,
            screenshot_path=screenshot,
        )

    async def _drive_page(self, url: str) -> tuple[list[str], list[str], Optional[str]]:
        """Load the page in the browser under a slot and the processing timeout."""
        timeouts = self.config.timeouts

        async with self.gate.slot():
            self._check_shutdown()
            self._status[url] = PageStatus.IN_FLIGHT
            handle = await self.driver.open()
            discard = False
            try:
                return await asyncio.wait_for(
                    self._load(handle, url), timeout=timeouts.processing
                )
            except asyncio.TimeoutError as e:
                discard = True
                raise PageTimeoutError(
                    f"Processing {url} exceeded {timeouts.processing:g}s"
                ) from e
            except (NavigationError, ExtractionError, ScreenshotError) as e:
                discard = isinstance(e.__cause__, asyncio.TimeoutError)
                raise
            finally:
                await self.driver.close(handle, force=discard)

    async def _load(self, handle: Any, url: str) -> tuple[list[str], list[str], Optional[str]]:
        timeouts = self.config.timeouts

        try:
            await asyncio.wait_for(
                self.driver.navigate(handle, url, timeouts.navigation),
                timeout=timeouts.navigation,
            )
        except asyncio.TimeoutError as e:
            raise NavigationError(
                f"Navigation to {url} timed out after {timeouts.navigation:g}s"
            ) from e

        try:
            links = await asyncio.wait_for(
                self.driver.extract_links(handle), timeout=timeouts.link_extraction
            )
        except asyncio.TimeoutError as e:
            raise ExtractionError(f"Link extraction timed out on {url}") from e

        fragments = await self.driver.extract_text(handle)

        screenshot = None
        if self.config.screenshot.enabled:
            path = self.artifacts.screenshot_path(url)
            try:
                screenshot = await asyncio.wait_for(
                    self.driver.screenshot(handle, path),
                    timeout=self.config.screenshot.timeout,
                )
            except asyncio.TimeoutError as e:
                raise ScreenshotError(f"Screenshot of {url} timed out") from e

        return links, fragments, screenshot

    # ------------------------------------------------------------------
    # Traversal helpers
    # ------------------------------------------------------------------

    async def _fan_out(self, links: list[str], depth: int) -> None:
        """Visit unclaimed same-origin links at depth + 1, in small batches."""
        targets = crawlable_links(links, self._origin, exclude=self._visited)
        if not targets:
            return

        next_depth = depth + 1
        if next_depth > self.config.max_depth:
            self._depth_rejections += len(targets)
            return

        batch_size = self.config.link_batch_size
        for start in range(0, len(targets), batch_size):
            if self._shutdown_requested:
                logger.info(f"Shutdown requested, skipping {len(targets) - start} links")
                return

            batch = [t for t in targets[start:start + batch_size] if t not in self._visited]
            if batch:
                logger.info(
                    f"Processing links {start + 1}-{start + len(batch)} of "
                    f"{len(targets)} at depth {next_depth}"
                )
                await asyncio.gather(*(self.visit(link, next_depth) for link in batch))

            if start + batch_size < len(targets) and self.config.link_batch_delay > 0:
                await asyncio.sleep(self.config.link_batch_delay)

    def _resume_from_disk(self, url: str) -> Optional[PageResult]:
        """Claim url with a result rebuilt from earlier artifacts, if any."""
        try:
            result = self.artifacts.load_existing_result(url)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read earlier artifacts for {url}, processing again: {e}")
            return None
        if result is None:
            return None

        self._visited.add(url)
        self._record(url, result)
        logger.info(f"Resumed {url} from {self.artifacts.route_dir(url)}")
        return result

    def _record(self, url: str, result: PageResult) -> None:
        self.results.set(url, result)
        self._outcomes[url] = result
        self._status[url] = result.status

    def _check_shutdown(self) -> None:
        if self._shutdown_requested:
            raise CrawlInterruptedError(SHUTDOWN)

    def _reset(self, root: str) -> None:
        self._origin = origin_of(root)
        self._visited.clear()
        self._pending.clear()
        self._outcomes.clear()
        self._status.clear()
        self._links.clear()
        self.results.clear()
        self._depth_rejections = 0
        self._rate_wait = 0.0
        self._shutdown_requested = False
        self._started_at = datetime.now()

    async def _cleanup(self) -> None:
        for url, task in list(self._pending.items()):
            if not task.done():
                logger.warning(f"Cancelling unfinished visit of {url}")
                task.cancel()
        self._pending.clear()
        self._links.clear()

        try:
            await self.driver.stop()
        except Exception as e:
            logger.warning(f"Error stopping page driver: {e}")

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def build_report(self) -> CrawlReport:
        url_paths: dict[str, list[str]] = {}
        for url in self._outcomes:
            url_paths.setdefault(route_path(url), []).append(url)

        failures = [
            FailedURL(url=url, error=result.error)
            for url, result in self._outcomes.items()
            if result.error
        ]
        return CrawlReport(
            timestamp=datetime.now(),
            total_urls=len(self._outcomes),
            successful_urls=len(self._outcomes) - len(failures),
            failed_urls=failures,
            depth_rejections=self._depth_rejections,
            interrupted=self._shutdown_requested,
            url_paths=url_paths,
        )

    def get_crawl_summary(self) -> dict[str, Any]:
        """Get a summary of the current or last crawl."""
        failed = [r for r in self._outcomes.values() if r.error]
        reasons = Counter(r.error.replace(r.url, '<url>').split(':', 1)[0] for r in failed)
        duration = None
        if self._started_at:
            duration = (datetime.now() - self._started_at).total_seconds()
        return {
            'total_urls': len(self._outcomes),
            'successful': len(self._outcomes) - len(failed),
            'failed': len(failed),
            'failed_by_reason': dict(reasons),
            'depth_rejections': self._depth_rejections,
            'pages_opened_peak': self.gate.peak,
            'rate_limit_wait_seconds': round(self._rate_wait, 3),
            'interrupted': self._shutdown_requested,
            'duration_seconds': duration,
            'cache': self.results.stats(),
        }
