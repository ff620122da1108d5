"""
Playwright page driver.

Manages one Chromium browser and a pool of reusable pages behind the
PageDriver interface. Browser launch is retried with backoff, pages are
health checked before reuse and reset to about:blank when returned, and a
disconnected browser is relaunched on demand.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from bs4 import BeautifulSoup

from webscraper import constants
from webscraper.base import PageDriver
from webscraper.exceptions import (
    BrowserLaunchError,
    ExtractionError,
    NavigationError,
    ScreenshotError,
)
from webscraper.urls import resolve_links

logger = logging.getLogger(__name__)


@dataclass
class PoolStatus:
    """Current status of the page pool."""
    pool_size: int
    pages_created: int
    idle: int
    connected: bool
    launches: int
    pages_discarded: int
    uptime_seconds: float


def parse_links(html: str, base_url: str) -> list[str]:
    """Return absolute URLs for every anchor href in an HTML document."""
    soup = BeautifulSoup(html, 'html.parser')
    hrefs = [a.get('href') for a in soup.find_all('a', href=True)]
    return resolve_links(base_url, hrefs)


def parse_text(html: str) -> list[str]:
    """Return non-empty text fragments from content-bearing elements."""
    soup = BeautifulSoup(html, 'html.parser')
    for tag in soup(['script', 'style', 'noscript', 'template']):
        tag.decompose()

    fragments = []
    for element in soup.select(constants.TEXT_SELECTORS):
        # Only direct text so nested containers don't repeat their children
        text = ' '.join(
            s.strip() for s in element.find_all(string=True, recursive=False)
            if s.strip()
        )
        if text:
            fragments.append(text)
    return fragments


class PlaywrightPageDriver(PageDriver):
    """
    PageDriver backed by a pooled Playwright Chromium browser.

    Features:
    - Launch retries with exponential backoff and per-attempt timeout
    - Page pool with health checks and about:blank reset on return
    - Browser relaunch when the connection is lost
    """

    def __init__(
        self,
        pool_size: int = constants.DEFAULT_MAX_CONCURRENT_PAGES,
        headless: bool = True,
        user_agent: Optional[str] = None,
        launch_attempts: int = constants.BROWSER_LAUNCH_ATTEMPTS,
        launch_timeout: float = constants.BROWSER_LAUNCH_TIMEOUT,
        launch_backoff: float = constants.BROWSER_LAUNCH_BACKOFF,
        screenshot_timeout: float = constants.SCREENSHOT_TIMEOUT,
        full_page_screenshots: bool = True,
    ):
        """
        Initialize the driver.

        Args:
            pool_size: Maximum number of pages kept open
            headless: Run the browser in headless mode
            user_agent: Custom user agent string
            launch_attempts: Browser launch attempts before giving up
            launch_timeout: Time limit per launch attempt (seconds)
            launch_backoff: Multiplier applied to the delay between attempts
            screenshot_timeout: Time limit for a screenshot (seconds)
            full_page_screenshots: Capture the full scrollable page
        """
        self.pool_size = pool_size
        self.headless = headless
        self.user_agent = user_agent or constants.DEFAULT_USER_AGENT
        self.launch_attempts = launch_attempts
        self.launch_timeout = launch_timeout
        self.launch_backoff = launch_backoff
        self.screenshot_timeout = screenshot_timeout
        self.full_page_screenshots = full_page_screenshots

        self._playwright = None
        self._browser = None
        self._context = None
        self._page_pool: asyncio.Queue = asyncio.Queue()
        self._page_lock = asyncio.Lock()
        self._launch_lock = asyncio.Lock()
        self._pages_created = 0
        self._pages_discarded = 0
        self._launches = 0
        self._start_time: Optional[datetime] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Launch the browser, retrying with backoff.

        Raises:
            BrowserLaunchError: If every attempt fails
        """
        if self._browser is not None and self._browser.is_connected():
            return

        async with self._launch_lock:
            if self._browser is not None and self._browser.is_connected():
                return
            await self._launch_with_retries()
            self._start_time = datetime.now()

    async def _launch_with_retries(self) -> None:
        delay = self.launch_timeout / self.launch_attempts
        last_error: Optional[BaseException] = None

        for attempt in range(1, self.launch_attempts + 1):
            try:
                await asyncio.wait_for(self._launch_browser(), timeout=self.launch_timeout)
                logger.info(f"Browser launched (attempt {attempt}/{self.launch_attempts})")
                return
            except ImportError:
                raise
            except Exception as e:
                last_error = e
                logger.warning(
                    f"Browser launch attempt {attempt}/{self.launch_attempts} failed: {e}"
                )
                await self._teardown_browser()
                if attempt < self.launch_attempts:
                    await asyncio.sleep(delay)
                    delay *= self.launch_backoff

        logger.error(f"Browser launch failed after {self.launch_attempts} attempts")
        raise BrowserLaunchError(
            f"Failed to launch browser after {self.launch_attempts} attempts: {last_error}"
        )

    async def _launch_browser(self) -> None:
        """Start Playwright and open one browser context."""
        try:
            from playwright.async_api import async_playwright
        except ImportError:
            raise ImportError(
                "playwright package not installed. "
                "Install with: pip install playwright && playwright install chromium"
            )

        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.headless,
            args=constants.BROWSER_LAUNCH_ARGS,
        )
        self._context = await self._browser.new_context(
            viewport={
                "width": constants.VIEWPORT_WIDTH,
                "height": constants.VIEWPORT_HEIGHT,
            },
            user_agent=self.user_agent,
            ignore_https_errors=True,
        )
        self._launches += 1

    async def stop(self) -> None:
        """Close all pooled pages and the browser."""
        await self._drain_page_pool()
        await self._teardown_browser()
        logger.info("Page driver stopped")

    async def _teardown_browser(self) -> None:
        if self._context is not None:
            try:
                await self._context.close()
            except Exception as e:
                logger.debug(f"Error closing context: {e}")
        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as e:
                logger.warning(f"Error closing browser: {e}")
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.warning(f"Error stopping playwright: {e}")
        self._context = None
        self._browser = None
        self._playwright = None
        self._pages_created = 0

    async def _drain_page_pool(self) -> None:
        while True:
            try:
                page = self._page_pool.get_nowait()
            except asyncio.QueueEmpty:
                break
            try:
                await page.close()
            except Exception as e:
                logger.debug(f"Error closing pooled page: {e}")

    async def _ensure_browser(self) -> None:
        """Relaunch the browser if its connection has dropped."""
        if self._browser is not None and self._browser.is_connected():
            return
        logger.warning("Browser disconnected, relaunching")
        async with self._page_lock:
            await self._drain_page_pool()
            await self._teardown_browser()
        await self.start()

    # ------------------------------------------------------------------
    # Page pool
    # ------------------------------------------------------------------

    async def open(self) -> Any:
        """Get a page from the pool, creating one if under capacity.

        Raises:
            NavigationError: If no usable page can be obtained
        """
        await self._ensure_browser()

        for _ in range(3):
            try:
                page = self._page_pool.get_nowait()
                if await self._is_healthy(page):
                    return page
                await self._discard(page)
                continue
            except asyncio.QueueEmpty:
                pass

            async with self._page_lock:
                if self._pages_created < self.pool_size:
                    try:
                        page = await self._context.new_page()
                    except Exception as e:
                        logger.warning(f"Failed to create page: {e}")
                        continue
                    self._pages_created += 1
                    logger.debug(f"Created new page ({self._pages_created}/{self.pool_size})")
                    return page

            try:
                page = await asyncio.wait_for(
                    self._page_pool.get(), timeout=constants.PAGE_POOL_WAIT_TIMEOUT
                )
            except asyncio.TimeoutError:
                logger.warning("Timeout waiting for page from pool")
                continue
            if await self._is_healthy(page):
                return page
            await self._discard(page)

        raise NavigationError("Unable to get a usable page from the pool")

    async def _is_healthy(self, page: Any) -> bool:
        try:
            await page.evaluate("1 + 1")
            return True
        except Exception as e:
            logger.debug(f"Page session dead: {e}")
            return False

    async def _discard(self, page: Any) -> None:
        async with self._page_lock:
            self._pages_created = max(0, self._pages_created - 1)
        self._pages_discarded += 1
        try:
            await page.close()
        except Exception as e:
            logger.debug(f"Error closing discarded page: {e}")

    async def close(self, handle: Any, force: bool = False) -> None:
        """Return a page to the pool, or discard it when forced or broken."""
        if force:
            await self._discard(handle)
            return
        try:
            await handle.goto("about:blank", timeout=5000)
        except Exception as e:
            logger.debug(f"Page reset failed, discarding: {e}")
            await self._discard(handle)
            return
        await self._page_pool.put(handle)

    # ------------------------------------------------------------------
    # Page operations
    # ------------------------------------------------------------------

    async def navigate(self, handle: Any, url: str, timeout: float) -> None:
        try:
            response = await handle.goto(
                url,
                wait_until="domcontentloaded",
                timeout=int(timeout * 1000),
            )
        except Exception as e:
            raise NavigationError(f"Navigation to {url} failed: {e}") from e

        if response is not None and response.status >= 400:
            raise NavigationError(f"Navigation to {url} returned HTTP {response.status}")

    async def extract_links(self, handle: Any) -> list[str]:
        try:
            html = await handle.content()
        except Exception as e:
            raise ExtractionError(f"Could not read page content: {e}") from e
        return parse_links(html, handle.url)

    async def extract_text(self, handle: Any) -> list[str]:
        try:
            html = await handle.content()
        except Exception as e:
            raise ExtractionError(f"Could not read page content: {e}") from e
        return parse_text(html)

    async def screenshot(self, handle: Any, path: str) -> str:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        try:
            await handle.screenshot(
                path=path,
                full_page=self.full_page_screenshots,
                timeout=int(self.screenshot_timeout * 1000),
            )
        except Exception as e:
            raise ScreenshotError(f"Screenshot failed: {e}") from e
        return path

    def get_status(self) -> PoolStatus:
        """Get current pool status."""
        uptime = 0.0
        if self._start_time:
            uptime = (datetime.now() - self._start_time).total_seconds()
        return PoolStatus(
            pool_size=self.pool_size,
            pages_created=self._pages_created,
            idle=self._page_pool.qsize(),
            connected=bool(self._browser is not None and self._browser.is_connected()),
            launches=self._launches,
            pages_discarded=self._pages_discarded,
            uptime_seconds=uptime,
        )
