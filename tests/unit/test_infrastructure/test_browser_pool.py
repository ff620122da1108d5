"""Unit tests for the Playwright page driver, with Playwright mocked out."""

import pytest
from unittest.mock import AsyncMock, Mock, patch

from webscraper.exceptions import (
    BrowserLaunchError,
    ExtractionError,
    NavigationError,
    ScreenshotError,
)
from webscraper.infrastructure.browser_pool import (
    PlaywrightPageDriver,
    parse_links,
    parse_text,
)


SAMPLE_HTML = """
<html>
  <head><title>Example</title><style>.x { color: red }</style></head>
  <body>
    <h1>Welcome</h1>
    <p>First paragraph. <a href="/about">About us</a></p>
    <div>Container text<span>Nested span</span></div>
    <ul><li>Item one</li><li>Item two</li></ul>
    <a href="https://other.com/page">Elsewhere</a>
    <a href="javascript:void(0)">Click</a>
    <a href="mailto:someone@example.com">Mail</a>
    <a href="#top">Top</a>
    <a href="/about">About again</a>
    <script>var hidden = "do not extract";</script>
  </body>
</html>
"""


def make_page(url="https://example.com/", healthy=True):
    page = Mock()
    page.url = url
    page.evaluate = AsyncMock(return_value=2) if healthy else AsyncMock(side_effect=Exception("closed"))
    page.goto = AsyncMock(return_value=Mock(status=200))
    page.content = AsyncMock(return_value=SAMPLE_HTML)
    page.screenshot = AsyncMock()
    page.close = AsyncMock()
    return page


def make_started_driver(pool_size=2):
    driver = PlaywrightPageDriver(pool_size=pool_size)
    browser = Mock()
    browser.is_connected = Mock(return_value=True)
    browser.close = AsyncMock()
    context = Mock()
    context.new_page = AsyncMock(side_effect=lambda: make_page())
    context.close = AsyncMock()
    driver._browser = browser
    driver._context = context
    return driver


class TestHtmlParsing:
    """Tests for link and text extraction helpers."""

    def test_parse_links_resolves_and_filters(self):
        """Test hrefs are resolved and unsafe schemes dropped."""
        links = parse_links(SAMPLE_HTML, "https://example.com/")

        assert links == ["https://example.com/about", "https://other.com/page"]

    def test_parse_text_skips_scripts(self):
        """Test script and style contents are not extracted."""
        fragments = parse_text(SAMPLE_HTML)
        joined = " ".join(fragments)

        assert "Welcome" in fragments
        assert "Item one" in fragments
        assert "Nested span" in fragments
        assert "do not extract" not in joined
        assert "color: red" not in joined

    def test_parse_text_no_duplicate_nesting(self):
        """Test container text does not repeat nested element text."""
        fragments = parse_text(SAMPLE_HTML)
        assert "Container text" in fragments
        assert fragments.count("Nested span") == 1


class TestPlaywrightPageDriver:
    """Tests for PlaywrightPageDriver."""

    @pytest.mark.asyncio
    async def test_launch_retries_then_fails(self):
        """Test launch is retried with backoff and then raises BrowserLaunchError."""
        driver = PlaywrightPageDriver(launch_attempts=3, launch_timeout=9.0, launch_backoff=1.5)
        sleeps = []

        async def fake_sleep(seconds):
            sleeps.append(seconds)

        with patch.object(driver, "_launch_browser", AsyncMock(side_effect=RuntimeError("no chrome"))), \
                patch("webscraper.infrastructure.browser_pool.asyncio.sleep", new=fake_sleep):
            with pytest.raises(BrowserLaunchError, match="3 attempts"):
                await driver.start()

        assert sleeps == [pytest.approx(3.0), pytest.approx(4.5)]

    @pytest.mark.asyncio
    async def test_launch_succeeds_after_failure(self):
        """Test a later launch attempt can succeed."""
        driver = PlaywrightPageDriver(launch_attempts=3, launch_timeout=3.0)
        browser = Mock()
        browser.is_connected = Mock(return_value=True)
        calls = 0

        async def flaky_launch():
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("first launch fails")
            driver._browser = browser

        async def fake_sleep(seconds):
            pass

        with patch.object(driver, "_launch_browser", new=flaky_launch), \
                patch("webscraper.infrastructure.browser_pool.asyncio.sleep", new=fake_sleep):
            await driver.start()

        assert calls == 2
        assert driver.get_status().connected is True

    @pytest.mark.asyncio
    async def test_open_creates_up_to_pool_size(self):
        """Test pages are created on demand."""
        driver = make_started_driver(pool_size=2)

        first = await driver.open()
        second = await driver.open()

        assert first is not second
        assert driver.get_status().pages_created == 2

    @pytest.mark.asyncio
    async def test_open_relaunches_disconnected_browser(self):
        """Test open() relaunches once after the browser connection drops."""
        driver = make_started_driver(pool_size=2)
        old_page = await driver.open()
        await driver.close(old_page)
        old_browser, old_context = driver._browser, driver._context
        old_browser.is_connected = Mock(return_value=False)

        new_browser = Mock()
        new_browser.is_connected = Mock(return_value=True)
        new_context = Mock()
        new_context.new_page = AsyncMock(side_effect=lambda: make_page())
        launches = 0

        async def relaunch():
            nonlocal launches
            launches += 1
            driver._browser = new_browser
            driver._context = new_context

        with patch.object(driver, "_launch_browser", new=relaunch):
            page = await driver.open()
            await driver.open()

        assert launches == 1
        assert page is not old_page
        old_page.close.assert_awaited()
        old_context.close.assert_awaited_once()
        old_browser.close.assert_awaited_once()
        assert new_context.new_page.await_count == 2
        assert driver.get_status().pages_created == 2

    @pytest.mark.asyncio
    async def test_close_returns_page_for_reuse(self):
        """Test a closed page is reset and reused by the next open."""
        driver = make_started_driver(pool_size=1)

        page = await driver.open()
        await driver.close(page)

        page.goto.assert_awaited_with("about:blank", timeout=5000)
        assert driver.get_status().idle == 1
        assert await driver.open() is page

    @pytest.mark.asyncio
    async def test_force_close_discards(self):
        """Test force close closes the page and frees its pool slot."""
        driver = make_started_driver(pool_size=1)

        page = await driver.open()
        await driver.close(page, force=True)

        page.close.assert_awaited_once()
        status = driver.get_status()
        assert status.pages_created == 0
        assert status.pages_discarded == 1

    @pytest.mark.asyncio
    async def test_unhealthy_pooled_page_replaced(self):
        """Test a dead pooled page is discarded and a fresh one created."""
        driver = make_started_driver(pool_size=1)
        dead = make_page(healthy=False)
        driver._pages_created = 1
        await driver._page_pool.put(dead)

        page = await driver.open()

        assert page is not dead
        dead.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_navigate_http_error(self):
        """Test HTTP error statuses raise NavigationError."""
        driver = make_started_driver()
        page = make_page()
        page.goto = AsyncMock(return_value=Mock(status=404))

        with pytest.raises(NavigationError, match="404"):
            await driver.navigate(page, "https://example.com/missing", timeout=5)

    @pytest.mark.asyncio
    async def test_navigate_failure_wrapped(self):
        """Test Playwright errors become NavigationError."""
        driver = make_started_driver()
        page = make_page()
        page.goto = AsyncMock(side_effect=Exception("net::ERR_NAME_NOT_RESOLVED"))

        with pytest.raises(NavigationError):
            await driver.navigate(page, "https://nope.invalid", timeout=5)

    @pytest.mark.asyncio
    async def test_extract_links_and_text(self):
        """Test extraction reads the page HTML."""
        driver = make_started_driver()
        page = make_page("https://example.com/")

        links = await driver.extract_links(page)
        text = await driver.extract_text(page)

        assert "https://example.com/about" in links
        assert "First paragraph." in text

    @pytest.mark.asyncio
    async def test_extract_failure_wrapped(self):
        """Test content read errors become ExtractionError."""
        driver = make_started_driver()
        page = make_page()
        page.content = AsyncMock(side_effect=Exception("target closed"))

        with pytest.raises(ExtractionError):
            await driver.extract_text(page)

    @pytest.mark.asyncio
    async def test_screenshot(self, tmp_path):
        """Test screenshot writes to the requested path."""
        driver = make_started_driver()
        page = make_page()
        target = tmp_path / "root" / "screenshot_1.png"

        result = await driver.screenshot(page, str(target))

        assert result == str(target)
        page.screenshot.assert_awaited_once()
        assert page.screenshot.await_args.kwargs["full_page"] is True

    @pytest.mark.asyncio
    async def test_screenshot_failure_wrapped(self, tmp_path):
        """Test screenshot errors become ScreenshotError."""
        driver = make_started_driver()
        page = make_page()
        page.screenshot = AsyncMock(side_effect=Exception("timeout"))

        with pytest.raises(ScreenshotError):
            await driver.screenshot(page, str(tmp_path / "s.png"))

    @pytest.mark.asyncio
    async def test_stop_closes_everything(self):
        """Test stop drains the pool and closes the browser."""
        driver = make_started_driver()
        browser = driver._browser
        page = await driver.open()
        await driver.close(page)

        await driver.stop()

        page.close.assert_awaited()
        browser.close.assert_awaited_once()
        assert driver.get_status().connected is False
