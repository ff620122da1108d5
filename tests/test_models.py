"""Tests for result and report models."""

from datetime import datetime

from webscraper.models import CrawlReport, FailedURL, PageResult, PageStatus


class TestPageResult:
    """Tests for PageResult."""

    def test_success(self):
        """Test a completed result."""
        result = PageResult.success(
            url="https://example.com",
            content_path="out/root/content_1.txt",
            processed_content_path="out/root/processed_2.txt",
        )

        assert result.ok
        assert result.status is PageStatus.COMPLETED
        assert result.screenshot_path is None

    def test_failure_has_no_paths(self):
        """Test a failed result carries only the reason."""
        result = PageResult.failure("https://example.com/a", "shutdown")

        assert not result.ok
        assert result.status is PageStatus.FAILED
        assert result.content_path == ""
        assert result.processed_content_path == ""

    def test_failure_without_reason(self):
        """Test an empty reason still marks the result failed."""
        assert PageResult.failure("https://example.com", "").error == "unknown error"

    def test_to_dict(self):
        """Test serialization."""
        stamp = datetime(2024, 6, 1, 12, 0, 0)
        result = PageResult.success("https://example.com", "c.txt", "p.txt", "s.png", timestamp=stamp)

        data = result.to_dict()

        assert data["timestamp"] == "2024-06-01T12:00:00"
        assert data["screenshot_path"] == "s.png"
        assert data["status"] == "completed"
        assert data["error"] is None


class TestCrawlReport:
    """Tests for CrawlReport."""

    def test_to_dict_keys(self):
        """Test the report uses its on-disk key names."""
        report = CrawlReport(
            timestamp=datetime(2024, 6, 1),
            total_urls=2,
            successful_urls=1,
            failed_urls=[FailedURL(url="https://example.com/a", error="no content extracted")],
            url_paths={"root": ["https://example.com"], "a": ["https://example.com/a"]},
        )

        data = report.to_dict()

        assert data["totalUrls"] == 2
        assert data["successfulUrls"] == 1
        assert data["failedUrls"] == [{"url": "https://example.com/a", "error": "no content extracted"}]
        assert data["depthRejections"] == 0
        assert data["interrupted"] is False
        assert data["urlPaths"]["a"] == ["https://example.com/a"]
