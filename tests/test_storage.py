"""Tests for the artifact store."""

import json
from datetime import datetime

from webscraper.models import CrawlReport, FailedURL, PageResult
from webscraper.storage import ArtifactStore


class TestArtifactStore:
    """Tests for ArtifactStore."""

    def test_route_dir(self, tmp_path):
        """Test URLs map to route directories under the output dir."""
        store = ArtifactStore(str(tmp_path))
        assert store.route_dir("https://example.com") == tmp_path / "root"
        assert store.route_dir("https://example.com/blog/post.html") == tmp_path / "blog-post"

    def test_save_content_naming(self, tmp_path):
        """Test content files are named content_<ms>.txt."""
        store = ArtifactStore(str(tmp_path))
        path = store.save_content("https://example.com/a", "hello")

        saved = tmp_path / "a"
        files = list(saved.iterdir())
        assert len(files) == 1
        assert files[0].name.startswith("content_")
        assert files[0].suffix == ".txt"
        assert path == str(files[0])
        assert files[0].read_text() == "hello"

    def test_save_reuses_existing(self, tmp_path):
        """Test saving a kind that already exists returns the existing file."""
        store = ArtifactStore(str(tmp_path))
        first = store.save_processed("https://example.com/a", "one")
        second = store.save_processed("https://example.com/a", "two")

        assert first == second
        assert open(first).read() == "one"

    def test_screenshot_path(self, tmp_path):
        """Test screenshot paths are .png in the route directory."""
        store = ArtifactStore(str(tmp_path))
        path = store.screenshot_path("https://example.com")
        assert path.startswith(str(tmp_path / "root" / "screenshot_"))
        assert path.endswith(".png")

    def test_links_manifest_round_trip(self, tmp_path):
        """Test saved links can be loaded back."""
        store = ArtifactStore(str(tmp_path))
        store.save_links("https://example.com", ["https://example.com/a"])
        assert store.load_links("https://example.com") == ["https://example.com/a"]

    def test_load_links_missing_or_corrupt(self, tmp_path):
        """Test missing and unreadable manifests yield no links."""
        store = ArtifactStore(str(tmp_path))
        assert store.load_links("https://example.com/none") == []

        directory = store.route_dir("https://example.com/bad")
        directory.mkdir(parents=True)
        (directory / "links.json").write_text("{not json")
        assert store.load_links("https://example.com/bad") == []

    def test_load_existing_result(self, tmp_path):
        """Test a completed result is rebuilt from existing files."""
        store = ArtifactStore(str(tmp_path))
        url = "https://example.com/a"
        content = store.save_content(url, "raw")
        processed = store.save_processed(url, "processed")
        shot = tmp_path / "a" / "screenshot_1.png"
        shot.write_bytes(b"png")

        result = store.load_existing_result(url)

        assert result.ok
        assert result.content_path == content
        assert result.processed_content_path == processed
        assert result.screenshot_path == str(shot)

    def test_load_existing_without_processed(self, tmp_path):
        """Test missing processed text is filled from the raw content."""
        store = ArtifactStore(str(tmp_path))
        url = "https://example.com/a"
        store.save_content(url, "raw text")

        result = store.load_existing_result(url)

        assert open(result.processed_content_path).read() == "raw text"

    def test_load_existing_undecodable_content(self, tmp_path):
        """Test a content file that is not UTF-8 is removed, not resumed."""
        store = ArtifactStore(str(tmp_path))
        url = "https://example.com/a"
        bad = tmp_path / "a" / "content_1.txt"
        bad.parent.mkdir()
        bad.write_bytes(b"\xff\xfe bad")

        assert store.load_existing_result(url) is None
        assert not bad.exists()
        assert store.find_existing(url, "processed") is None

    def test_load_existing_none(self, tmp_path):
        """Test no content file means nothing to resume."""
        store = ArtifactStore(str(tmp_path))
        assert store.load_existing_result("https://example.com/a") is None

    def test_save_report(self, tmp_path):
        """Test the report JSON layout."""
        store = ArtifactStore(str(tmp_path / "out"))
        report = CrawlReport(
            timestamp=datetime(2024, 1, 1, 12, 0, 0),
            total_urls=2,
            successful_urls=1,
            failed_urls=[FailedURL("https://example.com/b", "navigation failed")],
            url_paths={"root": ["https://example.com"], "b": ["https://example.com/b"]},
        )

        path = store.save_report(report)
        data = json.loads(path.read_text())

        assert path.name == "scraping-report.json"
        assert data["totalUrls"] == 2
        assert data["successfulUrls"] == 1
        assert data["failedUrls"] == [{"url": "https://example.com/b", "error": "navigation failed"}]
        assert data["urlPaths"]["root"] == ["https://example.com"]
        assert data["timestamp"] == "2024-01-01T12:00:00"

    def test_save_results(self, tmp_path):
        """Test results mapping is written as JSON."""
        store = ArtifactStore(str(tmp_path))
        results = {"https://example.com": PageResult.failure("https://example.com", "shutdown")}

        path = store.save_results(results, str(tmp_path / "results.json"))
        data = json.loads(path.read_text())

        assert data["https://example.com"]["error"] == "shutdown"
        assert data["https://example.com"]["status"] == "failed"
