"""Tests for configuration loading."""

import json
import pytest
from unittest.mock import patch

from webscraper.config import ScraperConfig, load_config, read_config_file


class TestScraperConfig:
    """Tests for ScraperConfig."""

    def test_defaults(self):
        """Test default values."""
        config = ScraperConfig()

        assert config.output_dir == "scraping_output"
        assert config.max_concurrent_pages == 5
        assert config.max_depth == 3
        assert config.cache.max_entries == 1000
        assert config.cache.ttl_seconds == 3600
        assert config.rate_limit.max_tokens == 5
        assert config.rate_limit.refill_rate == 1.0
        assert config.timeouts.navigation == 30.0
        assert config.timeouts.processing == 60.0
        assert config.timeouts.screenshot == 30.0
        assert config.launch.attempts == 5
        assert config.link_batch_size == 3
        assert config.screenshot.enabled is True

    def test_from_env(self):
        """Test SCRAPER_ prefixed environment variables."""
        env = {
            "SCRAPER_MAX_DEPTH": "1",
            "SCRAPER_HEADLESS": "false",
            "SCRAPER_RATE_LIMIT_REFILL_RATE": "2.5",
            "SCRAPER_SCREENSHOT_ENABLED": "0",
            "SCRAPER_MAX_CONCURRENT_PAGES": "not-a-number",
        }
        with patch.dict("os.environ", env):
            config = ScraperConfig.from_env()

        assert config.max_depth == 1
        assert config.headless is False
        assert config.rate_limit.refill_rate == 2.5
        assert config.screenshot.enabled is False
        assert config.max_concurrent_pages == 5  # conversion failed, default kept

    def test_from_json_file(self, tmp_path):
        """Test nested JSON config files."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "max_depth": 2,
            "cache": {"max_entries": 50},
            "timeouts": {"navigation": 10},
        }))

        config = ScraperConfig.from_file(str(path))

        assert config.max_depth == 2
        assert config.cache.max_entries == 50
        assert config.cache.ttl_seconds == 3600
        assert config.timeouts.navigation == 10

    def test_from_yaml_file(self, tmp_path):
        """Test YAML config files with a scraper section."""
        path = tmp_path / "config.yaml"
        path.write_text("scraper:\n  output_dir: out\n  rate_limit:\n    max_tokens: 2\n")

        config = ScraperConfig.from_file(str(path))

        assert config.output_dir == "out"
        assert config.rate_limit.max_tokens == 2

    def test_yaml_string_values_converted(self, tmp_path):
        """Test quoted numbers and booleans in YAML are converted."""
        path = tmp_path / "config.yaml"
        path.write_text(
            'max_depth: "2"\n'
            'headless: "false"\n'
            'rate_limit:\n  refill_rate: "0.5"\n'
        )

        config = ScraperConfig.from_file(str(path))
        config.validate()

        assert config.max_depth == 2
        assert config.headless is False
        assert config.rate_limit.refill_rate == 0.5

    def test_unconvertible_value_rejected(self, tmp_path):
        """Test a non-numeric string for a numeric field raises ValueError."""
        path = tmp_path / "config.yaml"
        path.write_text('max_depth: "deep"\n')

        with pytest.raises(ValueError, match="max_depth"):
            ScraperConfig.from_file(str(path))

    def test_unknown_keys_ignored(self):
        """Test keys that are not config fields leave the config unchanged."""
        config = ScraperConfig.from_dict({"validate": 1, "cache": {"bogus": 2}})

        assert callable(config.validate)
        assert config.cache.max_entries == 1000

    def test_missing_file_uses_defaults(self, tmp_path):
        """Test a missing file yields defaults."""
        config = ScraperConfig.from_file(str(tmp_path / "nope.json"))
        assert config.max_depth == 3

    def test_round_trip(self, tmp_path):
        """Test save_to_file and from_file agree."""
        config = ScraperConfig(max_depth=1)
        config.retry.max_retries = 7
        path = tmp_path / "saved.json"

        config.save_to_file(str(path))
        loaded = ScraperConfig.from_file(str(path))

        assert loaded.to_dict() == config.to_dict()

    @pytest.mark.parametrize("change", [
        lambda c: setattr(c, "max_depth", -1),
        lambda c: setattr(c, "max_concurrent_pages", 0),
        lambda c: setattr(c.rate_limit, "refill_rate", 0),
        lambda c: setattr(c.rate_limit, "max_tokens", 0),
        lambda c: setattr(c.timeouts, "processing", 0),
    ])
    def test_validate(self, change):
        """Test out-of-range values are rejected."""
        config = ScraperConfig()
        change(config)
        with pytest.raises(ValueError):
            config.validate()

    def test_file_overrides_env(self, tmp_path):
        """Test load_config layers the file over the environment."""
        path = tmp_path / "c.json"
        path.write_text(json.dumps({"max_depth": 4}))

        with patch.dict("os.environ", {"SCRAPER_MAX_DEPTH": "1", "SCRAPER_LINK_BATCH_SIZE": "5"}):
            config = load_config(str(path))

        assert config.max_depth == 4
        assert config.link_batch_size == 5

    def test_read_config_file_requires_mapping(self, tmp_path):
        """Test non-mapping files are rejected."""
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        with pytest.raises(ValueError):
            read_config_file(str(path))
