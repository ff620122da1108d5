from dotenv import load_dotenv
from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any, Optional
from pathlib import Path
import json
import logging
import os

import yaml

from webscraper import constants

load_dotenv()  # Loads variables from .env file

logger = logging.getLogger(__name__)


class Settings:
    """
    Manages application settings loaded from environment variables.
    """
    LLM_API_KEY = (
        os.getenv("LLM_API_KEY")
        or os.getenv("GOOGLE_AI_API_KEY")
        or os.getenv("GOOGLE_API_KEY")
    )
    LLM_PROVIDER = os.getenv("LLM_PROVIDER", "openai")
    LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")
    USER_AGENT = os.getenv("USER_AGENT", constants.DEFAULT_USER_AGENT)
    OUTPUT_DIR = os.getenv("SCRAPER_OUTPUT_DIR", constants.DEFAULT_OUTPUT_DIR)
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()


@dataclass
class CacheOptions:
    max_entries: int = constants.DEFAULT_CACHE_MAX_ENTRIES
    ttl_seconds: float = constants.DEFAULT_CACHE_TTL_SECONDS


@dataclass
class RetryOptions:
    max_retries: int = constants.DEFAULT_RETRY_ATTEMPTS
    retry_delay: float = constants.DEFAULT_RETRY_DELAY
    backoff_factor: float = constants.RETRY_BACKOFF_FACTOR


@dataclass
class RateLimitOptions:
    max_tokens: int = constants.DEFAULT_RATE_LIMIT_TOKENS
    refill_rate: float = constants.DEFAULT_RATE_LIMIT_REFILL


@dataclass
class ScreenshotOptions:
    enabled: bool = True
    full_page: bool = True
    timeout: float = constants.SCREENSHOT_TIMEOUT


@dataclass
class TimeoutOptions:
    """Hard time limits in seconds."""
    navigation: float = constants.NAVIGATION_TIMEOUT
    processing: float = constants.PROCESSING_TIMEOUT
    screenshot: float = constants.SCREENSHOT_TIMEOUT
    link_extraction: float = constants.LINK_EXTRACTION_TIMEOUT


@dataclass
class LaunchOptions:
    attempts: int = constants.BROWSER_LAUNCH_ATTEMPTS
    timeout: float = constants.BROWSER_LAUNCH_TIMEOUT
    backoff: float = constants.BROWSER_LAUNCH_BACKOFF


_SECTIONS = {
    'cache': CacheOptions,
    'retry': RetryOptions,
    'rate_limit': RateLimitOptions,
    'screenshot': ScreenshotOptions,
    'timeouts': TimeoutOptions,
    'launch': LaunchOptions,
}


def _coerce(value: str, field_type: Any) -> Any:
    if field_type in (bool, 'bool'):
        lowered = value.strip().lower()
        if lowered in ('1', 'true', 'yes', 'on'):
            return True
        if lowered in ('0', 'false', 'no', 'off'):
            return False
        raise ValueError(f"not a boolean: {value}")
    if field_type in (int, 'int'):
        return int(value)
    if field_type in (float, 'float'):
        return float(value)
    return value


def _field_names(target: Any) -> set[str]:
    return {f.name for f in fields(target)}


def _assign(target: Any, name: str, value: Any) -> None:
    field_type = next(f.type for f in fields(target) if f.name == name)
    if isinstance(value, str) and field_type not in (str, 'str'):
        try:
            value = _coerce(value, field_type)
        except ValueError:
            raise ValueError(f"Invalid value for {name}: {value!r}")
    setattr(target, name, value)


@dataclass
class ScraperConfig:
    """Configuration for a crawl run."""
    output_dir: str = constants.DEFAULT_OUTPUT_DIR
    max_concurrent_pages: int = constants.DEFAULT_MAX_CONCURRENT_PAGES
    max_depth: int = constants.DEFAULT_MAX_DEPTH
    link_batch_size: int = constants.DEFAULT_LINK_BATCH_SIZE
    link_batch_delay: float = constants.DEFAULT_LINK_BATCH_DELAY
    headless: bool = True
    user_agent: str = constants.DEFAULT_USER_AGENT

    cache: CacheOptions = field(default_factory=CacheOptions)
    retry: RetryOptions = field(default_factory=RetryOptions)
    rate_limit: RateLimitOptions = field(default_factory=RateLimitOptions)
    screenshot: ScreenshotOptions = field(default_factory=ScreenshotOptions)
    timeouts: TimeoutOptions = field(default_factory=TimeoutOptions)
    launch: LaunchOptions = field(default_factory=LaunchOptions)

    @classmethod
    def from_env(cls) -> "ScraperConfig":
        """Load configuration from environment variables.

        Environment variables are prefixed with SCRAPER_, nested sections
        add their name, e.g. SCRAPER_MAX_DEPTH=2 or
        SCRAPER_RATE_LIMIT_REFILL_RATE=0.5.

        Returns:
            ScraperConfig with values from environment
        """
        config = cls()
        prefix = "SCRAPER_"

        def apply(target: Any, env_prefix: str) -> None:
            for f in fields(target):
                if f.name in _SECTIONS:
                    continue
                env_value = os.getenv(f"{env_prefix}{f.name.upper()}")
                if env_value is None:
                    continue
                try:
                    setattr(target, f.name, _coerce(env_value, f.type))
                except ValueError:
                    pass  # Keep default if conversion fails

        apply(config, prefix)
        for section in _SECTIONS:
            apply(getattr(config, section), f"{prefix}{section.upper()}_")

        return config

    @classmethod
    def from_file(cls, path: str) -> "ScraperConfig":
        """Load configuration from a JSON or YAML file.

        Args:
            path: Path to configuration file (.json, .yaml or .yml)

        Returns:
            ScraperConfig with values from file, defaults if the file is missing
        """
        return cls.from_dict(read_config_file(path))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScraperConfig":
        config = cls()
        config.update(data)
        return config

    def update(self, data: dict[str, Any]) -> None:
        """Overlay values from a (possibly nested) dictionary.

        String values for numeric and boolean fields are converted, so
        `max_depth: "2"` in a YAML file behaves like `max_depth: 2`.

        Raises:
            ValueError: If a string value cannot be converted
        """
        for key, value in data.items():
            if key in _SECTIONS and isinstance(value, dict):
                section = getattr(self, key)
                for sub_key, sub_value in value.items():
                    if sub_key in _field_names(section):
                        _assign(section, sub_key, sub_value)
            elif key in _field_names(self) and key not in _SECTIONS:
                _assign(self, key, value)
            else:
                logger.debug(f"Ignoring unknown config key: {key}")

    def validate(self) -> None:
        """Raise ValueError if any value is out of range."""
        if self.max_depth < 0:
            raise ValueError("max_depth must be >= 0")
        if self.max_concurrent_pages < 1:
            raise ValueError("max_concurrent_pages must be >= 1")
        if self.link_batch_size < 1:
            raise ValueError("link_batch_size must be >= 1")
        if self.link_batch_delay < 0:
            raise ValueError("link_batch_delay must be >= 0")
        if self.rate_limit.max_tokens < 1:
            raise ValueError("rate_limit.max_tokens must be >= 1")
        if self.rate_limit.refill_rate <= 0:
            raise ValueError("rate_limit.refill_rate must be > 0")
        if self.cache.max_entries < 1 or self.cache.ttl_seconds <= 0:
            raise ValueError("cache bounds must be positive")
        if self.retry.max_retries < 0:
            raise ValueError("retry.max_retries must be >= 0")
        for name in ('navigation', 'processing', 'screenshot', 'link_extraction'):
            if getattr(self.timeouts, name) <= 0:
                raise ValueError(f"timeouts.{name} must be > 0")
        if self.launch.attempts < 1 or self.launch.timeout <= 0:
            raise ValueError("launch attempts and timeout must be positive")

    def to_dict(self) -> dict:
        """Convert configuration to a nested dictionary."""
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if is_dataclass(value):
                value = {sub.name: getattr(value, sub.name) for sub in fields(value)}
            result[f.name] = value
        return result

    def save_to_file(self, path: str) -> None:
        """Save configuration to a JSON file.

        Args:
            path: Path to save configuration
        """
        with open(path, 'w') as f:
            json.dump({'scraper': self.to_dict()}, f, indent=2)


def read_config_file(path: str) -> dict[str, Any]:
    """Read the raw settings dictionary from a JSON or YAML file.

    A top-level ``scraper`` key is unwrapped if present. A missing file
    yields an empty dictionary.
    """
    file_path = Path(path)
    if not file_path.exists():
        logger.warning(f"Config file not found: {path}, using defaults")
        return {}

    with open(file_path, 'r') as f:
        if file_path.suffix.lower() in ('.yaml', '.yml'):
            data = yaml.safe_load(f) or {}
        else:
            data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")
    return data.get('scraper', data)


def load_config(path: Optional[str] = None) -> ScraperConfig:
    """Build config from the environment, overlaid with a file when given."""
    config = ScraperConfig.from_env()
    if path:
        config.update(read_config_file(path))
    return config
