"""Command-line interface for the web scraper."""

import asyncio
import logging
import signal
import sys
from typing import Optional

from webscraper.base import Summarizer
from webscraper.config import ScraperConfig, Settings, load_config, settings
from webscraper.content.filter import ContentFilter
from webscraper.exceptions import BrowserLaunchError, InvalidURLError
from webscraper.infrastructure.browser_pool import PlaywrightPageDriver
from webscraper.infrastructure.rate_limiter import TokenBucketLimiter
from webscraper.llm import LLMClient, LLMSummarizer, PassthroughSummarizer
from webscraper.logging_config import setup_logging
from webscraper.orchestrator import WebScraper
from webscraper.storage import ArtifactStore

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_LAUNCH_FAILED = 2
EXIT_INTERRUPTED = 130


def build_scraper(
    config: ScraperConfig,
    app_settings: Settings = settings,
    no_llm: bool = False,
    api_key: Optional[str] = None,
    provider: Optional[str] = None,
    model: Optional[str] = None,
    filter_file: Optional[str] = None,
) -> WebScraper:
    """Wire a WebScraper with the Playwright driver, content filter and summarizer.

    Without an API key (or with no_llm) the processed text is the filtered
    page text.
    """
    content_filter = ContentFilter.default(filter_file)
    driver = PlaywrightPageDriver(
        pool_size=config.max_concurrent_pages,
        headless=config.headless,
        user_agent=config.user_agent,
        launch_attempts=config.launch.attempts,
        launch_timeout=config.launch.timeout,
        launch_backoff=config.launch.backoff,
        screenshot_timeout=config.screenshot.timeout,
        full_page_screenshots=config.screenshot.full_page,
    )

    summarizer: Summarizer
    key = api_key or app_settings.LLM_API_KEY
    if no_llm or not key:
        if not no_llm:
            logger.warning("No LLM API key configured, processed content will be the filtered text")
        summarizer = PassthroughSummarizer(content_filter)
    else:
        client = LLMClient(
            api_key=key,
            provider=provider or app_settings.LLM_PROVIDER,
            model=model or app_settings.LLM_MODEL,
        )
        summarizer = LLMSummarizer(
            client=client,
            content_filter=content_filter,
            rate_limiter=TokenBucketLimiter(
                max_tokens=config.rate_limit.max_tokens,
                refill_rate=config.rate_limit.refill_rate,
            ),
            retry=config.retry,
        )

    return WebScraper(
        driver=driver,
        content_policy=content_filter,
        summarizer=summarizer,
        config=config,
        artifacts=ArtifactStore(config.output_dir),
    )


def config_from_args(args) -> ScraperConfig:
    """Environment, then --config file, then explicit flags."""
    config = load_config(args.config)

    if args.output is not None:
        config.output_dir = args.output
    if args.depth is not None:
        config.max_depth = args.depth
    if args.concurrency is not None:
        config.max_concurrent_pages = args.concurrency
    if args.timeout is not None:
        config.timeouts.navigation = args.timeout
    if args.rate_limit is not None:
        config.rate_limit.refill_rate = args.rate_limit
    if args.retry_attempts is not None:
        config.retry.max_retries = args.retry_attempts
    if args.retry_delay is not None:
        config.retry.retry_delay = args.retry_delay
    if args.screenshot is not None:
        config.screenshot.enabled = args.screenshot
    if args.no_headless:
        config.headless = False

    config.validate()
    return config


async def _run_scrape(scraper: WebScraper, url: str):
    """Run a crawl with SIGINT/SIGTERM wired to a graceful shutdown."""
    loop = asyncio.get_running_loop()
    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, scraper.request_shutdown)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            pass  # Not supported on this platform/loop

    try:
        return await scraper.scrape_website(url)
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


def print_summary(url: str, summary: dict) -> None:
    print(f"\n{'=' * 60}")
    print(f"Crawl summary for: {url}")
    print(f"{'=' * 60}")
    print(f"  Total URLs:      {summary['total_urls']}")
    print(f"  Successful:      {summary['successful']}")
    print(f"  Failed:          {summary['failed']}")
    print(f"  Depth rejected:  {summary['depth_rejections']}")
    print(f"  Peak open pages: {summary['pages_opened_peak']}")

    if summary['failed_by_reason']:
        print("\nFailures by reason:")
        for reason, count in sorted(summary['failed_by_reason'].items()):
            print(f"  • {reason}: {count}")

    if summary['interrupted']:
        print("\nCrawl was interrupted before completion.")
    print(f"\n{'=' * 60}\n")


def scrape_command(args) -> int:
    """Crawl a website and write artifacts to the output directory."""
    try:
        config = config_from_args(args)
        scraper = build_scraper(
            config,
            no_llm=args.no_llm,
            api_key=args.api_key,
            provider=args.provider,
            model=args.model,
            filter_file=args.filter_file,
        )
    except (ValueError, TypeError, OSError) as e:
        print(f"Error: {e}")
        return EXIT_USAGE

    try:
        results = asyncio.run(_run_scrape(scraper, args.url))
    except InvalidURLError as e:
        print(f"Error: {e}")
        return EXIT_USAGE
    except BrowserLaunchError as e:
        print(f"Error: {e}")
        return EXIT_LAUNCH_FAILED

    if args.results_file:
        path = scraper.artifacts.save_results(results, args.results_file)
        print(f"Results written to {path}")

    print_summary(args.url, scraper.get_crawl_summary())
    print(f"Artifacts written to {config.output_dir}")

    if scraper.shutdown_requested:
        return EXIT_INTERRUPTED
    return EXIT_OK


def build_parser():
    import argparse

    parser = argparse.ArgumentParser(
        description="Web Scraper - Recursively crawl a website, saving filtered text, "
                    "AI processed summaries and screenshots"
    )

    # Global flags (before subcommands)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=settings.LOG_LEVEL.upper() if settings.LOG_LEVEL else "INFO",
        help="Set logging verbosity (default: INFO)",
    )
    parser.add_argument(
        "--log-file",
        help="Write logs to file in addition to console",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    scrape_parser = subparsers.add_parser(
        "scrape", help="Crawl a website starting from a URL."
    )
    scrape_parser.add_argument("url", help="URL to start crawling from")
    scrape_parser.add_argument(
        "--output", "-o",
        help=f"Output directory (default: {settings.OUTPUT_DIR})",
    )
    scrape_parser.add_argument(
        "--depth", "-d",
        type=int,
        help="Maximum crawl depth (default: 3)",
    )
    scrape_parser.add_argument(
        "--concurrency", "-c",
        type=int,
        help="Maximum concurrent pages (default: 5)",
    )
    scrape_parser.add_argument(
        "--timeout", "-t",
        type=float,
        help="Navigation timeout in seconds (default: 30)",
    )
    scrape_parser.add_argument(
        "--rate-limit", "-r",
        type=float,
        help="Requests per second (default: 1)",
    )
    scrape_parser.add_argument(
        "--retry-attempts",
        type=int,
        help="LLM retry attempts (default: 3)",
    )
    scrape_parser.add_argument(
        "--retry-delay",
        type=float,
        help="Initial delay between LLM retries in seconds (default: 1)",
    )
    scrape_parser.add_argument(
        "--screenshot",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Capture full page screenshots (default: on)",
    )
    scrape_parser.add_argument(
        "--no-headless",
        action="store_true",
        help="Show the browser window",
    )
    scrape_parser.add_argument(
        "--config",
        help="JSON or YAML configuration file",
    )
    scrape_parser.add_argument(
        "--api-key",
        help="LLM API key (default: LLM_API_KEY from environment)",
    )
    scrape_parser.add_argument(
        "--provider",
        choices=["openai", "anthropic", "gemini"],
        help="LLM provider (default: LLM_PROVIDER from environment)",
    )
    scrape_parser.add_argument(
        "--model",
        help="LLM model name",
    )
    scrape_parser.add_argument(
        "--no-llm",
        action="store_true",
        help="Skip AI processing, processed files hold the filtered text",
    )
    scrape_parser.add_argument(
        "--filter-file",
        help="YAML word lists merged into the default content filter",
    )
    scrape_parser.add_argument(
        "--results-file",
        help="Write the per-URL results as JSON to this file",
    )
    scrape_parser.set_defaults(func=scrape_command)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Configure logging based on flags
    setup_logging(
        level=args.log_level,
        log_file=getattr(args, 'log_file', None),
    )

    if hasattr(args, "func"):
        return args.func(args)
    parser.print_help()
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
