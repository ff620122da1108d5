"""
Constants for the web scraper.

Central home for default limits, timeouts and file naming so the
orchestrator, driver and storage layers agree on them.
"""

# =============================================================================
# Crawl Defaults
# =============================================================================

DEFAULT_OUTPUT_DIR = "scraping_output"
DEFAULT_MAX_DEPTH = 3
DEFAULT_MAX_CONCURRENT_PAGES = 5

# Links discovered on a page are visited in batches of this size
DEFAULT_LINK_BATCH_SIZE = 3
DEFAULT_LINK_BATCH_DELAY = 1.0  # seconds between batches

# =============================================================================
# Result Cache
# =============================================================================

DEFAULT_CACHE_MAX_ENTRIES = 1000
DEFAULT_CACHE_TTL_SECONDS = 60 * 60

# =============================================================================
# Rate Limiting
# =============================================================================

DEFAULT_RATE_LIMIT_TOKENS = 5
DEFAULT_RATE_LIMIT_REFILL = 1.0  # tokens per second

# =============================================================================
# Timeouts (seconds)
# =============================================================================

NAVIGATION_TIMEOUT = 30.0
PROCESSING_TIMEOUT = 60.0
SCREENSHOT_TIMEOUT = 30.0
LINK_EXTRACTION_TIMEOUT = 10.0
BROWSER_LAUNCH_TIMEOUT = 120.0
PAGE_POOL_WAIT_TIMEOUT = 30.0

# =============================================================================
# Browser Launch
# =============================================================================

BROWSER_LAUNCH_ATTEMPTS = 5
BROWSER_LAUNCH_BACKOFF = 1.5

BROWSER_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--disable-gpu",
    "--window-size=1920,1080",
    "--disable-web-security",
    "--disable-features=IsolateOrigins,site-per-process",
]

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

VIEWPORT_WIDTH = 1920
VIEWPORT_HEIGHT = 1080

# =============================================================================
# Summarizer Retry
# =============================================================================

DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 1.0
RETRY_BACKOFF_FACTOR = 2.0

# =============================================================================
# Content
# =============================================================================

CENSOR_PLACEHOLDER = "***"

# Tags whose text is collected when extracting page content
TEXT_SELECTORS = "p, div, span, a, h1, h2, h3, h4, h5, h6, li"

# =============================================================================
# Files
# =============================================================================

CONTENT_PREFIX = "content"
PROCESSED_PREFIX = "processed"
SCREENSHOT_PREFIX = "screenshot"
LINKS_MANIFEST = "links.json"
REPORT_FILENAME = "scraping-report.json"

NON_TEXTUAL_EXTENSIONS = frozenset({
    'jpg', 'jpeg', 'png', 'gif', 'svg', 'webp', 'ico',
    'pdf', 'doc', 'docx', 'xls', 'xlsx', 'ppt', 'pptx',
    'zip', 'rar', 'tar', 'gz', '7z',
    'mp3', 'mp4', 'avi', 'mov',
    'css', 'js', 'woff', 'woff2', 'ttf',
})

PAGE_SUFFIXES = ('.html', '.htm', '.php', '.aspx', '.asp', '.jsp')

UNSAFE_LINK_SCHEMES = ('javascript:', 'data:', 'vbscript:', 'mailto:', 'tel:')
