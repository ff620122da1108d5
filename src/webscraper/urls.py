"""URL helpers: normalization, origin checks and route paths."""

import re
from typing import Iterable, Optional
from urllib.parse import urljoin, urlparse

from webscraper.constants import (
    NON_TEXTUAL_EXTENSIONS,
    PAGE_SUFFIXES,
    UNSAFE_LINK_SCHEMES,
)

DEFAULT_PORTS = {80, 443}


def is_valid_url(url: str) -> bool:
    """Return True for an absolute http(s) URL with a host."""
    if not isinstance(url, str) or not url.strip():
        return False
    try:
        parsed = urlparse(url.strip())
        # Accessing .port validates the netloc
        parsed.port
    except ValueError:
        return False
    return parsed.scheme in ('http', 'https') and bool(parsed.hostname)


def _host(url: str) -> str:
    hostname = (urlparse(url).hostname or '').lower()
    if hostname.startswith('www.'):
        hostname = hostname[4:]
    return hostname


def origin_of(url: str) -> str:
    """Return the origin boundary for a URL.

    The boundary is the lowercased host without a leading ``www.``, plus the
    port when it is not a default one. Scheme is ignored since every URL is
    upgraded to https during normalization.
    """
    parsed = urlparse(url)
    host = _host(url)
    port = parsed.port
    if port and port not in DEFAULT_PORTS:
        return f"{host}:{port}"
    return host


def normalize_url(url: str) -> str:
    """Return the canonical form of a URL.

    Forces https, lowercases the host, strips ``www.``, drops default
    ports, query strings, fragments and the trailing slash.

    Args:
        url: Absolute URL

    Returns:
        Normalized URL, e.g. ``https://example.com/about``
    """
    parsed = urlparse(url.strip())
    path = parsed.path or ''
    path = re.sub(r'/{2,}', '/', path).rstrip('/')
    return f"https://{origin_of(url)}{path}"


def is_same_origin(url: str, origin: str) -> bool:
    """Check whether a URL falls within an origin boundary from origin_of()."""
    try:
        return origin_of(url) == origin
    except ValueError:
        return False


def is_non_textual_file(url: str) -> bool:
    """Check whether a URL points to a binary or asset file."""
    path = urlparse(url).path.lower()
    last = path.rsplit('/', 1)[-1]
    if '.' not in last:
        return False
    return last.rsplit('.', 1)[-1] in NON_TEXTUAL_EXTENSIONS


def route_path(url: str) -> str:
    """Derive the artifact directory name for a URL.

    ``/blog/My_Post.html`` becomes ``blog-my-post``; the site root becomes
    ``root``.
    """
    path = urlparse(url).path
    lowered = path.lower()
    for suffix in PAGE_SUFFIXES:
        if lowered.endswith(suffix):
            path = path[:-len(suffix)]
            break
    path = path.strip('/')
    path = re.sub(r'[^a-zA-Z0-9]+', '-', path).strip('-').lower()
    return path or 'root'


def resolve_links(
    base_url: str,
    hrefs: Iterable[str],
) -> list[str]:
    """Resolve raw hrefs against a page URL, dropping unsafe schemes.

    Order is preserved and duplicates (after resolution) removed.
    """
    seen: set[str] = set()
    resolved: list[str] = []
    for href in hrefs:
        if not href:
            continue
        href = href.strip()
        if not href or href.startswith('#'):
            continue
        if href.lower().startswith(UNSAFE_LINK_SCHEMES):
            continue
        absolute = urljoin(base_url, href)
        if not is_valid_url(absolute):
            continue
        if absolute not in seen:
            seen.add(absolute)
            resolved.append(absolute)
    return resolved


def crawlable_links(
    links: Iterable[str],
    origin: str,
    exclude: Optional[set[str]] = None,
) -> list[str]:
    """Filter discovered links down to normalized same-origin crawl targets.

    Args:
        links: Absolute URLs found on a page
        origin: Boundary from origin_of() for the crawl root
        exclude: Normalized URLs to leave out (e.g. already claimed)

    Returns:
        Unique normalized URLs in discovery order
    """
    exclude = exclude or set()
    targets: list[str] = []
    seen: set[str] = set()
    for link in links:
        if not is_valid_url(link):
            continue
        if not is_same_origin(link, origin) or is_non_textual_file(link):
            continue
        normalized = normalize_url(link)
        if normalized in exclude or normalized in seen:
            continue
        seen.add(normalized)
        targets.append(normalized)
    return targets
