"""
Content filtering.

ContentFilter implements the ContentPolicy interface: URLs on restricted
hosts are refused, and blocked words in page text are replaced with a
placeholder. TextProcessor holds the text normalization applied to raw
page text before filtering.
"""

import logging
import re
from importlib import resources
from pathlib import Path
from typing import Iterable, Optional
from urllib.parse import urlparse

import yaml

from webscraper.base import ContentPolicy
from webscraper.constants import CENSOR_PLACEHOLDER

logger = logging.getLogger(__name__)

DEFAULT_WORDLIST = "filter_words.yaml"

_WORD_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9'_-]*")


class WordTrie:
    """Prefix tree for case-insensitive whole word lookup."""

    def __init__(self, words: Iterable[str] = ()):
        self._root: dict = {}
        self._size = 0
        for word in words:
            self.insert(word)

    def insert(self, word: str) -> None:
        node = self._root
        for char in word.lower():
            node = node.setdefault(char, {})
        if not node.get('$'):
            node['$'] = True
            self._size += 1

    def search(self, word: str) -> bool:
        node = self._root
        for char in word.lower():
            node = node.get(char)
            if node is None:
                return False
        return bool(node.get('$'))

    def __len__(self) -> int:
        return self._size

    def __contains__(self, word: str) -> bool:
        return self.search(word)


class TextProcessor:
    """Normalization helpers for extracted page text."""

    EMOJI_PATTERN = re.compile(
        "[\U0001F300-\U0001FAFF\U00002600-\U000027BF\U0001F000-\U0001F2FF]"
    )
    NON_ASCII_PATTERN = re.compile(r"[^\x00-\x7F]")
    WHITESPACE_PATTERN = re.compile(r"\s+")
    SENTENCE_PATTERN = re.compile(r"[^.!?]+[.!?]+")

    @classmethod
    def clean_text(cls, text: str) -> str:
        """Strip emoji and non-ASCII characters and collapse whitespace."""
        if not text:
            return ""
        text = cls.EMOJI_PATTERN.sub("", text)
        text = cls.NON_ASCII_PATTERN.sub("", text)
        return cls.WHITESPACE_PATTERN.sub(" ", text).strip()

    @classmethod
    def remove_duplicate_segments(cls, text: str) -> str:
        """Drop repeated sentences, keeping the first occurrence of each.

        Trailing text without sentence punctuation is kept as a segment.
        """
        if not text:
            return ""
        segments = []
        last_end = 0
        for match in cls.SENTENCE_PATTERN.finditer(text):
            segments.append(match.group(0).strip())
            last_end = match.end()
        remainder = text[last_end:].strip()
        if remainder:
            segments.append(remainder)

        seen: set[str] = set()
        unique = []
        for segment in segments:
            if segment and segment not in seen:
                seen.add(segment)
                unique.append(segment)
        return " ".join(unique)

    @classmethod
    def prepare(cls, fragments: Iterable[str]) -> str:
        """Join extracted fragments into one cleaned, de-duplicated string."""
        joined = " ".join(f for f in fragments if f)
        return cls.remove_duplicate_segments(cls.clean_text(joined))


class ContentFilter(ContentPolicy):
    """
    Restricted-domain checks and word filtering.

    Built once per run and shared between the orchestrator and the
    summarizer. The word lists are fixed after construction.
    """

    def __init__(
        self,
        blocked_words: Iterable[str] = (),
        restricted_domains: Iterable[str] = (),
        restricted_tlds: Iterable[str] = (),
        restricted_names: Iterable[str] = (),
        placeholder: str = CENSOR_PLACEHOLDER,
    ):
        """
        Initialize the filter.

        Args:
            blocked_words: Words replaced in text
            restricted_domains: Host substrings that are never crawled
            restricted_tlds: Host suffixes that are never crawled (".onion")
            restricted_names: Host labels that are never crawled
            placeholder: Replacement for blocked words
        """
        words = [w.strip().lower() for w in blocked_words if w and w.strip()]
        self._words = WordTrie(words)
        self._domains = frozenset(d.strip().lower() for d in restricted_domains if d)
        self._tlds = tuple(
            t if t.startswith('.') else f".{t}"
            for t in (t.strip().lower() for t in restricted_tlds if t)
        )
        self._names = WordTrie(n.strip() for n in restricted_names if n)
        self.placeholder = placeholder

    @classmethod
    def from_file(cls, path: str) -> "ContentFilter":
        """Load word lists from a YAML file.

        Args:
            path: YAML file with blocked_words, restricted_domains,
                restricted_tlds and restricted_names lists

        Returns:
            Configured ContentFilter
        """
        with open(Path(path), 'r') as f:
            data = yaml.safe_load(f) or {}
        return cls._from_mapping(data)

    @classmethod
    def default(cls, extra_file: Optional[str] = None) -> "ContentFilter":
        """Build the filter from the packaged lists, merged with an optional file."""
        text = resources.files('webscraper.data').joinpath(DEFAULT_WORDLIST).read_text()
        data = yaml.safe_load(text) or {}
        if extra_file:
            with open(Path(extra_file), 'r') as f:
                extra = yaml.safe_load(f) or {}
            for key, values in extra.items():
                data[key] = list(data.get(key) or []) + list(values or [])
        return cls._from_mapping(data)

    @classmethod
    def _from_mapping(cls, data: dict) -> "ContentFilter":
        content_filter = cls(
            blocked_words=data.get('blocked_words') or [],
            restricted_domains=data.get('restricted_domains') or [],
            restricted_tlds=data.get('restricted_tlds') or [],
            restricted_names=data.get('restricted_names') or [],
        )
        logger.debug(
            f"Content filter loaded: {len(content_filter._words)} words, "
            f"{len(content_filter._domains)} domains"
        )
        return content_filter

    def is_restricted(self, url: str) -> bool:
        """Check whether a URL (or bare host) is on a restricted host."""
        if not url:
            return False
        host = urlparse(url).hostname if '://' in url else url
        host = (host or '').lower()
        if not host:
            return False

        if any(domain in host for domain in self._domains):
            return True
        if self._tlds and host.endswith(self._tlds):
            return True
        labels = re.split(r"[.-]", host)
        return any(self._names.search(label) for label in labels if label)

    def mentions_restricted_domain(self, text: str) -> bool:
        """Check whether free text mentions any restricted domain."""
        lowered = (text or '').lower()
        return any(domain in lowered for domain in self._domains)

    def is_blocked_word(self, word: str) -> bool:
        return self._words.search(word)

    def filter_text(self, text: str) -> str:
        """Replace blocked words with the placeholder, keeping layout."""
        if not text or not self._words:
            return text or ""

        def replace(match: re.Match) -> str:
            word = match.group(0)
            return self.placeholder if self.is_blocked_word(word) else word

        return _WORD_PATTERN.sub(replace, text)

    def contains_censored(self, text: str) -> bool:
        return self.placeholder in (text or "")
