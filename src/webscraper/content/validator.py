"""Screening of AI generated text before it is saved as processed content."""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from webscraper.content.filter import ContentFilter

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    is_valid: bool
    flags: list[str] = field(default_factory=list)
    reason: Optional[str] = None


FLAG_REASONS = {
    'empty_content': 'Empty content',
    'restricted_domain': 'Contains restricted domain',
    'suspicious_patterns': 'Contains suspicious patterns',
    'keyword_combinations': 'Contains suspicious keyword combinations',
}


class ContentValidator:
    """Flags AI responses that mention restricted or suspicious content."""

    SUSPICIOUS_PATTERNS = [
        re.compile(r'\b(?:www\.)?[a-z0-9-]+\.(?:xxx|adult|porn)\b', re.I),
        re.compile(r'\.onion\b', re.I),
        re.compile(r'\b(?:escort|adult[\s-]massage)\s*services?\b', re.I),
        re.compile(r'\b(?:18\+\s*(?:explicit|only))', re.I),
        re.compile(r'\b(?:buy|sell|trade)\s*(?:adult\s*)?(?:pic|video|content)\b', re.I),
        re.compile(r'(?:crypto|bitcoin|payment)\s*(?:for|to)\s*(?:content|service)', re.I),
    ]

    # A pattern only counts when the words around it look suspicious too
    CONTEXT_PATTERNS = [
        re.compile(r'(?:payment|money|crypto)\s+(?:required|needed|only)', re.I),
        re.compile(r'(?:private|secret)\s+(?:content|message|dm)', re.I),
        re.compile(r'(?:adult|xxx)\s+(?:content|material)', re.I),
    ]

    KEYWORD_COMBINATIONS = [
        ('private', 'show', 'payment'),
        ('send', 'pic', 'money'),
        ('buy', 'content', 'private'),
        ('trade', 'content', 'direct'),
        ('crypto', 'content', 'private'),
    ]

    CONTEXT_WINDOW = 10  # words either side of a match

    def __init__(self, content_filter: ContentFilter):
        self.content_filter = content_filter

    def validate_ai_response(self, content: str) -> ValidationResult:
        """Check an AI response for restricted or suspicious content.

        Args:
            content: Text returned by the LLM

        Returns:
            ValidationResult; is_valid is False when any flag was raised
        """
        if not content or not content.strip():
            return ValidationResult(False, ['empty_content'], FLAG_REASONS['empty_content'])

        flags = []
        lowered = content.lower()

        if self.content_filter.mentions_restricted_domain(lowered):
            flags.append('restricted_domain')

        if self._has_suspicious_pattern(content):
            flags.append('suspicious_patterns')

        if any(all(word in lowered for word in combo) for combo in self.KEYWORD_COMBINATIONS):
            flags.append('keyword_combinations')

        if not flags:
            return ValidationResult(True)

        reason = "; ".join(FLAG_REASONS[f] for f in flags)
        logger.debug(f"AI response flagged: {reason}")
        return ValidationResult(False, flags, reason)

    def _has_suspicious_pattern(self, content: str) -> bool:
        words = content.split()
        for pattern in self.SUSPICIOUS_PATTERNS:
            match = pattern.search(content)
            if not match:
                continue
            # Word index of the match start
            index = len(content[:match.start()].split())
            start = max(0, index - self.CONTEXT_WINDOW)
            end = min(len(words), index + self.CONTEXT_WINDOW)
            window = ' '.join(words[start:end])
            if any(p.search(window) for p in self.CONTEXT_PATTERNS):
                return True
        return False
