"""
Content processing for crawled pages.

- filter: restricted-domain checks and word filtering
- validator: screening of AI generated text
- analyzer: page classification and prompt selection
"""

from .analyzer import ContentAnalyzer, ContentContext, PromptGenerator
from .filter import ContentFilter, TextProcessor
from .validator import ContentValidator, ValidationResult

__all__ = [
    'ContentAnalyzer',
    'ContentContext',
    'PromptGenerator',
    'ContentFilter',
    'TextProcessor',
    'ContentValidator',
    'ValidationResult',
]
