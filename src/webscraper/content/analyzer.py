"""
Page classification and prompt selection.

ContentAnalyzer guesses what kind of page a URL holds from its path and
from signals in the extracted text. PromptGenerator picks the LLM prompt
template that suits that kind of page.
"""

import re
from dataclasses import dataclass, replace
from typing import Pattern
from urllib.parse import urlparse


@dataclass(frozen=True)
class ContentContext:
    """What a page is and how its content should be treated."""
    page_type: str = "general"         # article, product, category, profile, general
    content_length: str = "standard"   # brief, standard, detailed
    structure_type: str = "descriptive"  # narrative, analytical, technical, descriptive
    target_audience: str = "general"   # general, technical, business, academic


@dataclass(frozen=True)
class RouteAnalysis:
    patterns: tuple[Pattern, ...]
    signals: frozenset[str]
    context: ContentContext


DEFAULT_CONTEXT = ContentContext()

# Word count thresholds for content_length
BRIEF_MAX_WORDS = 1000
STANDARD_MAX_WORDS = 3000


class ContentAnalyzer:
    """Classifies pages by URL route and content signals."""

    ROUTES = (
        RouteAnalysis(
            patterns=tuple(re.compile(p) for p in (r'/article', r'/blog', r'/news', r'/post')),
            signals=frozenset({'article', 'published', 'author', 'date', 'comments'}),
            context=ContentContext('article', 'detailed', 'narrative', 'general'),
        ),
        RouteAnalysis(
            patterns=tuple(re.compile(p) for p in (r'/product', r'/item', r'/shop')),
            signals=frozenset({'price', 'buy', 'cart', 'stock', 'shipping'}),
            context=ContentContext('product', 'standard', 'descriptive', 'general'),
        ),
        RouteAnalysis(
            patterns=tuple(re.compile(p) for p in (r'/category', r'/department', r'/section')),
            signals=frozenset({'list', 'filter', 'sort', 'categories'}),
            context=ContentContext('category', 'brief', 'analytical', 'general'),
        ),
        RouteAnalysis(
            patterns=tuple(re.compile(p) for p in (r'/profile', r'/user', r'/about')),
            signals=frozenset({'bio', 'contact', 'experience', 'portfolio'}),
            context=ContentContext('profile', 'standard', 'descriptive', 'general'),
        ),
    )

    @staticmethod
    def content_signals(text: str) -> set[str]:
        """Pick out indicators such as prices or bylines from page text."""
        signals = set()
        lowered = text.lower()

        if 'price' in lowered or re.search(r'\$\d+', text):
            signals.add('price')
        if 'author' in lowered or 'posted by' in lowered:
            signals.add('article')
        if 'profile' in lowered or 'about me' in lowered:
            signals.add('bio')
        return signals

    @staticmethod
    def content_length(text: str) -> str:
        words = len(text.split())
        if words < BRIEF_MAX_WORDS:
            return 'brief'
        if words <= STANDARD_MAX_WORDS:
            return 'standard'
        return 'detailed'

    @classmethod
    def analyze_content(cls, url: str, text: str) -> ContentContext:
        """Determine the content context for a page.

        The URL path is checked against each route's patterns first; a
        route also matches when any of its signals appear in the text.
        The first matching route wins.

        Args:
            url: Page URL
            text: Extracted page text

        Returns:
            ContentContext for the page
        """
        path = urlparse(url).path
        signals = cls.content_signals(text or "")

        for route in cls.ROUTES:
            if any(p.search(path) for p in route.patterns) or route.signals & signals:
                return route.context

        return replace(DEFAULT_CONTEXT, content_length=cls.content_length(text or ""))


class PromptGenerator:
    """Builds LLM prompts from a content context."""

    TEMPLATES = {
        'article': {
            'narrative': (
                "Analyze this article using a storytelling approach:\n"
                "- Identify the main narrative arc and key story elements\n"
                "- Extract important quotes and testimonials\n"
                "- Highlight human interest aspects\n"
                "- Organize content into a compelling narrative structure\n"
                "- Preserve the author's voice and perspective\n"
                "\nContent: {content}"
            ),
            'analytical': (
                "Conduct a detailed analysis of this article:\n"
                "- Break down main arguments and supporting evidence\n"
                "- Identify methodology and data sources\n"
                "- Evaluate the strength of conclusions\n"
                "- Organize findings into clear analytical sections\n"
                "- Highlight key statistical or research findings\n"
                "\nContent: {content}"
            ),
            'technical': (
                "Provide a technical breakdown of this article:\n"
                "- Extract core technical concepts and definitions\n"
                "- Document any procedures or methodologies\n"
                "- Identify technical specifications or requirements\n"
                "- Structure content into technical documentation format\n"
                "\nContent: {content}"
            ),
        },
        'product': {
            'descriptive': (
                "Create a comprehensive product description:\n"
                "- Extract key features and specifications\n"
                "- Highlight unique selling points\n"
                "- Organize technical details and performance data\n"
                "- Include usage scenarios and benefits\n"
                "- Structure content for easy scanning\n"
                "\nContent: {content}"
            ),
            'technical': (
                "Generate a technical product analysis:\n"
                "- Document detailed specifications\n"
                "- Analyze performance metrics\n"
                "- Compare with industry standards\n"
                "- Structure as technical documentation\n"
                "\nContent: {content}"
            ),
        },
        'profile': {
            'narrative': (
                "Create a professional profile summary:\n"
                "- Extract key career highlights and achievements\n"
                "- Identify core skills and expertise\n"
                "- Document significant projects or contributions\n"
                "- Organize into a professional narrative\n"
                "\nContent: {content}"
            ),
            'descriptive': (
                "Generate a detailed professional overview:\n"
                "- Summarize professional background\n"
                "- List key qualifications and certifications\n"
                "- Document areas of expertise\n"
                "- Highlight notable accomplishments\n"
                "- Structure as a professional bio\n"
                "\nContent: {content}"
            ),
        },
    }

    DEFAULT_TEMPLATE = (
        "Please analyze and structure this content:\n"
        "- Extract main topics and key information\n"
        "- Organize into logical sections\n"
        "- Remove redundant information\n"
        "- Present in a clear, readable format\n"
        "\nContent: {content}"
    )

    @classmethod
    def generate_prompt(cls, context: ContentContext, content: str) -> str:
        templates = cls.TEMPLATES.get(context.page_type, {})
        template = templates.get(context.structure_type, cls.DEFAULT_TEMPLATE)
        # replace() rather than format() since page text may contain braces
        return template.replace('{content}', content)
