"""Tests for page classification and prompt generation."""

import pytest

from webscraper.content.analyzer import ContentAnalyzer, ContentContext, PromptGenerator


class TestContentAnalyzer:
    """Tests for ContentAnalyzer."""

    @pytest.mark.parametrize("url,page_type", [
        ("https://example.com/blog/hello", "article"),
        ("https://example.com/news/today", "article"),
        ("https://example.com/shop/widget", "product"),
        ("https://example.com/category/tools", "category"),
        ("https://example.com/about", "profile"),
    ])
    def test_route_patterns(self, url, page_type):
        """Test URL paths select the page type."""
        assert ContentAnalyzer.analyze_content(url, "plain text").page_type == page_type

    def test_content_signals(self):
        """Test text signals classify pages with neutral URLs."""
        assert ContentAnalyzer.analyze_content(
            "https://example.com/x", "Only $25 while stock lasts"
        ).page_type == "product"
        assert ContentAnalyzer.analyze_content(
            "https://example.com/x", "Posted by Jane on Monday"
        ).page_type == "article"

    def test_general_default(self):
        """Test unmatched pages get the general context."""
        context = ContentAnalyzer.analyze_content("https://example.com/x", "hello world")
        assert context.page_type == "general"
        assert context.structure_type == "descriptive"
        assert context.content_length == "brief"

    def test_content_length(self):
        """Test word count buckets."""
        assert ContentAnalyzer.content_length("word " * 10) == "brief"
        assert ContentAnalyzer.content_length("word " * 2000) == "standard"
        assert ContentAnalyzer.content_length("word " * 4000) == "detailed"


class TestPromptGenerator:
    """Tests for PromptGenerator."""

    def test_article_prompt(self):
        """Test article/narrative template is used."""
        context = ContentContext("article", "detailed", "narrative", "general")
        prompt = PromptGenerator.generate_prompt(context, "BODY")
        assert prompt.startswith("Analyze this article using a storytelling approach")
        assert prompt.endswith("Content: BODY")

    def test_default_prompt(self):
        """Test unknown combinations fall back to the default prompt."""
        context = ContentContext("category", "brief", "analytical", "general")
        prompt = PromptGenerator.generate_prompt(context, "BODY")
        assert prompt.startswith("Please analyze and structure this content")

    def test_braces_in_content(self):
        """Test page text containing braces is inserted verbatim."""
        context = ContentContext()
        prompt = PromptGenerator.generate_prompt(context, "function() { return {x}; }")
        assert "function() { return {x}; }" in prompt
