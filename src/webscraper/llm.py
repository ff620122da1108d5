"""LLM client and summarizer for crawled page content."""

from typing import Optional
import asyncio
import os
import time
import logging

from webscraper.base import Summarizer
from webscraper.config import RetryOptions
from webscraper.content.analyzer import ContentAnalyzer, PromptGenerator
from webscraper.content.filter import ContentFilter
from webscraper.content.validator import ContentValidator
from webscraper.exceptions import QuotaExceededError, SummarizerError
from webscraper.infrastructure.rate_limiter import TokenBucketLimiter

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("openai", "anthropic", "gemini")

DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-haiku-latest",
    "gemini": "gemini-2.0-flash",
}

# Errors that will not go away on retry
NON_RETRYABLE_ERRORS = [
    'invalid api key',
    'authentication',
    'unauthorized',
    'invalid_api_key',
    'api key not valid',
    'model not found',
    'invalid model',
]

QUOTA_ERRORS = [
    '429',
    'quota',
    'rate limit',
    'rate_limit',
    'resource_exhausted',
    'too many requests',
]

SYSTEM_PROMPT = (
    "You are a content analyst. Restructure web page text into clear, "
    "well organized plain text without inventing facts."
)


def is_quota_error(error: BaseException) -> bool:
    message = str(error).lower()
    return any(marker in message for marker in QUOTA_ERRORS)


class LLMClient:
    """Thin synchronous client over the OpenAI, Anthropic and Gemini SDKs."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        provider: str = "openai",
        max_tokens: int = 4096,
    ):
        """Initialize the LLM client.

        Args:
            api_key: API key for the LLM provider
            model: Model name to use (provider default if omitted)
            provider: LLM provider (openai, anthropic, gemini)
            max_tokens: Maximum tokens for the response
        """
        self.api_key = api_key or os.getenv("LLM_API_KEY")
        self.provider = provider.lower()
        self.model = model or DEFAULT_MODELS.get(self.provider, "")
        self.max_tokens = max_tokens

        if not self.api_key:
            raise ValueError(
                "API key must be provided or set in LLM_API_KEY environment variable"
            )
        if self.provider not in SUPPORTED_PROVIDERS:
            raise ValueError(f"Unsupported provider: {provider}")

    def generate(
        self,
        prompt: str,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        backoff_factor: float = 2.0,
    ) -> str:
        """Call the LLM with the given prompt, with retry logic.

        Implements exponential backoff for transient failures (connection
        errors, rate limits, timeouts). Non-retryable errors (auth, invalid
        model) are raised immediately.

        Args:
            prompt: The prompt to send
            max_retries: Maximum number of retry attempts
            retry_delay: Initial delay between retries in seconds
            backoff_factor: Multiplier for delay after each retry

        Returns:
            LLM response text

        Raises:
            QuotaExceededError: If retries ran out on a quota or 429 error
            SummarizerError: For any other failure
        """
        last_exception: Optional[Exception] = None
        current_delay = retry_delay

        for attempt in range(max_retries + 1):
            try:
                return self._call_provider(prompt)
            except ImportError:
                raise
            except Exception as e:
                last_exception = e
                error_str = str(e).lower()

                if any(err in error_str for err in NON_RETRYABLE_ERRORS):
                    logger.error(f"Non-retryable LLM error: {e}")
                    raise SummarizerError(f"LLM request rejected: {e}") from e

                if attempt < max_retries:
                    logger.warning(
                        f"LLM call failed (attempt {attempt + 1}/{max_retries + 1}): {e}. "
                        f"Retrying in {current_delay:.1f}s..."
                    )
                    time.sleep(current_delay)
                    current_delay *= backoff_factor
                else:
                    logger.error(f"LLM call failed after {max_retries + 1} attempts: {e}")

        if last_exception is not None and is_quota_error(last_exception):
            raise QuotaExceededError(f"LLM quota exceeded: {last_exception}") from last_exception
        raise SummarizerError(f"LLM call failed: {last_exception}") from last_exception

    def _call_provider(self, prompt: str) -> str:
        if self.provider == "openai":
            return self._call_openai(prompt)
        elif self.provider == "anthropic":
            return self._call_anthropic(prompt)
        return self._call_gemini(prompt)

    def _call_openai(self, prompt: str) -> str:
        try:
            import openai
        except ImportError:
            raise ImportError("openai package not installed. Install with: pip install openai")

        client = openai.OpenAI(api_key=self.api_key)
        response = client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=0.3,
            max_tokens=self.max_tokens,
        )
        return response.choices[0].message.content or ""

    def _call_anthropic(self, prompt: str) -> str:
        try:
            import anthropic
        except ImportError:
            raise ImportError("anthropic package not installed. Install with: pip install anthropic")

        client = anthropic.Anthropic(api_key=self.api_key)
        response = client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )
        return response.content[0].text

    def _call_gemini(self, prompt: str) -> str:
        try:
            from google import genai
        except ImportError:
            raise ImportError("google-genai package not installed. Install with: pip install google-genai")

        client = genai.Client(api_key=self.api_key)
        response = client.models.generate_content(
            model=self.model,
            contents=f"{SYSTEM_PROMPT}\n\n{prompt}",
        )
        return response.text or ""


class LLMSummarizer(Summarizer):
    """
    Summarizer that restructures page text with an LLM.

    The text is filtered, classified and turned into a page-type specific
    prompt. Calls are paced by a token bucket and run in the default
    executor so the event loop keeps crawling. Invalid responses and quota
    errors fall back to the filtered input text.
    """

    def __init__(
        self,
        client: LLMClient,
        content_filter: ContentFilter,
        rate_limiter: Optional[TokenBucketLimiter] = None,
        validator: Optional[ContentValidator] = None,
        retry: Optional[RetryOptions] = None,
    ):
        self.client = client
        self.content_filter = content_filter
        self.rate_limiter = rate_limiter or TokenBucketLimiter()
        self.validator = validator or ContentValidator(content_filter)
        self.retry = retry or RetryOptions()
        self.fallbacks = 0

    async def summarize(self, text: str, url_context: str) -> str:
        if not text or not text.strip():
            return ""

        filtered = self.content_filter.filter_text(text)
        context = ContentAnalyzer.analyze_content(url_context, filtered)
        prompt = PromptGenerator.generate_prompt(context, filtered)

        await self.rate_limiter.acquire()

        loop = asyncio.get_running_loop()
        try:
            response = await loop.run_in_executor(
                None,
                self.client.generate,
                prompt,
                self.retry.max_retries,
                self.retry.retry_delay,
                self.retry.backoff_factor,
            )
        except QuotaExceededError as e:
            logger.warning(f"LLM quota exceeded for {url_context}, using filtered content: {e}")
            self.fallbacks += 1
            return filtered
        except SummarizerError:
            raise
        except Exception as e:
            raise SummarizerError(f"Summarization failed for {url_context}: {e}") from e

        response = self.content_filter.filter_text(response or "")
        validation = self.validator.validate_ai_response(response)
        if not validation.is_valid:
            logger.warning(
                f"AI response for {url_context} rejected ({validation.reason}), "
                f"using filtered content"
            )
            self.fallbacks += 1
            return filtered

        return response


class PassthroughSummarizer(Summarizer):
    """Summarizer used when no LLM is configured: returns the filtered text."""

    def __init__(self, content_filter: ContentFilter):
        self.content_filter = content_filter

    async def summarize(self, text: str, url_context: str) -> str:
        return self.content_filter.filter_text(text or "")
