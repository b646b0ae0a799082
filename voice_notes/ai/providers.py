"""
Completion providers for summaries and task extraction.

Provides a unified interface for hosted LLM services (Gemini, OpenAI, Claude)
that turn a single prompt into a single text completion, with one error
taxonomy shared by every backend.
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Any
import asyncio
import logging

import httpx

from ..config import Settings, GEMINI_BASE_URL, PROVIDER_DEFAULTS

# Import statements that may fail if dependencies aren't installed
try:
    import openai
    OPENAI_AVAILABLE = True
except ImportError:
    OPENAI_AVAILABLE = False

try:
    import anthropic
    ANTHROPIC_AVAILABLE = True
except ImportError:
    ANTHROPIC_AVAILABLE = False

logger = logging.getLogger(__name__)


class CompletionError(Exception):
    """Base exception for completion failures."""
    pass


class RequestFailedError(CompletionError):
    """Raised on a transport failure or a non-2xx HTTP status."""

    def __init__(self, status_code: Optional[int], message: str = ""):
        self.status_code = status_code
        if status_code is None:
            text = f"Request failed: {message}" if message else "Request failed"
        else:
            text = f"Request failed with status {status_code}"
            if message:
                text += f": {message}"
        super().__init__(text)


class EmptyCompletionError(CompletionError):
    """Raised when a well-formed response carries no usable completion."""
    pass


class ProviderUnavailableError(CompletionError):
    """Raised when a provider is missing its credential or SDK."""
    pass


class CompletionProvider(ABC):
    """Abstract base class for completion providers."""

    def __init__(self, name: str, model: str):
        self.name = name
        self.model = model
        self.usage_stats = {
            'requests': 0,
            'successful': 0,
            'failed': 0,
            'total_tokens': 0
        }

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """Send one prompt and return the raw text completion."""
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        """Get the name of this provider."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this provider is available (API keys, packages, etc.)."""
        pass

    def update_usage_stats(self, success: bool, tokens: int = 0):
        """Update usage statistics."""
        self.usage_stats['requests'] += 1
        if success:
            self.usage_stats['successful'] += 1
        else:
            self.usage_stats['failed'] += 1
        self.usage_stats['total_tokens'] += tokens

    def get_usage_stats(self) -> Dict[str, Any]:
        """Get current usage statistics."""
        return self.usage_stats.copy()

    def _check_request(self, prompt: str) -> None:
        if not prompt or not prompt.strip():
            raise ValueError("Prompt cannot be empty")
        if not self.is_available():
            raise ProviderUnavailableError(
                f"{self.get_provider_name()} not available (missing API key or package)"
            )


class GeminiProvider(CompletionProvider):
    """
    Google Gemini provider using the generateContent REST endpoint.

    The prompt is sent as the only content part; the first candidate's
    first text part is returned unmodified.

    Example:
        >>> provider = GeminiProvider(api_key="...")
        >>> text = await provider.complete("Summarize: ...")
    """

    def __init__(
        self,
        model: str = PROVIDER_DEFAULTS["gemini"][1],
        api_key: Optional[str] = None,
        base_url: str = GEMINI_BASE_URL,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize the Gemini provider.

        Args:
            model: Gemini model identifier
            api_key: API key sent as the `key` query parameter
            base_url: Service root, overridable for proxies and tests
            timeout: Request timeout in seconds (None waits indefinitely)
            transport: Optional httpx transport, used by tests
        """
        super().__init__("gemini", model)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def get_provider_name(self) -> str:
        """Get the name of this provider."""
        return "Gemini"

    def is_available(self) -> bool:
        """Check if Gemini is available."""
        return bool(self.api_key)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/v1beta/models/{self.model}:generateContent"

    async def complete(self, prompt: str) -> str:
        """
        Generate a completion for the prompt.

        Args:
            prompt: Instruction text, sent as-is

        Returns:
            Text of the first part of the first candidate.

        Raises:
            RequestFailedError: On transport failure or non-2xx status
            EmptyCompletionError: If the response has no candidates
        """
        self._check_request(prompt)

        body = {"contents": [{"parts": [{"text": prompt}]}]}
        logger.info(f"Requesting completion from {self.model} ({len(prompt)} chars)")

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                response = await client.post(
                    self.endpoint,
                    params={"key": self.api_key},
                    headers={"Content-Type": "application/json"},
                    json=body,
                )
        except httpx.RequestError as e:
            self.update_usage_stats(success=False)
            raise RequestFailedError(None, type(e).__name__) from e

        if not response.is_success:
            self.update_usage_stats(success=False)
            raise RequestFailedError(response.status_code, response.reason_phrase)

        try:
            result = response.json()
        except ValueError as e:
            self.update_usage_stats(success=False)
            raise CompletionError("Response body is not valid JSON") from e

        if not isinstance(result, dict):
            self.update_usage_stats(success=False)
            raise CompletionError("Response body is not a JSON object")

        candidates = result.get("candidates") or []
        if not candidates:
            self.update_usage_stats(success=False)
            raise EmptyCompletionError("No response from Gemini API")

        try:
            text = candidates[0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            self.update_usage_stats(success=False)
            reason = candidates[0].get("finishReason", "unknown") if isinstance(candidates[0], dict) else "unknown"
            raise EmptyCompletionError(f"First candidate has no text (finish reason: {reason})") from e

        if not isinstance(text, str):
            self.update_usage_stats(success=False)
            raise EmptyCompletionError("First candidate has no text")

        usage = result.get("usageMetadata")
        tokens = usage.get("totalTokenCount", 0) if isinstance(usage, dict) else 0
        self.update_usage_stats(success=True, tokens=tokens)
        return text


class OpenAIProvider(CompletionProvider):
    """OpenAI chat completions provider."""

    def __init__(
        self,
        model: str = PROVIDER_DEFAULTS["openai"][1],
        api_key: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        super().__init__("openai", model)
        self.api_key = api_key
        self.timeout = timeout
        self._client: Optional["openai.OpenAI"] = None

    def get_provider_name(self) -> str:
        """Get the name of this provider."""
        return "OpenAI"

    def is_available(self) -> bool:
        """Check if OpenAI is available."""
        return OPENAI_AVAILABLE and bool(self.api_key)

    async def complete(self, prompt: str) -> str:
        """Generate a completion using OpenAI."""
        self._check_request(prompt)
        logger.info(f"Requesting completion from {self.model} ({len(prompt)} chars)")

        # Run the synchronous OpenAI call in the default executor
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._sync_complete, prompt)

    def _sync_complete(self, prompt: str) -> str:
        """Synchronous completion, run in an executor."""
        if not self._client:
            self._client = openai.OpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)

        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
            )
        except openai.APIStatusError as e:
            self.update_usage_stats(success=False)
            raise RequestFailedError(e.status_code, e.message) from e
        except openai.APIConnectionError as e:
            self.update_usage_stats(success=False)
            raise RequestFailedError(None, str(e)) from e
        except openai.APIError as e:
            self.update_usage_stats(success=False)
            raise RequestFailedError(None, str(e)) from e

        if not response.choices or not response.choices[0].message.content:
            self.update_usage_stats(success=False)
            raise EmptyCompletionError("No response from OpenAI API")

        tokens = response.usage.total_tokens if response.usage else 0
        self.update_usage_stats(success=True, tokens=tokens)
        return response.choices[0].message.content


class ClaudeProvider(CompletionProvider):
    """Anthropic Claude messages provider."""

    def __init__(
        self,
        model: str = PROVIDER_DEFAULTS["claude"][1],
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        max_tokens: int = 1024
    ):
        super().__init__("claude", model)
        self.api_key = api_key
        self.timeout = timeout
        self.max_tokens = max_tokens
        self._client: Optional["anthropic.Anthropic"] = None

    def get_provider_name(self) -> str:
        """Get the name of this provider."""
        return "Claude"

    def is_available(self) -> bool:
        """Check if Claude is available."""
        return ANTHROPIC_AVAILABLE and bool(self.api_key)

    async def complete(self, prompt: str) -> str:
        """Generate a completion using Claude."""
        self._check_request(prompt)
        logger.info(f"Requesting completion from {self.model} ({len(prompt)} chars)")

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._sync_complete, prompt)

    def _sync_complete(self, prompt: str) -> str:
        """Synchronous completion, run in an executor."""
        if not self._client:
            self._client = anthropic.Anthropic(api_key=self.api_key, timeout=self.timeout, max_retries=0)

        try:
            response = self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIStatusError as e:
            self.update_usage_stats(success=False)
            raise RequestFailedError(e.status_code, e.message) from e
        except anthropic.APIConnectionError as e:
            self.update_usage_stats(success=False)
            raise RequestFailedError(None, str(e)) from e
        except anthropic.APIError as e:
            self.update_usage_stats(success=False)
            raise RequestFailedError(None, str(e)) from e

        texts = [block.text for block in response.content if getattr(block, "type", None) == "text"]
        if not texts:
            self.update_usage_stats(success=False)
            raise EmptyCompletionError("No response from Claude API")

        tokens = response.usage.input_tokens + response.usage.output_tokens if response.usage else 0
        self.update_usage_stats(success=True, tokens=tokens)
        return texts[0]


def create_provider(settings: Settings) -> CompletionProvider:
    """
    Create the completion provider named in the settings.

    Args:
        settings: Resolved runtime settings

    Returns:
        Configured provider instance.

    Raises:
        ValueError: If the provider name is unknown
    """
    model = settings.resolved_model()

    if settings.provider == "gemini":
        return GeminiProvider(model=model, api_key=settings.api_key, base_url=settings.base_url)
    if settings.provider == "openai":
        return OpenAIProvider(model=model, api_key=settings.api_key)
    if settings.provider == "claude":
        return ClaudeProvider(model=model, api_key=settings.api_key)

    raise ValueError(f"Unknown provider: {settings.provider}")
