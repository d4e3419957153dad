"""Google Gen AI SDK provider implementation.

Integrates Gemini text models via the google-genai async client.

Examples:
    >>> from accessimind.core.providers.google import GoogleProvider
    >>> provider = GoogleProvider(api_key="your-api-key")
    >>> text = await provider.generate(
    ...     "gemini-2.5-flash", "Summarize this page", GenerationConfig()
    ... )

Tests:
    - tests/unit/test_providers.py::TestGoogleProvider
"""

import logging
from typing import Any

from accessimind.core.providers.base import (
    GenerationConfig,
    ProviderError,
    TextGenerationProvider,
)

logger = logging.getLogger(__name__)


def _get_genai_client(api_key: str) -> Any:
    """Create a Google Gen AI client.

    Args:
        api_key: Google API key.

    Returns:
        Configured Gen AI client.

    Raises:
        ImportError: If google-genai is not installed.
    """
    try:
        from google import genai
    except ImportError as e:
        raise ImportError(
            "google-genai is required for Google provider. "
            "Install with: pip install google-genai"
        ) from e
    return genai.Client(api_key=api_key)


def _status_code(error: Exception) -> int | None:
    """Extract an integer HTTP status from an SDK error, if present."""
    for attr in ("code", "status_code"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


class GoogleProvider(TextGenerationProvider):
    """Google Gen AI SDK provider for Gemini text models.

    One instance per API key. The SDK client is created lazily on first
    use so constructing a provider never touches the network.

    Attributes:
        api_key: Google AI API key
        client: Gen AI client instance

    Examples:
        >>> provider = GoogleProvider(api_key="AIza...")
        >>> await provider.generate("gemini-2.5-flash", "Hello", GenerationConfig())
    """

    def __init__(self, api_key: str, client: Any = None) -> None:
        """Initialize Google provider.

        Args:
            api_key: Google AI API key.
            client: Pre-built Gen AI client (tests inject a mock here).
        """
        super().__init__(api_key)
        self._client: Any = client

    @property
    def client(self) -> Any:
        """Get Gen AI client (lazy initialization)."""
        if self._client is None:
            self._client = _get_genai_client(self.api_key)
        return self._client

    async def aclose(self) -> None:
        """Close the async HTTP session of the Gen AI client, if one was created."""
        if self._client is not None:
            await self._client.aio.aclose()
            self._client = None

    def _handle_error(self, error: Exception) -> None:
        """Convert Google API errors to provider errors.

        The message is kept verbatim so the classifier can match on
        phrases such as "overloaded" or "not found".

        Raises:
            ProviderError: Always.
        """
        raise ProviderError(
            message=str(error),
            status_code=_status_code(error),
        ) from error

    async def generate(
        self,
        model: str,
        prompt: str,
        config: GenerationConfig,
    ) -> str:
        """Generate text with one Gemini model.

        Args:
            model: Model ID (e.g., "gemini-2.5-flash").
            prompt: The input prompt.
            config: Sampling parameters for this attempt.

        Returns:
            str: Generated text, empty if the model returned none.

        Raises:
            ProviderError: If the API call fails.
        """
        try:
            from google.genai import types

            response = await self.client.aio.models.generate_content(
                model=model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    temperature=config.temperature,
                    max_output_tokens=config.max_output_tokens,
                    top_p=config.top_p,
                    top_k=config.top_k,
                ),
            )
        except ProviderError:
            raise
        except Exception as e:
            logger.debug(f"Google API error on {model}: {e}")
            self._handle_error(e)
            raise  # Should not reach here due to _handle_error raising

        return response.text or ""
