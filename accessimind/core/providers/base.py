"""Base text-generation provider abstraction.

This module defines the abstract provider the resilience layer calls,
the per-attempt generation config it passes, and the provider error type.
Concrete transports (Google Gen AI) inherit from TextGenerationProvider.

Examples:
    >>> from accessimind.core.providers import GenerationConfig, TextGenerationProvider
    >>> class EchoProvider(TextGenerationProvider):
    ...     async def generate(self, model, prompt, config):
    ...         return prompt

Tests:
    - tests/unit/test_providers.py::TestGenerationConfig
    - tests/unit/test_providers.py::TestProviderError
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "GenerationConfig",
    "ProviderError",
    "TextGenerationProvider",
]


class GenerationConfig(BaseModel):
    """Sampling parameters for a single provider call.

    Built fresh for every attempt; never shared or mutated.

    Attributes:
        temperature: Sampling temperature
        max_output_tokens: Maximum output tokens
        top_p: Nucleus sampling threshold
        top_k: Top-k sampling limit
    """

    model_config = ConfigDict(frozen=True)

    temperature: float = Field(default=0.7, description="Sampling temperature")
    max_output_tokens: int = Field(default=2048, description="Maximum output tokens")
    top_p: float = Field(default=0.8, description="Nucleus sampling threshold")
    top_k: int = Field(default=40, description="Top-k sampling limit")


class TextGenerationProvider(ABC):
    """Abstract base class for text-generation transports.

    Attributes:
        api_key: API key for authentication (may be empty for test doubles)
    """

    def __init__(self, api_key: str = "") -> None:
        """Initialize provider with API key.

        Args:
            api_key: API key for authentication.
        """
        self.api_key = api_key

    @abstractmethod
    async def generate(
        self,
        model: str,
        prompt: str,
        config: GenerationConfig,
    ) -> str:
        """Generate text for a prompt with one model.

        Args:
            model: Model ID to use.
            prompt: The input prompt.
            config: Sampling parameters for this attempt.

        Returns:
            str: The generated text (may be empty).

        Raises:
            ProviderError: If the call fails.
        """
        pass

    async def aclose(self) -> None:
        """Release transport resources. No-op unless overridden."""
        return None


class ProviderError(Exception):
    """Failure reported by a text-generation provider.

    Attributes:
        message: Error message
        status_code: HTTP status code (if known)
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize provider error.

        Args:
            message: Error message.
            status_code: HTTP status code (optional).
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        """String representation of the error."""
        if self.status_code:
            return f"({self.status_code}) {self.message}"
        return self.message
