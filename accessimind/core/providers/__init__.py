"""Text-generation provider abstraction and implementations.

Re-exports base classes and provider implementations for convenient imports.
"""

from accessimind.core.providers.base import (
    GenerationConfig,
    ProviderError,
    TextGenerationProvider,
)
from accessimind.core.providers.google import GoogleProvider

__all__ = [
    # Base classes
    "GenerationConfig",
    "ProviderError",
    "TextGenerationProvider",
    # Implementations
    "GoogleProvider",
]
