"""Core components for AccessiMind AI."""

from accessimind.core.providers import (
    GenerationConfig,
    GoogleProvider,
    ProviderError,
    TextGenerationProvider,
)
from accessimind.core.resilience import (
    ErrorCategory,
    ErrorClassifier,
    ExhaustedError,
    GenerationConfigBuilder,
    GenerationResult,
    ModelFallbackPlanner,
    ResilientGenerator,
    resilient_generate,
)

__all__ = [
    "ErrorCategory",
    "ErrorClassifier",
    "ExhaustedError",
    "GenerationConfig",
    "GenerationConfigBuilder",
    "GenerationResult",
    "GoogleProvider",
    "ModelFallbackPlanner",
    "ProviderError",
    "ResilientGenerator",
    "TextGenerationProvider",
    "resilient_generate",
]
