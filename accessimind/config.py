"""Application configuration with Pydantic Settings.

Settings are loaded from environment variables and .env files. The AI core
never reads this module directly; callers turn it into an immutable
``AISettings`` snapshot per call through a ``SettingsSource``.

Examples:
    >>> from accessimind.config import get_settings
    >>> get_settings().AI_MODEL
    'gemini-2.5-flash'

    >>> EnvSettingsSource().current().model
    'gemini-2.5-flash'

Tests:
    - tests/unit/test_config.py::TestSettings
    - tests/unit/test_config.py::TestSettingsSources
"""

from functools import lru_cache
from typing import Any, Protocol

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from accessimind.schemas.settings import DEFAULT_MODEL, AISettings


# Models offered in the settings window, in roster order
AVAILABLE_MODELS: list[dict[str, str]] = [
    {
        "name": "Gemini 2.5 Flash",
        "value": "gemini-2.5-flash",
        "description": "Recommended, fast and efficient",
    },
    {
        "name": "Gemini 2.0 Pro",
        "value": "gemini-2.0-pro",
        "description": "Advanced capabilities",
    },
    {
        "name": "Gemini 1.5 Flash",
        "value": "gemini-1.5-flash",
        "description": "Balanced performance",
    },
    {
        "name": "Gemini 1.5 Pro",
        "value": "gemini-1.5-pro",
        "description": "Most capable model",
    },
]

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def is_valid_api_key(api_key: str | None) -> bool:
    """Check that a key looks like a Google AI API key (``AIza...``).

    Args:
        api_key: Key to check.

    Returns:
        bool: True if the key has the expected prefix and length.
    """
    return bool(api_key) and api_key.startswith("AIza") and len(api_key) > 20


class Settings(BaseSettings):
    """Application settings.

    Attributes:
        GOOGLE_API_KEY: Google AI API key for Gemini models
        AI_MODEL: Preferred model, tried first before the fallback roster
        AI_TEMPERATURE: Sampling temperature
        AI_MAX_OUTPUT_TOKENS: Output token limit
        AI_TOP_P: Nucleus sampling threshold
        AI_TOP_K: Top-k sampling limit
        ATTEMPT_TIMEOUT: Per-attempt provider timeout in seconds (0 disables)
        LOG_LEVEL: Root logging level
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    GOOGLE_API_KEY: str = Field(
        default="",
        description="Google AI API key",
    )
    AI_MODEL: str = Field(
        default=DEFAULT_MODEL,
        description="Preferred Gemini model",
    )

    # Kept as raw values: out-of-range or non-numeric entries fall back to
    # defaults when the snapshot is built instead of failing startup.
    AI_TEMPERATURE: Any = Field(default=None, description="Sampling temperature (0-1)")
    AI_MAX_OUTPUT_TOKENS: Any = Field(default=None, description="Max output tokens (100-8192)")
    AI_TOP_P: Any = Field(default=None, description="Top-p (0-1)")
    AI_TOP_K: Any = Field(default=None, description="Top-k (1-100)")

    ATTEMPT_TIMEOUT: float = Field(
        default=60.0,
        ge=0,
        description="Per-attempt provider timeout in seconds (0 disables)",
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level",
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize the log level name."""
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of: {LOG_LEVELS}")
        return level

    @property
    def has_api_key(self) -> bool:
        """Check if a Google API key is configured."""
        return bool(self.GOOGLE_API_KEY)

    @property
    def attempt_timeout(self) -> float | None:
        """Per-attempt timeout for the generator, ``None`` when disabled."""
        return self.ATTEMPT_TIMEOUT or None

    def to_ai_settings(self) -> AISettings:
        """Build the immutable snapshot handed to the AI core.

        Returns:
            AISettings: Validated, frozen settings snapshot.
        """
        raw: dict[str, Any] = {
            "api_key": self.GOOGLE_API_KEY,
            "model": self.AI_MODEL,
            "temperature": self.AI_TEMPERATURE,
            "max_output_tokens": self.AI_MAX_OUTPUT_TOKENS,
            "top_p": self.AI_TOP_P,
            "top_k": self.AI_TOP_K,
        }
        return AISettings(**{k: v for k, v in raw.items() if v is not None})


class SettingsSource(Protocol):
    """Read-only provider of the current AI settings snapshot."""

    def current(self) -> AISettings:
        """Return the settings snapshot for one call."""
        ...


class EnvSettingsSource:
    """SettingsSource backed by the environment and ``.env``.

    Re-reads the environment on every call so edits made by the settings
    window are picked up without restarting.
    """

    def __init__(self, **overrides: Any) -> None:
        self._overrides = overrides

    def current(self) -> AISettings:
        return Settings(**self._overrides).to_ai_settings()


class StaticSettingsSource:
    """SettingsSource that always returns the same snapshot."""

    def __init__(self, settings: AISettings) -> None:
        self._settings = settings

    def current(self) -> AISettings:
        return self._settings


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: The application settings.
    """
    return Settings()
