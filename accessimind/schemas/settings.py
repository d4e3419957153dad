"""AI settings snapshot schema.

The settings window owns persistence; the AI core only ever sees a frozen
``AISettings`` snapshot. Numeric values outside their range, or values that
cannot be read as numbers, are replaced with the defaults rather than
rejected.

Examples:
    >>> from accessimind.schemas.settings import AISettings
    >>> AISettings(apiKey="AIza...", temperature="hot").temperature
    0.7

Tests:
    - tests/unit/test_schemas.py::TestAISettings
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

DEFAULT_MODEL = "gemini-2.5-flash"

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_OUTPUT_TOKENS = 2048
DEFAULT_TOP_P = 0.8
DEFAULT_TOP_K = 40

# field -> (min, max, default)
NUMERIC_RANGES: dict[str, tuple[float, float, float]] = {
    "temperature": (0.0, 1.0, DEFAULT_TEMPERATURE),
    "max_output_tokens": (100, 8192, DEFAULT_MAX_OUTPUT_TOKENS),
    "top_p": (0.0, 1.0, DEFAULT_TOP_P),
    "top_k": (1, 100, DEFAULT_TOP_K),
}


def coerce_float(value: Any) -> float | None:
    """Read a value as a finite float, or None if it is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def coerce_int(value: Any) -> int | None:
    """Read a value as an int, accepting float-like strings such as ``"512.0"``."""
    number = coerce_float(value)
    return int(number) if number is not None else None


class AISettings(BaseModel):
    """Immutable AI settings snapshot for one call.

    Attributes:
        api_key: Google AI API key
        model: Preferred model identifier
        temperature: Sampling temperature (0-1)
        max_output_tokens: Output token limit (100-8192)
        top_p: Nucleus sampling threshold (0-1)
        top_k: Top-k sampling limit (1-100)
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
    )

    api_key: str = Field(default="", alias="apiKey", description="Google AI API key")
    model: str = Field(default=DEFAULT_MODEL, description="Preferred model")
    temperature: float = Field(default=DEFAULT_TEMPERATURE)
    max_output_tokens: int = Field(default=DEFAULT_MAX_OUTPUT_TOKENS, alias="maxOutputTokens")
    top_p: float = Field(default=DEFAULT_TOP_P, alias="topP")
    top_k: int = Field(default=DEFAULT_TOP_K, alias="topK")

    @field_validator("api_key", mode="before")
    @classmethod
    def strip_api_key(cls, v: Any) -> str:
        return str(v or "").strip()

    @field_validator("model", mode="before")
    @classmethod
    def default_model(cls, v: Any) -> str:
        return str(v or "").strip() or DEFAULT_MODEL

    @field_validator("temperature", "top_p", mode="before")
    @classmethod
    def clamp_float(cls, v: Any, info: ValidationInfo) -> float:
        low, high, default = NUMERIC_RANGES[info.field_name]
        number = coerce_float(v)
        if number is None or not low <= number <= high:
            return default
        return number

    @field_validator("max_output_tokens", "top_k", mode="before")
    @classmethod
    def clamp_int(cls, v: Any, info: ValidationInfo) -> int:
        low, high, default = NUMERIC_RANGES[info.field_name]
        number = coerce_int(v)
        if number is None or not low <= number <= high:
            return int(default)
        return number
