"""Resilient text generation across Gemini models.

Turns a rate-limited, multi-model text service into a call with bounded,
predictable failure behavior: retry the same model on transient errors,
skip to the next model when the current one is unavailable, and stop
immediately on errors no retry can fix.

Features:
    - Error classification into transient / model-unavailable / fatal
    - Ordered, de-duplicated model candidate list with a fixed roster
    - Tightened output budget on retries
    - Exponential backoff with jitter between retries
    - Per-attempt timeout

Each attempt returns a tagged ``AttemptResult``; the coordinator loop in
``ResilientGenerator.generate`` decides what to do next from the tag.

Examples:
    >>> from accessimind.core.resilience import ResilientGenerator
    >>> generator = ResilientGenerator(GoogleProvider(api_key="AIza..."))
    >>> result = await generator.generate(settings, "Summarize: ...")
    >>> result.text, result.model_used

Tests:
    - tests/unit/test_resilience.py
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, Field

from accessimind.core.providers.base import (
    GenerationConfig,
    ProviderError,
    TextGenerationProvider,
)
from accessimind.schemas.settings import (
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_TEMPERATURE,
    DEFAULT_TOP_K,
    DEFAULT_TOP_P,
    AISettings,
    coerce_float,
    coerce_int,
)

logger = logging.getLogger(__name__)

# Fixed fallback roster, tried in order after the preferred model
FALLBACK_MODELS: tuple[str, ...] = (
    "gemini-2.5-flash",
    "gemini-2.0-pro",
    "gemini-1.5-flash",
    "gemini-1.5-pro",
)

# Retry settings
MAX_ATTEMPTS_PER_MODEL = 3
BASE_DELAY = 0.8  # seconds
MAX_JITTER = 0.2  # seconds
DEFAULT_ATTEMPT_TIMEOUT = 60.0  # seconds

# Output budget on retries
TIGHTENED_MIN_TOKENS = 256
TIGHTENED_MAX_TOKENS = 1024

EXHAUSTED_MESSAGE = (
    "The AI service is busy or temporarily unavailable. Automatic retries "
    "failed; please wait a moment and try again."
)


class ErrorCategory(str, Enum):
    """What the generator should do after a failed attempt.

    - TRANSIENT: retry the same model after a backoff
    - MODEL_UNAVAILABLE: move to the next candidate model
    - FATAL: give up and surface the error
    """

    TRANSIENT = "transient"
    MODEL_UNAVAILABLE = "model_unavailable"
    FATAL = "fatal"


TRANSIENT_STATUS = 503
TRANSIENT_SIGNALS = (
    "503",
    "overloaded",
    "service unavailable",
    "temporarily",
    "timeout",
    "rate limit",
)

MODEL_UNAVAILABLE_STATUS = 403
MODEL_UNAVAILABLE_SIGNALS = (
    "permission",
    "unregistered",
    "not found",
    "doesn't exist",
    "invalid model",
)


def _error_status(error: BaseException) -> int | None:
    """Read an HTTP-like status from common error attributes."""
    for attr in ("status_code", "status", "code"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def _error_message(error: BaseException) -> str:
    message = getattr(error, "message", None)
    if not isinstance(message, str) or not message:
        message = str(error)
    return message.lower()


class ErrorClassifier:
    """Categorize a provider failure.

    Transient signals are checked first, so an error that is both
    overloaded and unknown-model is retried rather than skipped.

    Examples:
        >>> ErrorClassifier().classify(ProviderError("Model is overloaded"))
        <ErrorCategory.TRANSIENT: 'transient'>
        >>> ErrorClassifier().classify(ProviderError("denied", status_code=403))
        <ErrorCategory.MODEL_UNAVAILABLE: 'model_unavailable'>
    """

    def classify(self, error: BaseException) -> ErrorCategory:
        """Classify an error.

        Args:
            error: The exception raised by the provider.

        Returns:
            ErrorCategory for the error.
        """
        status = _error_status(error)
        message = _error_message(error)

        if status == TRANSIENT_STATUS or any(s in message for s in TRANSIENT_SIGNALS):
            return ErrorCategory.TRANSIENT
        if status == MODEL_UNAVAILABLE_STATUS or any(
            s in message for s in MODEL_UNAVAILABLE_SIGNALS
        ):
            return ErrorCategory.MODEL_UNAVAILABLE
        return ErrorCategory.FATAL

    def is_transient(self, error: BaseException) -> bool:
        """Check whether an error would be retried on the same model."""
        return self.classify(error) == ErrorCategory.TRANSIENT


class ModelFallbackPlanner:
    """Build the ordered candidate model list for one call.

    The preferred model goes first, followed by the roster minus anything
    already present. The list is never empty and never has duplicates.

    Examples:
        >>> ModelFallbackPlanner().plan("gemini-1.5-pro")
        ('gemini-1.5-pro', 'gemini-2.5-flash', 'gemini-2.0-pro', 'gemini-1.5-flash')
    """

    def __init__(self, roster: Sequence[str] = FALLBACK_MODELS) -> None:
        """Initialize planner.

        Args:
            roster: Fallback models in priority order.

        Raises:
            ValueError: If the roster is empty.
        """
        if not roster:
            raise ValueError("Fallback roster must contain at least one model")
        self.roster = tuple(roster)

    def plan(self, preferred: str | None = None) -> tuple[str, ...]:
        """Build the candidate list.

        Args:
            preferred: Model to try first (blank means none).

        Returns:
            Tuple of model identifiers in call order.
        """
        candidates: list[str] = []
        preferred = (preferred or "").strip()
        if preferred:
            candidates.append(preferred)
        for model in self.roster:
            if model not in candidates:
                candidates.append(model)
        return tuple(candidates)


def _setting(settings: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in settings:
            return settings[key]
    return None


class GenerationConfigBuilder:
    """Derive provider sampling parameters from settings.

    Values that are absent or not numeric fall back to the defaults
    instead of raising.

    Examples:
        >>> GenerationConfigBuilder().build({"temperature": "bad"}).temperature
        0.7
        >>> GenerationConfigBuilder().build({"maxOutputTokens": 5000}, tighten=True).max_output_tokens
        1024
    """

    def build(
        self,
        settings: AISettings | Mapping[str, Any],
        tighten: bool = False,
    ) -> GenerationConfig:
        """Build the config for one attempt.

        Args:
            settings: Settings snapshot or a raw mapping (snake_case or camelCase).
            tighten: Clamp the output budget for a retry attempt.

        Returns:
            GenerationConfig for the attempt.
        """
        if isinstance(settings, BaseModel):
            settings = settings.model_dump()

        temperature = coerce_float(_setting(settings, "temperature"))
        max_tokens = coerce_int(_setting(settings, "max_output_tokens", "maxOutputTokens"))
        top_p = coerce_float(_setting(settings, "top_p", "topP"))
        top_k = coerce_int(_setting(settings, "top_k", "topK"))

        max_tokens = DEFAULT_MAX_OUTPUT_TOKENS if max_tokens is None else max_tokens
        if tighten:
            max_tokens = max(TIGHTENED_MIN_TOKENS, min(max_tokens, TIGHTENED_MAX_TOKENS))

        return GenerationConfig(
            temperature=DEFAULT_TEMPERATURE if temperature is None else temperature,
            max_output_tokens=max_tokens,
            top_p=DEFAULT_TOP_P if top_p is None else top_p,
            top_k=DEFAULT_TOP_K if top_k is None else top_k,
        )


# =============================================================================
# Attempt outcomes
# =============================================================================


@dataclass(frozen=True)
class Success:
    """The provider returned text."""

    text: str
    model_used: str


@dataclass(frozen=True)
class Retryable:
    """Transient failure; the same model may be retried."""

    error: Exception


@dataclass(frozen=True)
class SkipModel:
    """The model is unavailable; move to the next candidate."""

    error: Exception


@dataclass(frozen=True)
class Fatal:
    """No retry or model switch can fix this failure."""

    error: Exception


AttemptResult = Union[Success, Retryable, SkipModel, Fatal]


class ExhaustedError(Exception):
    """Every candidate model and every attempt failed.

    Attributes:
        message: User-facing message suggesting a later retry
        attempts: Number of provider calls made
        models: Candidate models that were tried
        last_error: The last provider error seen
    """

    def __init__(
        self,
        message: str = EXHAUSTED_MESSAGE,
        attempts: int = 0,
        models: Sequence[str] = (),
        last_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.attempts = attempts
        self.models = tuple(models)
        self.last_error = last_error


class GenerationResult(BaseModel):
    """Text returned by a successful resilient call.

    Attributes:
        text: Generated text
        model_used: Model that produced the text
        attempts: Provider calls made, including the successful one
        latency_ms: Total latency including backoff
    """

    text: str = Field(description="Generated text")
    model_used: str = Field(description="Model that produced the text")
    attempts: int = Field(default=1, ge=1, description="Provider calls made")
    latency_ms: int = Field(default=0, ge=0, description="Total latency in milliseconds")


class ResilientGenerator:
    """Call a text provider across candidate models with bounded retries.

    Holds no per-call state, so one instance can serve concurrent calls.
    Within a call, attempts are strictly sequential and the first success
    wins. Worst case is ``len(models) * max_attempts_per_model`` calls.

    Attributes:
        provider: Text-generation transport
        planner: Candidate model planner
        config_builder: Per-attempt config builder
        classifier: Error classifier

    Examples:
        >>> generator = ResilientGenerator(provider, sleep=fake_sleep)
        >>> result = await generator.generate(settings, prompt)
    """

    def __init__(
        self,
        provider: TextGenerationProvider,
        *,
        planner: ModelFallbackPlanner | None = None,
        config_builder: GenerationConfigBuilder | None = None,
        classifier: ErrorClassifier | None = None,
        max_attempts_per_model: int = MAX_ATTEMPTS_PER_MODEL,
        base_delay: float = BASE_DELAY,
        max_jitter: float = MAX_JITTER,
        attempt_timeout: float | None = DEFAULT_ATTEMPT_TIMEOUT,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        jitter: Callable[[float, float], float] = random.uniform,
    ) -> None:
        """Initialize generator.

        Args:
            provider: Text-generation transport.
            planner: Candidate model planner (default roster if omitted).
            config_builder: Per-attempt config builder.
            classifier: Error classifier.
            max_attempts_per_model: Attempts per model before falling back.
            base_delay: First backoff delay in seconds.
            max_jitter: Upper bound of the random delay added to each backoff.
            attempt_timeout: Seconds before a single call counts as a timeout
                (None disables).
            sleep: Awaitable sleep, replaced in tests.
            jitter: Uniform random source, replaced in tests.
        """
        if max_attempts_per_model < 1:
            raise ValueError("max_attempts_per_model must be at least 1")
        self.provider = provider
        self.planner = planner or ModelFallbackPlanner()
        self.config_builder = config_builder or GenerationConfigBuilder()
        self.classifier = classifier or ErrorClassifier()
        self.max_attempts_per_model = max_attempts_per_model
        self.base_delay = base_delay
        self.max_jitter = max_jitter
        self.attempt_timeout = attempt_timeout
        self._sleep = sleep
        self._jitter = jitter

    def backoff_delay(self, attempt: int) -> float:
        """Delay before retrying after a transient failure on ``attempt``."""
        return self.base_delay * 2 ** (attempt - 1) + self._jitter(0, self.max_jitter)

    async def _call_provider(self, model: str, prompt: str, config: GenerationConfig) -> str:
        call = self.provider.generate(model, prompt, config)
        if self.attempt_timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, timeout=self.attempt_timeout)
        except asyncio.TimeoutError as e:
            raise ProviderError(
                f"Request timeout after {self.attempt_timeout}s on {model}"
            ) from e

    async def _attempt(
        self,
        settings: AISettings,
        prompt: str,
        model: str,
        attempt: int,
    ) -> AttemptResult:
        """Run one (model, attempt) pair and tag the outcome."""
        config = self.config_builder.build(settings, tighten=attempt > 1)
        try:
            text = await self._call_provider(model, prompt, config)
        except Exception as e:
            category = self.classifier.classify(e)
            if category == ErrorCategory.TRANSIENT:
                return Retryable(e)
            if category == ErrorCategory.MODEL_UNAVAILABLE:
                return SkipModel(e)
            return Fatal(e)
        return Success(text=text or "", model_used=model)

    async def generate(
        self,
        settings: AISettings | Mapping[str, Any],
        prompt: str,
    ) -> GenerationResult:
        """Generate text, retrying and falling back across models.

        Args:
            settings: Settings snapshot for this call.
            prompt: The prompt to send.

        Returns:
            GenerationResult from the first successful attempt.

        Raises:
            ExhaustedError: If every model and attempt failed.
            Exception: The original provider error when it is fatal.
        """
        if not isinstance(settings, AISettings):
            settings = AISettings.model_validate(settings)

        start_time = time.perf_counter()
        models = self.planner.plan(settings.model)
        calls = 0
        last_error: Exception | None = None

        for model in models:
            for attempt in range(1, self.max_attempts_per_model + 1):
                calls += 1
                result = await self._attempt(settings, prompt, model, attempt)

                if isinstance(result, Success):
                    latency_ms = int((time.perf_counter() - start_time) * 1000)
                    logger.info(f"Generated with {model} (attempt {attempt}, {calls} calls total)")
                    return GenerationResult(
                        text=result.text,
                        model_used=result.model_used,
                        attempts=calls,
                        latency_ms=latency_ms,
                    )

                if isinstance(result, Fatal):
                    logger.error(f"Fatal error on {model}: {result.error}")
                    raise result.error

                last_error = result.error

                if isinstance(result, SkipModel):
                    logger.warning(f"Skipping {model}: {result.error}")
                    break

                if attempt < self.max_attempts_per_model:
                    delay = self.backoff_delay(attempt)
                    logger.warning(
                        f"Transient error on {model} "
                        f"(attempt {attempt}/{self.max_attempts_per_model}), "
                        f"retrying in {delay:.2f}s: {result.error}"
                    )
                    await self._sleep(delay)
                else:
                    logger.warning(f"Retries exhausted on {model}: {result.error}")

        logger.error(f"All {len(models)} models failed after {calls} calls")
        raise ExhaustedError(attempts=calls, models=models, last_error=last_error)


async def resilient_generate(
    provider: TextGenerationProvider,
    settings: AISettings | Mapping[str, Any],
    prompt: str,
    **kwargs: Any,
) -> GenerationResult:
    """Generate text with a throwaway ``ResilientGenerator``.

    Args:
        provider: Text-generation transport.
        settings: Settings snapshot for this call.
        prompt: The prompt to send.
        **kwargs: Extra ``ResilientGenerator`` options.

    Returns:
        GenerationResult from the first successful attempt.
    """
    return await ResilientGenerator(provider, **kwargs).generate(settings, prompt)
