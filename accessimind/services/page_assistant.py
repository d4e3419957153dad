"""Page assistant task service.

The entry point the browser shell calls for AI page tasks. Each method
validates its input, builds the prompt, runs a resilient generation with
the current settings snapshot and returns a ``TaskResult``. Expected
failures (missing key, empty page, busy service, bad agent output) come
back as failed results with a user-facing message instead of exceptions.

Examples:
    >>> assistant = PageAssistant(EnvSettingsSource())
    >>> result = await assistant.summarize(page_text, url, "key-points")
    >>> print(result.content if result.success else result.error)

Tests:
    - tests/unit/test_page_assistant.py
"""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from accessimind.agents.action_decoder import (
    AgentActionDecoder,
    DecodeFailure,
    InvalidActionError,
)
from accessimind.config import SettingsSource, is_valid_api_key
from accessimind.core.providers import GoogleProvider, TextGenerationProvider
from accessimind.core.resilience import (
    ErrorClassifier,
    ExhaustedError,
    GenerationResult,
    ResilientGenerator,
)
from accessimind.prompts import PROMPT_BUILDERS, TaskType
from accessimind.prompts.analyze import AnalysisType
from accessimind.prompts.summarize import SummaryType
from accessimind.prompts.wcag import WCAGMode
from accessimind.schemas.agent import AgentAction, PageLink
from accessimind.schemas.settings import AISettings

logger = logging.getLogger(__name__)

T = TypeVar("T")

HISTORY_SIZE = 20

# Page text handed to the agent prompt builder before its own excerpting
AGENT_TEXT_MAX_CHARS = 5000
AGENT_MAX_LINKS = 30

BUSY_MESSAGE = "the service is temporarily busy, please wait a moment and try again."

ProviderFactory = Callable[[str], TextGenerationProvider]


@dataclass
class TaskResult(Generic[T]):
    """Result of a page task.

    Attributes:
        success: Whether the task succeeded
        content: Generated text, or the AgentAction for agent steps
        error: User-facing error message (if failed)
        latency_ms: Execution time in milliseconds
        model_used: The model that produced the content
        metadata: Extra details (e.g. the raw response for rejected actions)
    """

    success: bool
    content: T | None = None
    error: str | None = None
    latency_ms: int = 0
    model_used: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def failed(self) -> bool:
        """Check if the task failed."""
        return not self.success


@dataclass(frozen=True)
class HistoryEntry:
    """One completed page task."""

    task: TaskType
    url: str
    timestamp: datetime
    input_length: int
    model_used: str | None = None
    detail: str | None = None


class PageAssistant:
    """Run AI page tasks against the current settings.

    Settings are read per call, so a new API key or model takes effect on
    the next task. The provider is kept until the API key changes; call
    ``aclose()`` when done.

    Attributes:
        settings_source: Source of the current AISettings snapshot
        provider_factory: Builds a provider from an API key
        generator_options: Extra ResilientGenerator keyword arguments
    """

    def __init__(
        self,
        settings_source: SettingsSource,
        provider_factory: ProviderFactory = GoogleProvider,
        generator_options: Mapping[str, Any] | None = None,
        decoder: AgentActionDecoder | None = None,
        history_size: int = HISTORY_SIZE,
    ) -> None:
        self.settings_source = settings_source
        self.provider_factory = provider_factory
        self.generator_options = dict(generator_options or {})
        self.decoder = decoder or AgentActionDecoder()
        self._classifier = ErrorClassifier()
        self._provider: TextGenerationProvider | None = None
        self._provider_key: str | None = None
        self._history: deque[HistoryEntry] = deque(maxlen=history_size)

    # =========================================================================
    # Plumbing
    # =========================================================================

    def _settings(self) -> AISettings | None:
        settings = self.settings_source.current()
        return settings if settings.api_key else None

    def _error_message(self, label: str, error: Exception) -> str:
        if isinstance(error, ExhaustedError) or self._classifier.is_transient(error):
            return f"{label} failed: {BUSY_MESSAGE}"
        return f"{label} failed: {error}"

    async def _provider_for(self, api_key: str) -> TextGenerationProvider:
        """Reuse the provider while the API key is unchanged."""
        if self._provider is None or self._provider_key != api_key:
            if self._provider is not None:
                logger.debug("API key changed, replacing provider")
                await self._provider.aclose()
            self._provider = self.provider_factory(api_key)
            self._provider_key = api_key
        return self._provider

    async def _generate(self, settings: AISettings, prompt: str) -> GenerationResult:
        provider = await self._provider_for(settings.api_key)
        generator = ResilientGenerator(provider, **self.generator_options)
        return await generator.generate(settings, prompt)

    async def aclose(self) -> None:
        """Release the cached provider."""
        if self._provider is not None:
            await self._provider.aclose()
            self._provider = None
            self._provider_key = None

    def _record(
        self,
        task: TaskType,
        url: str,
        input_length: int,
        model_used: str | None,
        detail: str | None = None,
    ) -> None:
        self._history.append(
            HistoryEntry(
                task=task,
                url=url,
                timestamp=datetime.now(timezone.utc),
                input_length=input_length,
                model_used=model_used,
                detail=detail,
            )
        )

    async def _run_text_task(
        self,
        task: TaskType,
        label: str,
        prompt_args: tuple[Any, ...],
        url: str,
        input_length: int,
        detail: str | None = None,
    ) -> TaskResult[str]:
        settings = self._settings()
        if settings is None:
            return TaskResult(success=False, error="API key required")

        start_time = time.perf_counter()
        try:
            prompt = PROMPT_BUILDERS[task](*prompt_args)
            result = await self._generate(settings, prompt)
        except Exception as e:
            latency = int((time.perf_counter() - start_time) * 1000)
            logger.error(f"{task.value}: failed - {e}")
            return TaskResult(
                success=False,
                error=self._error_message(label, e),
                latency_ms=latency,
            )

        latency = int((time.perf_counter() - start_time) * 1000)
        self._record(task, url, input_length, result.model_used, detail)
        logger.debug(f"{task.value}: completed with {result.model_used} in {latency}ms")
        return TaskResult(
            success=True,
            content=result.text,
            latency_ms=latency,
            model_used=result.model_used,
            metadata={"attempts": result.attempts},
        )

    # =========================================================================
    # Tasks
    # =========================================================================

    async def summarize(
        self,
        content: str,
        url: str = "",
        summary_type: str | SummaryType = SummaryType.BRIEF,
    ) -> TaskResult[str]:
        """Summarize the current page.

        Args:
            content: Page text
            url: Page URL
            summary_type: brief, detailed or key-points

        Returns:
            TaskResult with the summary text
        """
        if not content or not content.strip():
            return TaskResult(success=False, error="Page content could not be read")
        return await self._run_text_task(
            TaskType.SUMMARIZE,
            "Summary",
            (content, url, summary_type),
            url,
            len(content),
            detail=str(getattr(summary_type, "value", summary_type)),
        )

    async def ask(self, question: str, content: str, url: str = "") -> TaskResult[str]:
        """Answer a question about the current page.

        Args:
            question: The user's question
            content: Page text
            url: Page URL

        Returns:
            TaskResult with the answer text
        """
        if not question or not question.strip():
            return TaskResult(success=False, error="Question text required")
        if not content or not content.strip():
            return TaskResult(success=False, error="Page content could not be read")
        return await self._run_text_task(
            TaskType.ASK,
            "Answer",
            (question, content, url),
            url,
            len(content),
            detail=question,
        )

    async def analyze(
        self,
        content: str,
        url: str = "",
        analysis_type: str | AnalysisType = AnalysisType.GENERAL,
    ) -> TaskResult[str]:
        """Analyze the current page.

        Args:
            content: Page text
            url: Page URL
            analysis_type: general, sentiment, keypoints or structure

        Returns:
            TaskResult with the analysis text
        """
        if not content or not content.strip():
            return TaskResult(success=False, error="Page content could not be read")
        return await self._run_text_task(
            TaskType.ANALYZE,
            "Analysis",
            (content, url, analysis_type),
            url,
            len(content),
            detail=str(getattr(analysis_type, "value", analysis_type)),
        )

    async def execute_action(self, content: str, action: str, url: str = "") -> TaskResult[str]:
        """Perform a user-described operation on the current page.

        Args:
            content: Page text
            action: What to do with the content
            url: Page URL

        Returns:
            TaskResult with the operation's result text
        """
        if not action or not action.strip():
            return TaskResult(success=False, error="Action description required")
        if not content or not content.strip():
            return TaskResult(success=False, error="Page content could not be read")
        return await self._run_text_task(
            TaskType.ACTION,
            "Action",
            (content, action, url),
            url,
            len(content),
            detail=action,
        )

    async def analyze_wcag(
        self,
        url: str,
        html: str = "",
        text: str = "",
        snapshot: Any = None,
        mode: str | WCAGMode = WCAGMode.ELEMENTS,
    ) -> TaskResult[str]:
        """Run a WCAG audit of the current page.

        Args:
            url: Page URL
            html: Page HTML
            text: Visible page text
            snapshot: Accessibility snapshot
            mode: elements or improvements

        Returns:
            TaskResult with the audit text
        """
        if (not html and not text) or not url:
            return TaskResult(success=False, error="Page data for the analysis could not be read")
        return await self._run_text_task(
            TaskType.WCAG,
            "WCAG analysis",
            (url, html, text, snapshot or {}, mode),
            url,
            len(html or "") + len(text or ""),
            detail=str(getattr(mode, "value", mode)),
        )

    async def agent_step(
        self,
        goal: str,
        url: str = "",
        text: str = "",
        links: Iterable[PageLink | Mapping[str, Any] | str] | None = None,
    ) -> TaskResult[AgentAction]:
        """Plan the next browsing action toward a goal.

        Args:
            goal: What the agent should achieve
            url: Current page URL
            text: Visible page text
            links: Links on the page

        Returns:
            TaskResult with the validated AgentAction; rejected actions
            carry the raw response in ``metadata["raw"]``
        """
        if not goal or not goal.strip():
            return TaskResult(success=False, error="Goal required")

        text = (text or "")[:AGENT_TEXT_MAX_CHARS]
        links = list(links or [])[:AGENT_MAX_LINKS]

        step = await self._run_text_task(
            TaskType.AGENT_STEP,
            "Agent step",
            (goal, url, text, links),
            url,
            len(text),
            detail=goal,
        )
        if step.failed:
            return TaskResult(success=False, error=step.error, latency_ms=step.latency_ms)

        decoded = self.decoder.decode(step.content)
        if isinstance(decoded, InvalidActionError):
            return TaskResult(
                success=False,
                error="Invalid action",
                latency_ms=step.latency_ms,
                model_used=step.model_used,
                metadata={"raw": decoded.raw_text, "action": decoded.action},
            )
        if isinstance(decoded, DecodeFailure):
            return TaskResult(
                success=False,
                error="Agent response could not be parsed",
                latency_ms=step.latency_ms,
                model_used=step.model_used,
                metadata={"raw": decoded.raw_text},
            )
        return TaskResult(
            success=True,
            content=decoded,
            latency_ms=step.latency_ms,
            model_used=step.model_used,
            metadata={**step.metadata, "recovered": decoded.recovered},
        )

    # =========================================================================
    # History and status
    # =========================================================================

    def history(self) -> list[HistoryEntry]:
        """Most recent tasks, oldest first."""
        return list(self._history)

    def clear_history(self) -> None:
        """Forget all recorded tasks."""
        self._history.clear()

    def status(self) -> dict[str, Any]:
        """Report the configured model and whether a key is present."""
        settings = self.settings_source.current()
        return {
            "has_api_key": bool(settings.api_key),
            "key_looks_valid": is_valid_api_key(settings.api_key),
            "model": settings.model,
            "history_count": len(self._history),
        }
