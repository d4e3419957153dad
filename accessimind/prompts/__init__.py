"""Prompt templates for page tasks.

Each module provides the prompt for one task type. Builders are pure:
they truncate the source content to a fixed budget and embed fixed
task instructions.

Examples:
    >>> from accessimind.prompts import PROMPT_BUILDERS, TaskType
    >>> prompt = PROMPT_BUILDERS[TaskType.SUMMARIZE](page_text, url, "brief")
"""

from collections.abc import Callable
from enum import Enum

from accessimind.prompts import action, agent_step, analyze, ask, summarize, wcag
from accessimind.prompts.analyze import AnalysisType
from accessimind.prompts.summarize import SummaryType
from accessimind.prompts.wcag import WCAGMode


class TaskType(str, Enum):
    """Page tasks delegated to the model."""

    SUMMARIZE = "summarize"
    ASK = "ask"
    ANALYZE = "analyze"
    WCAG = "wcag"
    AGENT_STEP = "agent_step"
    ACTION = "action"


PROMPT_BUILDERS: dict[TaskType, Callable[..., str]] = {
    TaskType.SUMMARIZE: summarize.get_prompt,
    TaskType.ASK: ask.get_prompt,
    TaskType.ANALYZE: analyze.get_prompt,
    TaskType.WCAG: wcag.get_prompt,
    TaskType.AGENT_STEP: agent_step.get_prompt,
    TaskType.ACTION: action.get_prompt,
}

__all__ = [
    "PROMPT_BUILDERS",
    "AnalysisType",
    "SummaryType",
    "TaskType",
    "WCAGMode",
    "action",
    "agent_step",
    "analyze",
    "ask",
    "summarize",
    "wcag",
]
