"""Agent step schemas.

An agent step is one proposed browsing action produced by interpreting
the page context against a stated goal. Only actions in the allow-list
ever reach the executor.

Examples:
    >>> from accessimind.schemas.agent import AgentAction, AgentActionType
    >>> AgentAction(action=AgentActionType.WAIT, params={"ms": 500}).action.value
    'WAIT'

Tests:
    - tests/unit/test_schemas.py::TestAgentAction
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AgentActionType(str, Enum):
    """Closed set of actions the browsing agent may execute."""

    CLICK_LINK_BY_TEXT = "CLICK_LINK_BY_TEXT"
    SCROLL_DOWN = "SCROLL_DOWN"
    SCROLL_UP = "SCROLL_UP"
    TYPE_IN_INPUT_AND_SUBMIT = "TYPE_IN_INPUT_AND_SUBMIT"
    WAIT = "WAIT"
    DONE = "DONE"


ALLOWED_ACTIONS: frozenset[str] = frozenset(a.value for a in AgentActionType)


class AgentAction(BaseModel):
    """A validated agent step.

    Attributes:
        action: Allow-listed action
        params: Action parameters (e.g. ``{"text": ...}`` for CLICK_LINK_BY_TEXT)
        explanation: Short reason and expected outcome from the model
        recovered: True when the action came from the tolerant regex path
            rather than clean JSON
    """

    model_config = ConfigDict(frozen=True)

    action: AgentActionType
    params: dict[str, Any] = Field(default_factory=dict)
    explanation: str = ""
    recovered: bool = Field(default=False, exclude=True)


class PageLink(BaseModel):
    """A link scraped from the current page."""

    text: str = ""
    href: str = ""
