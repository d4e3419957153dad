"""Pydantic schemas for the AI core.

Examples:
    >>> from accessimind.schemas import AISettings, AgentAction, AgentActionType
"""

from accessimind.schemas.agent import (
    ALLOWED_ACTIONS,
    AgentAction,
    AgentActionType,
    PageLink,
)
from accessimind.schemas.settings import AISettings

__all__ = [
    # Settings
    "AISettings",
    # Agent
    "ALLOWED_ACTIONS",
    "AgentAction",
    "AgentActionType",
    "PageLink",
]
