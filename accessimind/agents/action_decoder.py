"""Decode a free-form model response into a validated agent action.

The model is asked for JSON but nothing enforces it, so decoding is
layered: fenced-block extraction, strict JSON, then a tolerant regex
recovery. Whatever path produced the object, the action must be in the
allow-list; anything else is a failure, never a guess.

Examples:
    >>> from accessimind.agents.action_decoder import AgentActionDecoder
    >>> result = AgentActionDecoder().decode('{"action": "scroll_down"}')
    >>> result.action
    <AgentActionType.SCROLL_DOWN: 'SCROLL_DOWN'>

Tests:
    - tests/unit/test_action_decoder.py
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from accessimind.schemas.agent import ALLOWED_ACTIONS, AgentAction, AgentActionType

logger = logging.getLogger(__name__)

_JSON_FENCE = re.compile(r"```json\s*([\s\S]*?)```", re.IGNORECASE)
_ANY_FENCE = re.compile(r"```[\w-]*\s*([\s\S]*?)```")

_ACTION_FIELD = re.compile(r'"action"\s*:\s*"([^"]+)"')
_PARAMS_FIELD = re.compile(r'"params"\s*:\s*(\{[\s\S]*?\})')
_EXPLANATION_FIELD = re.compile(r'"explanation"\s*:\s*"((?:[^"\\]|\\.)*)"')


class DecodeFailure(Exception):
    """The response could not be turned into an agent action.

    Returned (not raised) by ``AgentActionDecoder.decode``.

    Attributes:
        reason: Short description of what went wrong
        raw_text: The model response, for diagnostics
    """

    def __init__(self, reason: str, raw_text: str = "") -> None:
        super().__init__(reason)
        self.reason = reason
        self.raw_text = raw_text


class InvalidActionError(DecodeFailure):
    """The response named an action outside the allow-list.

    Attributes:
        action: The rejected action, upper-cased
    """

    def __init__(self, action: str, raw_text: str = "") -> None:
        super().__init__(f"Invalid action: {action!r}", raw_text)
        self.action = action


def extract_fenced_block(text: str) -> str:
    """Return the content of the first code fence, or the text unchanged.

    A ``json``-labeled fence wins over an unlabeled one.
    """
    match = _JSON_FENCE.search(text) or _ANY_FENCE.search(text)
    return match.group(1).strip() if match else text


def _unescape(value: str) -> str:
    try:
        return json.loads(f'"{value}"')
    except json.JSONDecodeError:
        return value


class AgentActionDecoder:
    """Parse model output into an ``AgentAction``.

    Never raises on malformed model text; failures come back as
    ``DecodeFailure`` / ``InvalidActionError`` values.
    """

    def _parse_strict(self, text: str) -> dict[str, Any] | None:
        try:
            obj = json.loads(text)
        except json.JSONDecodeError:
            return None
        return obj if isinstance(obj, dict) else None

    def _parse_tolerant(self, text: str) -> dict[str, Any] | None:
        """Pull action, params and explanation out independently."""
        action_match = _ACTION_FIELD.search(text)
        if not action_match:
            return None

        params: Any = {}
        params_match = _PARAMS_FIELD.search(text)
        if params_match:
            try:
                params = json.loads(params_match.group(1))
            except json.JSONDecodeError:
                params = {}

        explanation_match = _EXPLANATION_FIELD.search(text)
        explanation = _unescape(explanation_match.group(1)) if explanation_match else ""

        return {
            "action": action_match.group(1),
            "params": params,
            "explanation": explanation,
        }

    def decode(self, raw_text: str | None) -> AgentAction | DecodeFailure:
        """Decode one model response.

        Args:
            raw_text: The model response.

        Returns:
            AgentAction on success, otherwise DecodeFailure (InvalidActionError
            when the action is not allow-listed).
        """
        raw = str(raw_text or "").strip()
        if not raw:
            return DecodeFailure("Empty agent response", raw)

        text = extract_fenced_block(raw)
        recovered = False

        obj = self._parse_strict(text)
        if obj is None:
            obj = self._parse_tolerant(text)
            if obj is None:
                logger.info("Agent response contained no decodable action")
                return DecodeFailure("Agent response could not be parsed", raw)
            recovered = True
            logger.warning(f"Agent response recovered via regex fallback: action={obj['action']!r}")

        action = str(obj.get("action") or "").strip().upper()
        if action not in ALLOWED_ACTIONS:
            logger.warning(f"Rejected agent action {action!r}")
            return InvalidActionError(action, raw)

        params = obj.get("params")
        explanation = obj.get("explanation")
        return AgentAction(
            action=AgentActionType(action),
            params=params if isinstance(params, dict) else {},
            explanation="" if explanation is None else str(explanation),
            recovered=recovered,
        )


def decode_agent_action(raw_text: str | None) -> AgentAction:
    """Decode a model response, raising on failure.

    Args:
        raw_text: The model response.

    Returns:
        The validated AgentAction.

    Raises:
        DecodeFailure: If no action could be decoded.
        InvalidActionError: If the action is not allow-listed.
    """
    result = AgentActionDecoder().decode(raw_text)
    if isinstance(result, DecodeFailure):
        raise result
    return result
