"""Agent step decoding."""

from accessimind.agents.action_decoder import (
    AgentActionDecoder,
    DecodeFailure,
    InvalidActionError,
    decode_agent_action,
)

__all__ = [
    "AgentActionDecoder",
    "DecodeFailure",
    "InvalidActionError",
    "decode_agent_action",
]
