# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-09-29
# Description: chat/types.py
# -----------------------------------------------------------------------------
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional, Sequence

from core.exceptions import ArgumentParseError

# {"role": "system"|"user"|"assistant"|"tool", "content": "...", ...}
Message = Dict[str, Any]


class ToolSchema(NamedTuple):
    """A tool the model may call: name, description and JSON Schema for its parameters."""
    name: str
    description: str
    parameters: Dict[str, Any]

    def to_openai(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


@dataclass(frozen=True)
class ToolCall:
    """One tool-call request emitted by the model."""
    id: str
    name: str
    arguments: str  # raw JSON string, as returned by the API


@dataclass
class Completion:
    """Non-streamed completion result."""
    content: str
    tool_calls: List[ToolCall] = field(default_factory=list)
    model: Optional[str] = None
    usage: Any = None
    finish_reason: Optional[str] = None


def system_message(content: str) -> Message:
    return {"role": "system", "content": content}


def user_message(content: str) -> Message:
    return {"role": "user", "content": content}


def assistant_message(content: str) -> Message:
    return {"role": "assistant", "content": content}


def tool_message(content: str, tool_call_id: str) -> Message:
    return {"role": "tool", "content": content, "tool_call_id": tool_call_id}


def assistant_tool_calls_message(calls: Sequence[ToolCall]) -> Message:
    """Assistant turn announcing the tool calls whose results follow it."""
    return {
        "role": "assistant",
        "content": None,
        "tool_calls": [
            {
                "id": c.id,
                "type": "function",
                "function": {"name": c.name, "arguments": c.arguments},
            }
            for c in calls
        ],
    }


def parse_tool_arguments(raw: Optional[str], tool_name: Optional[str] = None) -> Dict[str, Any]:
    """
    Parse a tool call's JSON argument string into a dict.

    An empty string means "no arguments". Anything that is not a JSON object
    raises ArgumentParseError.
    """
    if raw is None or not raw.strip():
        return {}

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ArgumentParseError(
            f"Malformed JSON arguments for tool '{tool_name}': {e}",
            tool_name=tool_name,
            raw_arguments=raw,
        ) from e

    if not isinstance(parsed, dict):
        raise ArgumentParseError(
            f"Arguments for tool '{tool_name}' must be a JSON object, got {type(parsed).__name__}",
            tool_name=tool_name,
            raw_arguments=raw,
        )
    return parsed
