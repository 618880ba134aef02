"""Chat messages, tool calls, provider payloads and stream events."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ToolError(Exception):
    """Raised when a tool cannot carry out the requested operation."""


@dataclass
class FunctionCall:
    """Name and JSON-encoded arguments of a function the model wants called."""

    name: str = ""
    arguments: str = ""


@dataclass
class ToolCall:
    """A tool invocation requested by the model."""

    id: str = ""
    type: str = ""
    function: FunctionCall = field(default_factory=FunctionCall)


@dataclass
class Message:
    """One entry of a conversation."""

    role: str
    content: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_call_id: str = ""


@dataclass
class Usage:
    """Token accounting reported by a provider."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class ToolDefinition:
    """Description of a tool offered to the model."""

    name: str
    description: str
    parameters: dict[str, Any] = field(default_factory=dict)
    type: str = "function"

    def to_dict(self) -> dict[str, Any]:
        """Return the definition in the function-calling wire layout."""
        return {
            "type": self.type,
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": copy.deepcopy(self.parameters),
            },
        }


@dataclass
class ChatRequest:
    """A request sent to a chat provider."""

    model: str
    messages: list[Message] = field(default_factory=list)
    tools: list[ToolDefinition] = field(default_factory=list)
    stream: bool = False


@dataclass
class ChatResponse:
    """A complete (non-streamed) provider reply."""

    choices: list[Message] = field(default_factory=list)
    usage: Usage = field(default_factory=Usage)


@dataclass
class StreamDelta:
    """Incremental content of one streamed choice."""

    content: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)


@dataclass
class StreamChunk:
    """One piece of a streamed provider reply."""

    choices: list[StreamDelta] = field(default_factory=list)


class StreamEventType(Enum):
    """Kinds of events emitted while streaming a conversation turn."""

    TOKEN_CHUNK = 0
    TOOL_REQUEST = 1
    TOOL_BEGIN = 2
    TOOL_RESULT = 3
    TOOL_END = 4
    DONE = 5


@dataclass
class StreamEvent:
    """Incremental progress reported by a streaming agent turn."""

    type: StreamEventType
    token: str = ""
    request: Any = None
    tool_id: str = ""
    tool_name: str = ""
    result: str = ""
    usage: Usage = field(default_factory=Usage)
    error: Exception | None = None