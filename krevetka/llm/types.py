"""Conversation and stream data types shared by the LLM layer."""

from dataclasses import dataclass, field
from typing import Any, Literal, Union


Role = Literal["system", "user", "assistant", "tool"]


@dataclass(frozen=True)
class ToolCall:
    """A tool call from the LLM.

    `arguments` is the raw JSON text exactly as streamed by the model; it is
    parsed only when the call is dispatched.
    """

    id: str
    name: str
    arguments: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }


@dataclass(frozen=True)
class Message:
    """A message in the conversation."""

    role: Role
    content: str | None
    tool_calls: tuple[ToolCall, ...] | None = None
    tool_call_id: str | None = None
    name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the chat-completions wire format, omitting absent fields."""
        data: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            data["tool_calls"] = [tc.to_dict() for tc in self.tool_calls]
        if self.tool_call_id is not None:
            data["tool_call_id"] = self.tool_call_id
        if self.name is not None:
            data["name"] = self.name
        return data


@dataclass(frozen=True)
class ToolDefinition:
    """Definition of a tool for the LLM."""

    name: str
    description: str
    parameters: dict[str, Any] = field(default_factory=dict)  # JSON Schema

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


# Normalized stream chunks. Exactly one consumer reads them per round.


@dataclass(frozen=True)
class TextChunk:
    delta: str
    type: Literal["text"] = "text"


@dataclass(frozen=True)
class ToolCallStart:
    id: str
    name: str
    type: Literal["tool_call_start"] = "tool_call_start"


@dataclass(frozen=True)
class ToolCallArgs:
    id: str
    delta: str
    type: Literal["tool_call_args"] = "tool_call_args"


@dataclass(frozen=True)
class ToolCallEnd:
    id: str
    type: Literal["tool_call_end"] = "tool_call_end"


@dataclass(frozen=True)
class ErrorChunk:
    message: str
    type: Literal["error"] = "error"


@dataclass(frozen=True)
class DoneChunk:
    type: Literal["done"] = "done"


Chunk = Union[TextChunk, ToolCallStart, ToolCallArgs, ToolCallEnd, ErrorChunk, DoneChunk]
