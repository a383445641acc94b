"""LLM type definitions for reactloop.

This module provides core types for LLM interactions:
- Message: Chat message with role and content
- ChatResponse: Single-shot response from the LLM capability
- ModelDelta: One increment from the LLM capability's streaming interface

All types are immutable (frozen dataclass).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from reactloop.core.types import ToolCallRequest, Usage


class MessageRole(str, Enum):
    """Message role enumeration."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True, kw_only=True)
class Message:
    """Immutable chat message.

    Attributes:
        role: Message role (system/user/assistant/tool)
        content: Message content, None when only tool calls are carried
        tool_calls: Tool calls requested by an assistant message
        tool_call_id: Tool call ID (for tool result messages)
        name: Tool name (for tool result messages)
        metadata: Free-form metadata, never sent to the model
        index: Creation order within the conversation, -1 until appended
    """

    role: MessageRole
    content: str | None = None
    tool_calls: tuple[ToolCallRequest, ...] = ()
    tool_call_id: str | None = None
    name: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    index: int = -1

    @classmethod
    def system(cls, content: str) -> "Message":
        """Create a system message."""
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        """Create a user message."""
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant(
        cls,
        content: str | None = None,
        tool_calls: tuple[ToolCallRequest, ...] | list[ToolCallRequest] = (),
    ) -> "Message":
        """Create an assistant message."""
        return cls(role=MessageRole.ASSISTANT, content=content, tool_calls=tuple(tool_calls))

    @classmethod
    def tool_result(cls, content: str, tool_call_id: str, name: str | None = None) -> "Message":
        """Create a tool result message."""
        return cls(role=MessageRole.TOOL, content=content, tool_call_id=tool_call_id, name=name)

    @property
    def has_tool_calls(self) -> bool:
        return len(self.tool_calls) > 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API calls."""
        result: dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.name and self.role == MessageRole.TOOL:
            result["name"] = self.name
        if self.tool_call_id:
            result["tool_call_id"] = self.tool_call_id
        if self.tool_calls:
            result["tool_calls"] = [tc.to_dict() for tc in self.tool_calls]
        return result


@dataclass(frozen=True, kw_only=True)
class ChatResponse:
    """Immutable single-shot response from the LLM capability.

    Attributes:
        content: Response content
        tool_calls: Tool-call requests, possibly empty
        finish_reason: Why the provider stopped generating
        usage: Token usage
        model: Model used for generation
    """

    content: str | None = None
    tool_calls: tuple[ToolCallRequest, ...] = ()
    finish_reason: str | None = None
    usage: Usage = field(default_factory=Usage)
    model: str | None = None

    @property
    def has_tool_calls(self) -> bool:
        """Check if response contains tool calls."""
        return len(self.tool_calls) > 0


class DeltaType(str, Enum):
    """Kinds of increments produced by the streaming interface."""

    CONTENT = "content"
    TOOL_CALL_START = "tool_call_start"
    TOOL_CALL_DELTA = "tool_call_delta"
    TOOL_CALL_END = "tool_call_end"
    FINISH = "finish"


@dataclass(frozen=True, kw_only=True)
class ModelDelta:
    """One increment from the LLM capability's streaming interface.

    Tool calls arrive as start (id, name), zero or more argument deltas,
    then end. A capability may omit the end; the loop closes any open call
    once the stream is exhausted.
    """

    type: DeltaType
    delta: str = ""
    call_id: str | None = None
    name: str | None = None
    finish_reason: str | None = None
    usage: Usage | None = None

    @classmethod
    def content(cls, delta: str) -> "ModelDelta":
        return cls(type=DeltaType.CONTENT, delta=delta)

    @classmethod
    def tool_call_start(cls, call_id: str, name: str) -> "ModelDelta":
        return cls(type=DeltaType.TOOL_CALL_START, call_id=call_id, name=name)

    @classmethod
    def tool_call_delta(cls, call_id: str, delta: str) -> "ModelDelta":
        return cls(type=DeltaType.TOOL_CALL_DELTA, call_id=call_id, delta=delta)

    @classmethod
    def tool_call_end(cls, call_id: str) -> "ModelDelta":
        return cls(type=DeltaType.TOOL_CALL_END, call_id=call_id)

    @classmethod
    def finish(cls, finish_reason: str | None = "stop", usage: Usage | None = None) -> "ModelDelta":
        return cls(type=DeltaType.FINISH, finish_reason=finish_reason, usage=usage)


__all__ = [
    "ChatResponse",
    "DeltaType",
    "Message",
    "MessageRole",
    "ModelDelta",
    "ToolCallRequest",
    "Usage",
]
