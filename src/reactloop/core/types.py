"""Core type definitions for reactloop.

This module provides the foundational value types used throughout the loop:
- Enums for loop state, finish reasons, stream chunk kinds and cancel policy
- Tool call request/result records
- The terminal AgentRunResult

All types are immutable (frozen dataclass).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class LoopState(str, Enum):
    """State of the ReAct loop controller.

    The controller transitions through these states:
    - INIT: Seeding the conversation
    - AWAIT_MODEL: Waiting on the LLM capability
    - AWAIT_TOOLS: Waiting on a round of tool calls
    - DONE: Finished with stop or max_iterations
    - ERROR: Finished with a fatal failure or cancellation
    """

    INIT = "init"
    AWAIT_MODEL = "await_model"
    AWAIT_TOOLS = "await_tools"
    DONE = "done"
    ERROR = "error"


class FinishReason(str, Enum):
    """Terminal classification of a run."""

    STOP = "stop"
    MAX_ITERATIONS = "max_iterations"
    ERROR = "error"


class ChunkType(str, Enum):
    """All chunk kinds emitted on the agent stream.

    Naming follows the wire names used by stream consumers.
    """

    CONTENT = "content"
    TOOL_CALL_START = "tool-call-start"
    TOOL_CALL_ARGS = "tool-call-args"
    TOOL_CALL_END = "tool-call-end"
    TOOL_RESULT = "tool-result"
    FINISH = "finish"
    ERROR = "error"


class CancelPolicy(str, Enum):
    """What happens to in-flight tool calls when a run is cancelled.

    - DRAIN: let dispatched calls finish and record their real results
    - ABANDON: cancel unfinished calls and record them as failed
    """

    DRAIN = "drain"
    ABANDON = "abandon"


@dataclass(frozen=True, kw_only=True)
class ToolCallRequest:
    """A model-requested invocation of a named tool.

    Attributes:
        id: Call identifier, unique within a run
        name: Tool name as exposed to the model
        arguments: Raw argument payload (JSON text, parsed by the executor)
    """

    id: str
    name: str
    arguments: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to OpenAI-style tool call dictionary."""
        return {
            "id": self.id,
            "type": "function",
            "function": {
                "name": self.name,
                "arguments": self.arguments,
            },
        }


@dataclass(frozen=True, kw_only=True)
class ToolResult:
    """Outcome of exactly one ToolCallRequest."""

    tool_call_id: str
    success: bool
    data: Any | None = None
    error: str | None = None
    duration_ms: int = 0

    @classmethod
    def ok(cls, tool_call_id: str, data: Any, duration_ms: int = 0) -> "ToolResult":
        return cls(tool_call_id=tool_call_id, success=True, data=data, duration_ms=duration_ms)

    @classmethod
    def failed(cls, tool_call_id: str, error: str, duration_ms: int = 0) -> "ToolResult":
        return cls(tool_call_id=tool_call_id, success=False, error=error, duration_ms=duration_ms)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "tool_call_id": self.tool_call_id,
            "success": self.success,
            "duration_ms": self.duration_ms,
        }
        if self.success:
            result["data"] = self.data
        else:
            result["error"] = self.error
        return result


@dataclass(frozen=True, kw_only=True)
class ToolCallRecord:
    """A request paired with its result, as kept in the run history."""

    request: ToolCallRequest
    result: ToolResult

    @property
    def id(self) -> str:
        return self.request.id

    @property
    def name(self) -> str:
        return self.request.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.request.id,
            "name": self.request.name,
            "arguments": self.request.arguments,
            "result": self.result.to_dict(),
        }


@dataclass(frozen=True, kw_only=True)
class Usage:
    """Token usage tracking.

    Attributes:
        prompt_tokens: Tokens in the prompt
        completion_tokens: Tokens in the completion
        total_tokens: Total tokens
    """

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def __add__(self, other: "Usage") -> "Usage":
        """Add two usage objects."""
        return Usage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass(frozen=True, kw_only=True)
class AgentRunResult:
    """Terminal result of one run. Created once, at loop termination.

    Callers inspect ``finish_reason`` and ``error`` to detect failure;
    the public operations never raise for runtime conditions.
    """

    content: str
    tool_calls: tuple[ToolCallRecord, ...] = ()
    finish_reason: FinishReason = FinishReason.STOP
    structured: Any | None = None
    error: str | None = None
    duration_ms: int = 0
    usage: Usage = field(default_factory=Usage)
    iterations: int = 0

    @property
    def succeeded(self) -> bool:
        return self.finish_reason == FinishReason.STOP

    def to_dict(self) -> dict[str, Any]:
        structured = self.structured
        if hasattr(structured, "model_dump"):
            structured = structured.model_dump(mode="json")
        result: dict[str, Any] = {
            "content": self.content,
            "tool_calls": [record.to_dict() for record in self.tool_calls],
            "finish_reason": self.finish_reason.value,
            "duration_ms": self.duration_ms,
            "usage": self.usage.to_dict(),
            "iterations": self.iterations,
        }
        if structured is not None:
            result["structured"] = structured
        if self.error is not None:
            result["error"] = self.error
        return result


__all__ = [
    "AgentRunResult",
    "CancelPolicy",
    "ChunkType",
    "FinishReason",
    "LoopState",
    "ToolCallRecord",
    "ToolCallRequest",
    "ToolResult",
    "Usage",
]
