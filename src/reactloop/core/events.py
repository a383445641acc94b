"""Stream chunk definitions for reactloop.

This module defines the typed chunks emitted on an agent stream. Each chunk
kind carries exactly its documented fields; consumers dispatch on ``type``.
All chunks are immutable (frozen dataclass).
"""

from dataclasses import dataclass, fields
from typing import Any

from reactloop.core.types import AgentRunResult, ChunkType


@dataclass(frozen=True, kw_only=True)
class StreamChunk:
    """Base class for all stream chunks."""

    type: ChunkType

    def to_dict(self) -> dict[str, Any]:
        """Convert chunk to its JSON shape.

        This format is suitable for SSE transmission, WebSocket messaging
        and plain JSON serialization.
        """
        data: dict[str, Any] = {"type": self.type.value}
        for f in fields(self):
            if f.name == "type":
                continue
            value = getattr(self, f.name)
            if isinstance(value, AgentRunResult):
                value = value.to_dict()
            data[f.name] = value
        return data


@dataclass(frozen=True, kw_only=True)
class ContentChunk(StreamChunk):
    """Model content delta, in generation order."""

    type: ChunkType = ChunkType.CONTENT
    delta: str


@dataclass(frozen=True, kw_only=True)
class ToolCallStartChunk(StreamChunk):
    """The model started requesting a tool call."""

    type: ChunkType = ChunkType.TOOL_CALL_START
    call_id: str
    tool_name: str


@dataclass(frozen=True, kw_only=True)
class ToolCallArgsChunk(StreamChunk):
    """Raw argument fragment. Fragments for one id concatenate to the payload."""

    type: ChunkType = ChunkType.TOOL_CALL_ARGS
    call_id: str
    delta: str


@dataclass(frozen=True, kw_only=True)
class ToolCallEndChunk(StreamChunk):
    """Argument streaming for a call is complete."""

    type: ChunkType = ChunkType.TOOL_CALL_END
    call_id: str


@dataclass(frozen=True, kw_only=True)
class ToolResultChunk(StreamChunk):
    """The executor returned for a call."""

    type: ChunkType = ChunkType.TOOL_RESULT
    call_id: str
    success: bool
    data: Any | None = None
    error: str | None = None


@dataclass(frozen=True, kw_only=True)
class FinishChunk(StreamChunk):
    """Terminal chunk. Exactly one per run, always last."""

    type: ChunkType = ChunkType.FINISH
    result: AgentRunResult


@dataclass(frozen=True, kw_only=True)
class ErrorChunk(StreamChunk):
    """Fatal failure, emitted strictly before the terminal finish."""

    type: ChunkType = ChunkType.ERROR
    message: str
    code: str | None = None


__all__ = [
    "ContentChunk",
    "ErrorChunk",
    "FinishChunk",
    "StreamChunk",
    "ToolCallArgsChunk",
    "ToolCallEndChunk",
    "ToolCallStartChunk",
    "ToolResultChunk",
]
