"""Core types and abstractions for reactloop.

This module contains the foundational pieces the loop is built from:
- Enums and value types (loop state, finish reasons, tool call records)
- The error hierarchy
- Stream chunk definitions
- Cancellation tokens and the run supervisor
"""

from reactloop.core.cancellation import CancellationToken, RunSupervisor
from reactloop.core.errors import (
    AdapterError,
    AgentCancelledError,
    AgentError,
    AgentErrorCode,
    AgentTimeoutError,
    ConfigurationError,
    StructuredOutputParseError,
    ToolExecutionError,
    ToolValidationError,
)
from reactloop.core.events import (
    ContentChunk,
    ErrorChunk,
    FinishChunk,
    StreamChunk,
    ToolCallArgsChunk,
    ToolCallEndChunk,
    ToolCallStartChunk,
    ToolResultChunk,
)
from reactloop.core.types import (
    AgentRunResult,
    CancelPolicy,
    ChunkType,
    FinishReason,
    LoopState,
    ToolCallRecord,
    ToolCallRequest,
    ToolResult,
    Usage,
)

__all__ = [
    # Types
    "AgentRunResult",
    "CancelPolicy",
    "ChunkType",
    "FinishReason",
    "LoopState",
    "ToolCallRecord",
    "ToolCallRequest",
    "ToolResult",
    "Usage",
    # Errors
    "AdapterError",
    "AgentCancelledError",
    "AgentError",
    "AgentErrorCode",
    "AgentTimeoutError",
    "ConfigurationError",
    "StructuredOutputParseError",
    "ToolExecutionError",
    "ToolValidationError",
    # Chunks
    "ContentChunk",
    "ErrorChunk",
    "FinishChunk",
    "StreamChunk",
    "ToolCallArgsChunk",
    "ToolCallEndChunk",
    "ToolCallStartChunk",
    "ToolResultChunk",
    # Cancellation
    "CancellationToken",
    "RunSupervisor",
]
