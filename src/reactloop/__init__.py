"""reactloop - a bounded ReAct agent execution core.

Drives a conversation between a language model and a set of tools:
- L1: Tools - validated, fault-isolated capabilities
- L2: Loop - the Think-Act-Observe controller with a typed chunk stream
- L3: Agents - run / stream / chat facade with cancellation and timeouts
"""

__version__ = "0.1.0"

# Agent exports
from reactloop.agents import AgentConfig, ReActAgent, RunOptions, create_agent
from reactloop.config import AgentSettings, configure_logging, get_settings

# Core exports
from reactloop.core import (
    AgentError,
    AgentErrorCode,
    AgentRunResult,
    CancellationToken,
    CancelPolicy,
    ChunkType,
    ConfigurationError,
    ContentChunk,
    ErrorChunk,
    FinishChunk,
    FinishReason,
    StreamChunk,
    ToolCallArgsChunk,
    ToolCallEndChunk,
    ToolCallRecord,
    ToolCallRequest,
    ToolCallStartChunk,
    ToolResult,
    ToolResultChunk,
    Usage,
)
from reactloop.core.conversation import MessageHook

# LLM exports
from reactloop.llm import (
    ChatResponse,
    LiteLLMAdapter,
    LLMClient,
    LLMConfig,
    Message,
    MessageRole,
    ModelDelta,
    RetryingLLMClient,
    RetryPolicy,
    create_llm_client,
)
from reactloop.processor import collect_stream, encode_sse

# Tool exports
from reactloop.tools import Tool, ToolContext, ToolDefinition, ToolRegistry, function_to_tool, tool

__all__ = [
    # Agents
    "AgentConfig",
    "ReActAgent",
    "RunOptions",
    "create_agent",
    # Config
    "AgentSettings",
    "configure_logging",
    "get_settings",
    # Core
    "AgentError",
    "AgentErrorCode",
    "AgentRunResult",
    "CancelPolicy",
    "CancellationToken",
    "ChunkType",
    "ConfigurationError",
    "FinishReason",
    "MessageHook",
    "ToolCallRecord",
    "ToolCallRequest",
    "ToolResult",
    "Usage",
    # Chunks
    "ContentChunk",
    "ErrorChunk",
    "FinishChunk",
    "StreamChunk",
    "ToolCallArgsChunk",
    "ToolCallEndChunk",
    "ToolCallStartChunk",
    "ToolResultChunk",
    "collect_stream",
    "encode_sse",
    # LLM
    "ChatResponse",
    "LLMClient",
    "LLMConfig",
    "LiteLLMAdapter",
    "Message",
    "MessageRole",
    "ModelDelta",
    "RetryPolicy",
    "RetryingLLMClient",
    "create_llm_client",
    # Tools
    "Tool",
    "ToolContext",
    "ToolDefinition",
    "ToolRegistry",
    "function_to_tool",
    "tool",
]
