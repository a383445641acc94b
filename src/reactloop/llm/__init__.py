"""LLM module for reactloop.

Provides the LLM capability abstraction with:
- Protocol-based client interface (single-shot and incremental)
- Immutable types (Message, ChatResponse, ModelDelta)
- Immutable adapter configuration with settings fallback
- LiteLLM adapter for 100+ provider support
- A retrying wrapper for transient provider failures

Example:
    from reactloop.llm import Message, RetryingLLMClient, create_llm_client

    client = RetryingLLMClient(create_llm_client("openai/gpt-4o", api_key="sk-..."))

    response = await client.generate([
        Message.system("You are a helpful assistant."),
        Message.user("Hello!"),
    ])
    print(response.content)
"""

from reactloop.llm.config import LLMConfig
from reactloop.llm.litellm_adapter import LiteLLMAdapter, create_llm_client
from reactloop.llm.protocol import LLMClient
from reactloop.llm.retry import RetryingLLMClient, RetryPolicy
from reactloop.llm.types import (
    ChatResponse,
    DeltaType,
    Message,
    MessageRole,
    ModelDelta,
)

__all__ = [
    # Types
    "ChatResponse",
    "DeltaType",
    "Message",
    "MessageRole",
    "ModelDelta",
    # Config
    "LLMConfig",
    # Protocol
    "LLMClient",
    # Adapter
    "LiteLLMAdapter",
    "create_llm_client",
    # Retry
    "RetryPolicy",
    "RetryingLLMClient",
]
