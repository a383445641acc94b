"""LLM capability protocol for reactloop.

The loop depends only on this contract, never on a concrete provider.
"""

from collections.abc import AsyncIterator, Sequence
from typing import Any, Protocol, runtime_checkable

from reactloop.llm.types import ChatResponse, Message, ModelDelta
from reactloop.tools.protocol import ToolDefinition


@runtime_checkable
class LLMClient(Protocol):
    """Protocol for LLM capability implementations.

    Any object implementing this interface can drive an agent. Both the
    single-shot and the incremental form must be provided.

    Example:
        class MyLLMClient:
            async def generate(self, messages, tools=None, **kwargs) -> ChatResponse:
                ...

            async def stream(self, messages, tools=None, **kwargs):
                yield ModelDelta.content("Hello")
                yield ModelDelta.finish("stop")
    """

    async def generate(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolDefinition] | None = None,
        **kwargs: Any,
    ) -> ChatResponse:
        """Generate a complete response.

        Args:
            messages: Full conversation so far
            tools: Tool definitions the model may call
            **kwargs: Per-call options such as ``temperature``

        Returns:
            ChatResponse with content and/or tool-call requests
        """
        ...

    def stream(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolDefinition] | None = None,
        **kwargs: Any,
    ) -> AsyncIterator[ModelDelta]:
        """Generate a response incrementally.

        Args:
            messages: Full conversation so far
            tools: Tool definitions the model may call
            **kwargs: Per-call options such as ``temperature``

        Yields:
            ModelDelta increments in generation order
        """
        ...


__all__ = ["LLMClient"]
