"""LiteLLM adapter for reactloop."""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from litellm import acompletion

from reactloop.core.errors import AdapterError
from reactloop.core.types import ToolCallRequest, Usage
from reactloop.llm.config import LLMConfig
from reactloop.llm.types import ChatResponse, Message, ModelDelta
from reactloop.tools.protocol import ToolDefinition

if TYPE_CHECKING:
    from litellm import ModelResponse

logger = logging.getLogger(__name__)


@dataclass
class _PendingToolCall:
    """Partial tool call being accumulated from a stream, keyed by index."""

    id: str
    name: str = ""
    started: bool = False


class LiteLLMAdapter:
    """LiteLLM-based LLM capability.

    Supports 100+ providers through LiteLLM's unified interface.
    Providers are specified via model prefix (e.g., "openai/gpt-4o", "anthropic/claude-3").

    Example:
        client = LiteLLMAdapter(LLMConfig(model="openai/gpt-4o", api_key="sk-..."))

        response = await client.generate([Message.user("Hello!")])

        async for delta in client.stream([Message.user("Hello!")]):
            print(delta.delta, end="")
    """

    def __init__(self, config: LLMConfig) -> None:
        self._config = config

    @property
    def config(self) -> LLMConfig:
        return self._config

    def _build_completion_params(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolDefinition] | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Build parameters for a litellm completion call."""
        params = self._config.completion_params()
        params["messages"] = [msg.to_dict() for msg in messages]

        if tools:
            params["tools"] = [tool.to_openai_format() for tool in tools]

        # Per-call options (temperature overrides, etc.) win over config
        params.update({k: v for k, v in kwargs.items() if v is not None})
        return params

    @staticmethod
    def _parse_tool_calls(response_tool_calls: list[Any]) -> tuple[ToolCallRequest, ...]:
        """Convert provider tool calls, keeping arguments as raw text."""
        requests = []
        for tc in response_tool_calls:
            function = tc.function
            arguments = getattr(function, "arguments", None) or ""
            if not isinstance(arguments, str):
                # Some providers hand back already-decoded arguments
                arguments = json.dumps(arguments)
            requests.append(
                ToolCallRequest(
                    id=tc.id or f"call_{uuid.uuid4().hex[:8]}",
                    name=function.name,
                    arguments=arguments,
                )
            )
        return tuple(requests)

    @staticmethod
    def _extract_usage(response: ModelResponse | Any) -> Usage:
        usage = getattr(response, "usage", None)
        if not usage:
            return Usage()
        return Usage(
            prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
            total_tokens=getattr(usage, "total_tokens", 0) or 0,
        )

    async def generate(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolDefinition] | None = None,
        **kwargs: Any,
    ) -> ChatResponse:
        """Generate a non-streaming response."""
        params = self._build_completion_params(messages, tools, **kwargs)

        try:
            response = await acompletion(**params)
        except Exception as e:
            logger.error(f"LiteLLM generate error: {e}")
            raise AdapterError(str(e), cause=e) from e

        if not response.choices:
            return ChatResponse(usage=self._extract_usage(response), model=self._config.model)

        choice = response.choices[0]
        tool_calls: tuple[ToolCallRequest, ...] = ()
        if getattr(choice.message, "tool_calls", None):
            tool_calls = self._parse_tool_calls(choice.message.tool_calls)

        return ChatResponse(
            content=choice.message.content,
            tool_calls=tool_calls,
            finish_reason=choice.finish_reason,
            usage=self._extract_usage(response),
            model=self._config.model,
        )

    async def stream(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolDefinition] | None = None,
        **kwargs: Any,
    ) -> AsyncIterator[ModelDelta]:
        """Generate a streaming response.

        Tool calls arrive incrementally and are tracked by index:
        the first chunk carries id and name, later chunks carry argument
        fragments. Calls are closed when the provider finishes.
        """
        params = self._build_completion_params(messages, tools, **kwargs)
        params["stream"] = True
        params["stream_options"] = {"include_usage": True}

        pending: dict[int, _PendingToolCall] = {}
        finish_reason: str | None = None
        usage: Usage | None = None

        try:
            response = await acompletion(**params)

            async for chunk in response:
                if getattr(chunk, "usage", None):
                    usage = self._extract_usage(chunk)
                if not chunk.choices:
                    continue

                choice = chunk.choices[0]
                delta = choice.delta

                content = getattr(delta, "content", None)
                if content:
                    yield ModelDelta.content(content)

                for tc in getattr(delta, "tool_calls", None) or []:
                    for event in self._track_tool_call(pending, tc):
                        yield event

                if getattr(choice, "finish_reason", None):
                    finish_reason = choice.finish_reason

        except Exception as e:
            logger.error(f"LiteLLM stream error: {e}")
            raise AdapterError(str(e), cause=e) from e

        for tracker in pending.values():
            if tracker.started:
                yield ModelDelta.tool_call_end(tracker.id)
        yield ModelDelta.finish(finish_reason or "stop", usage=usage)

    @staticmethod
    def _track_tool_call(pending: dict[int, _PendingToolCall], tc: Any) -> list[ModelDelta]:
        index = getattr(tc, "index", 0) or 0
        if index not in pending:
            call_id = getattr(tc, "id", None) or f"call_{uuid.uuid4().hex[:8]}"
            pending[index] = _PendingToolCall(id=call_id)
        tracker = pending[index]

        events: list[ModelDelta] = []
        function = getattr(tc, "function", None)
        if function is None:
            return events

        name = getattr(function, "name", None)
        if name and not tracker.started:
            tracker.name = name
            tracker.started = True
            events.append(ModelDelta.tool_call_start(tracker.id, name))

        args_delta = getattr(function, "arguments", None)
        if args_delta and tracker.started:
            events.append(ModelDelta.tool_call_delta(tracker.id, args_delta))
        return events

    def with_config(self, **kwargs: Any) -> LiteLLMAdapter:
        """Create a new adapter with modified configuration."""
        return LiteLLMAdapter(replace(self._config, **kwargs))


def create_llm_client(
    model: str | None = None,
    api_key: str | None = None,
    **kwargs: Any,
) -> LiteLLMAdapter:
    """Factory function to create an LLM client.

    Unset values fall back to the LLM_* settings.

    Example:
        client = create_llm_client("openai/gpt-4o", api_key="sk-...")
        client = create_llm_client("ollama/llama3", base_url="http://localhost:11434")
    """
    return LiteLLMAdapter(LLMConfig.from_settings(model=model, api_key=api_key, **kwargs))


__all__ = [
    "LiteLLMAdapter",
    "create_llm_client",
]
