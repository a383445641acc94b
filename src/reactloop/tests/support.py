"""Mock components and helpers shared by reactloop tests."""

import asyncio
import json
import time
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from typing import Any

from pydantic import BaseModel

from reactloop.core.events import (
    ErrorChunk,
    FinishChunk,
    StreamChunk,
    ToolCallArgsChunk,
    ToolCallEndChunk,
    ToolCallStartChunk,
    ToolResultChunk,
)
from reactloop.core.types import ToolCallRequest, Usage
from reactloop.llm.types import ChatResponse, Message, ModelDelta

# ============================================================================
# Helpers
# ============================================================================


def call(call_id: str, name: str, /, **arguments: Any) -> ToolCallRequest:
    """Build a tool-call request with JSON arguments."""
    return ToolCallRequest(id=call_id, name=name, arguments=json.dumps(arguments) if arguments else "")


def reply(content: str | None = None, *tool_calls: ToolCallRequest) -> ChatResponse:
    """Build a scripted model response."""
    return ChatResponse(
        content=content,
        tool_calls=tuple(tool_calls),
        finish_reason="tool_calls" if tool_calls else "stop",
        usage=Usage(prompt_tokens=10, completion_tokens=5, total_tokens=15),
        model="mock",
    )


# ============================================================================
# Mock Components
# ============================================================================


class MockLLMClient:
    """Scripted LLM capability.

    Each call consumes the next scripted step: a ChatResponse is returned
    (or streamed as deltas), an exception is raised.
    """

    def __init__(self, script: Sequence[ChatResponse | Exception] = ()):
        self._script = list(script)
        self.calls: list[list[Message]] = []
        self.kwargs: list[dict[str, Any]] = []
        self.modes: list[str] = []
        self.before_call: Callable[[], Awaitable[None]] | None = None

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def _next(self, mode: str, messages: Sequence[Message], kwargs: dict[str, Any]) -> ChatResponse:
        self.calls.append(list(messages))
        self.modes.append(mode)
        self.kwargs.append(kwargs)
        if self.before_call is not None:
            await self.before_call()
        if not self._script:
            raise AssertionError("unexpected model call")
        step = self._script.pop(0)
        if isinstance(step, Exception):
            raise step
        return step

    async def generate(self, messages, tools=None, **kwargs) -> ChatResponse:
        return await self._next("generate", messages, kwargs)

    async def stream(self, messages, tools=None, **kwargs) -> AsyncIterator[ModelDelta]:
        response = await self._next("stream", messages, kwargs)
        if response.content:
            middle = len(response.content) // 2 or len(response.content)
            yield ModelDelta.content(response.content[:middle])
            if response.content[middle:]:
                yield ModelDelta.content(response.content[middle:])
        for request in response.tool_calls:
            yield ModelDelta.tool_call_start(request.id, request.name)
            middle = len(request.arguments) // 2
            for part in (request.arguments[:middle], request.arguments[middle:]):
                if part:
                    yield ModelDelta.tool_call_delta(request.id, part)
            yield ModelDelta.tool_call_end(request.id)
        yield ModelDelta.finish(response.finish_reason, usage=response.usage)


class BrokenStreamLLMClient(MockLLMClient):
    """Starts a tool call, then fails mid-stream."""

    async def stream(self, messages, tools=None, **kwargs) -> AsyncIterator[ModelDelta]:
        self.calls.append(list(messages))
        yield ModelDelta.content("Let me check")
        yield ModelDelta.tool_call_start("call_x", "add")
        yield ModelDelta.tool_call_delta("call_x", '{"a": 1')
        raise ConnectionError("connection reset by peer")


class RecordingHook:
    """Persistence hook that records every notified message."""

    def __init__(self):
        self.messages: list[tuple[str | None, Message]] = []

    def on_message(self, thread_id: str | None, message: Message) -> None:
        self.messages.append((thread_id, message))


# ============================================================================
# Tools
# ============================================================================


class AddInput(BaseModel):
    a: int
    b: int


class SlowInput(BaseModel):
    label: str
    delay: float = 0.05


class EmptyInput(BaseModel):
    pass


def add_numbers(params: AddInput) -> dict[str, int]:
    return {"sum": params.a + params.b}


async def slow_echo(params: SlowInput) -> str:
    await asyncio.sleep(params.delay)
    return params.label


def explode(params: EmptyInput) -> None:
    raise RuntimeError("tool exploded")


class BlockingInput(BaseModel):
    label: str
    seconds: float = 0.3


def blocking_echo(params: BlockingInput) -> str:
    time.sleep(params.seconds)
    return params.label


async def self_cancelling(params: EmptyInput) -> None:
    raise asyncio.CancelledError()


# ============================================================================
# Stream assertions
# ============================================================================


def assert_stream_invariants(chunks: Sequence[StreamChunk]) -> None:
    """Per-id start -> args* -> end -> result ordering, one terminal finish."""
    finishes = [i for i, chunk in enumerate(chunks) if isinstance(chunk, FinishChunk)]
    assert finishes == [len(chunks) - 1], "exactly one finish chunk, always last"

    errors = [i for i, chunk in enumerate(chunks) if isinstance(chunk, ErrorChunk)]
    assert len(errors) <= 1
    if errors:
        assert errors[0] == len(chunks) - 2, "error chunk immediately precedes finish"

    phases: dict[str, str] = {}
    for chunk in chunks:
        if isinstance(chunk, ToolCallStartChunk):
            assert chunk.call_id not in phases
            phases[chunk.call_id] = "started"
        elif isinstance(chunk, ToolCallArgsChunk):
            assert phases.get(chunk.call_id) == "started"
        elif isinstance(chunk, ToolCallEndChunk):
            assert phases.get(chunk.call_id) == "started"
            phases[chunk.call_id] = "ended"
        elif isinstance(chunk, ToolResultChunk):
            assert phases.get(chunk.call_id) == "ended"
            phases[chunk.call_id] = "resolved"
    assert all(phase == "resolved" for phase in phases.values()), phases
