"""Tests for stream chunks and stream helpers."""

import json

import pytest

from reactloop.core.errors import AgentError
from reactloop.core.events import (
    ContentChunk,
    ErrorChunk,
    FinishChunk,
    ToolCallArgsChunk,
    ToolCallEndChunk,
    ToolResultChunk,
)
from reactloop.core.types import AgentRunResult, ChunkType, FinishReason
from reactloop.processor.stream import collect_stream, encode_sse
from reactloop.tests.support import AddInput


async def _aiter(items):
    for item in items:
        yield item


class TestChunks:
    """Tests for chunk definitions."""

    def test_default_types(self) -> None:
        assert ContentChunk(delta="hi").type == ChunkType.CONTENT
        assert ToolCallArgsChunk(call_id="c", delta="{").type == ChunkType.TOOL_CALL_ARGS
        assert ToolCallEndChunk(call_id="c").type == ChunkType.TOOL_CALL_END
        assert ErrorChunk(message="x").type == ChunkType.ERROR

    def test_to_dict(self) -> None:
        chunk = ToolResultChunk(call_id="c1", success=False, error="boom")
        assert chunk.to_dict() == {
            "type": "tool-result",
            "call_id": "c1",
            "success": False,
            "data": None,
            "error": "boom",
        }

    def test_finish_to_dict_nests_result(self) -> None:
        chunk = FinishChunk(result=AgentRunResult(content="done"))
        data = chunk.to_dict()
        assert data["type"] == "finish"
        assert data["result"]["content"] == "done"
        assert data["result"]["finish_reason"] == "stop"

    def test_chunks_are_immutable(self) -> None:
        chunk = ContentChunk(delta="a")
        with pytest.raises(AttributeError):
            chunk.delta = "b"


class TestCollectStream:
    """Tests for collect_stream."""

    @pytest.mark.asyncio
    async def test_returns_finish_result(self) -> None:
        result = AgentRunResult(content="4", finish_reason=FinishReason.STOP)
        collected = await collect_stream(_aiter([ContentChunk(delta="4"), FinishChunk(result=result)]))
        assert collected is result

    @pytest.mark.asyncio
    async def test_missing_finish(self) -> None:
        with pytest.raises(AgentError, match="without a finish chunk"):
            await collect_stream(_aiter([ContentChunk(delta="4")]))


class TestEncodeSSE:
    """Tests for SSE framing."""

    def test_frame(self) -> None:
        frame = encode_sse(ContentChunk(delta="héllo"))
        assert frame.startswith("event: content\ndata: ")
        assert frame.endswith("\n\n")
        payload = json.loads(frame.split("data: ", 1)[1])
        assert payload == {"type": "content", "delta": "héllo"}

    def test_pydantic_payloads(self) -> None:
        frame = encode_sse(ToolResultChunk(call_id="c", success=True, data=AddInput(a=1, b=2)))
        payload = json.loads(frame.split("data: ", 1)[1])
        assert payload["data"] == {"a": 1, "b": 2}
