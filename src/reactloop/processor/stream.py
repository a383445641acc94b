"""Stream consumption helpers."""

import json
from collections.abc import AsyncIterable
from typing import Any

from pydantic import BaseModel

from reactloop.core.errors import AgentError
from reactloop.core.events import FinishChunk, StreamChunk
from reactloop.core.types import AgentRunResult


async def collect_stream(chunks: AsyncIterable[StreamChunk]) -> AgentRunResult:
    """Drain a chunk stream and return the result carried by its finish chunk.

    Raises:
        AgentError: If the stream ended without a finish chunk
    """
    result: AgentRunResult | None = None
    async for chunk in chunks:
        if isinstance(chunk, FinishChunk):
            result = chunk.result
    if result is None:
        raise AgentError("Stream ended without a finish chunk")
    return result


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return str(value)


def encode_sse(chunk: StreamChunk) -> str:
    """Render a chunk as one Server-Sent-Events frame."""
    data = json.dumps(chunk.to_dict(), default=_json_default, ensure_ascii=False)
    return f"event: {chunk.type.value}\ndata: {data}\n\n"


__all__ = ["collect_stream", "encode_sse"]
