"""Processor module for reactloop.

This module provides:
- ReActLoop: the per-run loop controller
- RunResultBuilder: terminal result assembly and structured output parsing
- Stream helpers: collecting a stream and SSE encoding
"""

from reactloop.processor.loop import LoopConfig, ReActLoop
from reactloop.processor.result import RunResultBuilder, parse_structured_output
from reactloop.processor.stream import collect_stream, encode_sse

__all__ = [
    "LoopConfig",
    "ReActLoop",
    "RunResultBuilder",
    "collect_stream",
    "encode_sse",
    "parse_structured_output",
]
