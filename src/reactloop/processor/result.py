"""Run Result Builder.

Finalizes a run into an AgentRunResult: final assistant content, the ordered
(request, result) pairs of every round, wall-clock duration, finish reason
and, when an output schema is configured, the structured output.
"""

import logging
import re
import time
from typing import Any

from pydantic import BaseModel, ValidationError

from reactloop.core.errors import AgentError, StructuredOutputParseError
from reactloop.core.types import AgentRunResult, FinishReason, ToolCallRecord, ToolCallRequest, ToolResult, Usage

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\s*\n?(.*?)```", re.DOTALL | re.IGNORECASE)


def _candidates(content: str) -> list[str]:
    """Candidate JSON payloads, most specific first."""
    candidates = [match.strip() for match in _FENCED_JSON.findall(content)]
    candidates.append(content.strip())
    start, end = content.find("{"), content.rfind("}")
    if start != -1 and end > start:
        candidates.append(content[start : end + 1])
    return [c for c in candidates if c]


def parse_structured_output(content: str, schema: type[BaseModel]) -> BaseModel:
    """Parse final assistant content into ``schema``.

    Tries a fenced ```json block, then the whole text, then the outermost
    ``{...}`` span.

    Raises:
        StructuredOutputParseError: If no candidate validates against the schema
    """
    last_error: Exception | None = None
    for candidate in _candidates(content or ""):
        try:
            return schema.model_validate_json(candidate)
        except ValidationError as e:
            last_error = e
    raise StructuredOutputParseError(
        f"Output did not match schema {schema.__name__}",
        cause=last_error,
    )


class RunResultBuilder:
    """Accumulates run facts while the loop advances and builds the result once.

    Example:
        builder = RunResultBuilder(output_schema=Answer)
        builder.record(request, result)
        result = builder.build("final text", FinishReason.STOP)
    """

    def __init__(self, output_schema: type[BaseModel] | None = None) -> None:
        self._output_schema = output_schema
        self._start_time = time.monotonic()
        self._records: list[ToolCallRecord] = []
        self._usage = Usage()
        self._iterations = 0
        self._built = False

    @property
    def records(self) -> tuple[ToolCallRecord, ...]:
        return tuple(self._records)

    @property
    def iterations(self) -> int:
        return self._iterations

    def record(self, request: ToolCallRequest, result: ToolResult) -> None:
        self._records.append(ToolCallRecord(request=request, result=result))

    def add_usage(self, usage: Usage | None) -> None:
        if usage is not None:
            self._usage = self._usage + usage

    def count_iteration(self) -> None:
        self._iterations += 1

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self._start_time) * 1000)

    def _structured(self, content: str) -> Any | None:
        if self._output_schema is None:
            return None
        try:
            return parse_structured_output(content, self._output_schema)
        except StructuredOutputParseError as e:
            logger.warning(f"Structured output parse failed: {e.message}")
            return None

    def build(
        self,
        content: str,
        finish_reason: FinishReason,
        error: AgentError | None = None,
    ) -> AgentRunResult:
        """Create the terminal result. May only be called once per run."""
        if self._built:
            raise RuntimeError("Run result already built")
        self._built = True
        return AgentRunResult(
            content=content,
            tool_calls=tuple(self._records),
            finish_reason=finish_reason,
            structured=self._structured(content),
            error=error.message if error is not None else None,
            duration_ms=self.elapsed_ms(),
            usage=self._usage,
            iterations=self._iterations,
        )


__all__ = ["RunResultBuilder", "parse_structured_output"]
