"""
Tool Executor - validated, fault-isolated tool execution.

Encapsulates:
- Lookup of the requested tool in the registry
- Parsing and validation of the raw argument payload
- Invocation of sync or async tool bodies
- Conversion of every failure into a failed ToolResult

execute_tool never raises for tool-level problems: unknown tools,
invalid arguments and exceptions from the tool body all come back as
``ToolResult(success=False)`` so the model can see the failure and retry.
"""

import asyncio
import inspect
import json
import logging
import time
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ValidationError

from reactloop.core.errors import ToolExecutionError, ToolValidationError
from reactloop.core.types import ToolCallRequest, ToolResult
from reactloop.tools.protocol import ToolContext, ToolDefinition
from reactloop.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

TOOL_CANCELLED = "tool call cancelled"


def _format_validation_error(tool_name: str, error: ValidationError) -> str:
    """Render pydantic validation errors as a compact, model-readable string."""
    problems = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail.get("loc", ()))
        message = detail.get("msg", "invalid value")
        problems.append(f"{location}: {message}" if location else message)
    return f"Invalid arguments for tool '{tool_name}': " + "; ".join(problems)


def validate_arguments(definition: ToolDefinition, raw_arguments: str) -> BaseModel:
    """Parse the raw payload against the tool's input schema.

    An empty payload is treated as an empty JSON object.

    Raises:
        ToolValidationError: If the payload is not valid JSON or fails the schema
    """
    payload = raw_arguments.strip() or "{}"
    try:
        return definition.input_schema.model_validate_json(payload)
    except ValidationError as e:
        raise ToolValidationError(
            _format_validation_error(definition.name, e),
            tool_name=definition.name,
            cause=e,
        ) from e


async def _invoke(definition: ToolDefinition, params: BaseModel, context: ToolContext | None) -> Any:
    args = (params, context) if definition.takes_context else (params,)
    if inspect.iscoroutinefunction(definition.execute):
        return await definition.execute(*args)
    # Blocking bodies run in a worker thread so a round's calls overlap
    result = await asyncio.to_thread(definition.execute, *args)
    if inspect.isawaitable(result):
        return await result
    return result


async def execute_tool(
    request: ToolCallRequest,
    registry: ToolRegistry,
    context: ToolContext | None = None,
) -> ToolResult:
    """Execute a single tool call.

    Args:
        request: The model's tool-call request
        registry: Registry to resolve the tool name against
        context: Run context for tools that accept one

    Returns:
        Exactly one ToolResult for the request
    """
    start_time = time.monotonic()

    def elapsed_ms() -> int:
        return int((time.monotonic() - start_time) * 1000)

    definition = registry.get(request.name)
    if definition is None:
        logger.warning(f"Model requested unknown tool: {request.name}")
        return ToolResult.failed(request.id, f"unknown tool: {request.name}")

    try:
        params = validate_arguments(definition, request.arguments)
    except ToolValidationError as e:
        logger.warning(f"Tool {request.name} ({request.id}) rejected input: {e.message}")
        return ToolResult.failed(request.id, e.message, duration_ms=elapsed_ms())

    try:
        data = await _invoke(definition, params, context)
    except asyncio.CancelledError:
        task = asyncio.current_task()
        if task is not None and task.cancelling():
            raise
        # Raised by the tool body itself, not a cancellation of this call
        logger.warning(f"Tool {request.name} ({request.id}) raised CancelledError")
        return ToolResult.failed(request.id, TOOL_CANCELLED, duration_ms=elapsed_ms())
    except Exception as e:
        error = ToolExecutionError(str(e) or e.__class__.__name__, tool_name=request.name, cause=e)
        logger.warning(f"Tool {request.name} ({request.id}) failed: {error.message}", exc_info=True)
        return ToolResult.failed(request.id, error.message, duration_ms=elapsed_ms())

    logger.debug(f"Tool {request.name} ({request.id}) completed in {elapsed_ms()}ms")
    return ToolResult.ok(request.id, data, duration_ms=elapsed_ms())


async def execute_tools(
    requests: Sequence[ToolCallRequest],
    registry: ToolRegistry,
    context: ToolContext | None = None,
    parallel: bool = True,
) -> list[ToolResult]:
    """Execute a batch of tool calls, one result per request in request order.

    With ``parallel`` the calls run concurrently; otherwise one by one.
    A failing call never affects its siblings.
    """
    if parallel:
        return list(await asyncio.gather(*(execute_tool(r, registry, context) for r in requests)))

    results = []
    for request in requests:
        results.append(await execute_tool(request, registry, context))
    return results


def format_tool_result(result: ToolResult) -> str:
    """Format a tool result as tool-role message content."""
    if not result.success:
        return f"Error: {result.error}"
    data = result.data
    if isinstance(data, str):
        return data
    if isinstance(data, BaseModel):
        return data.model_dump_json()
    return json.dumps(data, default=str, ensure_ascii=False)


__all__ = [
    "TOOL_CANCELLED",
    "execute_tool",
    "execute_tools",
    "format_tool_result",
    "validate_arguments",
]
