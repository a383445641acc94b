"""Tool conversion utilities for reactloop.

Provides functions to convert Python callables to ToolDefinitions:
- function_to_tool: Convert any typed callable to a ToolDefinition
- tool: Decorator form of function_to_tool

The tool input model is a pydantic model derived from the function
signature, so validation, defaults and the JSON Schema shown to the model
all come from the same type hints. A parameter annotated ``ToolContext``
is not exposed to the model; it receives the run context instead.
"""

import asyncio
import inspect
from collections.abc import Callable
from functools import partial
from typing import Any, get_type_hints

from pydantic import BaseModel, Field, create_model

from reactloop.core.errors import ConfigurationError
from reactloop.tools.protocol import ToolContext, ToolDefinition


def _parse_param_docstring(docstring: str) -> dict[str, str]:
    """Parse parameter descriptions from a Google-style ``Args:`` section."""
    result: dict[str, str] = {}
    if not docstring:
        return result

    in_args = False
    for line in docstring.strip().split("\n"):
        stripped = line.strip()
        if not stripped:
            continue

        if stripped in ("Args:", "Parameters:"):
            in_args = True
            continue
        if stripped.endswith(":") and stripped[:-1] in ("Returns", "Raises", "Yields", "Example"):
            break

        if in_args and ":" in stripped:
            name, desc = stripped.split(":", 1)
            name = name.strip().split(" ")[0]
            if name.isidentifier():
                result[name] = desc.strip()

    return result


def _summary(docstring: str | None) -> str:
    """First paragraph of a docstring."""
    if not docstring:
        return ""
    return inspect.cleandoc(docstring).split("\n\n", 1)[0].strip()


def _build_input_model(func: Callable[..., Any], model_name: str) -> tuple[type[BaseModel], str | None]:
    """Build a pydantic input model from a function signature.

    Returns:
        The model and the name of the ToolContext parameter, if any
    """
    sig = inspect.signature(func)
    hints = get_type_hints(func)
    descriptions = _parse_param_docstring(func.__doc__ or "")

    fields: dict[str, Any] = {}
    context_param: str | None = None

    for param_name, param in sig.parameters.items():
        if param_name == "self":
            continue
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            raise ConfigurationError(f"Tool function {func.__name__} may not take *args or **kwargs")

        annotation = hints.get(param_name, Any)
        if annotation is ToolContext:
            context_param = param_name
            continue

        default = ... if param.default is param.empty else param.default
        fields[param_name] = (annotation, Field(default, description=descriptions.get(param_name)))

    return create_model(model_name, **fields), context_param


async def _execute_wrapped(
    func: Callable[..., Any],
    context_param: str | None,
    /,
    params: BaseModel,
    context: ToolContext | None = None,
) -> Any:
    """Call ``func`` with the validated fields as keyword arguments."""
    kwargs = {name: getattr(params, name) for name in type(params).model_fields}
    if context_param is not None:
        kwargs[context_param] = context
    if inspect.iscoroutinefunction(func):
        return await func(**kwargs)
    result = await asyncio.to_thread(func, **kwargs)
    if inspect.isawaitable(result):
        return await result
    return result


def function_to_tool(
    func: Callable[..., Any],
    name: str | None = None,
    description: str | None = None,
) -> ToolDefinition:
    """Convert a typed Python callable to a ToolDefinition.

    Example:
        async def get_weather(city: str, unit: str = "celsius") -> dict:
            '''Get current weather for a city.

            Args:
                city: City name
                unit: Temperature unit
            '''
            return {"city": city, "temperature": 20}

        weather = function_to_tool(get_weather)

    Args:
        func: The function to convert
        name: Optional tool name (defaults to function name)
        description: Optional tool description (defaults to docstring summary)

    Returns:
        ToolDefinition wrapping the function

    Raises:
        ConfigurationError: If the signature cannot be exposed as a tool
    """
    tool_name = name or func.__name__
    model_name = "".join(part.capitalize() for part in tool_name.split("_")) + "Input"
    input_model, context_param = _build_input_model(func, model_name)

    return ToolDefinition(
        name=tool_name,
        description=description or _summary(func.__doc__) or tool_name,
        input_schema=input_model,
        execute=partial(_execute_wrapped, func, context_param),
        takes_context=True,
    )


def tool(
    name: str | None = None,
    description: str | None = None,
) -> Callable[[Callable[..., Any]], ToolDefinition]:
    """Decorator factory form of :func:`function_to_tool`.

    After decoration the name refers to a ToolDefinition, not the function.

    Example:
        @tool(description="Search the knowledge base")
        async def search(query: str, ctx: ToolContext) -> list[str]:
            ...
    """

    def decorator(func: Callable[..., Any]) -> ToolDefinition:
        return function_to_tool(func, name=name, description=description)

    return decorator


__all__ = [
    "function_to_tool",
    "tool",
]
