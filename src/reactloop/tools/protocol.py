"""Tool protocol and definitions for reactloop.

Tools are described by an immutable ToolDefinition whose input is validated
against a pydantic model before the tool body runs. Definitions can be built:
- Directly, with an explicit pydantic input model
- From a typed function via ``function_to_tool`` / ``@tool``
- From any object implementing the Tool protocol via ``from_tool``

Key design:
- Protocol-based (duck typing friendly)
- Immutable data classes, safe to share across concurrent runs
- Async-first execution, sync callables are supported too
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import BaseModel

if TYPE_CHECKING:
    from reactloop.core.cancellation import CancellationToken


@dataclass(frozen=True, kw_only=True)
class ToolContext:
    """Run-scoped context handed to tools that ask for it.

    Attributes:
        agent_name: Name of the agent running the tool
        thread_id: Attribution only, opaque to the loop
        user_id: Attribution only, opaque to the loop
        signal: The run's cancellation token, if any
        metadata: Per-run metadata from RunOptions
    """

    agent_name: str
    thread_id: str | None = None
    user_id: str | None = None
    signal: "CancellationToken | None" = None
    metadata: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class Tool(Protocol):
    """Protocol for class-based tool implementations.

    Example:
        class WeatherInput(BaseModel):
            city: str

        class WeatherTool:
            name = "get_weather"
            description = "Get current weather for a city"
            input_schema = WeatherInput

            async def execute(self, params: WeatherInput) -> dict:
                return {"city": params.city, "temperature": 20}
    """

    @property
    def name(self) -> str:
        """Unique tool name."""
        ...

    @property
    def description(self) -> str:
        """Human-readable description of what the tool does."""
        ...

    @property
    def input_schema(self) -> type[BaseModel]:
        """Pydantic model validating the tool input."""
        ...

    async def execute(self, params: Any) -> Any:
        """Execute the tool with validated input.

        Raises:
            Exception: If tool execution fails
        """
        ...


@dataclass(frozen=True, kw_only=True)
class ToolDefinition:
    """Immutable definition of a tool.

    ``execute`` receives the validated input model instance, plus a
    ToolContext as second argument when ``takes_context`` is set.
    It may be a coroutine function or a plain function; plain functions
    run in a worker thread.
    """

    name: str
    description: str
    input_schema: type[BaseModel]
    execute: Callable[..., Any]
    takes_context: bool = False

    @property
    def parameters(self) -> dict[str, Any]:
        """JSON Schema for the tool input, as shown to the model."""
        return self.input_schema.model_json_schema()

    def to_openai_format(self) -> dict[str, Any]:
        """Convert to OpenAI tool format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    @classmethod
    def from_tool(cls, tool: Tool) -> "ToolDefinition":
        """Wrap an object implementing the Tool protocol."""
        return cls(
            name=tool.name,
            description=tool.description,
            input_schema=tool.input_schema,
            execute=tool.execute,
        )


__all__ = [
    "Tool",
    "ToolContext",
    "ToolDefinition",
]
