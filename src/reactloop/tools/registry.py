"""Read-only tool registry.

Built once at agent construction and shared by every run of that agent.
"""

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from reactloop.core.errors import ConfigurationError
from reactloop.tools.protocol import Tool, ToolDefinition


class ToolRegistry(Mapping[str, ToolDefinition]):
    """Immutable name -> ToolDefinition mapping.

    Raises:
        ConfigurationError: On duplicate names or objects that are not tools
    """

    def __init__(self, tools: Iterable[ToolDefinition | Tool] = ()) -> None:
        by_name: dict[str, ToolDefinition] = {}
        for item in tools:
            definition = self._coerce(item)
            if not definition.name:
                raise ConfigurationError("Tool name must not be empty")
            if definition.name in by_name:
                raise ConfigurationError(f"Duplicate tool name: {definition.name}")
            by_name[definition.name] = definition
        self._tools = MappingProxyType(by_name)

    @staticmethod
    def _coerce(item: ToolDefinition | Tool) -> ToolDefinition:
        if isinstance(item, ToolDefinition):
            return item
        if isinstance(item, Tool):
            return ToolDefinition.from_tool(item)
        raise ConfigurationError(f"Not a tool: {item!r}")

    def __getitem__(self, name: str) -> ToolDefinition:
        return self._tools[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    @property
    def definitions(self) -> tuple[ToolDefinition, ...]:
        """Definitions in registration order, as offered to the model."""
        return tuple(self._tools.values())

    def __repr__(self) -> str:
        return f"ToolRegistry({list(self._tools)!r})"


__all__ = ["ToolRegistry"]
