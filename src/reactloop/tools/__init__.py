"""Tool system for reactloop.

Provides:
- Tool protocol and immutable ToolDefinition
- Function tool conversion (function_to_tool, @tool)
- Read-only ToolRegistry
- Validated, fault-isolated execution
"""

from reactloop.tools.converter import function_to_tool, tool
from reactloop.tools.executor import execute_tool, execute_tools, format_tool_result, validate_arguments
from reactloop.tools.protocol import Tool, ToolContext, ToolDefinition
from reactloop.tools.registry import ToolRegistry

__all__ = [
    "Tool",
    "ToolContext",
    "ToolDefinition",
    "ToolRegistry",
    "execute_tool",
    "execute_tools",
    "format_tool_result",
    "function_to_tool",
    "tool",
    "validate_arguments",
]
