"""Agent implementations for reactloop.

This module provides:
- ReActAgent: The public run/stream/chat facade
- AgentConfig / RunOptions: agent and per-run configuration
- create_agent: settings-aware factory
"""

from reactloop.agents.react import AgentConfig, ReActAgent, RunOptions, create_agent

__all__ = [
    "AgentConfig",
    "ReActAgent",
    "RunOptions",
    "create_agent",
]
