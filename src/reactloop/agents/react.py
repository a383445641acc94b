"""ReAct Agent implementation.

This module provides the public facade over the ReAct loop:
- run: execute to completion and return the AgentRunResult
- stream: execute and surface every StreamChunk as it happens
- chat: like stream, seeded with an existing message history

The agent holds only immutable configuration and the tool registry, so one
instance can serve any number of concurrent runs. Each run gets its own
ReActLoop, Conversation and RunSupervisor.
"""

import logging
from collections.abc import AsyncIterator, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from reactloop.config import get_settings
from reactloop.core.cancellation import CancellationToken, RunSupervisor
from reactloop.core.conversation import MessageHook, coerce_messages
from reactloop.core.errors import ConfigurationError
from reactloop.core.events import StreamChunk
from reactloop.core.types import AgentRunResult, CancelPolicy
from reactloop.llm.litellm_adapter import create_llm_client
from reactloop.llm.protocol import LLMClient
from reactloop.llm.types import Message
from reactloop.processor.loop import LoopConfig, ReActLoop
from reactloop.processor.stream import collect_stream
from reactloop.tools.converter import function_to_tool
from reactloop.tools.protocol import Tool, ToolContext, ToolDefinition
from reactloop.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


def _check_temperature(temperature: float) -> None:
    if not 0.0 <= temperature <= 2.0:
        raise ConfigurationError(f"temperature must be between 0 and 2, got {temperature}")


def _check_max_iterations(max_iterations: int) -> None:
    if max_iterations < 1:
        raise ConfigurationError(f"max_iterations must be >= 1, got {max_iterations}")


def _check_timeout(timeout: float | None) -> None:
    if timeout is not None and timeout <= 0:
        raise ConfigurationError(f"timeout must be positive, got {timeout}")


@dataclass(frozen=True, kw_only=True)
class AgentConfig:
    """Immutable agent configuration.

    Attributes:
        name: Agent name, used in logs and the tool context
        system_prompt: Seeded once at the start of every run
        llm: The LLM capability
        tools: ToolDefinitions, Tool-protocol objects or typed functions
        max_iterations: Maximum model calls per run
        temperature: Sampling temperature passed to the model
        output_schema: Optional pydantic model for structured output
        message_hook: Optional persistence hook
        parallel_tool_calls: Run the calls of a round concurrently
        cancel_policy: What happens to in-flight tools on cancellation
        run_timeout: Default run timeout in seconds
    """

    name: str
    system_prompt: str | None = None
    llm: LLMClient
    tools: Sequence[ToolDefinition | Tool | Callable[..., Any]] = ()
    max_iterations: int = 5
    temperature: float = 0.7
    output_schema: type[BaseModel] | None = None
    message_hook: MessageHook | None = None
    parallel_tool_calls: bool = True
    cancel_policy: CancelPolicy = CancelPolicy.DRAIN
    run_timeout: float | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigurationError("Agent name must not be empty")
        if self.llm is None:
            raise ConfigurationError("Agent requires an LLM capability")
        _check_max_iterations(self.max_iterations)
        _check_temperature(self.temperature)
        _check_timeout(self.run_timeout)
        if self.output_schema is not None and not (
            isinstance(self.output_schema, type) and issubclass(self.output_schema, BaseModel)
        ):
            raise ConfigurationError("output_schema must be a pydantic model class")
        object.__setattr__(self, "cancel_policy", CancelPolicy(self.cancel_policy))


@dataclass(frozen=True, kw_only=True)
class RunOptions:
    """Per-run options. Unset overrides fall back to the agent configuration."""

    thread_id: str | None = None
    user_id: str | None = None
    signal: CancellationToken | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    max_iterations: int | None = None
    temperature: float | None = None
    timeout: float | None = None
    cancel_policy: CancelPolicy | None = None

    def __post_init__(self) -> None:
        if self.max_iterations is not None:
            _check_max_iterations(self.max_iterations)
        if self.temperature is not None:
            _check_temperature(self.temperature)
        _check_timeout(self.timeout)


def _coerce_tool(item: ToolDefinition | Tool | Callable[..., Any]) -> ToolDefinition | Tool:
    if isinstance(item, (ToolDefinition, Tool)):
        return item
    if callable(item):
        return function_to_tool(item)
    raise ConfigurationError(f"Not a tool: {item!r}")


class ReActAgent:
    """ReAct agent: a bounded Think-Act-Observe loop over an LLM and tools.

    Usage:
        agent = ReActAgent(AgentConfig(name="helper", llm=client, tools=[get_weather]))

        result = await agent.run("What's the weather in Paris?")

        async for chunk in agent.stream("What's the weather in Paris?"):
            print(chunk.to_dict())

    Raises:
        ConfigurationError: On malformed configuration or options. Runtime
            failures never raise; they end the run with ``finish_reason=error``.
    """

    def __init__(self, config: AgentConfig) -> None:
        self.config = config
        self.registry = ToolRegistry(_coerce_tool(t) for t in config.tools)

    @property
    def name(self) -> str:
        return self.config.name

    def _loop_config(self, options: RunOptions, incremental: bool) -> LoopConfig:
        config = self.config
        return LoopConfig(
            agent_name=config.name,
            system_prompt=config.system_prompt,
            max_iterations=options.max_iterations or config.max_iterations,
            temperature=options.temperature if options.temperature is not None else config.temperature,
            output_schema=config.output_schema,
            parallel_tool_calls=config.parallel_tool_calls,
            cancel_policy=CancelPolicy(options.cancel_policy or config.cancel_policy),
            incremental=incremental,
        )

    def _execute(
        self,
        options: RunOptions | None,
        *,
        history: Sequence[Message] = (),
        inputs: Sequence[Message] = (),
        incremental: bool,
    ) -> AsyncIterator[StreamChunk]:
        options = options or RunOptions()
        loop = ReActLoop(
            self.config.llm,
            self.registry,
            self._loop_config(options, incremental),
            message_hook=self.config.message_hook,
        )
        timeout = options.timeout if options.timeout is not None else self.config.run_timeout
        supervisor = RunSupervisor(signal=options.signal, timeout=timeout)
        context = ToolContext(
            agent_name=self.config.name,
            thread_id=options.thread_id,
            user_id=options.user_id,
            signal=options.signal,
            metadata=dict(options.metadata),
        )
        logger.debug(f"Agent {self.config.name} starting run (thread={options.thread_id})")
        return loop.run(history=history, inputs=inputs, supervisor=supervisor, context=context)

    async def run(self, message: str, options: RunOptions | None = None) -> AgentRunResult:
        """Run to completion using the model's single-shot interface."""
        return await collect_stream(self._execute(options, inputs=[Message.user(message)], incremental=False))

    def stream(self, message: str, options: RunOptions | None = None) -> AsyncIterator[StreamChunk]:
        """Run and stream every chunk; the last chunk is always ``finish``."""
        return self._execute(options, inputs=[Message.user(message)], incremental=True)

    def chat(
        self,
        messages: Sequence[Message | dict[str, Any]],
        options: RunOptions | None = None,
    ) -> AsyncIterator[StreamChunk]:
        """Continue an existing conversation and stream the run.

        Prior messages are loaded as history; the persistence hook only sees
        the messages this run appends.
        """
        if not messages:
            raise ConfigurationError("chat requires at least one prior message")
        return self._execute(options, history=coerce_messages(messages), incremental=True)


def create_agent(
    name: str,
    *,
    llm: LLMClient | None = None,
    tools: Sequence[ToolDefinition | Tool | Callable[..., Any]] = (),
    system_prompt: str | None = None,
    output_schema: type[BaseModel] | None = None,
    message_hook: MessageHook | None = None,
    max_iterations: int | None = None,
    temperature: float | None = None,
    run_timeout: float | None = None,
    parallel_tool_calls: bool | None = None,
    cancel_policy: CancelPolicy | str | None = None,
) -> ReActAgent:
    """Create an agent, filling unset values from settings.

    Example:
        agent = create_agent("helper", tools=[get_weather], system_prompt="Be brief.")
    """
    settings = get_settings()
    if llm is None:
        llm = create_llm_client()

    config = AgentConfig(
        name=name,
        system_prompt=system_prompt,
        llm=llm,
        tools=tuple(tools),
        max_iterations=max_iterations if max_iterations is not None else settings.max_iterations,
        temperature=temperature if temperature is not None else settings.temperature,
        output_schema=output_schema,
        message_hook=message_hook,
        parallel_tool_calls=(
            parallel_tool_calls if parallel_tool_calls is not None else settings.parallel_tool_calls
        ),
        cancel_policy=CancelPolicy(cancel_policy or settings.cancel_policy),
        run_timeout=run_timeout if run_timeout is not None else settings.run_timeout_seconds,
    )
    return ReActAgent(config)


__all__ = ["AgentConfig", "ReActAgent", "RunOptions", "create_agent"]
