"""
ReAct Loop - bounded reasoning and acting cycle.

Drives one run as an async-generator state machine:
1. Think: call the LLM capability with the full conversation
2. Act: execute the requested tool calls of the round concurrently
3. Observe: append the tool results as tool-role messages
4. Repeat until the model stops calling tools, the iteration cap is
   reached, or a fatal error or cancellation occurs

Every transition is surfaced as a StreamChunk. The generator always ends
with exactly one FinishChunk carrying the AgentRunResult; an ErrorChunk
precedes it when the run failed.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field

from pydantic import BaseModel

from reactloop.core.cancellation import RunSupervisor
from reactloop.core.conversation import Conversation, MessageHook
from reactloop.core.errors import AgentError, AgentErrorCode, wrap_error
from reactloop.core.events import (
    ContentChunk,
    ErrorChunk,
    FinishChunk,
    StreamChunk,
    ToolCallArgsChunk,
    ToolCallEndChunk,
    ToolCallStartChunk,
    ToolResultChunk,
)
from reactloop.core.types import CancelPolicy, FinishReason, LoopState, ToolCallRequest, ToolResult
from reactloop.llm.protocol import LLMClient
from reactloop.llm.types import DeltaType, Message, MessageRole
from reactloop.processor.result import RunResultBuilder
from reactloop.tools.executor import TOOL_CANCELLED, execute_tool, format_tool_result
from reactloop.tools.protocol import ToolContext
from reactloop.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

CANCELLED_BEFORE_DISPATCH = "tool call cancelled before dispatch"
ABANDONED = "tool call abandoned: run cancelled"


@dataclass(frozen=True, kw_only=True)
class LoopConfig:
    """Effective settings of one run, after per-run overrides."""

    agent_name: str
    system_prompt: str | None = None
    max_iterations: int = 5
    temperature: float = 0.7
    output_schema: type[BaseModel] | None = None
    parallel_tool_calls: bool = True
    cancel_policy: CancelPolicy = CancelPolicy.DRAIN
    incremental: bool = True


@dataclass
class _PendingCall:
    """A tool call being assembled from model output."""

    id: str
    name: str
    parts: list[str] = field(default_factory=list)
    ended: bool = False

    def to_request(self) -> ToolCallRequest:
        return ToolCallRequest(id=self.id, name=self.name, arguments="".join(self.parts))


@dataclass
class _ModelTurn:
    """What one model call produced."""

    content_parts: list[str] = field(default_factory=list)
    calls: dict[str, _PendingCall] = field(default_factory=dict)

    @property
    def content(self) -> str:
        return "".join(self.content_parts)

    @property
    def requests(self) -> tuple[ToolCallRequest, ...]:
        return tuple(call.to_request() for call in self.calls.values())


class _CallLedger:
    """Tracks per-id chunk progress so dangling calls can be closed at termination."""

    def __init__(self) -> None:
        self._started: dict[str, bool] = {}
        self._resolved: set[str] = set()

    def observe(self, chunk: StreamChunk) -> StreamChunk:
        if isinstance(chunk, ToolCallStartChunk):
            self._started[chunk.call_id] = False
        elif isinstance(chunk, ToolCallEndChunk):
            self._started[chunk.call_id] = True
        elif isinstance(chunk, ToolResultChunk):
            self._resolved.add(chunk.call_id)
        return chunk

    def dangling(self) -> list[tuple[str, bool]]:
        """(call_id, ended) for every started call without a result."""
        return [(call_id, ended) for call_id, ended in self._started.items() if call_id not in self._resolved]


class ReActLoop:
    """
    Controller for a single run.

    Create one instance per run; the instance keeps the run's state.

    Example:
        loop = ReActLoop(llm, registry, LoopConfig(agent_name="helper"))
        async for chunk in loop.run(inputs=[Message.user("hi")], supervisor=RunSupervisor()):
            ...
    """

    def __init__(
        self,
        llm: LLMClient,
        registry: ToolRegistry,
        config: LoopConfig,
        message_hook: MessageHook | None = None,
    ) -> None:
        self._llm = llm
        self._registry = registry
        self._config = config
        self._hook = message_hook
        self._state = LoopState.INIT
        self._builder = RunResultBuilder(config.output_schema)
        self._ledger = _CallLedger()

    @property
    def state(self) -> LoopState:
        """Get current loop state."""
        return self._state

    @property
    def model_calls(self) -> int:
        return self._builder.iterations

    def _seed(
        self,
        conversation: Conversation,
        history: Sequence[Message],
        inputs: Sequence[Message],
    ) -> None:
        seed: list[Message] = []
        has_system = bool(history) and history[0].role == MessageRole.SYSTEM
        if self._config.system_prompt and not has_system:
            seed.append(Message.system(self._config.system_prompt))
        seed.extend(history)
        conversation.seed(seed)
        for message in inputs:
            conversation.append(message)

    async def run(
        self,
        *,
        history: Sequence[Message] = (),
        inputs: Sequence[Message] = (),
        supervisor: RunSupervisor,
        context: ToolContext | None = None,
    ) -> AsyncIterator[StreamChunk]:
        """
        Run the loop to termination.

        Args:
            history: Messages loaded without notifying the persistence hook
            inputs: New messages of this run, appended and notified
            supervisor: Cancellation token and deadline of the run
            context: Context handed to tools that accept one

        Yields:
            StreamChunk objects; the last one is always a FinishChunk
        """
        conversation = Conversation(hook=self._hook, thread_id=context.thread_id if context else None)
        self._seed(conversation, history, inputs)

        finish_reason = FinishReason.STOP
        error: AgentError | None = None

        try:
            while True:
                self._state = LoopState.AWAIT_MODEL
                supervisor.check()

                if self._builder.iterations >= self._config.max_iterations:
                    logger.debug(f"Iteration cap of {self._config.max_iterations} reached")
                    finish_reason = FinishReason.MAX_ITERATIONS
                    break

                self._builder.count_iteration()
                turn = _ModelTurn()
                async for chunk in self._call_model(conversation, turn):
                    yield self._ledger.observe(chunk)

                requests = turn.requests
                conversation.append(Message.assistant(turn.content or None, requests))

                if not requests:
                    break

                self._state = LoopState.AWAIT_TOOLS
                async for chunk in self._run_tools(requests, conversation, supervisor, context):
                    yield self._ledger.observe(chunk)

        except AgentError as e:
            error = e
        except Exception as e:
            logger.error(f"ReAct loop error: {e}", exc_info=True)
            error = AgentError(str(e) or e.__class__.__name__, code=AgentErrorCode.UNKNOWN, cause=e)

        if error is not None:
            finish_reason = FinishReason.ERROR
            self._state = LoopState.ERROR
            logger.error(f"Agent {self._config.agent_name} run failed: {error}")
            for call_id, ended in self._ledger.dangling():
                if not ended:
                    yield self._ledger.observe(ToolCallEndChunk(call_id=call_id))
                yield self._ledger.observe(ToolResultChunk(call_id=call_id, success=False, error=error.message))
            yield ErrorChunk(message=error.message, code=error.code.value)
        else:
            self._state = LoopState.DONE

        result = self._builder.build(conversation.last_assistant_content(), finish_reason, error)
        logger.debug(
            f"Agent {self._config.agent_name} finished: reason={finish_reason.value}, "
            f"iterations={result.iterations}, tool_calls={len(result.tool_calls)}"
        )
        yield FinishChunk(result=result)

    # ------------------------------------------------------------------
    # Model round
    # ------------------------------------------------------------------

    async def _call_model(self, conversation: Conversation, turn: _ModelTurn) -> AsyncIterator[StreamChunk]:
        messages = conversation.messages
        tools = self._registry.definitions or None
        try:
            if self._config.incremental:
                async for chunk in self._stream_model(messages, tools, turn):
                    yield chunk
            else:
                async for chunk in self._generate_model(messages, tools, turn):
                    yield chunk
        except AgentError:
            raise
        except Exception as e:
            raise wrap_error(e, AgentErrorCode.LLM_ERROR) from e

    async def _stream_model(self, messages, tools, turn: _ModelTurn) -> AsyncIterator[StreamChunk]:
        async for delta in self._llm.stream(messages, tools, temperature=self._config.temperature):
            if delta.type == DeltaType.CONTENT:
                if delta.delta:
                    turn.content_parts.append(delta.delta)
                    yield ContentChunk(delta=delta.delta)

            elif delta.type == DeltaType.TOOL_CALL_START:
                if delta.call_id in turn.calls:
                    logger.warning(f"Duplicate tool call start ignored: {delta.call_id}")
                    continue
                turn.calls[delta.call_id] = _PendingCall(id=delta.call_id, name=delta.name or "")
                yield ToolCallStartChunk(call_id=delta.call_id, tool_name=delta.name or "")

            elif delta.type == DeltaType.TOOL_CALL_DELTA:
                call = turn.calls.get(delta.call_id)
                if call is None or call.ended:
                    logger.warning(f"Argument delta for unknown or closed tool call: {delta.call_id}")
                    continue
                if delta.delta:
                    call.parts.append(delta.delta)
                    yield ToolCallArgsChunk(call_id=call.id, delta=delta.delta)

            elif delta.type == DeltaType.TOOL_CALL_END:
                call = turn.calls.get(delta.call_id)
                if call is not None and not call.ended:
                    call.ended = True
                    yield ToolCallEndChunk(call_id=call.id)

            elif delta.type == DeltaType.FINISH:
                self._builder.add_usage(delta.usage)

        for call in turn.calls.values():
            if not call.ended:
                call.ended = True
                yield ToolCallEndChunk(call_id=call.id)

    async def _generate_model(self, messages, tools, turn: _ModelTurn) -> AsyncIterator[StreamChunk]:
        response = await self._llm.generate(messages, tools, temperature=self._config.temperature)
        self._builder.add_usage(response.usage)

        if response.content:
            turn.content_parts.append(response.content)
            yield ContentChunk(delta=response.content)

        for request in response.tool_calls:
            if request.id in turn.calls:
                logger.warning(f"Duplicate tool call id ignored: {request.id}")
                continue
            call = _PendingCall(id=request.id, name=request.name)
            turn.calls[request.id] = call
            yield ToolCallStartChunk(call_id=request.id, tool_name=request.name)
            if request.arguments:
                call.parts.append(request.arguments)
                yield ToolCallArgsChunk(call_id=request.id, delta=request.arguments)
            call.ended = True
            yield ToolCallEndChunk(call_id=request.id)

    # ------------------------------------------------------------------
    # Tool round
    # ------------------------------------------------------------------

    async def _run_tools(
        self,
        requests: tuple[ToolCallRequest, ...],
        conversation: Conversation,
        supervisor: RunSupervisor,
        context: ToolContext | None,
    ) -> AsyncIterator[StreamChunk]:
        results: dict[str, ToolResult] = {}

        if self._config.parallel_tool_calls:
            batches = [requests]
        else:
            batches = [(request,) for request in requests]

        try:
            for index, batch in enumerate(batches):
                if supervisor.triggered:
                    for request in requests[index:]:
                        result = ToolResult.failed(request.id, CANCELLED_BEFORE_DISPATCH)
                        results[request.id] = result
                        yield _result_chunk(result)
                    break
                async for chunk in self._dispatch(batch, results, supervisor, context):
                    yield chunk
        finally:
            # Records and tool messages stay in request order, whatever the completion order
            for request in requests:
                result = results.get(request.id)
                if result is None:
                    continue
                self._builder.record(request, result)
                conversation.append(
                    Message.tool_result(format_tool_result(result), tool_call_id=request.id, name=request.name)
                )

    async def _dispatch(
        self,
        batch: tuple[ToolCallRequest, ...],
        results: dict[str, ToolResult],
        supervisor: RunSupervisor,
        context: ToolContext | None,
    ) -> AsyncIterator[StreamChunk]:
        """Run one batch of calls concurrently, yielding results in completion order."""
        tasks = {asyncio.create_task(execute_tool(request, self._registry, context)): request for request in batch}
        order = {request.id: position for position, request in enumerate(batch)}
        pending = set(tasks)
        watcher: asyncio.Task[None] | None = None
        if self._config.cancel_policy == CancelPolicy.ABANDON:
            watcher = asyncio.create_task(supervisor.wait())

        try:
            while pending:
                waiting = pending | {watcher} if watcher is not None else pending
                done, _ = await asyncio.wait(waiting, return_when=asyncio.FIRST_COMPLETED)

                finished = sorted((t for t in done if t is not watcher), key=lambda t: order[tasks[t].id])
                for task in finished:
                    pending.discard(task)
                    request = tasks[task]
                    if task.cancelled():
                        result = ToolResult.failed(request.id, TOOL_CANCELLED)
                    else:
                        result = task.result()
                    results[request.id] = result
                    yield _result_chunk(result)

                if watcher is not None and watcher.done() and pending:
                    logger.info(f"Abandoning {len(pending)} in-flight tool call(s)")
                    for task in pending:
                        task.cancel()
                    await asyncio.gather(*pending, return_exceptions=True)
                    for task in sorted(pending, key=lambda t: order[tasks[t].id]):
                        request = tasks[task]
                        result = ToolResult.failed(request.id, ABANDONED)
                        results[request.id] = result
                        yield _result_chunk(result)
                    pending = set()
        finally:
            for task in pending:
                task.cancel()
            if watcher is not None and not watcher.done():
                watcher.cancel()


def _result_chunk(result: ToolResult) -> ToolResultChunk:
    return ToolResultChunk(
        call_id=result.tool_call_id,
        success=result.success,
        data=result.data if result.success else None,
        error=result.error,
    )


__all__ = ["LoopConfig", "ReActLoop"]
