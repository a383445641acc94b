"""Conversation state for a single run.

Holds the ordered message history and notifies an optional persistence hook
once per message appended by the run. The hook is fire-and-forget: the loop
never waits on it, retries it, or fails because of it.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Iterable, Sequence
from dataclasses import replace
from typing import Any, Protocol, runtime_checkable

from reactloop.core.types import ToolCallRequest
from reactloop.llm.types import Message, MessageRole

logger = logging.getLogger(__name__)


@runtime_checkable
class MessageHook(Protocol):
    """Persistence hook invoked for each appended message.

    ``on_message`` may be a plain method or a coroutine function. It must be
    safe to call concurrently from several runs.
    """

    def on_message(self, thread_id: str | None, message: Message) -> Any:
        ...


class Conversation:
    """Ordered, append-only message history scoped to one run.

    Messages are immutable; ``append`` stamps each with its creation index.
    """

    def __init__(
        self,
        hook: MessageHook | None = None,
        thread_id: str | None = None,
    ) -> None:
        self._messages: list[Message] = []
        self._hook = hook
        self._thread_id = thread_id
        self._pending_hooks: set[asyncio.Task[Any]] = set()
        self._seeded = 0

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def seed(self, messages: Iterable[Message]) -> None:
        """Load existing history (system prompt, prior messages) without notifying the hook."""
        for message in messages:
            self._messages.append(replace(message, index=len(self._messages)))
        self._seeded = len(self._messages)

    def append(self, message: Message) -> Message:
        """Append a message produced by this run and notify the hook."""
        stored = replace(message, index=len(self._messages))
        self._messages.append(stored)
        self._notify(stored)
        return stored

    def last_assistant_content(self) -> str:
        """Content of the most recent assistant message this run produced."""
        for message in reversed(self._messages[self._seeded :]):
            if message.role == MessageRole.ASSISTANT and message.content:
                return message.content
        return ""

    def _notify(self, message: Message) -> None:
        if self._hook is None:
            return
        try:
            outcome = self._hook.on_message(self._thread_id, message)
        except Exception:
            logger.warning(f"Message hook failed for message {message.index}", exc_info=True)
            return
        if inspect.isawaitable(outcome):
            task = asyncio.ensure_future(outcome)
            self._pending_hooks.add(task)
            task.add_done_callback(self._hook_done)

    def _hook_done(self, task: asyncio.Task[Any]) -> None:
        self._pending_hooks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(f"Message hook failed: {exc}")


def coerce_messages(messages: Sequence[Message | dict[str, Any]]) -> list[Message]:
    """Accept Message objects or OpenAI-style dicts for seeding a conversation."""
    result: list[Message] = []
    for item in messages:
        if isinstance(item, Message):
            result.append(item)
            continue
        tool_calls = tuple(
            ToolCallRequest(
                id=tc["id"],
                name=tc["function"]["name"],
                arguments=tc["function"].get("arguments") or "",
            )
            for tc in item.get("tool_calls") or ()
        )
        result.append(
            Message(
                role=MessageRole(item["role"]),
                content=item.get("content"),
                tool_calls=tool_calls,
                tool_call_id=item.get("tool_call_id"),
                name=item.get("name"),
            )
        )
    return result


__all__ = ["Conversation", "MessageHook", "coerce_messages"]
