"""Cancellation and timeout supervision for a run.

A CancellationToken is the caller-facing signal. A RunSupervisor combines an
optional token with an optional deadline and is what the loop consults at
every suspension point (before each model call and before each tool round).
"""

from __future__ import annotations

import asyncio
import logging
import time

from reactloop.core.errors import AgentCancelledError, AgentTimeoutError

logger = logging.getLogger(__name__)


class CancellationToken:
    """Explicit cancellation signal passed down the call chain.

    Example:
        token = CancellationToken()
        task = asyncio.create_task(agent.run("...", RunOptions(signal=token)))
        token.cancel("user pressed stop")
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._cancelled = False
        self._reason: str | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        """Fire the signal. Idempotent; the first reason wins.

        Safe to call from a worker thread, e.g. from a synchronous tool body.
        """
        if self._cancelled:
            return
        self._cancelled = True
        self._reason = reason
        loop = self._loop
        if loop is not None and not loop.is_closed() and _running_loop() is not loop:
            loop.call_soon_threadsafe(self._event.set)
        else:
            self._event.set()

    async def wait(self) -> None:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        if self._cancelled:
            return
        await self._event.wait()


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class RunSupervisor:
    """Checks a run's cancellation token and deadline.

    Args:
        signal: Optional caller-owned cancellation token
        timeout: Optional run timeout in seconds, measured from construction
    """

    def __init__(self, signal: CancellationToken | None = None, timeout: float | None = None) -> None:
        self._signal = signal
        self._timeout = timeout
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    @property
    def timeout(self) -> float | None:
        return self._timeout

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None without a deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    @property
    def triggered(self) -> bool:
        if self._signal is not None and self._signal.cancelled:
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def check(self) -> None:
        """Raise if the run has been cancelled or its deadline has passed.

        Raises:
            AgentCancelledError: The token fired
            AgentTimeoutError: The deadline passed
        """
        if self._signal is not None and self._signal.cancelled:
            reason = self._signal.reason
            message = "Agent execution was aborted"
            if reason:
                message = f"{message}: {reason}"
            raise AgentCancelledError(message)
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise AgentTimeoutError(
                f"Agent execution timed out after {self._timeout}s",
                timeout_seconds=self._timeout,
            )

    async def wait(self) -> None:
        """Return once the token fires or the deadline passes.

        Never returns for a run with neither a token nor a deadline.
        """
        remaining = self.remaining()
        if self._signal is None:
            if remaining is None:
                await asyncio.Event().wait()
            else:
                await asyncio.sleep(remaining)
            return
        if remaining is None:
            await self._signal.wait()
            return
        try:
            await asyncio.wait_for(self._signal.wait(), timeout=remaining)
        except TimeoutError:
            logger.debug(f"Run deadline of {self._timeout}s reached")


__all__ = ["CancellationToken", "RunSupervisor"]
