"""Retry policy and a retrying LLM client wrapper.

Exponential backoff with provider retry-after header support. The wrapper
retries ``generate`` calls, and ``stream`` calls only while nothing has been
yielded yet: once a delta reached the loop a retry would duplicate output.
"""

import asyncio
import logging
import re
import time
from collections.abc import AsyncIterator, Sequence
from email.utils import parsedate_to_datetime
from typing import Any, ClassVar

from reactloop.core.errors import AdapterError, AgentCancelledError, AgentTimeoutError
from reactloop.llm.protocol import LLMClient
from reactloop.llm.types import ChatResponse, Message, ModelDelta
from reactloop.tools.protocol import ToolDefinition

logger = logging.getLogger(__name__)


class RetryPolicy:
    """
    Retry strategy for LLM capability calls.

    Features:
    - Exponential backoff with configurable parameters
    - Provider retry-after header parsing (ms and seconds)
    - Error classification by message pattern and HTTP status

    Example:
        policy = RetryPolicy(max_attempts=3)
        if policy.should_retry(attempt, error):
            await asyncio.sleep(policy.calculate_delay(attempt, error) / 1000)
    """

    INITIAL_DELAY_MS = 2000
    BACKOFF_FACTOR = 2
    MAX_DELAY_NO_HEADERS_MS = 30000
    MAX_ATTEMPTS = 3

    RETRYABLE_PATTERNS: ClassVar[list[str]] = [
        r"overloaded",
        r"too_many_requests",
        r"rate.?limit",
        r"exhausted",
        r"unavailable",
        r"server.?error",
        r"timeout",
        r"timed out",
        r"connection.?reset",
        r"connection.?refused",
        r"temporary.?failure",
        r"bad.?gateway",
    ]

    RETRYABLE_STATUS_CODES: ClassVar[set[int]] = {429, 500, 502, 503, 504}

    def __init__(
        self,
        initial_delay_ms: int = INITIAL_DELAY_MS,
        backoff_factor: int = BACKOFF_FACTOR,
        max_delay_ms: int = MAX_DELAY_NO_HEADERS_MS,
        max_attempts: int = MAX_ATTEMPTS,
    ) -> None:
        """
        Initialize retry policy.

        Args:
            initial_delay_ms: Delay before the first retry
            backoff_factor: Multiplier for each subsequent retry
            max_delay_ms: Cap for backoff delays computed without headers
            max_attempts: Total attempts, including the first one
        """
        self.initial_delay_ms = initial_delay_ms
        self.backoff_factor = backoff_factor
        self.max_delay_ms = max_delay_ms
        self.max_attempts = max_attempts

    @staticmethod
    def _root(error: BaseException) -> BaseException:
        if isinstance(error, AdapterError) and error.cause is not None:
            return error.cause
        return error

    def is_retryable(self, error: BaseException) -> bool:
        """Determine if an error is worth another attempt."""
        if isinstance(error, (AgentCancelledError, AgentTimeoutError)):
            return False
        root = self._root(error)

        error_str = str(root).lower()
        for pattern in self.RETRYABLE_PATTERNS:
            if re.search(pattern, error_str, re.IGNORECASE):
                return True

        status_code = self._get_status_code(root)
        if status_code and status_code in self.RETRYABLE_STATUS_CODES:
            return True

        error_type = type(root).__name__.lower()
        return any(t in error_type for t in ("timeout", "connection", "temporary"))

    def calculate_delay(self, attempt: int, error: BaseException | None = None) -> int:
        """
        Calculate retry delay in milliseconds.

        Provider retry-after headers win over exponential backoff.
        """
        if error is not None:
            header_delay = self._parse_retry_after_headers(self._root(error))
            if header_delay is not None:
                return header_delay

        delay = self.initial_delay_ms * (self.backoff_factor ** (attempt - 1))
        return min(delay, self.max_delay_ms)

    def should_retry(self, attempt: int, error: BaseException) -> bool:
        """Whether attempt number ``attempt`` (1-based) should be followed by another."""
        if attempt >= self.max_attempts:
            return False
        return self.is_retryable(error)

    def _parse_retry_after_headers(self, error: BaseException) -> int | None:
        headers = self._get_headers(error)
        if not headers:
            return None

        retry_after_ms = headers.get("retry-after-ms")
        if retry_after_ms:
            try:
                return int(retry_after_ms)
            except (ValueError, TypeError):
                pass

        retry_after = headers.get("retry-after")
        if retry_after:
            try:
                return int(float(retry_after) * 1000)
            except (ValueError, TypeError):
                pass

            try:
                dt = parsedate_to_datetime(retry_after)
                delay_seconds = dt.timestamp() - time.time()
                if delay_seconds > 0:
                    return int(delay_seconds * 1000)
            except (ValueError, TypeError):
                pass

        return None

    @staticmethod
    def _get_headers(error: BaseException) -> dict | None:
        for attr in ("response", "http_response", "_response"):
            response = getattr(error, attr, None)
            if response is not None:
                headers = getattr(response, "headers", None)
                if headers:
                    return dict(headers.items()) if hasattr(headers, "items") else dict(headers)

        headers = getattr(error, "headers", None)
        if headers:
            return dict(headers.items()) if hasattr(headers, "items") else dict(headers)
        return None

    @staticmethod
    def _get_status_code(error: BaseException) -> int | None:
        for attr in ("status_code", "status", "http_status"):
            code = getattr(error, attr, None)
            if code is not None:
                try:
                    return int(code)
                except (ValueError, TypeError):
                    pass

        for attr in ("response", "http_response", "_response"):
            response = getattr(error, attr, None)
            if response is not None:
                for code_attr in ("status_code", "status"):
                    code = getattr(response, code_attr, None)
                    if code is not None:
                        try:
                            return int(code)
                        except (ValueError, TypeError):
                            pass
        return None

    def get_retry_message(self, attempt: int, delay_ms: int, error: BaseException) -> str:
        """Human-readable retry message for logs."""
        error_str = str(error)
        if len(error_str) > 100:
            error_str = error_str[:100] + "..."
        return (
            f"Retry attempt {attempt}/{self.max_attempts} "
            f"after {delay_ms}ms delay. "
            f"Error: {error_str}"
        )


class RetryingLLMClient:
    """LLM capability that retries transient failures of an inner client.

    Example:
        client = RetryingLLMClient(create_llm_client(), RetryPolicy(max_attempts=3))
    """

    def __init__(self, inner: LLMClient, policy: RetryPolicy | None = None) -> None:
        self._inner = inner
        self._policy = policy or RetryPolicy()

    @property
    def inner(self) -> LLMClient:
        return self._inner

    async def _backoff(self, attempt: int, error: BaseException) -> None:
        delay_ms = self._policy.calculate_delay(attempt, error)
        logger.warning(self._policy.get_retry_message(attempt, delay_ms, error))
        await asyncio.sleep(delay_ms / 1000)

    async def generate(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolDefinition] | None = None,
        **kwargs: Any,
    ) -> ChatResponse:
        attempt = 1
        while True:
            try:
                return await self._inner.generate(messages, tools, **kwargs)
            except Exception as e:
                if not self._policy.should_retry(attempt, e):
                    raise
                await self._backoff(attempt, e)
                attempt += 1

    async def stream(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolDefinition] | None = None,
        **kwargs: Any,
    ) -> AsyncIterator[ModelDelta]:
        attempt = 1
        while True:
            yielded = False
            try:
                async for delta in self._inner.stream(messages, tools, **kwargs):
                    yielded = True
                    yield delta
                return
            except Exception as e:
                if yielded or not self._policy.should_retry(attempt, e):
                    raise
                await self._backoff(attempt, e)
                attempt += 1


__all__ = ["RetryPolicy", "RetryingLLMClient"]
