"""Tests for RetryPolicy and RetryingLLMClient."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from reactloop.core.errors import AdapterError, AgentCancelledError
from reactloop.llm.retry import RetryingLLMClient, RetryPolicy
from reactloop.llm.types import Message, ModelDelta
from reactloop.tests.support import MockLLMClient, reply


class StatusError(Exception):
    def __init__(self, message, status_code=None, headers=None):
        super().__init__(message)
        self.status_code = status_code
        self.response = SimpleNamespace(headers=headers or {}, status_code=status_code)


@pytest.mark.unit
class TestRetryPolicy:
    """Tests for RetryPolicy."""

    def test_retryable_patterns(self):
        policy = RetryPolicy()
        assert policy.is_retryable(Exception("Rate limit exceeded"))
        assert policy.is_retryable(Exception("Service Unavailable"))
        assert policy.is_retryable(Exception("Request timed out"))
        assert not policy.is_retryable(Exception("Invalid API key"))

    def test_retryable_status_codes(self):
        policy = RetryPolicy()
        assert policy.is_retryable(StatusError("oops", status_code=429))
        assert policy.is_retryable(StatusError("oops", status_code=503))
        assert not policy.is_retryable(StatusError("oops", status_code=400))

    def test_adapter_error_uses_cause(self):
        policy = RetryPolicy()
        error = AdapterError("wrapped", cause=StatusError("oops", status_code=502))
        assert policy.is_retryable(error)

    def test_cancellation_never_retryable(self):
        assert not RetryPolicy().is_retryable(AgentCancelledError("Agent execution timed out"))

    def test_exponential_backoff(self):
        policy = RetryPolicy(initial_delay_ms=100, backoff_factor=2, max_delay_ms=350)
        assert policy.calculate_delay(1) == 100
        assert policy.calculate_delay(2) == 200
        assert policy.calculate_delay(3) == 350

    def test_retry_after_headers(self):
        policy = RetryPolicy()
        assert policy.calculate_delay(1, StatusError("x", headers={"retry-after-ms": "250"})) == 250
        assert policy.calculate_delay(1, StatusError("x", headers={"retry-after": "1.5"})) == 1500

    def test_should_retry_respects_max_attempts(self):
        policy = RetryPolicy(max_attempts=2)
        error = Exception("overloaded")
        assert policy.should_retry(1, error)
        assert not policy.should_retry(2, error)

    def test_retry_message(self):
        message = RetryPolicy(max_attempts=3).get_retry_message(1, 100, Exception("x" * 200))
        assert message.startswith("Retry attempt 1/3 after 100ms delay.")
        assert message.endswith("...")


@pytest.mark.unit
class TestRetryingLLMClient:
    """Tests for the retrying wrapper."""

    @pytest.mark.asyncio
    async def test_generate_retries_transient_errors(self):
        inner = MockLLMClient([AdapterError("503 Service Unavailable"), reply("ok")])
        client = RetryingLLMClient(inner, RetryPolicy(initial_delay_ms=1))

        with patch("reactloop.llm.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            response = await client.generate([Message.user("hi")])

        assert response.content == "ok"
        assert inner.call_count == 2
        mock_sleep.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_generate_gives_up(self):
        inner = MockLLMClient([AdapterError("overloaded"), AdapterError("overloaded")])
        client = RetryingLLMClient(inner, RetryPolicy(initial_delay_ms=1, max_attempts=2))

        with patch("reactloop.llm.retry.asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(AdapterError):
                await client.generate([Message.user("hi")])

        assert inner.call_count == 2

    @pytest.mark.asyncio
    async def test_generate_does_not_retry_permanent_errors(self):
        inner = MockLLMClient([AdapterError("Invalid API key"), reply("never")])
        client = RetryingLLMClient(inner)

        with pytest.raises(AdapterError):
            await client.generate([Message.user("hi")])

        assert inner.call_count == 1

    @pytest.mark.asyncio
    async def test_stream_retries_before_first_delta(self):
        inner = MockLLMClient([ConnectionError("connection reset"), reply("hello")])
        client = RetryingLLMClient(inner, RetryPolicy(initial_delay_ms=1))

        with patch("reactloop.llm.retry.asyncio.sleep", new_callable=AsyncMock):
            deltas = [d async for d in client.stream([Message.user("hi")])]

        assert "".join(d.delta for d in deltas) == "hello"
        assert inner.call_count == 2

    @pytest.mark.asyncio
    async def test_stream_does_not_retry_after_output(self):
        class FlakyStream(MockLLMClient):
            async def stream(self, messages, tools=None, **kwargs):
                self.calls.append(list(messages))
                yield ModelDelta.content("partial")
                raise ConnectionError("connection reset")

        inner = FlakyStream()
        client = RetryingLLMClient(inner, RetryPolicy(initial_delay_ms=1))

        received = []
        with pytest.raises(ConnectionError):
            async for delta in client.stream([Message.user("hi")]):
                received.append(delta.delta)

        assert received == ["partial"]
        assert inner.call_count == 1
