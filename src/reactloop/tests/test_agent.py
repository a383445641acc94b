"""Tests for the agent facade configuration and factory."""

import pytest
from pydantic import BaseModel

from reactloop.agents.react import AgentConfig, ReActAgent, RunOptions, create_agent
from reactloop.core.errors import ConfigurationError
from reactloop.core.types import CancelPolicy
from reactloop.llm.litellm_adapter import LiteLLMAdapter
from reactloop.tests.support import MockLLMClient, call, reply


class Answer(BaseModel):
    value: int


@pytest.mark.unit
class TestAgentConfig:
    """Tests for AgentConfig validation."""

    def test_defaults(self):
        config = AgentConfig(name="a", llm=MockLLMClient())
        assert config.max_iterations == 5
        assert config.temperature == 0.7
        assert config.cancel_policy == CancelPolicy.DRAIN
        assert config.parallel_tool_calls is True

    @pytest.mark.parametrize(
        "overrides",
        [
            {"max_iterations": 0},
            {"temperature": 2.5},
            {"temperature": -0.1},
            {"run_timeout": 0},
            {"name": ""},
            {"llm": None},
            {"output_schema": dict},
        ],
    )
    def test_invalid(self, overrides):
        kwargs = {"name": "a", "llm": MockLLMClient(), **overrides}
        with pytest.raises(ConfigurationError):
            AgentConfig(**kwargs)

    def test_cancel_policy_string(self):
        config = AgentConfig(name="a", llm=MockLLMClient(), cancel_policy="abandon")
        assert config.cancel_policy is CancelPolicy.ABANDON

    def test_immutable(self):
        config = AgentConfig(name="a", llm=MockLLMClient())
        with pytest.raises(AttributeError):
            config.max_iterations = 10


@pytest.mark.unit
class TestRunOptions:
    """Tests for RunOptions validation."""

    @pytest.mark.parametrize("overrides", [{"max_iterations": 0}, {"temperature": 3}, {"timeout": -1}])
    def test_invalid(self, overrides):
        with pytest.raises(ConfigurationError):
            RunOptions(**overrides)

    def test_defaults(self):
        options = RunOptions()
        assert options.signal is None
        assert options.metadata == {}


@pytest.mark.unit
class TestReActAgent:
    """Tests for agent construction."""

    def test_duplicate_tools_rejected(self, add_tool):
        with pytest.raises(ConfigurationError):
            ReActAgent(AgentConfig(name="a", llm=MockLLMClient(), tools=[add_tool, add_tool]))

    def test_functions_become_tools(self):
        def echo(text: str) -> str:
            """Echo text back."""
            return text

        agent = ReActAgent(AgentConfig(name="a", llm=MockLLMClient(), tools=[echo]))
        assert list(agent.registry) == ["echo"]
        assert agent.name == "a"

    def test_chat_requires_history(self):
        agent = ReActAgent(AgentConfig(name="a", llm=MockLLMClient()))
        with pytest.raises(ConfigurationError):
            agent.chat([])

    @pytest.mark.asyncio
    async def test_per_run_max_iterations(self, add_tool):
        llm = MockLLMClient([reply(None, call("c1", "add", a=1, b=1))])
        agent = ReActAgent(AgentConfig(name="a", llm=llm, tools=[add_tool], max_iterations=5))

        result = await agent.run("go", RunOptions(max_iterations=1))

        assert result.finish_reason.value == "max_iterations"
        assert llm.call_count == 1


@pytest.mark.unit
class TestCreateAgent:
    """Tests for the settings-aware factory."""

    def test_settings_defaults(self, monkeypatch):
        monkeypatch.setenv("AGENT_MAX_ITERATIONS", "7")
        monkeypatch.setenv("AGENT_CANCEL_POLICY", "abandon")
        monkeypatch.setenv("AGENT_RUN_TIMEOUT_SECONDS", "12.5")

        agent = create_agent("helper", llm=MockLLMClient(), output_schema=Answer)

        assert agent.config.max_iterations == 7
        assert agent.config.cancel_policy is CancelPolicy.ABANDON
        assert agent.config.run_timeout == 12.5
        assert agent.config.output_schema is Answer

    def test_explicit_values_win(self, monkeypatch):
        monkeypatch.setenv("AGENT_MAX_ITERATIONS", "7")

        agent = create_agent("helper", llm=MockLLMClient(), max_iterations=2, temperature=0.0)

        assert agent.config.max_iterations == 2
        assert agent.config.temperature == 0.0

    def test_default_llm_is_litellm(self, monkeypatch):
        monkeypatch.setenv("LLM_MODEL", "openai/gpt-4o")

        agent = create_agent("helper")

        assert isinstance(agent.config.llm, LiteLLMAdapter)
        assert agent.config.llm.config.model == "openai/gpt-4o"
