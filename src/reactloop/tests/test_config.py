"""Tests for settings and logging configuration."""

from unittest.mock import patch

import pytest
from pydantic import ValidationError

from reactloop.config import AgentSettings, configure_logging, get_settings


@pytest.mark.unit
class TestAgentSettings:
    """Tests for AgentSettings."""

    def test_defaults(self, monkeypatch):
        for name in ("AGENT_MAX_ITERATIONS", "AGENT_TEMPERATURE", "AGENT_CANCEL_POLICY", "LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)

        settings = AgentSettings(_env_file=None)

        assert settings.max_iterations == 5
        assert settings.temperature == 0.7
        assert settings.run_timeout_seconds is None
        assert settings.parallel_tool_calls is True
        assert settings.cancel_policy == "drain"
        assert settings.log_level == "INFO"

    def test_env_aliases(self, monkeypatch):
        monkeypatch.setenv("AGENT_MAX_ITERATIONS", "9")
        monkeypatch.setenv("AGENT_TEMPERATURE", "0.1")
        monkeypatch.setenv("AGENT_RUN_TIMEOUT_SECONDS", "30")
        monkeypatch.setenv("AGENT_PARALLEL_TOOL_CALLS", "false")
        monkeypatch.setenv("AGENT_CANCEL_POLICY", " Abandon ")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = AgentSettings(_env_file=None)

        assert settings.max_iterations == 9
        assert settings.temperature == 0.1
        assert settings.run_timeout_seconds == 30
        assert settings.parallel_tool_calls is False
        assert settings.cancel_policy == "abandon"
        assert settings.log_level == "DEBUG"

    def test_invalid_values(self, monkeypatch):
        monkeypatch.setenv("AGENT_CANCEL_POLICY", "explode")
        with pytest.raises(ValidationError):
            AgentSettings(_env_file=None)

        monkeypatch.setenv("AGENT_CANCEL_POLICY", "drain")
        monkeypatch.setenv("AGENT_MAX_ITERATIONS", "0")
        with pytest.raises(ValidationError):
            AgentSettings(_env_file=None)

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


@pytest.mark.unit
class TestConfigureLogging:
    def test_uses_settings_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        with patch("reactloop.config.logging.basicConfig") as basic_config:
            configure_logging()

        kwargs = basic_config.call_args.kwargs
        assert kwargs["level"] == "WARNING"
        assert kwargs["format"] == "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    def test_explicit_level(self):
        with patch("reactloop.config.logging.basicConfig") as basic_config:
            configure_logging("ERROR")

        assert basic_config.call_args.kwargs["level"] == "ERROR"
