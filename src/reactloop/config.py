"""Configuration management for reactloop."""

import logging
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AgentSettings(BaseSettings):
    """Process-wide defaults for agents and the LiteLLM adapter.

    Explicit arguments to ``create_agent`` and ``create_llm_client`` always
    win over these values.
    """

    # Loop defaults
    max_iterations: int = Field(default=5, ge=1, alias="AGENT_MAX_ITERATIONS")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0, alias="AGENT_TEMPERATURE")
    run_timeout_seconds: float | None = Field(default=None, gt=0, alias="AGENT_RUN_TIMEOUT_SECONDS")
    parallel_tool_calls: bool = Field(default=True, alias="AGENT_PARALLEL_TOOL_CALLS")
    cancel_policy: str = Field(default="drain", alias="AGENT_CANCEL_POLICY")

    # LLM Settings
    llm_model: str = Field(default="openai/gpt-4o-mini", alias="LLM_MODEL")
    llm_api_key: str | None = Field(default=None, alias="LLM_API_KEY")
    llm_base_url: str | None = Field(default=None, alias="LLM_BASE_URL")
    llm_timeout_seconds: int = Field(default=120, alias="LLM_TIMEOUT_SECONDS")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("cancel_policy", mode="before")
    @classmethod
    def normalize_cancel_policy(cls, value: str | None) -> str:
        """Normalize cancel policy value from environment."""
        if value is None:
            return "drain"
        normalized = str(value).strip().lower()
        if normalized in {"drain", "abandon"}:
            return normalized
        raise ValueError("AGENT_CANCEL_POLICY must be one of: drain, abandon")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: str | None) -> str:
        if value is None:
            return "INFO"
        normalized = str(value).strip().upper()
        if normalized not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown LOG_LEVEL: {value}")
        return normalized


@lru_cache
def get_settings() -> AgentSettings:
    """Get cached settings instance."""
    return AgentSettings()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for scripts and workers embedding the loop."""
    logging.basicConfig(
        level=level or get_settings().log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


__all__ = ["AgentSettings", "configure_logging", "get_settings"]
