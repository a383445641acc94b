"""Connection and sampling settings for the LiteLLM adapter."""

from dataclasses import dataclass
from typing import Any, Optional

from reactloop.config import AgentSettings, get_settings


@dataclass(frozen=True, kw_only=True)
class LLMConfig:
    """Immutable LLM configuration.

    Attributes:
        model: Model identifier with provider prefix (e.g., "openai/gpt-4o")
        api_key: Optional API key; LiteLLM falls back to provider env vars
        base_url: Optional API base for self-hosted or proxied endpoints
        temperature: Default sampling temperature, overridable per call
        max_tokens: Maximum tokens in response
        top_p: Top-p sampling (0.0 to 1.0)
        timeout_seconds: Per-request timeout
    """

    model: str
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    temperature: float = 0.7
    max_tokens: int = 4096
    top_p: float = 1.0
    timeout_seconds: int = 120

    @classmethod
    def from_settings(cls, settings: Optional[AgentSettings] = None, **overrides: Any) -> "LLMConfig":
        """Build a config from LLM_* settings; non-None overrides win."""
        settings = settings or get_settings()
        values: dict[str, Any] = {
            "model": settings.llm_model,
            "api_key": settings.llm_api_key,
            "base_url": settings.llm_base_url,
            "timeout_seconds": settings.llm_timeout_seconds,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    def completion_params(self) -> dict[str, Any]:
        """Base keyword arguments for ``litellm.acompletion``."""
        params: dict[str, Any] = {
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "top_p": self.top_p,
            "timeout": self.timeout_seconds,
        }
        if self.api_key:
            params["api_key"] = self.api_key
        if self.base_url:
            params["api_base"] = self.base_url
        return params


__all__ = ["LLMConfig"]
