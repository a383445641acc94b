"""Error hierarchy for reactloop.

Every error carries a machine-readable code so the loop can report it on the
stream and in the run result. Only ConfigurationError ever escapes the public
agent operations; the rest are either recovered into failed tool results or
converted into an ``error`` finish.
"""

from enum import Enum
from typing import Any


class AgentErrorCode(str, Enum):
    """Error codes for agent errors."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    TOOL_EXECUTION_FAILED = "TOOL_EXECUTION_FAILED"
    LLM_ERROR = "LLM_ERROR"
    ABORTED = "ABORTED"
    TIMEOUT = "TIMEOUT"
    STRUCTURED_OUTPUT_ERROR = "STRUCTURED_OUTPUT_ERROR"
    UNKNOWN = "UNKNOWN"


class AgentError(Exception):
    """Base exception for all reactloop errors.

    Args:
        message: Human-readable error message
        code: Error code for filtering/routing
        cause: Original exception that caused this error
    """

    code: AgentErrorCode = AgentErrorCode.UNKNOWN

    def __init__(
        self,
        message: str,
        code: AgentErrorCode | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.cause = cause

    @property
    def fatal(self) -> bool:
        """Whether this error terminates a run when raised inside the loop."""
        return self.code not in {
            AgentErrorCode.VALIDATION_ERROR,
            AgentErrorCode.TOOL_EXECUTION_FAILED,
            AgentErrorCode.STRUCTURED_OUTPUT_ERROR,
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for stream consumers."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code.value,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"


class ConfigurationError(AgentError, ValueError):
    """Raised for malformed agent or run configuration."""

    code = AgentErrorCode.CONFIGURATION_ERROR


class ToolValidationError(AgentError):
    """Raised when tool input fails its schema. Recovered locally."""

    code = AgentErrorCode.VALIDATION_ERROR

    def __init__(self, message: str, tool_name: str | None = None, cause: BaseException | None = None) -> None:
        super().__init__(message, cause=cause)
        self.tool_name = tool_name


class ToolExecutionError(AgentError):
    """Raised when a tool body fails. Recovered locally."""

    code = AgentErrorCode.TOOL_EXECUTION_FAILED

    def __init__(self, message: str, tool_name: str | None = None, cause: BaseException | None = None) -> None:
        super().__init__(message, cause=cause)
        self.tool_name = tool_name


class AdapterError(AgentError):
    """Raised when the LLM capability call fails (network, auth, provider)."""

    code = AgentErrorCode.LLM_ERROR


class AgentCancelledError(AgentError):
    """Raised at a suspension point once the run's cancellation token fired."""

    code = AgentErrorCode.ABORTED


class AgentTimeoutError(AgentError):
    """Raised at a suspension point once the run deadline has passed."""

    code = AgentErrorCode.TIMEOUT

    def __init__(self, message: str, timeout_seconds: float | None = None) -> None:
        super().__init__(message)
        self.timeout_seconds = timeout_seconds


class StructuredOutputParseError(AgentError):
    """Final content did not match the output schema. Never fatal."""

    code = AgentErrorCode.STRUCTURED_OUTPUT_ERROR


def wrap_error(error: BaseException, code: AgentErrorCode) -> AgentError:
    """Wrap an arbitrary exception as an AgentError, keeping AgentErrors as-is."""
    if isinstance(error, AgentError):
        return error
    message = str(error) or error.__class__.__name__
    if code == AgentErrorCode.LLM_ERROR:
        return AdapterError(message, cause=error)
    return AgentError(message, code=code, cause=error)


_RETRYABLE_MARKERS = ("network", "timeout", "rate limit", "429", "502", "503")


def is_retryable_error(error: BaseException) -> bool:
    """Check whether an error is worth retrying at the LLM-call layer.

    Cancellation and timeouts of the run itself are never retryable.
    """
    if isinstance(error, (AgentCancelledError, AgentTimeoutError, ConfigurationError)):
        return False
    if isinstance(error, AgentError) and error.code == AgentErrorCode.LLM_ERROR:
        if error.cause is not None:
            return is_retryable_error(error.cause)
        return True
    message = str(error).lower()
    return any(marker in message for marker in _RETRYABLE_MARKERS)


__all__ = [
    "AdapterError",
    "AgentCancelledError",
    "AgentError",
    "AgentErrorCode",
    "AgentTimeoutError",
    "ConfigurationError",
    "StructuredOutputParseError",
    "ToolExecutionError",
    "ToolValidationError",
    "is_retryable_error",
    "wrap_error",
]
