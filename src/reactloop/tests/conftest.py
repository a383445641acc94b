"""Shared fixtures for reactloop tests."""

import pytest

from reactloop.config import get_settings
from reactloop.tests.support import (
    AddInput,
    BlockingInput,
    EmptyInput,
    SlowInput,
    add_numbers,
    blocking_echo,
    explode,
    self_cancelling,
    slow_echo,
)
from reactloop.tools.protocol import ToolDefinition


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached per process; isolate tests that patch the environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def add_tool() -> ToolDefinition:
    return ToolDefinition(name="add", description="Add two integers", input_schema=AddInput, execute=add_numbers)


@pytest.fixture
def slow_tool() -> ToolDefinition:
    return ToolDefinition(
        name="slow", description="Sleep, then echo the label", input_schema=SlowInput, execute=slow_echo
    )


@pytest.fixture
def boom_tool() -> ToolDefinition:
    return ToolDefinition(name="boom", description="Always fails", input_schema=EmptyInput, execute=explode)


@pytest.fixture
def tools(add_tool, slow_tool, boom_tool) -> list[ToolDefinition]:
    return [add_tool, slow_tool, boom_tool]


@pytest.fixture
def blocking_tool() -> ToolDefinition:
    return ToolDefinition(
        name="block", description="Block, then echo the label", input_schema=BlockingInput, execute=blocking_echo
    )


@pytest.fixture
def self_cancelling_tool() -> ToolDefinition:
    return ToolDefinition(
        name="halt", description="Raise CancelledError from the body", input_schema=EmptyInput, execute=self_cancelling
    )
