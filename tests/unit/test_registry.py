"""Tests for the tool registry."""

import pytest

from toolflow.registry import FunctionTool, Tool, ToolDescriptor, ToolRegistry


async def _echo(payload):
    """Echo the payload back."""
    return dict(payload)


def test_resolve_known_and_unknown() -> None:
    tool = FunctionTool("echo", _echo)
    registry = ToolRegistry([tool])
    assert registry.resolve("echo") is tool
    assert registry.resolve("missing") is None
    assert "echo" in registry
    assert len(registry) == 1


def test_duplicate_names_rejected() -> None:
    with pytest.raises(ValueError):
        ToolRegistry([FunctionTool("echo", _echo), FunctionTool("echo", _echo)])


def test_extended_returns_new_registry() -> None:
    base = ToolRegistry([FunctionTool("echo", _echo)])
    bigger = base.extended(FunctionTool("other", _echo))
    assert base.names() == ["echo"]
    assert bigger.names() == ["echo", "other"]


def test_descriptors_fall_back_to_docstring() -> None:
    registry = ToolRegistry([FunctionTool("echo", _echo)])
    (descriptor,) = registry.descriptors()
    assert isinstance(descriptor, ToolDescriptor)
    assert descriptor.description == "Echo the payload back."


def test_function_tool_satisfies_protocol() -> None:
    assert isinstance(FunctionTool("echo", _echo), Tool)


def test_descriptor_requires_name() -> None:
    with pytest.raises(ValueError):
        ToolDescriptor(name="  ")


@pytest.mark.asyncio
async def test_function_tool_invokes_callable() -> None:
    assert await FunctionTool("echo", _echo).invoke({"a": 1}) == {"a": 1}
