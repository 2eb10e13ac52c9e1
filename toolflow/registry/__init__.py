"""Tool registry: a fixed mapping from tool id to capability."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Optional

from .models import ParamDescriptor, ToolDescriptor
from .tool import FunctionTool, Tool, ToolFn

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Read-only lookup of tools by id.

    The set of tools is fixed when the registry is built. Use
    :meth:`extended` to derive a registry with additional tools; the
    original is never mutated, so one instance can be shared by any
    number of concurrent executions.
    """

    def __init__(self, tools: Iterable[Tool] = ()) -> None:
        mapping: Dict[str, Tool] = {}
        for tool in tools:
            if tool.name in mapping:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            mapping[tool.name] = tool
        self._tools = MappingProxyType(mapping)
        logger.debug(f"Tool registry built with tools: {list(mapping)}")

    def resolve(self, tool_id: str) -> Optional[Tool]:
        """Return the tool registered as ``tool_id`` or ``None``."""
        return self._tools.get(tool_id)

    def names(self) -> List[str]:
        return list(self._tools)

    def descriptors(self) -> List[ToolDescriptor]:
        return [
            getattr(tool, "descriptor", None) or ToolDescriptor(name=name)
            for name, tool in self._tools.items()
        ]

    def extended(self, *tools: Tool) -> "ToolRegistry":
        """Return a new registry holding these tools plus ``tools``."""
        return ToolRegistry([*self._tools.values(), *tools])

    def __contains__(self, tool_id: object) -> bool:
        return tool_id in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[str]:
        return iter(self._tools)


__all__ = [
    "FunctionTool",
    "ParamDescriptor",
    "Tool",
    "ToolDescriptor",
    "ToolFn",
    "ToolRegistry",
]
