"""Tool protocol and a wrapper for plain async callables."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, runtime_checkable

from .models import ToolDescriptor

ToolFn = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]


@runtime_checkable
class Tool(Protocol):
    """A named capability invoked with a payload, producing a payload."""

    name: str

    async def invoke(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Run the tool. May raise on failure."""


class FunctionTool:
    """Expose an async function as a :class:`Tool`."""

    def __init__(
        self, name: str, fn: ToolFn, descriptor: Optional[ToolDescriptor] = None
    ) -> None:
        self.name = name
        self._fn = fn
        self.descriptor = descriptor or ToolDescriptor(
            name=name, description=(fn.__doc__ or "").strip() or None
        )

    async def invoke(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._fn(payload)

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"FunctionTool(name={self.name!r})"
