from __future__ import annotations

from typing import Any, Dict, Iterable

from ..errors import ToolInputError


def first_present(payload: Dict[str, Any], keys: Iterable[str], tool: str) -> Any:
    """Return the first non-empty value among ``keys`` in ``payload``."""
    keys = tuple(keys)
    for key in keys:
        value = payload.get(key)
        if value not in (None, ""):
            return value
    raise ToolInputError(f"{tool}: missing input, expected one of {', '.join(keys)}")
