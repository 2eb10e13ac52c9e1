"""Step execution for toolflow workflows."""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Mapping
from typing import Any, Dict, Optional

from pydantic import TypeAdapter, ValidationError

from .contracts import Payload, Step, StepResult, merge_state
from .registry import ToolRegistry

logger = logging.getLogger(__name__)

_payload_adapter: TypeAdapter[Payload] = TypeAdapter(Payload)


class StepExecutor:
    """Runs one workflow step against the current running state."""

    def __init__(self, registry: ToolRegistry, timeout: Optional[float] = None) -> None:
        self._registry = registry
        self._timeout = timeout or None

    async def run_step(self, step: Step, running_state: Dict[str, Any]) -> StepResult:
        """Invoke the step's tool with ``running_state`` overlaid by the step config.

        Tool failures are returned as a :class:`StepResult`, never raised.
        """
        tool = self._registry.resolve(step.tool_id)
        if tool is None:
            logger.warning(f"Step {step.ordinal}: tool '{step.tool_id}' is not registered")
            return StepResult.not_found(step)

        # Tools get their own copy; nested config must not leak between runs.
        payload = copy.deepcopy(merge_state(running_state, step.config))
        logger.debug(f"Step {step.ordinal}: invoking '{step.tool_id}' with keys {list(payload)}")

        try:
            if self._timeout:
                raw = await asyncio.wait_for(tool.invoke(payload), timeout=self._timeout)
            else:
                raw = await tool.invoke(payload)
        except Exception as e:
            if isinstance(e, asyncio.TimeoutError) and self._timeout:
                message = f"timed out after {self._timeout}s"
            else:
                message = str(e) or type(e).__name__
            logger.warning(f"Step {step.ordinal}: tool '{step.tool_id}' failed: {message}")
            return StepResult.execution_error(step, message)

        if not isinstance(raw, Mapping):
            return StepResult.execution_error(
                step, f"tool returned {type(raw).__name__}, expected a mapping"
            )
        try:
            output = _payload_adapter.validate_python(dict(raw))
        except ValidationError as e:
            return StepResult.execution_error(step, f"tool returned a non-JSON payload: {e}")

        return StepResult.ok(step, output)
