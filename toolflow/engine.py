"""Workflow engine: runs a workflow's steps in order and records the outcome."""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import Any, Awaitable, Dict, Optional, TypeVar

from .contracts import (
    Execution,
    ExecutionStatus,
    FailureDetail,
    Payload,
    Step,
    StepOutcome,
    StepResult,
    Workflow,
    merge_state,
)
from .errors import PersistenceError
from .execute import StepExecutor
from .persistence import ExecutionLedger
from .registry import ToolRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _cancelled(step: Step) -> FailureDetail:
    return FailureDetail(
        ordinal=step.ordinal,
        tool_id=step.tool_id,
        kind=StepOutcome.CANCELLED,
        message="execution cancelled",
    )


class WorkflowEngine:
    """Executes workflows against a tool registry and an execution ledger.

    Steps run strictly in ordinal order. Each step receives the union of
    the original input and everything produced so far, with later keys
    taking precedence. The first failing step halts the run.

    Tool failures never escape :meth:`execute`; they become a ``failed``
    execution. Ledger failures do escape, as :class:`PersistenceError`.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        ledger: ExecutionLedger,
        timeout: Optional[float] = None,
    ) -> None:
        self._ledger = ledger
        self._executor = StepExecutor(registry, timeout=timeout)

    async def execute(
        self,
        workflow: Workflow,
        initial_input: Optional[Dict[str, Any]] = None,
        user_id: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Execution:
        """Run ``workflow`` and return its terminal execution record.

        Args:
            workflow: Workflow to run. Must have been persisted (has an id).
            initial_input: Payload the first step starts from.
            user_id: The invoking user, recorded on the execution.
            cancel_event: Optional event checked between steps. When set the
                execution fails before the next step starts.
        """
        if workflow.id is None:
            raise ValueError("workflow must be persisted before it is executed")

        initial: Payload = copy.deepcopy(dict(initial_input or {}))
        execution_id = await self._ledger_call(
            self._ledger.create_execution(
                workflow.id, user_id or workflow.owner_id, initial, ExecutionStatus.RUNNING
            )
        )
        logger.info(
            f"Execution {execution_id} started for workflow {workflow.id} "
            f"({len(workflow.steps)} steps)"
        )

        running_state = merge_state(initial)
        failure: Optional[FailureDetail] = None
        step = workflow.steps[0]
        try:
            for step in workflow.steps:
                if cancel_event is not None and cancel_event.is_set():
                    failure = _cancelled(step)
                    break

                result: StepResult = await self._executor.run_step(step, running_state)
                if not result.is_ok:
                    failure = result.to_failure()
                    break
                running_state = merge_state(running_state, result.output)
                logger.debug(f"Execution {execution_id}: step {step.ordinal} ({step.tool_id}) ok")
        except asyncio.CancelledError:
            # The task was cancelled mid-step; record it before letting it unwind.
            logger.warning(f"Execution {execution_id} cancelled during step {step.ordinal}")
            await self._finish(execution_id, running_state, _cancelled(step))
            raise

        await self._finish(execution_id, running_state, failure)
        execution = await self._ledger_call(self._ledger.get_execution(execution_id))
        if execution is None:
            raise PersistenceError(f"Execution {execution_id} vanished from the ledger")
        return execution

    async def _finish(
        self, execution_id: str, running_state: Payload, failure: Optional[FailureDetail]
    ) -> None:
        if failure is None:
            await self._ledger_call(
                self._ledger.update_execution(
                    execution_id, ExecutionStatus.COMPLETED, output=running_state
                )
            )
            logger.info(f"Execution {execution_id} completed")
        else:
            await self._ledger_call(
                self._ledger.update_execution(
                    execution_id,
                    ExecutionStatus.FAILED,
                    output=running_state,
                    failure=failure,
                )
            )
            logger.info(
                f"Execution {execution_id} failed at step {failure.ordinal} "
                f"({failure.tool_id}): {failure.kind.value}"
            )

    async def _ledger_call(self, call: Awaitable[T]) -> T:
        try:
            return await call
        except PersistenceError:
            raise
        except Exception as e:
            logger.error(f"Execution ledger call failed: {e}")
            raise PersistenceError(str(e)) from e
