"""Repository abstraction for workflow and execution persistence."""

from __future__ import annotations

from typing import List, Optional, Protocol

from ..contracts import Comparison, Execution, ExecutionStatus, FailureDetail, Payload, Step, Workflow


class ExecutionLedger(Protocol):
    """Records the lifecycle of each execution.

    Each call is atomic for a single execution row; no cross-row
    transactions are required.
    """

    async def create_execution(
        self,
        workflow_id: str,
        user_id: Optional[str],
        input: Payload,
        status: ExecutionStatus = ExecutionStatus.PENDING,
    ) -> str:
        """Persist a new execution and return its id."""

    async def update_execution(
        self,
        execution_id: str,
        status: ExecutionStatus,
        output: Optional[Payload] = None,
        failure: Optional[FailureDetail] = None,
    ) -> None:
        """Advance an execution's status and record its payloads."""

    async def get_execution(self, execution_id: str) -> Execution | None:
        """Retrieve an execution by id."""

    async def list_executions(
        self, workflow_id: Optional[str] = None, user_id: Optional[str] = None
    ) -> list[Execution]:
        """Return executions in creation order, optionally filtered."""


class WorkflowStore(Protocol):
    """Stores user-owned workflow definitions."""

    async def create_workflow(self, workflow: Workflow) -> Workflow:
        """Persist ``workflow`` and its steps together; return it with an id."""

    async def get_workflow(self, workflow_id: str) -> Workflow | None:
        """Retrieve a workflow by id."""

    async def list_workflows(self, owner_id: Optional[str] = None) -> list[Workflow]:
        """Return workflows in creation order, optionally for one owner."""

    async def update_workflow(
        self,
        workflow_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        steps: Optional[List[Step]] = None,
        is_public: Optional[bool] = None,
    ) -> Workflow:
        """Update a workflow. ``steps`` replaces the whole step list."""


class ComparisonStore(Protocol):
    """Keeps the history of multi-model comparisons."""

    async def create_comparison(self, comparison: Comparison) -> Comparison:
        """Persist ``comparison`` and return it with an id."""

    async def list_comparisons(self, user_id: str) -> list[Comparison]:
        """Return one user's comparisons, newest first."""


class Repository(ExecutionLedger, WorkflowStore, ComparisonStore, Protocol):
    """Protocol implemented by every persistence backend."""
