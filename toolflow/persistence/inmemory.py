"""In-memory implementation of the repository."""

from __future__ import annotations

import uuid
from typing import Dict, List, Optional

from ..contracts import Comparison, Execution, ExecutionStatus, FailureDetail, Payload, Step, Workflow
from ..errors import PersistenceError
from ._records import advance, apply_workflow_update
from .repository import Repository


class InMemoryRepository(Repository):
    """Store workflows and executions in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts.
    """

    def __init__(self) -> None:
        self._workflows: Dict[str, Workflow] = {}
        self._executions: Dict[str, Execution] = {}
        self._comparisons: List[Comparison] = []

    # ------------------------------------------------------------------
    # Workflows
    async def create_workflow(self, workflow: Workflow) -> Workflow:
        stored = workflow.model_copy(update={"id": workflow.id or str(uuid.uuid4())})
        if stored.id in self._workflows:
            raise PersistenceError(f"Workflow {stored.id} already exists")
        self._workflows[stored.id] = stored
        return stored

    async def get_workflow(self, workflow_id: str) -> Workflow | None:
        return self._workflows.get(workflow_id)

    async def list_workflows(self, owner_id: Optional[str] = None) -> list[Workflow]:
        return [
            wf
            for wf in self._workflows.values()
            if owner_id is None or wf.owner_id == owner_id
        ]

    async def update_workflow(
        self,
        workflow_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        steps: Optional[List[Step]] = None,
        is_public: Optional[bool] = None,
    ) -> Workflow:
        wf = self._workflows.get(workflow_id)
        if wf is None:
            raise PersistenceError(f"Workflow {workflow_id} not found")
        updated = apply_workflow_update(wf, name, description, steps, is_public)
        self._workflows[workflow_id] = updated
        return updated

    # ------------------------------------------------------------------
    # Executions
    async def create_execution(
        self,
        workflow_id: str,
        user_id: Optional[str],
        input: Payload,
        status: ExecutionStatus = ExecutionStatus.PENDING,
    ) -> str:
        execution_id = str(uuid.uuid4())
        self._executions[execution_id] = Execution(
            id=execution_id,
            workflow_id=workflow_id,
            user_id=user_id,
            input=dict(input),
            status=status,
        )
        return execution_id

    async def update_execution(
        self,
        execution_id: str,
        status: ExecutionStatus,
        output: Optional[Payload] = None,
        failure: Optional[FailureDetail] = None,
    ) -> None:
        execution = self._executions.get(execution_id)
        if execution is None:
            raise PersistenceError(f"Execution {execution_id} not found")
        self._executions[execution_id] = advance(execution, status, output, failure)

    async def get_execution(self, execution_id: str) -> Execution | None:
        return self._executions.get(execution_id)

    async def list_executions(
        self, workflow_id: Optional[str] = None, user_id: Optional[str] = None
    ) -> list[Execution]:
        return [
            ex
            for ex in self._executions.values()
            if (workflow_id is None or ex.workflow_id == workflow_id)
            and (user_id is None or ex.user_id == user_id)
        ]

    # ------------------------------------------------------------------
    # Comparisons
    async def create_comparison(self, comparison: Comparison) -> Comparison:
        stored = comparison.model_copy(update={"id": comparison.id or str(uuid.uuid4())}, deep=True)
        self._comparisons.append(stored)
        return stored

    async def list_comparisons(self, user_id: str) -> list[Comparison]:
        return [c for c in reversed(self._comparisons) if c.user_id == user_id]
