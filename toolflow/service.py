"""Application layer: ownership checks around the store and the engine."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from .contracts import ExecutionSummary, Execution, Step, Workflow
from .engine import WorkflowEngine
from .errors import WorkflowAccessDenied, WorkflowNotFound
from .persistence import Repository

logger = logging.getLogger(__name__)

StepInput = Union[Step, Dict[str, Any]]


def _to_steps(steps: List[StepInput]) -> List[Step]:
    return [s if isinstance(s, Step) else Step.model_validate(s) for s in steps]


class WorkflowService:
    """Workflow operations on behalf of an authenticated user."""

    def __init__(self, repository: Repository, engine: WorkflowEngine) -> None:
        self._repository = repository
        self._engine = engine

    async def create_workflow(
        self,
        owner_id: str,
        name: str,
        steps: List[StepInput],
        description: Optional[str] = None,
        is_public: bool = False,
    ) -> Workflow:
        workflow = Workflow(
            owner_id=owner_id,
            name=name,
            description=description,
            steps=_to_steps(steps),
            is_public=is_public,
        )
        stored = await self._repository.create_workflow(workflow)
        logger.info(f"Workflow {stored.id} created by {owner_id}")
        return stored

    async def list_workflows(self, owner_id: str) -> list[Workflow]:
        return await self._repository.list_workflows(owner_id)

    async def get_workflow(self, user_id: str, workflow_id: str) -> Workflow:
        """Return the workflow if ``user_id`` owns it or it is public."""
        workflow = await self._load(workflow_id)
        if workflow.owner_id != user_id and not workflow.is_public:
            raise WorkflowAccessDenied(workflow_id, user_id)
        return workflow

    async def update_workflow(
        self,
        user_id: str,
        workflow_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        steps: Optional[List[StepInput]] = None,
        is_public: Optional[bool] = None,
    ) -> Workflow:
        await self._owned(user_id, workflow_id)
        return await self._repository.update_workflow(
            workflow_id,
            name=name,
            description=description,
            steps=_to_steps(steps) if steps is not None else None,
            is_public=is_public,
        )

    async def execute(
        self, user_id: str, workflow_id: str, input: Optional[Dict[str, Any]] = None
    ) -> ExecutionSummary:
        """Run a workflow the user owns and summarise the result."""
        workflow = await self._owned(user_id, workflow_id)
        execution = await self._engine.execute(workflow, input or {}, user_id=user_id)
        return ExecutionSummary.from_execution(execution)

    async def list_executions(self, user_id: str, workflow_id: str) -> list[Execution]:
        await self._owned(user_id, workflow_id)
        return await self._repository.list_executions(workflow_id=workflow_id)

    async def _load(self, workflow_id: str) -> Workflow:
        workflow = await self._repository.get_workflow(workflow_id)
        if workflow is None:
            raise WorkflowNotFound(workflow_id)
        return workflow

    async def _owned(self, user_id: str, workflow_id: str) -> Workflow:
        workflow = await self._load(workflow_id)
        if workflow.owner_id != user_id:
            raise WorkflowAccessDenied(workflow_id, user_id)
        return workflow
