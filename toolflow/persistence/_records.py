"""Helpers shared by the persistence backends."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from ..contracts import Execution, ExecutionStatus, FailureDetail, Payload, Step, Workflow
from ..errors import InvalidTransition, PersistenceError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def check_transition(
    execution_id: str, current: ExecutionStatus, status: ExecutionStatus
) -> None:
    if not current.can_transition_to(status):
        raise InvalidTransition(
            f"Execution {execution_id}: cannot move from {current.value} to {status.value}"
        )


def advance(
    execution: Execution,
    status: ExecutionStatus,
    output: Optional[Payload],
    failure: Optional[FailureDetail],
) -> Execution:
    """Return ``execution`` moved to ``status`` with the given payloads."""
    check_transition(execution.id, execution.status, status)
    try:
        return Execution(
            **{
                **execution.model_dump(exclude={"status", "output", "failure", "updated_at"}),
                "status": status,
                "output": output if output is not None else execution.output,
                "failure": failure,
                "updated_at": utcnow(),
            }
        )
    except ValueError as e:
        raise PersistenceError(f"Execution {execution.id}: invalid update: {e}") from e


def apply_workflow_update(
    workflow: Workflow,
    name: Optional[str],
    description: Optional[str],
    steps: Optional[List[Step]],
    is_public: Optional[bool],
) -> Workflow:
    data = workflow.model_dump()
    if name is not None:
        data["name"] = name
    if description is not None:
        data["description"] = description
    if steps is not None:
        data["steps"] = [s.model_dump() for s in steps]
    if is_public is not None:
        data["is_public"] = is_public
    data["updated_at"] = utcnow()
    return Workflow.model_validate(data)
