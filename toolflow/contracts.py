"""Core contracts for the toolflow workflow system."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, JsonValue, field_validator, model_validator

from .errors import ToolExecutionError, ToolNotFound

Payload = Dict[str, JsonValue]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExecutionStatus(str, Enum):
    """Lifecycle of a workflow execution."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ExecutionStatus.COMPLETED, ExecutionStatus.FAILED)

    def can_transition_to(self, other: "ExecutionStatus") -> bool:
        """Return ``True`` if moving from this status to ``other`` is allowed."""
        return other in _TRANSITIONS[self]


_TRANSITIONS = {
    ExecutionStatus.PENDING: {ExecutionStatus.RUNNING, ExecutionStatus.FAILED},
    ExecutionStatus.RUNNING: {ExecutionStatus.COMPLETED, ExecutionStatus.FAILED},
    ExecutionStatus.COMPLETED: set(),
    ExecutionStatus.FAILED: set(),
}


class StepOutcome(str, Enum):
    OK = "ok"
    TOOL_NOT_FOUND = "tool_not_found"
    TOOL_EXECUTION_ERROR = "tool_execution_error"
    CANCELLED = "cancelled"


class Step(BaseModel):
    """One ordinal position in a workflow, binding a tool to its config."""

    model_config = ConfigDict(frozen=True)

    tool_id: str = Field(min_length=1, validation_alias=AliasChoices("tool_id", "toolId"))
    config: Payload = Field(default_factory=dict)
    ordinal: Optional[int] = Field(default=None, ge=0)


class Workflow(BaseModel):
    """An ordered, user-owned sequence of steps."""

    id: Optional[str] = None
    owner_id: str
    name: str = Field(min_length=1)
    description: Optional[str] = None
    steps: List[Step] = Field(min_length=1)
    is_public: bool = False
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @field_validator("steps")
    @classmethod
    def _assign_ordinals(cls, steps: List[Step]) -> List[Step]:
        explicit = [s.ordinal for s in steps if s.ordinal is not None]
        if not explicit:
            return [s.model_copy(update={"ordinal": i}) for i, s in enumerate(steps)]
        if len(explicit) != len(steps):
            raise ValueError("either every step has an ordinal or none do")
        if sorted(explicit) != list(range(len(steps))):
            raise ValueError("step ordinals must be unique and dense from 0")
        return sorted(steps, key=lambda s: s.ordinal)


class FailureDetail(BaseModel):
    """Why an execution failed and at which step."""

    ordinal: int
    tool_id: Optional[str] = None
    kind: StepOutcome
    message: str = ""

    def describe(self) -> str:
        """User facing summary. Provider messages are not included."""
        where = f"Step {self.ordinal}"
        if self.tool_id:
            where += f" ({self.tool_id})"
        if self.kind is StepOutcome.TOOL_NOT_FOUND:
            return f"{where} failed: tool '{self.tool_id}' is not available"
        if self.kind is StepOutcome.CANCELLED:
            return f"{where} was not run: execution cancelled"
        return f"{where} failed: the tool returned an error"


def _ordinal(step: Step) -> int:
    return step.ordinal if step.ordinal is not None else 0


class StepResult(BaseModel):
    """Outcome of running a single step."""

    outcome: StepOutcome
    ordinal: int
    tool_id: str
    output: Optional[Payload] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, step: Step, output: Payload) -> "StepResult":
        return cls(outcome=StepOutcome.OK, ordinal=_ordinal(step), tool_id=step.tool_id, output=output)

    @classmethod
    def not_found(cls, step: Step) -> "StepResult":
        return cls(
            outcome=StepOutcome.TOOL_NOT_FOUND,
            ordinal=_ordinal(step),
            tool_id=step.tool_id,
            error=str(ToolNotFound(step.tool_id)),
        )

    @classmethod
    def execution_error(cls, step: Step, message: str) -> "StepResult":
        return cls(
            outcome=StepOutcome.TOOL_EXECUTION_ERROR,
            ordinal=_ordinal(step),
            tool_id=step.tool_id,
            error=message,
        )

    @property
    def is_ok(self) -> bool:
        return self.outcome is StepOutcome.OK

    def to_failure(self) -> FailureDetail:
        if self.is_ok:
            raise ValueError("successful step results carry no failure")
        return FailureDetail(
            ordinal=self.ordinal,
            tool_id=self.tool_id,
            kind=self.outcome,
            message=self.error or "",
        )


class Execution(BaseModel):
    """One run of a workflow against a specific input."""

    id: str
    workflow_id: str
    user_id: Optional[str] = None
    input: Payload = Field(default_factory=dict)
    output: Optional[Payload] = None
    status: ExecutionStatus = ExecutionStatus.PENDING
    failure: Optional[FailureDetail] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _check_terminal_fields(self) -> "Execution":
        if (self.failure is not None) != (self.status is ExecutionStatus.FAILED):
            raise ValueError("failure detail is present iff status is failed")
        if self.status is ExecutionStatus.COMPLETED and self.output is None:
            raise ValueError("completed executions must carry an output")
        return self

    def raise_for_status(self) -> None:
        """Raise the matching error if this execution failed."""
        if self.status is not ExecutionStatus.FAILED:
            return
        failure = self.failure
        if failure.kind is StepOutcome.TOOL_NOT_FOUND:
            raise ToolNotFound(failure.tool_id or "")
        raise ToolExecutionError(failure.ordinal, failure.tool_id or "", failure.message)


class ExecutionSummary(BaseModel):
    """What the application layer returns to a caller after a run."""

    execution_id: str
    status: ExecutionStatus
    output: Optional[Payload] = None
    error: Optional[str] = None

    @classmethod
    def from_execution(cls, execution: Execution) -> "ExecutionSummary":
        return cls(
            execution_id=execution.id,
            status=execution.status,
            output=execution.output,
            error=execution.failure.describe() if execution.failure else None,
        )


class Comparison(BaseModel):
    """One prompt answered side by side by several chat models."""

    id: Optional[str] = None
    user_id: Optional[str] = None
    prompt: str
    models: List[str]
    responses: Dict[str, str] = Field(default_factory=dict)
    failed: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)


def merge_state(*layers: Optional[Dict[str, Any]]) -> Payload:
    """Merge payload layers left to right; later keys win."""
    merged: Payload = {}
    for layer in layers:
        if layer:
            merged.update(layer)
    return merged
