"""Tests for workflow and execution contracts."""

import pytest
from pydantic import ValidationError

from toolflow.contracts import (
    Execution,
    ExecutionStatus,
    ExecutionSummary,
    FailureDetail,
    Step,
    StepOutcome,
    StepResult,
    Workflow,
    merge_state,
)
from toolflow.errors import ToolNotFound


def test_ordinals_assigned_by_position() -> None:
    wf = Workflow(owner_id="u", name="wf", steps=[Step(tool_id="chat"), Step(tool_id="image")])
    assert [s.ordinal for s in wf.steps] == [0, 1]


def test_explicit_ordinals_define_order() -> None:
    wf = Workflow(
        owner_id="u",
        name="wf",
        steps=[Step(tool_id="image", ordinal=1), Step(tool_id="chat", ordinal=0)],
    )
    assert [s.tool_id for s in wf.steps] == ["chat", "image"]


@pytest.mark.parametrize(
    "ordinals",
    [(0, 0), (0, 2), (1, 2), (0, None)],
)
def test_ordinals_must_be_dense_and_unique(ordinals) -> None:
    steps = [Step(tool_id="t", ordinal=o) for o in ordinals]
    with pytest.raises(ValidationError):
        Workflow(owner_id="u", name="wf", steps=steps)


def test_workflow_needs_at_least_one_step() -> None:
    with pytest.raises(ValidationError):
        Workflow(owner_id="u", name="wf", steps=[])


def test_step_accepts_camel_case_tool_id_and_is_frozen() -> None:
    step = Step.model_validate({"toolId": "chat", "config": {"temperature": 0.2}})
    assert step.tool_id == "chat"
    with pytest.raises(ValidationError):
        step.tool_id = "image"


def test_status_transitions_are_monotonic() -> None:
    assert ExecutionStatus.PENDING.can_transition_to(ExecutionStatus.RUNNING)
    assert ExecutionStatus.RUNNING.can_transition_to(ExecutionStatus.COMPLETED)
    assert ExecutionStatus.RUNNING.can_transition_to(ExecutionStatus.FAILED)
    assert not ExecutionStatus.COMPLETED.can_transition_to(ExecutionStatus.RUNNING)
    assert not ExecutionStatus.FAILED.can_transition_to(ExecutionStatus.PENDING)
    assert not ExecutionStatus.RUNNING.can_transition_to(ExecutionStatus.PENDING)
    assert ExecutionStatus.FAILED.is_terminal
    assert not ExecutionStatus.RUNNING.is_terminal


def test_failure_detail_only_on_failed_executions() -> None:
    failure = FailureDetail(ordinal=0, tool_id="x", kind=StepOutcome.TOOL_NOT_FOUND)
    with pytest.raises(ValidationError):
        Execution(id="e", workflow_id="w", status=ExecutionStatus.COMPLETED, output={}, failure=failure)
    with pytest.raises(ValidationError):
        Execution(id="e", workflow_id="w", status=ExecutionStatus.FAILED)
    with pytest.raises(ValidationError):
        Execution(id="e", workflow_id="w", status=ExecutionStatus.COMPLETED)


def test_step_result_failure_conversion() -> None:
    step = Step(tool_id="ghost", ordinal=3)
    result = StepResult.not_found(step)
    failure = result.to_failure()
    assert not result.is_ok
    assert failure.ordinal == 3
    assert failure.tool_id == "ghost"
    assert failure.kind == StepOutcome.TOOL_NOT_FOUND

    with pytest.raises(ValueError):
        StepResult.ok(step, {}).to_failure()


def test_describe_hides_provider_message() -> None:
    failure = FailureDetail(
        ordinal=1,
        tool_id="image",
        kind=StepOutcome.TOOL_EXECUTION_ERROR,
        message="upstream 500: secret-internal-host",
    )
    text = failure.describe()
    assert "Step 1 (image)" in text
    assert "secret-internal-host" not in text


def test_summary_and_raise_for_status_for_missing_tool() -> None:
    execution = Execution(
        id="e",
        workflow_id="w",
        status=ExecutionStatus.FAILED,
        output={"prompt": "p"},
        failure=FailureDetail(ordinal=0, tool_id="nonexistent", kind=StepOutcome.TOOL_NOT_FOUND),
    )
    summary = ExecutionSummary.from_execution(execution)
    assert summary.status == ExecutionStatus.FAILED
    assert "nonexistent" in summary.error

    with pytest.raises(ToolNotFound) as exc_info:
        execution.raise_for_status()
    assert exc_info.value.tool_id == "nonexistent"


def test_merge_state_last_write_wins() -> None:
    assert merge_state({"a": 1, "b": 1}, None, {"b": 2}) == {"a": 1, "b": 2}
