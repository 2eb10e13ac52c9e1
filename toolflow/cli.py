"""Command line interface for toolflow."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
import yaml
from pydantic import ValidationError

from toolflow.compare import compare_models
from toolflow.config import load_config
from toolflow.constants import CHAT_TOOL
from toolflow.contracts import ExecutionStatus
from toolflow.engine import WorkflowEngine
from toolflow.errors import ToolflowError
from toolflow.persistence import get_repository
from toolflow.registry import ToolRegistry
from toolflow.service import WorkflowService
from toolflow.tools import build_default_registry

app = typer.Typer(help="CLI for toolflow workflows")

# Command groups
tool_app = typer.Typer(help="Commands for inspecting tools")
workflow_app = typer.Typer(help="Commands for managing workflows")
execution_app = typer.Typer(help="Commands for inspecting executions")
compare_app = typer.Typer(help="Commands for comparing chat models")

app.add_typer(tool_app, name="tool")
app.add_typer(workflow_app, name="workflow")
app.add_typer(execution_app, name="execution")
app.add_typer(compare_app, name="compare")


def _build_registry() -> ToolRegistry:
    return build_default_registry(load_config())


def _build_service() -> WorkflowService:
    config = load_config()
    repository = get_repository()
    engine = WorkflowEngine(_build_registry(), repository, timeout=config.tool_timeout)
    return WorkflowService(repository, engine)


def _fail(message: str) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED)
    raise typer.Exit(code=1)


@app.callback()
def main() -> None:
    """Toolflow CLI entry point."""
    config = load_config()
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@tool_app.command("list")
def tool_list() -> None:
    """List the registered tools and their inputs."""
    for descriptor in _build_registry().descriptors():
        inputs = ", ".join(p.name for p in descriptor.inputs) or "-"
        typer.echo(f"{descriptor.name}\t{descriptor.description or ''}\tinputs: {inputs}")


@workflow_app.command("create")
def workflow_create(
    definition: Path,
    owner: str = typer.Option(..., help="Id of the user who owns the workflow"),
) -> None:
    """
    Create a workflow from a YAML or JSON definition file.

    The file holds ``name``, optional ``description`` and ``is_public``, and a
    ``steps`` list of ``{tool_id, config}`` entries run in order.

    Example:
        toolflow workflow create guides/describe_and_speak.yaml --owner alice
        # Output: Created workflow 6f1c...: describe-and-speak (2 steps)
    """
    if not definition.exists():
        _fail(f"Definition file not found: {definition}")
    try:
        data = yaml.safe_load(definition.read_text()) or {}
    except yaml.YAMLError as exc:
        _fail(f"Could not parse {definition}: {exc}")
    if not isinstance(data, dict):
        _fail("Invalid workflow definition: expected a mapping at the top level")

    service = _build_service()
    try:
        workflow = asyncio.run(
            service.create_workflow(
                owner_id=owner,
                name=data.get("name", ""),
                steps=data.get("steps") or [],
                description=data.get("description"),
                is_public=bool(data.get("is_public", False)),
            )
        )
    except ValidationError as exc:
        _fail(f"Invalid workflow definition: {exc}")
    except ToolflowError as exc:
        _fail(str(exc))
    typer.echo(f"Created workflow {workflow.id}: {workflow.name} ({len(workflow.steps)} steps)")


@workflow_app.command("list")
def workflow_list(owner: Optional[str] = typer.Option(None, help="Only this owner's workflows")) -> None:
    """List workflows with their owner and step count."""
    repo = get_repository()
    workflows = asyncio.run(repo.list_workflows(owner))
    if not workflows:
        typer.echo("No workflows found")
        return
    for wf in workflows:
        typer.echo(f"{wf.id}\t{wf.owner_id}\t{wf.name}\t{len(wf.steps)} steps")


@workflow_app.command("show")
def workflow_show(workflow_id: str) -> None:
    """Show a workflow definition and its steps."""
    repo = get_repository()
    wf = asyncio.run(repo.get_workflow(workflow_id))
    if wf is None:
        typer.echo("Workflow not found")
        raise typer.Exit(code=1)
    visibility = "public" if wf.is_public else "private"
    typer.echo(f"Workflow {wf.id}: {wf.name} ({visibility}, owner {wf.owner_id})")
    if wf.description:
        typer.echo(f"Description: {wf.description}")
    for step in wf.steps:
        typer.echo(f"- [{step.ordinal}] {step.tool_id} {json.dumps(step.config)}")


@workflow_app.command("run")
def workflow_run(
    workflow_id: str,
    user: str = typer.Option(..., help="Id of the user running the workflow"),
    input: Optional[str] = typer.Option(None, help="JSON object passed to the first step"),
) -> None:
    """
    Execute a workflow and print the resulting status and output.

    Example:
        toolflow workflow run 6f1c... --user alice --input '{"prompt": "a cat"}'
        # Output: Execution 9b2e...: completed
        #         {"prompt": "a cat", "reply": "...", "imageUrl": "..."}
    """
    try:
        payload = json.loads(input) if input else {}
    except json.JSONDecodeError as exc:
        _fail(f"--input is not valid JSON: {exc}")
    if not isinstance(payload, dict):
        _fail("--input must be a JSON object")

    service = _build_service()
    try:
        summary = asyncio.run(service.execute(user, workflow_id, payload))
    except ToolflowError as exc:
        _fail(str(exc))

    typer.echo(f"Execution {summary.execution_id}: {summary.status.value}")
    if summary.output is not None:
        typer.echo(json.dumps(summary.output))
    if summary.status is ExecutionStatus.FAILED:
        _fail(summary.error or "Execution failed")


@execution_app.command("list")
def execution_list(
    workflow: Optional[str] = typer.Option(None, help="Only executions of this workflow"),
) -> None:
    """List executions with their status."""
    repo = get_repository()
    executions = asyncio.run(repo.list_executions(workflow_id=workflow))
    if not executions:
        typer.echo("No executions found")
        return
    for ex in executions:
        typer.echo(f"{ex.id}\t{ex.workflow_id}\t{ex.status.value}")


@execution_app.command("show")
def execution_show(execution_id: str) -> None:
    """Show an execution's input, output and failure detail."""
    repo = get_repository()
    ex = asyncio.run(repo.get_execution(execution_id))
    if ex is None:
        typer.echo("Execution not found")
        raise typer.Exit(code=1)
    typer.echo(f"Execution {ex.id}: {ex.status.value}")
    typer.echo(f"Workflow: {ex.workflow_id}")
    typer.echo(f"Input: {json.dumps(ex.input)}")
    if ex.output is not None:
        typer.echo(f"Output: {json.dumps(ex.output)}")
    if ex.failure is not None:
        typer.echo(f"Failure: {ex.failure.describe()} [{ex.failure.message}]")


@compare_app.command("run")
def compare_run(
    prompt: str,
    model: List[str] = typer.Option(..., "--model", "-m", help="Model to compare (2 to 4)"),
    user: Optional[str] = typer.Option(None, help="Save the comparison for this user"),
) -> None:
    """
    Send one prompt to several chat models and print each reply.

    Example:
        toolflow compare run "Name a colour" -m openai:gpt-4o -m openai:gpt-4o-mini --user alice
        # Output: == openai:gpt-4o ... and, with --user, Saved comparison 3a9d...
    """
    chat = _build_registry().resolve(CHAT_TOOL)
    if chat is None:
        _fail("No chat tool is registered")
    store = get_repository() if user else None
    try:
        comparison = asyncio.run(compare_models(chat, prompt, model, store=store, user_id=user))
    except ValidationError as exc:
        _fail(f"Invalid comparison: {exc}")
    except ToolflowError as exc:
        _fail(str(exc))
    for name, reply in comparison.responses.items():
        typer.echo(f"== {name}")
        typer.echo(reply)
    if comparison.id:
        typer.echo(f"Saved comparison {comparison.id}")


@compare_app.command("list")
def compare_list(user: str = typer.Option(..., help="Whose comparisons to list")) -> None:
    """List a user's saved comparisons, newest first."""
    repo = get_repository()
    comparisons = asyncio.run(repo.list_comparisons(user))
    if not comparisons:
        typer.echo("No comparisons found")
        return
    for c in comparisons:
        typer.echo(f"{c.id}\t{c.created_at.isoformat()}\t{', '.join(c.models)}\t{c.prompt}")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
