import asyncio
import json

import pytest
from typer.testing import CliRunner

import toolflow.cli as cli
import toolflow.persistence as persistence
from toolflow.cli import app
from toolflow.contracts import ExecutionStatus, Step, Workflow
from toolflow.errors import PersistenceError
from toolflow.persistence import InMemoryRepository
from toolflow.registry import ToolRegistry


@pytest.fixture
def registry(monkeypatch, make_tool):
    tools = ToolRegistry(
        [
            make_tool("chat", {"reply": "Here is a description: a fluffy cat"}),
            make_tool("image", {"imageUrl": "http://x/1.png"}),
        ]
    )
    monkeypatch.setattr(cli, "_build_registry", lambda: tools)
    monkeypatch.setenv("TOOLFLOW_CONFIG", "missing-config.yaml")
    return tools


def _create(repo, *tool_ids, owner="alice"):
    workflow = Workflow(owner_id=owner, name="wf", steps=[Step(tool_id=t) for t in tool_ids])
    return asyncio.run(repo.create_workflow(workflow))


def test_workflow_create_from_yaml(repo, registry, tmp_path):
    definition = tmp_path / "draw.yaml"
    definition.write_text(
        """
name: describe-and-draw
description: chat then image
steps:
  - tool_id: chat
  - tool_id: image
    config:
      model: flux
"""
    )

    runner = CliRunner()
    result = runner.invoke(app, ["workflow", "create", str(definition), "--owner", "alice"])
    assert result.exit_code == 0, f"Output: {result.stdout}"
    assert "describe-and-draw (2 steps)" in result.stdout

    (wf,) = asyncio.run(repo.list_workflows("alice"))
    assert wf.steps[1].config == {"model": "flux"}


def test_workflow_create_rejects_empty_steps(repo, registry, tmp_path):
    definition = tmp_path / "empty.yaml"
    definition.write_text("name: nothing\nsteps: []\n")

    result = CliRunner().invoke(app, ["workflow", "create", str(definition), "--owner", "alice"])
    assert result.exit_code == 1
    assert "Invalid workflow definition" in result.stdout


def test_workflow_list_and_show(repo, registry):
    wf = _create(repo, "chat", "image")

    runner = CliRunner()
    listed = runner.invoke(app, ["workflow", "list"])
    assert listed.exit_code == 0
    assert wf.id in listed.stdout

    shown = runner.invoke(app, ["workflow", "show", wf.id])
    assert shown.exit_code == 0
    assert "[0] chat" in shown.stdout
    assert "[1] image" in shown.stdout

    missing = runner.invoke(app, ["workflow", "show", "missing-id"])
    assert missing.exit_code == 1
    assert "Workflow not found" in missing.stdout


def test_workflow_run_completes(repo, registry):
    wf = _create(repo, "chat", "image")

    result = CliRunner().invoke(
        app, ["workflow", "run", wf.id, "--user", "alice", "--input", '{"prompt": "a cat"}']
    )
    assert result.exit_code == 0, f"Output: {result.stdout}"
    assert "completed" in result.stdout

    (execution,) = asyncio.run(repo.list_executions(workflow_id=wf.id))
    assert execution.status == ExecutionStatus.COMPLETED
    (output_line,) = [line for line in result.stdout.splitlines() if line.startswith("{")]
    assert json.loads(output_line) == execution.output


def test_workflow_run_failure_exits_nonzero(repo, registry):
    wf = _create(repo, "nonexistent")

    result = CliRunner().invoke(app, ["workflow", "run", wf.id, "--user", "alice"])
    assert result.exit_code == 1
    assert "failed" in result.stdout
    assert "nonexistent" in result.stdout


def test_workflow_run_by_non_owner(repo, registry):
    wf = _create(repo, "chat")

    result = CliRunner().invoke(app, ["workflow", "run", wf.id, "--user", "mallory"])
    assert result.exit_code == 1
    assert "may not access" in result.stdout


def test_workflow_run_rejects_bad_input(repo, registry):
    wf = _create(repo, "chat")
    result = CliRunner().invoke(
        app, ["workflow", "run", wf.id, "--user", "alice", "--input", "[1, 2]"]
    )
    assert result.exit_code == 1
    assert "JSON object" in result.stdout


def test_execution_list_and_show(repo, registry):
    wf = _create(repo, "chat")
    runner = CliRunner()
    assert "No executions found" in runner.invoke(app, ["execution", "list"]).stdout

    runner.invoke(app, ["workflow", "run", wf.id, "--user", "alice", "--input", '{"prompt": "x"}'])
    (execution,) = asyncio.run(repo.list_executions())

    listed = runner.invoke(app, ["execution", "list", "--workflow", wf.id])
    assert execution.id in listed.stdout

    shown = runner.invoke(app, ["execution", "show", execution.id])
    assert shown.exit_code == 0
    assert "completed" in shown.stdout
    assert '"reply"' in shown.stdout


def test_tool_list(registry):
    result = CliRunner().invoke(app, ["tool", "list"])
    assert result.exit_code == 0
    assert "chat" in result.stdout
    assert "image" in result.stdout


def test_compare_run(repo, registry):
    result = CliRunner().invoke(app, ["compare", "run", "hello", "-m", "gpt-4", "-m", "claude"])
    assert result.exit_code == 0, f"Output: {result.stdout}"
    assert "== gpt-4" in result.stdout
    assert "== claude" in result.stdout
    assert "Saved comparison" not in result.stdout
    assert asyncio.run(repo.list_comparisons("alice")) == []


def test_compare_run_saves_for_user_and_lists(repo, registry):
    runner = CliRunner()
    assert "No comparisons found" in runner.invoke(app, ["compare", "list", "--user", "alice"]).stdout

    result = runner.invoke(
        app, ["compare", "run", "hello", "-m", "gpt-4", "-m", "claude", "--user", "alice"]
    )
    assert result.exit_code == 0, f"Output: {result.stdout}"

    (saved,) = asyncio.run(repo.list_comparisons("alice"))
    assert f"Saved comparison {saved.id}" in result.stdout
    assert saved.models == ["gpt-4", "claude"]

    listed = runner.invoke(app, ["compare", "list", "--user", "alice"])
    assert listed.exit_code == 0
    assert saved.id in listed.stdout
    assert "gpt-4, claude" in listed.stdout


def test_workflow_create_rejects_non_mapping_yaml(repo, registry, tmp_path):
    definition = tmp_path / "list.yaml"
    definition.write_text("- tool_id: chat\n- tool_id: image\n")

    result = CliRunner().invoke(app, ["workflow", "create", str(definition), "--owner", "alice"])
    assert result.exit_code == 1
    assert "expected a mapping" in result.stdout
    assert asyncio.run(repo.list_workflows()) == []


class ReadOnlyRepository(InMemoryRepository):
    async def create_workflow(self, workflow):
        raise PersistenceError("database is read-only")


def test_workflow_create_reports_store_failure(registry, tmp_path, monkeypatch):
    monkeypatch.setattr(persistence, "_repository_instance", ReadOnlyRepository())
    definition = tmp_path / "draw.yaml"
    definition.write_text("name: wf\nsteps:\n  - tool_id: chat\n")

    result = CliRunner().invoke(app, ["workflow", "create", str(definition), "--owner", "alice"])
    assert result.exit_code == 1
    assert "database is read-only" in result.stdout
