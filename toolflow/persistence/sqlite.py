"""SQLite implementation of the repository."""

from __future__ import annotations

import asyncio
import json
import sqlite3
import threading
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, List, Optional, TypeVar

from ..contracts import Comparison, Execution, ExecutionStatus, FailureDetail, Payload, Step, Workflow
from ..errors import PersistenceError
from ._records import advance, apply_workflow_update
from .repository import Repository

T = TypeVar("T")

_WORKFLOW_COLUMNS = "id, owner_id, name, description, steps, is_public, created_at, updated_at"
_EXECUTION_COLUMNS = (
    "id, workflow_id, user_id, input, output, status, failure, created_at, updated_at"
)
_COMPARISON_COLUMNS = "id, user_id, prompt, models, responses, failed, created_at"


def _dumps(value: Any) -> str | None:
    return None if value is None else json.dumps(value)


def _loads(value: str | None) -> Any:
    return json.loads(value) if value else None


class SQLiteRepository(Repository):
    """Persist workflows and executions using SQLite."""

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        with self._conn:
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS workflows (
                    id TEXT PRIMARY KEY,
                    owner_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    description TEXT,
                    steps TEXT NOT NULL,
                    is_public INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS workflow_executions (
                    id TEXT PRIMARY KEY,
                    workflow_id TEXT NOT NULL,
                    user_id TEXT,
                    input TEXT,
                    output TEXT,
                    status TEXT NOT NULL,
                    failure TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS comparisons (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    prompt TEXT NOT NULL,
                    models TEXT NOT NULL,
                    responses TEXT,
                    failed TEXT,
                    created_at TEXT NOT NULL
                )
                """
            )

    # ------------------------------------------------------------------
    # Helper methods
    async def _run(self, fn: Callable[..., T], *args: Any) -> T:
        def locked() -> T:
            with self._lock:
                try:
                    return fn(*args)
                except sqlite3.Error as e:
                    raise PersistenceError(f"SQLite error: {e}") from e

        return await asyncio.to_thread(locked)

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        return self._conn.execute(query, params).fetchone()

    def _fetchall(self, query: str, *params: Any) -> list[sqlite3.Row]:
        return self._conn.execute(query, params).fetchall()

    @staticmethod
    def _row_to_workflow(row: sqlite3.Row) -> Workflow:
        return Workflow(
            id=row["id"],
            owner_id=row["owner_id"],
            name=row["name"],
            description=row["description"],
            steps=json.loads(row["steps"]),
            is_public=bool(row["is_public"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    @staticmethod
    def _row_to_execution(row: sqlite3.Row) -> Execution:
        return Execution(
            id=row["id"],
            workflow_id=row["workflow_id"],
            user_id=row["user_id"],
            input=_loads(row["input"]) or {},
            output=_loads(row["output"]),
            status=ExecutionStatus(row["status"]),
            failure=_loads(row["failure"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _write_workflow(self, workflow: Workflow, insert: bool) -> None:
        steps = json.dumps([s.model_dump(mode="json") for s in workflow.steps])
        with self._conn:
            if insert:
                self._conn.execute(
                    f"INSERT INTO workflows ({_WORKFLOW_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        workflow.id,
                        workflow.owner_id,
                        workflow.name,
                        workflow.description,
                        steps,
                        int(workflow.is_public),
                        workflow.created_at.isoformat(),
                        workflow.updated_at.isoformat(),
                    ),
                )
            else:
                self._conn.execute(
                    """
                    UPDATE workflows
                    SET name = ?, description = ?, steps = ?, is_public = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (
                        workflow.name,
                        workflow.description,
                        steps,
                        int(workflow.is_public),
                        workflow.updated_at.isoformat(),
                        workflow.id,
                    ),
                )

    def _insert_execution(self, execution: Execution) -> None:
        with self._conn:
            self._conn.execute(
                f"INSERT INTO workflow_executions ({_EXECUTION_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    execution.id,
                    execution.workflow_id,
                    execution.user_id,
                    _dumps(execution.input),
                    _dumps(execution.output),
                    execution.status.value,
                    None,
                    execution.created_at.isoformat(),
                    execution.updated_at.isoformat(),
                ),
            )

    def _advance_execution(
        self,
        execution_id: str,
        status: ExecutionStatus,
        output: Optional[Payload],
        failure: Optional[FailureDetail],
    ) -> None:
        # Read and write inside one transaction so the transition check holds.
        with self._conn:
            row = self._fetchone(
                f"SELECT {_EXECUTION_COLUMNS} FROM workflow_executions WHERE id = ?",
                execution_id,
            )
            if row is None:
                raise PersistenceError(f"Execution {execution_id} not found")
            updated = advance(self._row_to_execution(row), status, output, failure)
            self._conn.execute(
                """
                UPDATE workflow_executions
                SET status = ?, output = ?, failure = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    updated.status.value,
                    _dumps(updated.output),
                    _dumps(updated.failure.model_dump(mode="json") if updated.failure else None),
                    updated.updated_at.isoformat(),
                    execution_id,
                ),
            )

    # ------------------------------------------------------------------
    # Workflows
    async def create_workflow(self, workflow: Workflow) -> Workflow:
        stored = workflow.model_copy(update={"id": workflow.id or str(uuid.uuid4())})
        await self._run(self._write_workflow, stored, True)
        return stored

    async def get_workflow(self, workflow_id: str) -> Workflow | None:
        row = await self._run(
            self._fetchone,
            f"SELECT {_WORKFLOW_COLUMNS} FROM workflows WHERE id = ?",
            workflow_id,
        )
        return self._row_to_workflow(row) if row else None

    async def list_workflows(self, owner_id: Optional[str] = None) -> list[Workflow]:
        if owner_id is None:
            rows = await self._run(
                self._fetchall, f"SELECT {_WORKFLOW_COLUMNS} FROM workflows ORDER BY rowid"
            )
        else:
            rows = await self._run(
                self._fetchall,
                f"SELECT {_WORKFLOW_COLUMNS} FROM workflows WHERE owner_id = ? ORDER BY rowid",
                owner_id,
            )
        return [self._row_to_workflow(r) for r in rows]

    async def update_workflow(
        self,
        workflow_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        steps: Optional[List[Step]] = None,
        is_public: Optional[bool] = None,
    ) -> Workflow:
        current = await self.get_workflow(workflow_id)
        if current is None:
            raise PersistenceError(f"Workflow {workflow_id} not found")
        updated = apply_workflow_update(current, name, description, steps, is_public)
        await self._run(self._write_workflow, updated, False)
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
        execution = Execution(
            id=str(uuid.uuid4()),
            workflow_id=workflow_id,
            user_id=user_id,
            input=dict(input),
            status=status,
        )
        await self._run(self._insert_execution, execution)
        return execution.id

    async def update_execution(
        self,
        execution_id: str,
        status: ExecutionStatus,
        output: Optional[Payload] = None,
        failure: Optional[FailureDetail] = None,
    ) -> None:
        await self._run(self._advance_execution, execution_id, status, output, failure)

    async def get_execution(self, execution_id: str) -> Execution | None:
        row = await self._run(
            self._fetchone,
            f"SELECT {_EXECUTION_COLUMNS} FROM workflow_executions WHERE id = ?",
            execution_id,
        )
        return self._row_to_execution(row) if row else None

    async def list_executions(
        self, workflow_id: Optional[str] = None, user_id: Optional[str] = None
    ) -> list[Execution]:
        clauses: list[str] = []
        params: list[Any] = []
        if workflow_id is not None:
            clauses.append("workflow_id = ?")
            params.append(workflow_id)
        if user_id is not None:
            clauses.append("user_id = ?")
            params.append(user_id)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = await self._run(
            self._fetchall,
            f"SELECT {_EXECUTION_COLUMNS} FROM workflow_executions{where} ORDER BY rowid",
            *params,
        )
        return [self._row_to_execution(r) for r in rows]

    # ------------------------------------------------------------------
    # Comparisons
    def _insert_comparison(self, comparison: Comparison) -> None:
        with self._conn:
            self._conn.execute(
                f"INSERT INTO comparisons ({_COMPARISON_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    comparison.id,
                    comparison.user_id,
                    comparison.prompt,
                    json.dumps(comparison.models),
                    json.dumps(comparison.responses),
                    json.dumps(comparison.failed),
                    comparison.created_at.isoformat(),
                ),
            )

    async def create_comparison(self, comparison: Comparison) -> Comparison:
        stored = comparison.model_copy(update={"id": comparison.id or str(uuid.uuid4())})
        await self._run(self._insert_comparison, stored)
        return stored

    async def list_comparisons(self, user_id: str) -> list[Comparison]:
        rows = await self._run(
            self._fetchall,
            f"SELECT {_COMPARISON_COLUMNS} FROM comparisons WHERE user_id = ? ORDER BY rowid DESC",
            user_id,
        )
        return [
            Comparison(
                id=r["id"],
                user_id=r["user_id"],
                prompt=r["prompt"],
                models=json.loads(r["models"]),
                responses=_loads(r["responses"]) or {},
                failed=_loads(r["failed"]) or [],
                created_at=datetime.fromisoformat(r["created_at"]),
            )
            for r in rows
        ]

    def close(self) -> None:
        self._conn.close()
