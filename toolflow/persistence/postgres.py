"""PostgreSQL implementation of the repository."""

from __future__ import annotations

import json
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional

import asyncpg

from ..contracts import (
    Comparison,
    Execution,
    ExecutionStatus,
    FailureDetail,
    Payload,
    Step,
    Workflow,
)
from ..errors import PersistenceError
from ._records import advance, apply_workflow_update
from .repository import Repository

_WORKFLOW_COLUMNS = "id, owner_id, name, description, steps, is_public, created_at, updated_at"
_EXECUTION_COLUMNS = (
    "id, workflow_id, user_id, input, output, status, failure, created_at, updated_at"
)
_COMPARISON_COLUMNS = "id, user_id, prompt, models, responses, failed, created_at"

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS workflows (
        id TEXT PRIMARY KEY,
        seq BIGSERIAL,
        owner_id TEXT NOT NULL,
        name TEXT NOT NULL,
        description TEXT,
        steps JSONB NOT NULL,
        is_public BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMPTZ NOT NULL,
        updated_at TIMESTAMPTZ NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS workflow_executions (
        id TEXT PRIMARY KEY,
        seq BIGSERIAL,
        workflow_id TEXT NOT NULL,
        user_id TEXT,
        input JSONB,
        output JSONB,
        status TEXT NOT NULL,
        failure JSONB,
        created_at TIMESTAMPTZ NOT NULL,
        updated_at TIMESTAMPTZ NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS comparisons (
        id TEXT PRIMARY KEY,
        seq BIGSERIAL,
        user_id TEXT NOT NULL,
        prompt TEXT NOT NULL,
        models JSONB NOT NULL,
        responses JSONB,
        failed JSONB,
        created_at TIMESTAMPTZ NOT NULL
    )
    """,
)


def _json(value: Any) -> Any:
    # asyncpg hands JSONB back as text unless a codec is registered
    return json.loads(value) if isinstance(value, str) else value


def _dumps(value: Any) -> str | None:
    return None if value is None else json.dumps(value)


class PostgresRepository(Repository):
    """Persist workflows, executions and comparisons using PostgreSQL.

    A connection is opened per call. Driver errors surface as
    :class:`PersistenceError`.
    """

    def __init__(self, dsn: str):
        self._dsn = dsn
        self._initialized = False

    async def _connect(self) -> asyncpg.Connection:
        try:
            conn = await asyncpg.connect(self._dsn)
        except (OSError, asyncpg.PostgresError) as e:
            raise PersistenceError(f"PostgreSQL unavailable: {e}") from e
        if not self._initialized:
            try:
                for statement in _SCHEMA:
                    await conn.execute(statement)
            except asyncpg.PostgresError as e:
                await conn.close()
                raise PersistenceError(f"Could not prepare PostgreSQL schema: {e}") from e
            self._initialized = True
        return conn

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[asyncpg.Connection]:
        conn = await self._connect()
        try:
            yield conn
        except asyncpg.PostgresError as e:
            raise PersistenceError(f"PostgreSQL error: {e}") from e
        finally:
            await conn.close()

    @staticmethod
    def _row_to_workflow(row: asyncpg.Record) -> Workflow:
        return Workflow(
            id=row["id"],
            owner_id=row["owner_id"],
            name=row["name"],
            description=row["description"],
            steps=_json(row["steps"]),
            is_public=row["is_public"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @staticmethod
    def _row_to_execution(row: asyncpg.Record) -> Execution:
        return Execution(
            id=row["id"],
            workflow_id=row["workflow_id"],
            user_id=row["user_id"],
            input=_json(row["input"]) or {},
            output=_json(row["output"]),
            status=ExecutionStatus(row["status"]),
            failure=_json(row["failure"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    # ------------------------------------------------------------------
    # Workflows
    async def create_workflow(self, workflow: Workflow) -> Workflow:
        stored = workflow.model_copy(update={"id": workflow.id or str(uuid.uuid4())})
        async with self._connection() as conn:
            await conn.execute(
                f"""
                INSERT INTO workflows ({_WORKFLOW_COLUMNS})
                VALUES ($1, $2, $3, $4, $5::jsonb, $6, $7, $8)
                """,
                stored.id,
                stored.owner_id,
                stored.name,
                stored.description,
                json.dumps([s.model_dump(mode="json") for s in stored.steps]),
                stored.is_public,
                stored.created_at,
                stored.updated_at,
            )
        return stored

    async def get_workflow(self, workflow_id: str) -> Workflow | None:
        async with self._connection() as conn:
            row = await conn.fetchrow(
                f"SELECT {_WORKFLOW_COLUMNS} FROM workflows WHERE id = $1", workflow_id
            )
        return self._row_to_workflow(row) if row else None

    async def list_workflows(self, owner_id: Optional[str] = None) -> list[Workflow]:
        query = f"SELECT {_WORKFLOW_COLUMNS} FROM workflows"
        params: list[Any] = []
        if owner_id is not None:
            query += " WHERE owner_id = $1"
            params.append(owner_id)
        async with self._connection() as conn:
            rows = await conn.fetch(f"{query} ORDER BY seq", *params)
        return [self._row_to_workflow(r) for r in rows]

    async def update_workflow(
        self,
        workflow_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        steps: Optional[List[Step]] = None,
        is_public: Optional[bool] = None,
    ) -> Workflow:
        async with self._connection() as conn, conn.transaction():
            row = await conn.fetchrow(
                f"SELECT {_WORKFLOW_COLUMNS} FROM workflows WHERE id = $1 FOR UPDATE",
                workflow_id,
            )
            if row is None:
                raise PersistenceError(f"Workflow {workflow_id} not found")
            updated = apply_workflow_update(
                self._row_to_workflow(row), name, description, steps, is_public
            )
            await conn.execute(
                """
                UPDATE workflows
                SET name = $1, description = $2, steps = $3::jsonb, is_public = $4, updated_at = $5
                WHERE id = $6
                """,
                updated.name,
                updated.description,
                json.dumps([s.model_dump(mode="json") for s in updated.steps]),
                updated.is_public,
                updated.updated_at,
                workflow_id,
            )
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
        async with self._connection() as conn:
            await conn.execute(
                f"""
                INSERT INTO workflow_executions ({_EXECUTION_COLUMNS})
                VALUES ($1, $2, $3, $4::jsonb, NULL, $5, NULL, $6, $7)
                """,
                execution.id,
                execution.workflow_id,
                execution.user_id,
                json.dumps(execution.input),
                execution.status.value,
                execution.created_at,
                execution.updated_at,
            )
        return execution.id

    async def update_execution(
        self,
        execution_id: str,
        status: ExecutionStatus,
        output: Optional[Payload] = None,
        failure: Optional[FailureDetail] = None,
    ) -> None:
        async with self._connection() as conn, conn.transaction():
            row = await conn.fetchrow(
                f"SELECT {_EXECUTION_COLUMNS} FROM workflow_executions WHERE id = $1 FOR UPDATE",
                execution_id,
            )
            if row is None:
                raise PersistenceError(f"Execution {execution_id} not found")
            updated = advance(self._row_to_execution(row), status, output, failure)
            await conn.execute(
                """
                UPDATE workflow_executions
                SET status = $1, output = $2::jsonb, failure = $3::jsonb, updated_at = $4
                WHERE id = $5
                """,
                updated.status.value,
                _dumps(updated.output),
                _dumps(updated.failure.model_dump(mode="json") if updated.failure else None),
                updated.updated_at,
                execution_id,
            )

    async def get_execution(self, execution_id: str) -> Execution | None:
        async with self._connection() as conn:
            row = await conn.fetchrow(
                f"SELECT {_EXECUTION_COLUMNS} FROM workflow_executions WHERE id = $1",
                execution_id,
            )
        return self._row_to_execution(row) if row else None

    async def list_executions(
        self, workflow_id: Optional[str] = None, user_id: Optional[str] = None
    ) -> list[Execution]:
        clauses: list[str] = []
        params: list[Any] = []
        if workflow_id is not None:
            params.append(workflow_id)
            clauses.append(f"workflow_id = ${len(params)}")
        if user_id is not None:
            params.append(user_id)
            clauses.append(f"user_id = ${len(params)}")
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        async with self._connection() as conn:
            rows = await conn.fetch(
                f"SELECT {_EXECUTION_COLUMNS} FROM workflow_executions{where} ORDER BY seq",
                *params,
            )
        return [self._row_to_execution(r) for r in rows]

    # ------------------------------------------------------------------
    # Comparisons
    async def create_comparison(self, comparison: Comparison) -> Comparison:
        stored = comparison.model_copy(update={"id": comparison.id or str(uuid.uuid4())})
        async with self._connection() as conn:
            await conn.execute(
                f"""
                INSERT INTO comparisons ({_COMPARISON_COLUMNS})
                VALUES ($1, $2, $3, $4::jsonb, $5::jsonb, $6::jsonb, $7)
                """,
                stored.id,
                stored.user_id,
                stored.prompt,
                json.dumps(stored.models),
                json.dumps(stored.responses),
                json.dumps(stored.failed),
                stored.created_at,
            )
        return stored

    async def list_comparisons(self, user_id: str) -> list[Comparison]:
        async with self._connection() as conn:
            rows = await conn.fetch(
                f"SELECT {_COMPARISON_COLUMNS} FROM comparisons WHERE user_id = $1 ORDER BY seq DESC",
                user_id,
            )
        return [
            Comparison(
                id=r["id"],
                user_id=r["user_id"],
                prompt=r["prompt"],
                models=_json(r["models"]),
                responses=_json(r["responses"]) or {},
                failed=_json(r["failed"]) or [],
                created_at=r["created_at"],
            )
            for r in rows
        ]
