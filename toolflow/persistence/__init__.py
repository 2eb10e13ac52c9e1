"""Persistence layer for toolflow workflows and executions."""

from __future__ import annotations

import os
from typing import Optional

from ..config import ToolflowConfig, load_config
from .inmemory import InMemoryRepository
from .repository import ComparisonStore, ExecutionLedger, Repository, WorkflowStore
from .postgres import PostgresRepository
from .sqlite import SQLiteRepository

_repository_instance: Repository | None = None


def _database_url(config: Optional[ToolflowConfig]) -> Optional[str]:
    env_url = os.getenv("TOOLFLOW_DATABASE_URL") or os.getenv("DATABASE_URL")
    if env_url:
        return env_url
    return (config or load_config()).database_url


def open_repository(database_url: Optional[str]) -> Repository:
    """Open the backend named by ``database_url``; no URL means in-memory.

    ``sqlite://<path>`` opens a SQLite file and ``postgres://`` or
    ``postgresql://`` a PostgreSQL database.
    """
    if not database_url:
        return InMemoryRepository()
    scheme, sep, location = database_url.partition("://")
    if sep and scheme == "sqlite":
        return SQLiteRepository(location)
    if sep and scheme in ("postgres", "postgresql"):
        return PostgresRepository(database_url)
    raise ValueError(f"Unsupported database backend: {database_url}")


def get_repository(
    database_url: Optional[str] = None, config: Optional[ToolflowConfig] = None
) -> Repository:
    """Return the process-wide repository, opening it on first use.

    An explicit ``database_url`` or ``config`` always opens a fresh backend
    and makes it the shared one. Otherwise the URL comes from
    ``TOOLFLOW_DATABASE_URL``, ``DATABASE_URL`` or the loaded config.
    """
    global _repository_instance
    if database_url is None and config is None and _repository_instance is not None:
        return _repository_instance
    _repository_instance = open_repository(database_url or _database_url(config))
    return _repository_instance


__all__ = [
    "ComparisonStore",
    "ExecutionLedger",
    "InMemoryRepository",
    "PostgresRepository",
    "Repository",
    "SQLiteRepository",
    "WorkflowStore",
    "get_repository",
    "open_repository",
]
