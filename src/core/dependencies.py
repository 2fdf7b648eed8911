"""Factory helpers for constructing workbench dependencies from settings."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from src.core.config import Settings
from src.core.executor import TransactionalExecutor
from src.core.observability import ExecutionObservationSink, JSONLExecutionLogger
from src.core.saved_queries import SavedQueryRepository
from src.core.service import ScriptExecutionService
from src.integrations.sqlite_store import SQLiteStore


@dataclass(slots=True)
class WorkbenchDependencies:
    """Collection of collaborators sharing one SQLite store."""

    store: SQLiteStore
    service: ScriptExecutionService
    saved_queries: SavedQueryRepository
    execution_logger: ExecutionObservationSink | None = None

    def close(self) -> None:
        self.store.close()


def build_dependencies(settings: Settings, *, database_path: str | None = None) -> WorkbenchDependencies:
    """Create dependency instances based on *settings*.

    *database_path* overrides the configured location, e.g. from the CLI.
    """

    store = SQLiteStore(
        path=database_path or settings.database.resolve_path(),
        journal_mode=settings.database.journal_mode,
    )
    execution_logger = JSONLExecutionLogger(base_dir=_resolve_execution_logs_dir(settings))
    executor = TransactionalExecutor(store=store, preview_length=settings.execution.preview_length)
    service = ScriptExecutionService(executor=executor, logger=execution_logger)
    return WorkbenchDependencies(
        store=store,
        service=service,
        saved_queries=SavedQueryRepository(store=store),
        execution_logger=execution_logger,
    )


def _resolve_execution_logs_dir(settings: Settings) -> Path:
    base = (
        settings.paths.execution_logs_dir
        if settings.paths and settings.paths.execution_logs_dir
        else "logs/execution"
    )
    path = Path(base).expanduser()
    path.mkdir(parents=True, exist_ok=True)
    return path
