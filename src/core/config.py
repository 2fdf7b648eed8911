"""Utilities for loading workbench settings from YAML configuration files."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_DATABASE_PATH = "database.sqlite"
DEFAULT_EXECUTION_LOGS_DIR = "logs/execution"


@dataclass(slots=True)
class DatabaseSettings:
    path_env: str | None = "SQL_WORKBENCH_DB"
    default_path: str = DEFAULT_DATABASE_PATH
    journal_mode: str | None = "wal"

    def resolve_path(self) -> str:
        """Return the database location, preferring the environment override."""

        if self.path_env:
            value = os.getenv(self.path_env)
            if value:
                return value
        return self.default_path


@dataclass(slots=True)
class ExecutionSettings:
    preview_length: int = 100


@dataclass(slots=True)
class PathsSettings:
    execution_logs_dir: str | None = None


@dataclass(slots=True)
class Settings:
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    execution: ExecutionSettings = field(default_factory=ExecutionSettings)
    paths: PathsSettings | None = None


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def load_settings(path: str | Path) -> Settings:
    """Read configuration from *path* and return structured settings."""

    config_path = Path(path)
    raw = _load_yaml(config_path)

    database_raw = raw.get("database") or {}
    journal_mode = database_raw.get("journal_mode", "wal")
    path_env = database_raw.get("path_env", "SQL_WORKBENCH_DB")
    database = DatabaseSettings(
        path_env=str(path_env) if path_env else None,
        default_path=str(database_raw.get("default_path", DEFAULT_DATABASE_PATH)),
        journal_mode=str(journal_mode).lower() if journal_mode else None,
    )

    execution_raw = raw.get("execution") or {}
    preview_length = int(execution_raw.get("preview_length", 100))
    if preview_length <= 0:
        raise ValueError("execution.preview_length must be a positive integer")
    execution = ExecutionSettings(preview_length=preview_length)

    paths_raw: dict[str, Any] | None = raw.get("paths")
    paths = None
    if paths_raw:
        logs_dir = paths_raw.get("execution_logs_dir")
        paths = PathsSettings(execution_logs_dir=str(logs_dir) if logs_dir else None)

    return Settings(database=database, execution=execution, paths=paths)
