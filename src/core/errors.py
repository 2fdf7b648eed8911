"""Failure taxonomy for script execution."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing only
    from src.core.report import ExecutionReport


class FailureKind(str, Enum):
    PREPARE_FAILED = "prepare_failed"
    EXECUTE_FAILED = "execute_failed"


class ScriptError(Exception):
    """Base error raised while running a SQL script.

    ``report`` holds whatever was accumulated before the failure. The store is
    rolled back regardless of what the partial report shows.
    """

    def __init__(self, message: str, report: ExecutionReport | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.report = report


class InvalidInput(ScriptError):
    """Request body did not carry a non-blank SQL string."""


class EmptyScriptError(ScriptError):
    """Nothing was left after stripping comments."""


class StatementFailed(ScriptError):
    """A single statement was rejected by the engine."""

    kind: FailureKind

    def __init__(self, message: str, report: ExecutionReport | None = None, *, statement: str = "") -> None:
        super().__init__(message, report)
        self.statement = statement


class PrepareFailed(StatementFailed):
    kind = FailureKind.PREPARE_FAILED


class ExecuteFailed(StatementFailed):
    kind = FailureKind.EXECUTE_FAILED


class TransactionFailed(ScriptError):
    """Engine-level failure outside per-statement handling."""


def statement_error_for(kind: FailureKind) -> type[StatementFailed]:
    """Return the exception class matching *kind*."""

    if kind is FailureKind.PREPARE_FAILED:
        return PrepareFailed
    return ExecuteFailed
