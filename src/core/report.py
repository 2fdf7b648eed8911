"""Statement outcomes and the aggregated execution report."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Union

from src.core.errors import FailureKind

GENERIC_PREVIEW_LENGTH = 30

_MUTATION_MESSAGES = {
    "create": "Table/View created successfully.",
    "drop": "Table/View dropped successfully.",
    "alter": "Table altered successfully.",
}


@dataclass(slots=True, frozen=True)
class RowsOutcome:
    statement: str
    columns: list[str]
    rows: list[list[Any]]


@dataclass(slots=True, frozen=True)
class MutationOutcome:
    statement: str
    verb: str
    rows_affected: int
    inserted_id: int | None = None


@dataclass(slots=True, frozen=True)
class GenericOutcome:
    """Result of a statement run without assumptions about its shape."""

    statement: str
    columns: list[str] | None = None
    rows: list[list[Any]] | None = None


@dataclass(slots=True, frozen=True)
class FailedOutcome:
    statement: str
    kind: FailureKind
    message: str


StatementOutcome = Union[RowsOutcome, MutationOutcome, GenericOutcome, FailedOutcome]


@dataclass(slots=True, frozen=True)
class ExecutionReport:
    """Unified summary of one script evaluation."""

    columns: list[str] = field(default_factory=list)
    rows: list[list[Any]] = field(default_factory=list)
    total_rows_affected: int = 0
    last_inserted_id: int | None = None
    messages: list[str] = field(default_factory=list)
    error: str | None = None
    elapsed_ms: float | None = None

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_payload(self) -> dict[str, Any]:
        """Return the camelCase response body understood by the editor UI."""

        payload: dict[str, Any] = {
            "columns": list(self.columns),
            "rows": [[_json_cell(cell) for cell in row] for row in self.rows],
            "rowCount": self.row_count,
            "changes": self.total_rows_affected,
            "lastInsertRowid": self.last_inserted_id or 0,
            "messages": list(self.messages),
        }
        if self.elapsed_ms is not None:
            payload["executionTime"] = format_elapsed(self.elapsed_ms)
        if self.error is not None:
            payload["error"] = self.error
        return payload


def fold(report: ExecutionReport, outcome: StatementOutcome) -> ExecutionReport:
    """Merge *outcome* into *report* and return the new report."""

    messages = [*report.messages, describe_outcome(outcome)]

    if isinstance(outcome, FailedOutcome):
        return replace(report, messages=messages, error=outcome.message)

    if isinstance(outcome, RowsOutcome):
        return replace(
            report,
            columns=list(outcome.columns),
            rows=[list(row) for row in outcome.rows],
            messages=messages,
        )

    if isinstance(outcome, MutationOutcome):
        last_inserted_id = report.last_inserted_id
        if outcome.verb == "insert" and outcome.inserted_id is not None and outcome.inserted_id > 0:
            last_inserted_id = outcome.inserted_id
        return replace(
            report,
            total_rows_affected=report.total_rows_affected + max(outcome.rows_affected, 0),
            last_inserted_id=last_inserted_id,
            messages=messages,
        )

    if outcome.columns is not None:
        return replace(
            report,
            columns=list(outcome.columns),
            rows=[list(row) for row in outcome.rows or []],
            messages=messages,
        )
    return replace(report, messages=messages)


def describe_outcome(outcome: StatementOutcome) -> str:
    """Return the human-readable log line for *outcome*."""

    if isinstance(outcome, FailedOutcome):
        return outcome.message
    if isinstance(outcome, RowsOutcome):
        return f"SELECT statement executed, {len(outcome.rows)} row(s) returned."
    if isinstance(outcome, MutationOutcome):
        message = _MUTATION_MESSAGES.get(outcome.verb)
        if message:
            return message
        return f"Statement executed successfully. {max(outcome.rows_affected, 0)} row(s) affected."
    return f'Statement "{outcome.statement[:GENERIC_PREVIEW_LENGTH]}..." executed.'


def format_elapsed(elapsed_ms: float) -> str:
    return f"{elapsed_ms:.2f}ms"


def _json_cell(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    return value
