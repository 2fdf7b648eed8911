"""Run a list of statements as one all-or-nothing SQLite transaction.

Each statement goes through :func:`execute_statement`, which returns a
``StatementOutcome`` instead of raising for SQL errors. The executor folds the
outcomes into an :class:`ExecutionReport` and stops at the first failure, so
rollback happens in exactly one place.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Sequence
from dataclasses import dataclass

from src.core.classifier import StatementKind, classify, is_transaction_control, statement_verb
from src.core.errors import FailureKind, StatementFailed, TransactionFailed, statement_error_for
from src.core.report import (
    ExecutionReport,
    FailedOutcome,
    GenericOutcome,
    MutationOutcome,
    RowsOutcome,
    StatementOutcome,
    fold,
)
from src.integrations.sqlite_store import SQLiteStore, prepare

LOGGER = logging.getLogger(__name__)

DEFAULT_PREVIEW_LENGTH = 100

_FAILURE_PREFIXES = {
    StatementKind.ROW_PRODUCING: "Error executing SELECT/PRAGMA",
    StatementKind.MUTATING: "Error executing DML/DDL",
    StatementKind.UNCLASSIFIED: "Unsupported or invalid SQL statement",
}


def preview(statement: str, limit: int = DEFAULT_PREVIEW_LENGTH) -> str:
    """Return *statement* cut to *limit* characters, marking truncation."""

    if len(statement) <= limit:
        return statement
    return statement[:limit] + "..."


def _failure_message(prefix: str, statement: str, error: BaseException, limit: int) -> str:
    return f'{prefix}: "{preview(statement, limit)}". Error: {error}'


def execute_statement(
    connection: sqlite3.Connection,
    statement: str,
    *,
    preview_length: int = DEFAULT_PREVIEW_LENGTH,
) -> StatementOutcome:
    """Prepare, classify and run a single statement inside the open transaction."""

    try:
        prepared = prepare(connection, statement)
    except sqlite3.Error as exc:
        return FailedOutcome(
            statement=statement,
            kind=FailureKind.PREPARE_FAILED,
            message=_failure_message("Error preparing statement", statement, exc, preview_length),
        )

    kind = classify(statement, reader=prepared.reader)
    if kind is StatementKind.UNCLASSIFIED and is_transaction_control(statement):
        return FailedOutcome(
            statement=statement,
            kind=FailureKind.EXECUTE_FAILED,
            message=_failure_message(
                _FAILURE_PREFIXES[kind],
                statement,
                ValueError("transaction control is managed by the workbench"),
                preview_length,
            ),
        )

    try:
        cursor = connection.execute(prepared.sql)
        if kind is StatementKind.ROW_PRODUCING:
            rows = cursor.fetchall()
            return RowsOutcome(
                statement=statement,
                columns=_column_names(cursor),
                rows=[list(row) for row in rows],
            )
        if kind is StatementKind.MUTATING:
            # RETURNING rows must be drained before the change count is final
            returned = cursor.fetchall() if cursor.description is not None else []
            return MutationOutcome(
                statement=statement,
                verb=statement_verb(statement),
                rows_affected=max(cursor.rowcount, len(returned), 0),
                inserted_id=cursor.lastrowid,
            )
        if cursor.description is not None:
            rows = cursor.fetchall()
            return GenericOutcome(
                statement=statement,
                columns=_column_names(cursor),
                rows=[list(row) for row in rows],
            )
        return GenericOutcome(statement=statement)
    except sqlite3.Error as exc:
        return FailedOutcome(
            statement=statement,
            kind=FailureKind.EXECUTE_FAILED,
            message=_failure_message(_FAILURE_PREFIXES[kind], statement, exc, preview_length),
        )


def _column_names(cursor: sqlite3.Cursor) -> list[str]:
    return [str(column[0]) for column in cursor.description or ()]


@dataclass(slots=True)
class TransactionalExecutor:
    """Owns the script transaction on top of the shared store."""

    store: SQLiteStore
    preview_length: int = DEFAULT_PREVIEW_LENGTH

    def execute(self, statements: Sequence[str]) -> ExecutionReport:
        """Run *statements* atomically and return the aggregated report.

        Raises ``PrepareFailed``/``ExecuteFailed`` for the first rejected
        statement and ``TransactionFailed`` for anything else; the partial
        report travels on the exception.
        """

        report = ExecutionReport()
        with self.store.session() as connection:
            try:
                connection.execute("BEGIN TRANSACTION")
                for index, statement in enumerate(statements, start=1):
                    outcome = execute_statement(
                        connection, statement, preview_length=self.preview_length
                    )
                    report = fold(report, outcome)
                    if isinstance(outcome, FailedOutcome):
                        LOGGER.info(
                            "Statement %s/%s failed (%s); rolling back",
                            index,
                            len(statements),
                            outcome.kind.value,
                        )
                        # OR ROLLBACK conflicts and RAISE(ROLLBACK) already ended it
                        self._rollback_if_open(connection)
                        error_cls = statement_error_for(outcome.kind)
                        raise error_cls(outcome.message, report, statement=statement)
                    LOGGER.debug("Statement %s/%s completed", index, len(statements))
                connection.execute("COMMIT TRANSACTION")
            except StatementFailed:
                raise
            except Exception as exc:
                self._rollback_if_open(connection)
                message = f"Transaction failed. Error: {exc}"
                LOGGER.exception("Error during multi-statement execution")
                report = fold(
                    report,
                    FailedOutcome(statement="", kind=FailureKind.EXECUTE_FAILED, message=message),
                )
                raise TransactionFailed(message, report) from exc
        return report

    @staticmethod
    def _rollback_if_open(connection: sqlite3.Connection) -> None:
        if connection.in_transaction:
            connection.execute("ROLLBACK TRANSACTION")
