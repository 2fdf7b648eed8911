"""Tests for the transactional statement executor."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

import pytest

from src.core.errors import ExecuteFailed, PrepareFailed, TransactionFailed
from src.core.executor import TransactionalExecutor, execute_statement, preview
from src.core.report import FailedOutcome, GenericOutcome, MutationOutcome, RowsOutcome
from src.integrations.sqlite_store import SQLiteStore


@pytest.fixture()
def store() -> Iterator[SQLiteStore]:
    instance = SQLiteStore()
    with instance.session() as connection:
        connection.execute("CREATE TABLE t(a INTEGER PRIMARY KEY, label TEXT)")
    yield instance
    instance.close()


def _count(store: SQLiteStore) -> int:
    with store.session() as connection:
        return connection.execute("SELECT COUNT(*) FROM t").fetchone()[0]


@dataclass
class _CommitFailingConnection:
    inner: sqlite3.Connection

    def execute(self, sql: str, *args: Any) -> sqlite3.Cursor:
        if sql.startswith("COMMIT"):
            raise sqlite3.OperationalError("disk I/O error")
        return self.inner.execute(sql, *args)

    @property
    def in_transaction(self) -> bool:
        return self.inner.in_transaction


@dataclass
class _CommitFailingStore:
    inner: SQLiteStore

    @contextmanager
    def session(self) -> Iterator[_CommitFailingConnection]:
        with self.inner.session() as connection:
            yield _CommitFailingConnection(connection)


def test_inserts_accumulate_changes_and_last_id(store: SQLiteStore) -> None:
    executor = TransactionalExecutor(store=store)

    report = executor.execute(["INSERT INTO t (label) VALUES ('one')", "INSERT INTO t (label) VALUES ('two')"])

    assert report.total_rows_affected == 2
    assert report.last_inserted_id == 2
    assert report.error is None
    assert _count(store) == 2


def test_zero_row_select_still_reports_columns(store: SQLiteStore) -> None:
    report = TransactionalExecutor(store=store).execute(["SELECT a, label FROM t"])

    assert report.columns == ["a", "label"]
    assert report.rows == []
    assert report.messages == ["SELECT statement executed, 0 row(s) returned."]


def test_prepare_failure_rolls_back_earlier_statements(store: SQLiteStore) -> None:
    executor = TransactionalExecutor(store=store)

    with pytest.raises(PrepareFailed) as excinfo:
        executor.execute(["INSERT INTO t (label) VALUES ('kept?')", "SELEKT 1", "INSERT INTO t (label) VALUES ('never')"])

    error = excinfo.value
    assert error.statement == "SELEKT 1"
    assert error.message.startswith('Error preparing statement: "SELEKT 1". Error: ')
    assert "syntax error" in error.message
    assert error.report is not None
    assert error.report.total_rows_affected == 1
    assert len(error.report.messages) == 2
    assert _count(store) == 0


def test_runtime_failure_raises_execute_failed(store: SQLiteStore) -> None:
    executor = TransactionalExecutor(store=store)

    with pytest.raises(ExecuteFailed) as excinfo:
        executor.execute(["INSERT INTO t VALUES (1, 'a')", "INSERT INTO t VALUES (1, 'b')"])

    assert excinfo.value.message.startswith('Error executing DML/DDL: "INSERT INTO t VALUES (1, \'b\')"')
    assert "UNIQUE constraint failed" in excinfo.value.message
    assert _count(store) == 0


def test_statement_that_ends_the_transaction_itself_is_execute_failure(store: SQLiteStore) -> None:
    with store.session() as connection:
        connection.execute("INSERT INTO t VALUES (1, 'existing')")
    executor = TransactionalExecutor(store=store)

    with pytest.raises(ExecuteFailed) as excinfo:
        executor.execute(["INSERT INTO t VALUES (2, 'new')", "INSERT OR ROLLBACK INTO t VALUES (1, 'dup')"])

    assert "UNIQUE constraint failed" in excinfo.value.message
    with store.session() as connection:
        assert connection.in_transaction is False
        assert connection.execute("SELECT a FROM t").fetchall() == [(1,)]


def test_trigger_raise_rollback_is_execute_failure(store: SQLiteStore) -> None:
    with store.session() as connection:
        connection.execute(
            "CREATE TRIGGER no_blank BEFORE INSERT ON t WHEN NEW.label = ''"
            " BEGIN SELECT RAISE(ROLLBACK, 'blank label'); END"
        )

    with pytest.raises(ExecuteFailed, match="blank label"):
        TransactionalExecutor(store=store).execute(["INSERT INTO t (label) VALUES ('x')", "INSERT INTO t (label) VALUES ('')"])

    assert _count(store) == 0


def test_returning_statements_report_affected_rows(store: SQLiteStore) -> None:
    executor = TransactionalExecutor(store=store)

    report = executor.execute(
        [
            "INSERT INTO t (label) VALUES ('a'), ('b'), ('c') RETURNING a",
            "UPDATE t SET label = 'z' WHERE a > 1 RETURNING a",
        ]
    )

    assert report.total_rows_affected == 5
    assert _count(store) == 3
    with store.session() as connection:
        labels = connection.execute("SELECT label FROM t ORDER BY a").fetchall()
    assert labels == [("a",), ("z",), ("z",)]


def test_transaction_control_is_rejected(store: SQLiteStore) -> None:
    executor = TransactionalExecutor(store=store)

    with pytest.raises(ExecuteFailed, match="Unsupported or invalid SQL statement"):
        executor.execute(["INSERT INTO t (label) VALUES ('x')", "COMMIT"])

    assert _count(store) == 0


def test_commit_failure_is_wrapped_and_rolled_back(store: SQLiteStore) -> None:
    executor = TransactionalExecutor(store=_CommitFailingStore(store))  # type: ignore[arg-type]

    with pytest.raises(TransactionFailed) as excinfo:
        executor.execute(["INSERT INTO t (label) VALUES ('x')"])

    assert excinfo.value.message == "Transaction failed. Error: disk I/O error"
    with store.session() as connection:
        assert connection.in_transaction is False
    assert _count(store) == 0


def test_execute_statement_returns_outcomes(store: SQLiteStore) -> None:
    with store.session() as connection:
        rows = execute_statement(connection, "PRAGMA table_info(t)")
        mutation = execute_statement(connection, "INSERT INTO t (label) VALUES ('z')")
        generic = execute_statement(connection, "WITH x AS (SELECT 7 AS v) SELECT v FROM x")
        failed = execute_statement(connection, "SELECT * FROM nowhere")

    assert isinstance(rows, RowsOutcome)
    assert "name" in rows.columns
    assert isinstance(mutation, MutationOutcome)
    assert mutation.verb == "insert"
    assert mutation.rows_affected == 1
    with store.session() as connection:
        deleted = execute_statement(connection, "DELETE FROM t RETURNING a")
    assert isinstance(deleted, MutationOutcome)
    assert deleted.rows_affected == 1
    assert isinstance(generic, GenericOutcome)
    assert generic.rows == [[7]]
    assert isinstance(failed, FailedOutcome)
    assert "no such table" in failed.message


def test_preview_truncates_long_statements() -> None:
    statement = "SELECT " + "x" * 200

    assert preview(statement, 10) == "SELECT xxx..."
    assert preview("SELECT 1", 10) == "SELECT 1"
