"""Process-wide SQLite handle shared by the workbench services.

The store owns exactly one ``sqlite3.Connection``. Every caller that needs the
connection goes through :meth:`SQLiteStore.session`, which holds a lock for the
duration of the block, so at most one script transaction is open at a time.

The connection runs with ``isolation_level=None``: the driver never opens
implicit transactions and callers issue ``BEGIN``/``COMMIT``/``ROLLBACK``
themselves.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

LOGGER = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"

_BOOTSTRAP_SQL = """
CREATE TABLE IF NOT EXISTS saved_queries (
  id TEXT PRIMARY KEY,
  name TEXT NOT NULL,
  sql TEXT NOT NULL,
  createdAt DATETIME DEFAULT CURRENT_TIMESTAMP,
  updatedAt DATETIME DEFAULT CURRENT_TIMESTAMP
);
"""


@dataclass(slots=True, frozen=True)
class PreparedStatement:
    """A statement the engine has compiled successfully."""

    sql: str
    reader: bool


@dataclass(slots=True)
class SQLiteStore:
    """Single-owner SQLite connection guarded by a mutex."""

    path: str | Path = MEMORY_PATH
    journal_mode: str | None = "wal"
    _connection: sqlite3.Connection | None = field(init=False, default=None)
    _lock: threading.Lock = field(init=False, default_factory=threading.Lock)

    def __post_init__(self) -> None:
        target = str(self.path)
        if target != MEMORY_PATH:
            resolved = Path(target).expanduser()
            resolved.parent.mkdir(parents=True, exist_ok=True)
            target = str(resolved)
        self.path = target
        self._connection = sqlite3.connect(target, check_same_thread=False, isolation_level=None)
        if self.journal_mode and target != MEMORY_PATH:
            mode = self._connection.execute(f"PRAGMA journal_mode = {self.journal_mode}").fetchone()
            LOGGER.debug("SQLite journal mode for %s is %s", target, mode[0] if mode else None)
        self.bootstrap()
        LOGGER.info("SQLite database initialised at %s", target)

    @property
    def connection(self) -> sqlite3.Connection:
        if self._connection is None:
            raise RuntimeError("SQLite store has been closed")
        return self._connection

    @contextmanager
    def session(self) -> Iterator[sqlite3.Connection]:
        """Yield the shared connection while holding the store lock."""

        with self._lock:
            yield self.connection

    def bootstrap(self) -> None:
        """Create the tables the workbench itself relies on."""

        with self.session() as connection:
            connection.executescript(_BOOTSTRAP_SQL)

    def close(self) -> None:
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None


def prepare(connection: sqlite3.Connection, sql: str) -> PreparedStatement:
    """Compile *sql* without running it.

    SQLite compiles the statement for ``EXPLAIN`` and returns its bytecode
    instead of executing it, so syntax errors and unknown tables surface here
    as ``sqlite3.Error``. A ``ResultRow`` opcode means the statement emits rows.
    """

    if sql.lstrip()[:7].lower() == "explain":
        # EXPLAIN cannot be nested; the statement is checked when it runs
        return PreparedStatement(sql=sql, reader=True)

    program = connection.execute(f"EXPLAIN {sql}").fetchall()
    reader = any(row[1] == "ResultRow" for row in program)
    return PreparedStatement(sql=sql, reader=reader)
