"""Persistence for queries saved from the editor."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Literal
from uuid import uuid4

from src.integrations.sqlite_store import SQLiteStore

LOGGER = logging.getLogger(__name__)

SaveOperation = Literal["created", "updated"]


@dataclass(slots=True)
class SavedQueryRepository:
    """Reads and writes the ``saved_queries`` table on the shared store."""

    store: SQLiteStore
    id_factory: Callable[[], str] = lambda: str(uuid4())

    def save(self, name: str, sql: str, query_id: str | None = None) -> tuple[str, SaveOperation]:
        """Insert or update a saved query and return its id and the operation applied."""

        name = name.strip()
        if not name:
            raise ValueError("Query name is required.")

        with self.store.session() as connection:
            if query_id:
                existing = connection.execute(
                    "SELECT id FROM saved_queries WHERE id = ?", (query_id,)
                ).fetchone()
                if existing is not None:
                    connection.execute(
                        "UPDATE saved_queries SET name = ?, sql = ?, updatedAt = CURRENT_TIMESTAMP WHERE id = ?",
                        (name, sql, query_id),
                    )
                    LOGGER.info("Saved query %s updated", query_id)
                    return query_id, "updated"

            new_id = query_id or self.id_factory()
            connection.execute(
                "INSERT INTO saved_queries (id, name, sql, createdAt, updatedAt) "
                "VALUES (?, ?, ?, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)",
                (new_id, name, sql),
            )
            LOGGER.info("Saved query %s created", new_id)
            return new_id, "created"

    def get(self, query_id: str) -> dict[str, Any] | None:
        with self.store.session() as connection:
            cursor = connection.execute(
                "SELECT id, name, sql, createdAt, updatedAt FROM saved_queries WHERE id = ?",
                (query_id,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            columns = [column[0] for column in cursor.description]
            return dict(zip(columns, row))
