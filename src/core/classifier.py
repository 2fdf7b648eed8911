"""Leading-keyword classification of SQL statements."""

from __future__ import annotations

from enum import Enum

MUTATING_VERBS = frozenset({"insert", "update", "delete", "create", "alter", "drop", "pragma"})
TRANSACTION_CONTROL_VERBS = frozenset({"begin", "commit", "end", "rollback"})


class StatementKind(str, Enum):
    ROW_PRODUCING = "row_producing"
    MUTATING = "mutating"
    UNCLASSIFIED = "unclassified"


def statement_verb(statement: str) -> str:
    """Return the lower-cased leading keyword of *statement*."""

    parts = statement.strip().split(None, 1)
    if not parts:
        return ""
    head = parts[0].lower()
    # "select(1)" or "drop\ttable" should still resolve to the keyword
    for index, char in enumerate(head):
        if not (char.isalpha() or char == "_"):
            return head[:index]
    return head


def classify(statement: str, *, reader: bool = False) -> StatementKind:
    """Decide how the result of *statement* should be collected.

    ``reader`` tells whether the prepared statement emits result rows; it only
    matters for PRAGMA, which can be either a query or a setter.
    """

    verb = statement_verb(statement)
    if verb == "select" or (verb == "pragma" and reader):
        return StatementKind.ROW_PRODUCING
    if verb in MUTATING_VERBS:
        return StatementKind.MUTATING
    return StatementKind.UNCLASSIFIED


def is_transaction_control(statement: str) -> bool:
    """Return True for statements that would end or nest the script transaction."""

    verb = statement_verb(statement)
    if verb not in TRANSACTION_CONTROL_VERBS:
        return False
    if verb == "rollback":
        # ROLLBACK TO <savepoint> keeps the outer transaction open
        words = [word for word in statement.lower().split()[1:] if word != "transaction"]
        return not (words and words[0] == "to")
    return True
