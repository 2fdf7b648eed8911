"""Split raw SQL scripts into ordered statements.

The splitter is deliberately naive: it does not track quote state, so a
semicolon or comment marker inside a string literal ends the statement early
or removes part of the literal.
"""

from __future__ import annotations

import re

from src.core.errors import EmptyScriptError

_LINE_COMMENT_RE = re.compile(r"--[^\n]*")
_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", flags=re.DOTALL)

EMPTY_SCRIPT_MESSAGE = "No valid SQL statements found after removing comments."


def strip_comments(script: str) -> str:
    """Remove ``--`` line comments and ``/* ... */`` block comments."""

    without_lines = _LINE_COMMENT_RE.sub("", script)
    return _BLOCK_COMMENT_RE.sub("", without_lines)


def split_statements(script: str) -> list[str]:
    """Return the trimmed, non-empty statements of *script* in source order."""

    cleaned = strip_comments(script)
    statements = [piece.strip() for piece in cleaned.split(";")]
    statements = [statement for statement in statements if statement]
    if not statements:
        raise EmptyScriptError(EMPTY_SCRIPT_MESSAGE)
    return statements
