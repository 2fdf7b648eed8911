"""Tests for comment stripping and statement splitting."""

from __future__ import annotations

import pytest

from src.core.errors import EmptyScriptError
from src.core.splitter import EMPTY_SCRIPT_MESSAGE, split_statements, strip_comments


def test_split_preserves_order_and_trims() -> None:
    statements = split_statements("  SELECT 1 AS x ;\n\n  SELECT 2 AS y;  ")

    assert statements == ["SELECT 1 AS x", "SELECT 2 AS y"]


def test_split_drops_empty_pieces() -> None:
    assert split_statements(";;SELECT 1;; ;") == ["SELECT 1"]


def test_line_and_block_comments_are_removed() -> None:
    script = """
    -- leading comment; with a semicolon
    CREATE TABLE t(a INT); /* block
    spanning; lines */ INSERT INTO t VALUES (1); -- trailing
    """

    assert split_statements(script) == ["CREATE TABLE t(a INT)", "INSERT INTO t VALUES (1)"]


def test_block_comments_match_non_greedy() -> None:
    script = "/* one */ SELECT 1; /* two */ SELECT 2;"

    assert split_statements(script) == ["SELECT 1", "SELECT 2"]


def test_strip_comments_is_idempotent() -> None:
    script = "SELECT 1; -- note\n/* block */ SELECT 2;"

    once = strip_comments(script)

    assert strip_comments(once) == once


def test_only_comments_raises_empty_script() -> None:
    with pytest.raises(EmptyScriptError) as excinfo:
        split_statements("-- only a comment")

    assert excinfo.value.message == EMPTY_SCRIPT_MESSAGE


def test_whitespace_and_semicolons_raise_empty_script() -> None:
    with pytest.raises(EmptyScriptError):
        split_statements("  ;\n ; /* nothing */ ")


def test_semicolon_inside_literal_splits_statement() -> None:
    # Quote state is not tracked, so the literal is cut in two.
    statements = split_statements("INSERT INTO t VALUES ('a;b')")

    assert statements == ["INSERT INTO t VALUES ('a", "b')"]
