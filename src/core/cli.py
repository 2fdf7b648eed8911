"""Terminal front end for running SQL scripts against the workbench database."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from src.core.config import load_settings
from src.core.dependencies import build_dependencies
from src.core.observability import configure_logging
from src.core.service import ScriptExecutionService, ServiceResponse

_exit_commands = {"/exit", "exit", "quit", ":q"}

MAX_RENDERED_ROWS = 50


@dataclass
class SQLShell:
    """Interactive shell that buffers input until a statement is terminated."""

    service: ScriptExecutionService
    input_func: Callable[[str], str] = field(default=input)
    output_func: Callable[[str], None] = field(default=print)
    max_rows: int = MAX_RENDERED_ROWS

    def start(self) -> None:
        """Read scripts until the user exits or input ends."""

        self.output_func(
            "Enter SQL terminated by ';'. Multiple statements run as one transaction."
            " Use '/exit' to leave."
        )

        buffer: list[str] = []
        while True:
            try:
                raw = self.input_func("sql> " if not buffer else "...> ")
            except EOFError:
                self.output_func("\nSession ended.")
                break

            line = raw.rstrip()
            if not buffer and line.strip().lower() in _exit_commands:
                self.output_func("Session ended.")
                break
            if not line.strip() and not buffer:
                continue

            buffer.append(line)
            if not line.strip().endswith(";"):
                continue

            script = "\n".join(buffer)
            buffer.clear()
            self.render(self.service.run(script))

    def render(self, response: ServiceResponse) -> None:
        body = response.body
        columns = body.get("columns") or []
        rows = body.get("rows") or []
        if columns:
            self.output_func(" | ".join(str(column) for column in columns))
            self.output_func("-+-".join("-" * len(str(column)) for column in columns))
            for row in rows[: self.max_rows]:
                self.output_func(" | ".join(_format_cell(cell) for cell in row))
            if len(rows) > self.max_rows:
                self.output_func(f"... {len(rows) - self.max_rows} more row(s)")

        for message in body.get("messages") or []:
            self.output_func(message)

        if response.ok:
            self.output_func(
                f"[ok] changes={body.get('changes', 0)}"
                f" last_insert_rowid={body.get('lastInsertRowid', 0)}"
                f" time={body.get('executionTime', '-')}"
            )
        else:
            self.output_func(f"[error {response.status_code}] {body.get('error') or body.get('message')}")


def _format_cell(value: Any) -> str:
    if value is None:
        return "NULL"
    return str(value)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point; returns the process exit code."""

    parser = argparse.ArgumentParser(description="Run SQL scripts against the workbench database")
    parser.add_argument("--config", default="configs/dev.yaml", help="Path to the YAML config file")
    parser.add_argument("--database", default=None, help="Override the SQLite database path")
    parser.add_argument("--file", default=None, help="Run this script file once and print the JSON result")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    configure_logging(debug=args.debug)
    settings = load_settings(args.config)
    dependencies = build_dependencies(settings, database_path=args.database)
    try:
        if args.file is not None:
            script = sys.stdin.read() if args.file == "-" else Path(args.file).read_text(encoding="utf-8")
            response = dependencies.service.run(script)
            print(json.dumps(response.body, indent=2, ensure_ascii=False))
            return 0 if response.ok else 1

        SQLShell(service=dependencies.service).start()
        return 0
    finally:
        dependencies.close()


if __name__ == "__main__":
    raise SystemExit(main())
