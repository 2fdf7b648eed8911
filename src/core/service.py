"""Entry point that turns a raw SQL script into an HTTP-shaped response."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import Any, Callable
from uuid import uuid4

from src.core.errors import (
    EmptyScriptError,
    InvalidInput,
    StatementFailed,
    TransactionFailed,
)
from src.core.executor import TransactionalExecutor
from src.core.observability import ExecutionObservationSink
from src.core.report import ExecutionReport, format_elapsed
from src.core.splitter import split_statements

LOGGER = logging.getLogger(__name__)

INVALID_INPUT_MESSAGE = "SQL query is required."


@dataclass(slots=True, frozen=True)
class ServiceResponse:
    status_code: int
    body: dict[str, Any]

    @property
    def ok(self) -> bool:
        return self.status_code < 400


@dataclass(slots=True)
class ScriptExecutionService:
    """Orchestrates splitting, transactional execution and reporting."""

    executor: TransactionalExecutor
    logger: ExecutionObservationSink | None = None
    clock: Callable[[], float] = time.perf_counter
    request_id_factory: Callable[[], str] = lambda: uuid4().hex[:8]

    def run(self, script: Any, *, request_id: str | None = None) -> ServiceResponse:
        """Execute *script* and map the outcome to a status code and body."""

        request_id = request_id or self.request_id_factory()
        try:
            report = self.execute(script, request_id=request_id)
        except (InvalidInput, EmptyScriptError) as exc:
            LOGGER.info("Script %s rejected: %s", request_id, exc.message)
            self._log_event(request_id, "script_rejected", {"error": exc.message})
            return ServiceResponse(
                status_code=400,
                body={**_empty_body(), "message": exc.message, "error": exc.message},
            )
        except StatementFailed as exc:
            LOGGER.info("Script %s failed: %s", request_id, _truncate_for_log(exc.message))
            self._log_event(
                request_id,
                "script_rolled_back",
                {"error": exc.message, "failure": exc.kind.value},
            )
            body = exc.report.to_payload() if exc.report is not None else _empty_body()
            body["error"] = exc.message
            return ServiceResponse(status_code=400, body=body)
        except TransactionFailed as exc:
            self._log_event(request_id, "script_failed", {"error": exc.message})
            return _server_error(exc.message, str(exc.__cause__ or exc))
        except Exception as exc:  # pragma: no cover - defensive
            LOGGER.exception("Unexpected error executing script %s", request_id)
            self._log_event(request_id, "script_failed", {"error": str(exc)})
            return _server_error(f"Error processing request: {exc}", str(exc))

        self._log_event(
            request_id,
            "script_committed",
            {
                "row_count": report.row_count,
                "changes": report.total_rows_affected,
                "execution_time": format_elapsed(report.elapsed_ms or 0.0),
            },
        )
        return ServiceResponse(status_code=200, body=report.to_payload())

    def execute(self, script: Any, *, request_id: str | None = None) -> ExecutionReport:
        """Run *script* and return the committed report, raising ``ScriptError`` on failure."""

        if not isinstance(script, str) or not script.strip():
            raise InvalidInput(INVALID_INPUT_MESSAGE)

        statements = split_statements(script)
        LOGGER.info(
            "Executing script %s with %s statement(s): %s",
            request_id,
            len(statements),
            _truncate_for_log(script),
        )
        if request_id is not None:
            self._log_event(request_id, "script_received", {"statement_count": len(statements)})

        started = self.clock()
        report = self.executor.execute(statements)
        elapsed_ms = (self.clock() - started) * 1000.0
        return replace(report, error=None, elapsed_ms=elapsed_ms)

    def _log_event(self, request_id: str, event: str, payload: dict[str, Any]) -> None:
        if self.logger is None:
            return
        self.logger.log_event(request_id, event, payload)


def _empty_body() -> dict[str, Any]:
    return {"columns": [], "rows": [], "messages": []}


def _server_error(message: str, error: str) -> ServiceResponse:
    return ServiceResponse(
        status_code=500,
        body={"message": message, "error": error, **_empty_body()},
    )


def _truncate_for_log(value: str, limit: int = 200) -> str:
    text = value.strip()
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."
