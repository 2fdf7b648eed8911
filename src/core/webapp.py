"""FastAPI backend for the browser SQL workbench."""

from __future__ import annotations

import argparse
import logging
import sqlite3
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from src.core.config import load_settings
from src.core.dependencies import WorkbenchDependencies, build_dependencies
from src.core.observability import configure_logging


LOGGER = logging.getLogger(__name__)


class ExecuteQueryRequest(BaseModel):
    # Left untyped so a non-string payload gets the workbench's own 400
    sqlQuery: Any = None


class UploadSQLRequest(BaseModel):
    sqlContent: Any = None


class SaveQueryRequest(BaseModel):
    queryId: Any = None
    name: Any = None
    sql: Any = None


class SaveQueryResponse(BaseModel):
    message: str
    queryId: str


class UploadSQLResponse(BaseModel):
    message: str
    messages: list[str] = Field(default_factory=list)


def create_app(
    config_path: str = "configs/dev.yaml",
    *,
    dependencies: WorkbenchDependencies | None = None,
) -> FastAPI:
    """Build the application; *dependencies* are created from config when omitted."""

    owns_dependencies = dependencies is None
    if dependencies is None:
        LOGGER.info("Initialising web application with config '%s'", config_path)
        dependencies = build_dependencies(load_settings(config_path))
    service = dependencies.service
    saved_queries = dependencies.saved_queries

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        if owns_dependencies:
            LOGGER.info("Closing SQLite store")
            dependencies.close()

    app = FastAPI(title="SQL Workbench", version="0.1.0", lifespan=lifespan)
    app.state.dependencies = dependencies

    @app.get("/api/health")
    def healthcheck() -> dict[str, str]:  # pragma: no cover - trivial
        return {"status": "ok"}

    @app.post("/api/db/execute", response_model=None)
    def execute_query(payload: ExecuteQueryRequest) -> JSONResponse:
        response = service.run(payload.sqlQuery)
        if response.status_code >= 500:
            LOGGER.error("Script execution failed: %s", response.body.get("error"))
        return JSONResponse(response.body, status_code=response.status_code)

    @app.post("/api/upload/sql", response_model=None)
    def upload_sql(payload: UploadSQLRequest) -> JSONResponse:
        if not isinstance(payload.sqlContent, str) or not payload.sqlContent.strip():
            return JSONResponse({"message": "SQL content is required."}, status_code=400)

        response = service.run(payload.sqlContent)
        if not response.ok:
            error = response.body.get("error") or response.body.get("message")
            LOGGER.warning("Uploaded SQL script rejected: %s", error)
            return JSONResponse(
                {"message": f"Error executing SQL script: {error}"},
                status_code=response.status_code,
            )
        body = UploadSQLResponse(
            message="SQL script executed successfully.",
            messages=response.body.get("messages", []),
        )
        return JSONResponse(body.model_dump(), status_code=200)

    @app.post("/api/editor/save-query", response_model=None)
    def save_query(payload: SaveQueryRequest) -> JSONResponse:
        if not isinstance(payload.name, str) or not payload.name.strip():
            return JSONResponse({"message": "Query name is required."}, status_code=400)
        if not isinstance(payload.sql, str):
            return JSONResponse({"message": "SQL content must be a string."}, status_code=400)
        if payload.queryId is not None and not isinstance(payload.queryId, str):
            return JSONResponse({"message": "Query id must be a string."}, status_code=400)

        try:
            query_id, operation = saved_queries.save(payload.name, payload.sql, payload.queryId)
        except sqlite3.Error as exc:
            LOGGER.exception("Saving query %r failed", payload.name)
            return JSONResponse(
                {"message": "Error saving query to SQLite", "error": str(exc)},
                status_code=500,
            )
        body = SaveQueryResponse(message=f"Query {operation} successfully", queryId=query_id)
        return JSONResponse(body.model_dump(), status_code=200)

    return app


def main() -> None:
    parser = argparse.ArgumentParser(description="Launch the SQL workbench backend")
    parser.add_argument("--config", default="configs/dev.yaml", help="Path to configuration file")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind the server")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind the server")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    configure_logging(debug=args.debug)
    app = create_app(config_path=args.config)

    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover - defensive
        raise SystemExit("uvicorn must be installed to run the web backend") from exc

    LOGGER.info("Starting uvicorn on %s:%s", args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
