"""JSONL-backed observability helpers for script execution.

Each request gets its own ``<utc-timestamp>-<request-id>.jsonl`` file; every
event emitted for that request is appended to the same file.
"""

from __future__ import annotations

import json
import logging
import re
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol


def configure_logging(debug: bool) -> None:
    """Install the root log format unless the host already configured logging."""

    root_logger = logging.getLogger()
    if root_logger.handlers:
        if debug:
            root_logger.setLevel(logging.DEBUG)
        return
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )


class ExecutionObservationSink(Protocol):
    """Records lifecycle events emitted by the script execution service."""

    def log_event(self, request_id: str, event: str, payload: dict[str, Any]) -> None:  # pragma: no cover - interface
        ...


def utc_now_iso() -> str:
    """Return the current UTC time in ISO-8601 with millisecond precision."""

    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _timestamp_slug(moment: datetime | None = None) -> str:
    return (moment or datetime.now(UTC)).strftime("%Y%m%dT%H%M%S%f")[:-3]


def _safe_request_id(request_id: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9_-]+", "-", request_id.strip())
    return cleaned or "request"


def _build_event(event: str, payload: dict[str, Any]) -> dict[str, Any]:
    enriched = {key: value for key, value in payload.items() if value is not None}
    enriched.setdefault("event", event)
    enriched.setdefault("timestamp", utc_now_iso())
    return enriched


@dataclass(slots=True)
class JSONLExecutionLogger(ExecutionObservationSink):
    """Persists script execution events under a dedicated logs directory."""

    base_dir: Path
    _paths: dict[str, Path] = field(init=False, default_factory=dict)
    _lock: threading.Lock = field(init=False, default_factory=threading.Lock)

    def log_event(self, request_id: str, event: str, payload: dict[str, Any]) -> None:  # type: ignore[override]
        record = _build_event(event, payload)
        with self._lock:
            target = self.path_for(request_id)
            with target.open("a", encoding="utf-8") as handle:
                json.dump(record, handle, ensure_ascii=False, default=str)
                handle.write("\n")

    def path_for(self, request_id: str) -> Path:
        """Return the log file for *request_id*, creating the directory on first use."""

        target = self._paths.get(request_id)
        if target is None:
            base = Path(self.base_dir).expanduser()
            base.mkdir(parents=True, exist_ok=True)
            target = base / f"{_timestamp_slug()}-{_safe_request_id(request_id)}.jsonl"
            self._paths[request_id] = target
        return target
