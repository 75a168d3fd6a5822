from __future__ import annotations

import json
import logging
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

LOG_FILE_NAME = "tasks_api.jsonl"
SERVICE_NAME = "tasks_api"

# LogRecord attributes that are not ours; everything else came in via `extra`.
_RECORD_ATTRS = frozenset((
    "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
    "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName",
    "created", "msecs", "relativeCreated", "thread", "threadName", "processName",
    "process", "message", "taskName",
))

# Set by the access middleware for the lifetime of one request.
_request_context: ContextVar[Optional[Dict[str, Any]]] = ContextVar("request_context", default=None)


def bind_request_context(request_id: str, method: str, path: str) -> Token:
    return _request_context.set({"request_id": request_id, "method": method, "path": path})


def reset_request_context(token: Token) -> None:
    _request_context.reset(token)


class JsonFormatter(logging.Formatter):
    """One JSON object per line.

    Carries the `extra` fields of the call plus the current request's id,
    method and path, so service-level events can be joined to access lines.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "service": SERVICE_NAME,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        for k, v in record.__dict__.items():
            if k not in _RECORD_ATTRS:
                payload[k] = v

        # explicit extras win over the ambient request
        for k, v in (_request_context.get() or {}).items():
            payload.setdefault(k, v)

        if record.levelno >= logging.WARNING:
            payload["where"] = f"{record.module}:{record.lineno}"

        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", log_dir: Path = Path("./logs")) -> Path:
    """Send JSON lines to stderr and to a rotating file; returns the file path."""
    level = level.upper()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        # only drop what we installed earlier (reloads, repeated create_app)
        if isinstance(h.formatter, JsonFormatter):
            root.removeHandler(h)
            h.close()

    fmt = JsonFormatter()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(fmt)
    root.addHandler(console)

    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=10_000_000,  # 10MB
        backupCount=10,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    # access lines come from our middleware
    logging.getLogger("uvicorn.access").setLevel(logging.CRITICAL)
    logging.getLogger("uvicorn.error").setLevel(level)
    return log_path
