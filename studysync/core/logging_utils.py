"""Structured logging for the sync engine, the CLI and the remote store server.

Every module logs through a stdlib ``logging.getLogger(__name__)`` with a
snake_case event name as the message and context passed via ``extra``.
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from typing import Any

# Attributes present on every LogRecord; everything else arrived through ``extra``.
_RESERVED = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}

# Per-item sync context, grouped under "sync" in JSON output.
_SYNC_FIELDS = frozenset(
    {"item_type", "label", "attempt", "attempts", "max_attempts", "delay_seconds", "reason"}
)

_TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s %(message)s"
_QUIET_LOGGERS = ("httpx", "httpcore", "peewee", "uvicorn.access")
_TRUNCATION_MARKER = "... [truncated]"


def _split_extra(record: logging.LogRecord) -> tuple[dict[str, Any], dict[str, Any]]:
    sync: dict[str, Any] = {}
    extra: dict[str, Any] = {}
    for key, value in record.__dict__.items():
        if key in _RESERVED or key.startswith("_") or key == "correlation_id":
            continue
        if key in _SYNC_FIELDS:
            sync[key] = value
        else:
            extra[key] = value
    return sync, extra


def _json_fallback(obj: Any) -> Any:
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    return str(obj)


class JsonFormatter(logging.Formatter):
    """One JSON object per line.

    Fields passed through ``extra`` are nested under ``extra``, except the
    per-item sync context (item type, label, attempt counters, failure
    reason), which goes under ``sync``. The run's ``correlation_id`` is
    promoted to the top level.
    """

    def __init__(self, *, include_location: bool = True) -> None:
        super().__init__()
        self.include_location = include_location

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id:
            payload["correlation_id"] = correlation_id
        if self.include_location:
            payload["source"] = f"{record.module}:{record.funcName}:{record.lineno}"

        sync, extra = _split_extra(record)
        if sync:
            payload["sync"] = sync
        if extra:
            payload["extra"] = extra

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, _ = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(payload, ensure_ascii=False, default=_json_fallback, separators=(",", ":"))


def setup_json_logging(
    level: str = "INFO",
    *,
    json_output: bool = True,
    include_location: bool = True,
    log_file: str | None = None,
) -> None:
    """Send all logging to stderr, and to a rotating file when ``log_file`` is set.

    Replaces any handlers already installed on the root logger.
    """
    formatter: logging.Formatter = (
        JsonFormatter(include_location=include_location)
        if json_output
        else logging.Formatter(_TEXT_FORMAT)
    )
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(
            RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8")
        )
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=level.upper(), handlers=handlers, force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def generate_correlation_id() -> str:
    """Short id tying together every log line of one sync run or API request."""
    return uuid.uuid4().hex[:12]


def truncate_log_content(content: str | None, max_length: int = 200) -> str | None:
    """Shorten document text or CV content before it goes into a log line."""
    if content is None or len(content) <= max_length:
        return content
    if max_length <= len(_TRUNCATION_MARKER) + 5:
        return content[:max_length] + "..."

    head = content[: max_length - len(_TRUNCATION_MARKER)]
    cut = head.rfind(" ")
    if cut > len(head) // 2:
        head = head[:cut]
    return head + _TRUNCATION_MARKER
