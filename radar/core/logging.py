import json
import logging
import os
import re
import sys
import traceback
from datetime import UTC, datetime
from functools import lru_cache
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any

from radar.core.settings import get_settings

_STANDARD_LOG_RECORD_KEYS = set(logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys())
_STANDARD_LOG_RECORD_KEYS.update({"message", "asctime"})
_STRUCTURED_LOG_KEYS = {
    "component",
    "operation",
    "source_id",
    "account_id",
    "context_data",
    "http_details",
    "error_type",
    "error_message",
}

_SENSITIVE_KEY_PARTS = (
    "authorization",
    "cookie",
    "api_key",
    "api-key",
    "apikey",
    "token",
    "secret",
    "password",
)

# YouTube Data API keys travel as a query parameter and end up in logged URLs.
_QUERY_KEY_PATTERN = re.compile(r"(?i)([?&](?:key|api_key|token)=)[^&\s\"']+")
_BEARER_PATTERN = re.compile(r"(?i)\bbearer\s+[a-z0-9\-._~+/]+=*")


def _sanitize_filename(value: str) -> str:
    cleaned = re.sub(r"[^a-zA-Z0-9._-]+", "_", value.strip().lower())
    return cleaned.strip("._-") or "radar"


def redact(value: Any) -> Any:
    """Mask credentials inside log payloads (dict keys, bearer tokens, URL query keys)."""
    if isinstance(value, dict):
        out: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            if any(part in key.lower() for part in _SENSITIVE_KEY_PARTS):
                out[key] = "<redacted>"
            else:
                out[key] = redact(v)
        return out

    if isinstance(value, (list, tuple)):
        return type(value)(redact(v) for v in value)

    if isinstance(value, str):
        redacted = _BEARER_PATTERN.sub("Bearer <redacted>", value)
        return _QUERY_KEY_PATTERN.sub(r"\1<redacted>", redacted)

    return value


def _extract_extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_LOG_RECORD_KEYS and key not in _STRUCTURED_LOG_KEYS
    }


def _merge_context_data(context_data: Any, extra_fields: dict[str, Any]) -> Any:
    if not extra_fields:
        return context_data
    if context_data is None:
        return extra_fields
    if isinstance(context_data, dict):
        merged = dict(extra_fields)
        merged.update(context_data)
        return merged
    return {"context_data": context_data, **extra_fields}


def _build_payload(record: logging.LogRecord, *, include_error: bool) -> dict[str, Any]:
    message = redact(record.getMessage())

    context_data = _merge_context_data(
        getattr(record, "context_data", None), _extract_extra_fields(record)
    )
    http_details = getattr(record, "http_details", None)
    component = getattr(record, "component", None)

    payload: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "level": record.levelname,
        "logger": record.name,
        "component": component if isinstance(component, str) and component else record.name,
        "operation": getattr(record, "operation", None),
        "account_id": getattr(record, "account_id", None),
        "source_id": getattr(record, "source_id", None),
        "message": message,
        "context_data": redact(context_data) if context_data is not None else None,
        "http_details": redact(http_details) if http_details is not None else None,
        "source_file": record.filename,
        "source_line": record.lineno,
        "source_function": record.funcName,
        "process": record.process,
        "thread": record.thread,
    }

    if include_error:
        exc_type, exc_value, exc_tb = (None, None, None)
        if record.exc_info and len(record.exc_info) == 3:
            exc_type, exc_value, exc_tb = record.exc_info

        payload["error_type"] = (
            getattr(record, "error_type", None)
            or (exc_type.__name__ if exc_type else None)
            or "LogError"
        )
        payload["error_message"] = (
            getattr(record, "error_message", None)
            or (str(exc_value) if exc_value else None)
            or str(message)
        )
        if exc_type and exc_value and exc_tb:
            payload["stack_trace"] = "".join(
                traceback.format_exception(exc_type, exc_value, exc_tb)
            )

    return {k: v for k, v in payload.items() if v is not None}


class _JsonLineErrorFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = _build_payload(record, include_error=True)
        return json.dumps(payload, ensure_ascii=False, default=str)


class _JsonLineStructuredFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = _build_payload(record, include_error=False)
        return json.dumps(payload, ensure_ascii=False, default=str)


class _StructuredLogFilter(logging.Filter):
    """Only records carrying structured fields reach the structured JSONL file."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key in ("context_data", "http_details", "operation", "source_id"):
            if getattr(record, key, None) is not None:
                return True
        return bool(_extract_extra_fields(record))


def _rotate_jsonl_namer(default_name: str) -> str:
    marker = ".jsonl."
    if marker not in default_name:
        return default_name
    before, after = default_name.split(marker, 1)
    return f"{before}_{after}.jsonl"


def _create_jsonl_handler(
    *,
    directory: Path,
    filename: str,
    level: int,
    formatter: logging.Formatter,
) -> logging.Handler:
    directory.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        filename=str(directory / filename),
        when="D",
        interval=1,
        backupCount=0,
        encoding="utf-8",
        delay=True,
        utc=True,
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.suffix = "%Y%m%d_%H%M%S"
    handler.namer = _rotate_jsonl_namer
    return handler


@lru_cache
def setup_logging(name: str | None = None, level: str | None = None) -> logging.Logger:
    """
    Configure the root logger for the service.

    Console output goes to stdout. Errors are also written as JSON lines to
    ``<logs_dir>/errors`` and records carrying structured ``extra`` fields to
    ``<logs_dir>/structured``.

    Args:
        name: Logger name (defaults to app name from settings)
        level: Log level (defaults to settings.log_level)

    Returns:
        Configured logger instance
    """
    settings = get_settings()
    logger_name = name or settings.app_name
    log_level = getattr(logging, (level or settings.log_level).upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root_logger.addHandler(console_handler)

    prefix = _sanitize_filename(logger_name)
    pid = os.getpid()
    root_logger.addHandler(
        _create_jsonl_handler(
            directory=settings.logs_dir / "errors",
            filename=f"{prefix}_errors_{pid}.jsonl",
            level=logging.ERROR,
            formatter=_JsonLineErrorFormatter(),
        )
    )
    structured_handler = _create_jsonl_handler(
        directory=settings.logs_dir / "structured",
        filename=f"{prefix}_structured_{pid}.jsonl",
        level=logging.NOTSET,
        formatter=_JsonLineStructuredFormatter(),
    )
    structured_handler.addFilter(_StructuredLogFilter())
    root_logger.addHandler(structured_handler)

    app_logger = logging.getLogger(logger_name)
    app_logger.setLevel(log_level)
    return app_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)
