"""
Structured error logging for the ingestion pipeline.

These helpers attach ``component``/``operation``/``context_data`` extras so the
JSONL handlers configured in radar/core/logging.py capture full context.

Usage:
    from radar.utils.error_logger import log_error, log_http_error, log_feed_error

    log_error("youtube_cycle", exc, operation="resolve_channel", context={"url": url})
    log_http_error("http_service", url=url, error=exc, response=resp)
    log_feed_error("rss_cycle", feed_url=url, error=exc, feed_name="Example")
"""

import json
import logging
from collections import defaultdict
from datetime import UTC, datetime
from typing import Any

from radar.core.logging import get_logger

FETCH_METRICS: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))


def _extract_http_details(response: Any) -> dict[str, Any]:
    details: dict[str, Any] = {}

    try:
        if hasattr(response, "status_code"):
            details["status_code"] = response.status_code
        if hasattr(response, "headers"):
            details["headers"] = {
                k: v[:200] if isinstance(v, str) else v for k, v in dict(response.headers).items()
            }
        if hasattr(response, "url"):
            details["url"] = str(response.url)
        if hasattr(response, "text"):
            details["response_body"] = response.text[:1000]
    except Exception as e:
        details["extraction_error"] = f"Failed to extract HTTP details: {e}"

    return details


def log_error(
    component: str,
    error: Exception,
    *,
    operation: str | None = None,
    context: dict[str, Any] | None = None,
    http_response: Any | None = None,
    source_id: str | None = None,
    level: int = logging.ERROR,
) -> None:
    """Log an exception with full context to console and JSONL.

    Args:
        component: Component name for identifying the source of errors.
        error: The exception that occurred.
        operation: Name of the operation that failed.
        context: Additional context data.
        http_response: HTTP response object (if applicable).
        source_id: Source being processed (if applicable).
        level: Log level; WARNING for degradations that are expected upstream.
    """
    logger = get_logger(f"error.{component}")

    operation_str = f" during {operation}" if operation else ""
    source_str = f" (source: {source_id})" if source_id else ""

    logger.log(
        level,
        f"{component} error{operation_str}{source_str}: {error}",
        exc_info=error if level >= logging.ERROR else None,
        extra={
            "component": component,
            "operation": operation,
            "context_data": context,
            "http_details": _extract_http_details(http_response) if http_response else None,
            "source_id": source_id,
            "error_type": type(error).__name__,
            "error_message": str(error),
        },
    )


def log_http_error(
    component: str,
    url: str,
    *,
    response: Any | None = None,
    error: Exception | None = None,
    operation: str | None = None,
    context: dict[str, Any] | None = None,
) -> None:
    """Log HTTP failures with response details."""
    full_context = {"url": url}
    if context:
        full_context.update(context)

    if not error:
        status_code = getattr(response, "status_code", "unknown")
        error = Exception(f"HTTP error for {url} (status: {status_code})")

    log_error(
        component,
        error,
        operation=operation or "http_request",
        context=full_context,
        http_response=response,
        level=logging.WARNING,
    )


def log_feed_error(
    component: str,
    feed_url: str,
    error: Exception,
    *,
    feed_name: str | None = None,
    source_id: str | None = None,
    operation: str | None = None,
) -> None:
    """Log a feed that could not be fetched or parsed."""
    log_error(
        component,
        error,
        operation=operation or "feed_processing",
        context={"feed_url": feed_url, "feed_name": feed_name},
        source_id=source_id,
    )


def log_fetch_event(
    *,
    service: str,
    event: str,
    level: int = logging.INFO,
    metric: str | None = None,
    **fields: Any,
) -> None:
    """Emit a structured fetch-cycle event and optionally bump a metric counter."""
    logger = get_logger(f"fetch.{service}")

    payload = {
        "timestamp": datetime.now(UTC).isoformat(),
        "service": service,
        "event": event,
    }
    payload.update({k: v for k, v in fields.items() if v is not None})

    logger.log(level, "FETCH_EVENT %s", json.dumps(payload, ensure_ascii=False, default=str))

    if metric:
        FETCH_METRICS[service][metric] += 1


def increment_fetch_metric(service: str, metric: str, amount: int = 1) -> None:
    FETCH_METRICS[service][metric] += amount


def get_fetch_metrics() -> dict[str, dict[str, int]]:
    """Return current metric counters (primarily for tests)."""
    return {service: dict(metrics) for service, metrics in FETCH_METRICS.items()}


def reset_fetch_metrics() -> None:
    FETCH_METRICS.clear()
