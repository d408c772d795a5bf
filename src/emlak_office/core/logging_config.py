"""Logging setup for the back-office client.

Plain text by default; ``LOG_FORMAT=json`` switches every handler to one
JSON object per line. Records may carry entity context (``entity_kind``,
``entity_id``, ``operation``, ``operator``) and an ``extra_data`` mapping,
both of which the JSON formatter copies into the output.
"""
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from emlak_office.core.config import Settings


TEXT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

CONTEXT_FIELDS = ("entity_kind", "entity_id", "operation", "operator")

# Library loggers and the level they are held at
QUIET_LOGGERS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "apscheduler": logging.INFO,
    "tenacity": logging.WARNING,
}


class JSONFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        entry.update(
            {key: getattr(record, key) for key in CONTEXT_FIELDS if hasattr(record, key)}
        )

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            entry["extra"] = extra_data
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


class ContextLogger(logging.LoggerAdapter):
    """
    Adapter that stamps fixed context onto every record.

    Context passed per call through ``extra=`` wins over the adapter's own.

    Usage:
        log = get_context_logger(__name__, entity_kind="sale", entity_id=7)
        log.info("Sale completed")
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple[str, Dict[str, Any]]:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    json_format: bool = False,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path of an extra file handler.
        json_format: Use ``JSONFormatter`` instead of the text format.
    """
    def make_formatter() -> logging.Formatter:
        if json_format:
            return JSONFormatter()
        return logging.Formatter(TEXT_LOG_FORMAT, DATE_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(make_formatter())

    logging.basicConfig(level=level.upper(), handlers=handlers, force=True)

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)


def configure_logging(settings: Optional["Settings"] = None, log_file: Optional[str] = None) -> None:
    """Apply ``LOG_LEVEL`` and ``LOG_FORMAT`` from settings."""
    if settings is None:
        from emlak_office.core.config import get_settings

        settings = get_settings()
    setup_logging(
        level=settings.log_level,
        log_file=log_file,
        json_format=settings.log_format == "json",
    )


def get_logger(name: str) -> logging.Logger:
    """Logger for a module; pass ``__name__``."""
    return logging.getLogger(name)


def get_context_logger(name: str, **context: Any) -> ContextLogger:
    """
    Logger whose records all carry ``context``.

    Args:
        name: Name of the logger (usually __name__).
        **context: Fields such as ``entity_kind``, ``entity_id`` or ``operator``.
    """
    return ContextLogger(logging.getLogger(name), context)


def log_external_call(
    logger: logging.Logger,
    service: str,
    operation: str,
    success: bool,
    duration_ms: float,
    status_code: Optional[int] = None,
    error: Optional[str] = None,
    **extra: Any,
) -> None:
    """
    Record one call to a remote API.

    Successful calls are logged at DEBUG, failed ones at WARNING; the
    structured fields go to ``extra_data``.

    Args:
        logger: Logger of the calling module.
        service: Remote service name (e.g. "backoffice_api").
        operation: Method and path (e.g. "GET /Property").
        success: Whether a usable response came back.
        duration_ms: Wall time in milliseconds.
        status_code: HTTP status, when a response arrived.
        error: Short error description for failed calls.
        **extra: Additional fields.
    """
    data: Dict[str, Any] = {
        "service": service,
        "operation": operation,
        "success": success,
        "duration_ms": round(duration_ms, 2),
    }
    if status_code is not None:
        data["status_code"] = status_code
    if error:
        data["error"] = error
    data.update(extra)

    outcome = f"HTTP {status_code}" if status_code is not None else (error or "no response")
    if success:
        logger.debug(f"{service} {operation}: {outcome} in {duration_ms:.1f}ms", extra={"extra_data": data})
    else:
        logger.warning(
            f"{service} {operation} failed: {outcome} after {duration_ms:.1f}ms",
            extra={"extra_data": data},
        )


__all__ = [
    "setup_logging",
    "configure_logging",
    "get_logger",
    "get_context_logger",
    "log_external_call",
    "JSONFormatter",
    "ContextLogger",
]
