"""
Structured logging for the BLL library.

Loggers accept keyword context next to the message:

    logger = get_logger(__name__)
    logger.info("Changes committed", model="Customer", rows=3)

The context travels on the record as `extra_data`. Production renders
records as one JSON object per line; development renders a coloured line
with the context appended. Records also carry the operation ID of the
outermost BLL call that produced them (see CorrelationIdFilter).
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from shared.config.settings import settings

# Keywords the stdlib logger understands; everything else is context
_LOGGING_KWARGS = frozenset({"exc_info", "stack_info", "stacklevel", "extra"})


def _record_context(record: logging.LogRecord) -> dict[str, Any]:
    return getattr(record, "extra_data", None) or {}


def _record_operation(record: logging.LogRecord) -> str | None:
    operation_id = getattr(record, "operation_id", None)
    if not operation_id or operation_id == "-":
        return None
    return operation_id


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        operation_id = _record_operation(record)
        if operation_id:
            payload["operation_id"] = operation_id

        context = _record_context(record)
        if context:
            payload["data"] = context
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if settings.debug:
            payload["source"] = f"{record.pathname}:{record.lineno} ({record.funcName})"

        return json.dumps(payload, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Coloured single-line records for a terminal."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"
    DIM = "\033[2m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        parts = [f"{color}[{clock}] {record.levelname:8}{self.RESET}"]

        operation_id = _record_operation(record)
        if operation_id:
            parts.append(f"{self.DIM}[{operation_id[:8]}]{self.RESET}")
        parts.append(f"{record.name}: {record.getMessage()}")

        context = _record_context(record)
        if context:
            parts.append("(" + ", ".join(f"{key}={value}" for key, value in context.items()) + ")")

        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class StructuredLogger(logging.Logger):
    """
    Logger whose level methods take keyword context.

    Every level method funnels into `_log`, so overriding it once covers
    debug() through critical() as well as log() and exception().
    """

    def _log(self, level: int, msg: object, args: Any, **kwargs: Any) -> None:  # type: ignore[override]
        context = {key: kwargs.pop(key) for key in list(kwargs) if key not in _LOGGING_KWARGS}
        extra = dict(kwargs.pop("extra", None) or {})
        extra["extra_data"] = context or None
        # Report the caller, not this override
        kwargs["stacklevel"] = kwargs.get("stacklevel", 1) + 1
        super()._log(level, msg, args, extra=extra, **kwargs)


logging.setLoggerClass(StructuredLogger)


def setup_logging(level: int | None = None) -> None:
    """
    Install the library's handler on the root logger.

    Call once at start-up of the embedding application. The level defaults
    to DEBUG when settings.debug is on, INFO otherwise.
    """
    # Import here to avoid circular imports
    from shared.infrastructure.correlation import CorrelationIdFilter

    if level is None:
        level = logging.DEBUG if settings.debug else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(CorrelationIdFilter())
    if settings.environment == "production":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(DevelopmentFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    # SQL echo goes through SQLAlchemy's own logger
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.sql_echo else logging.WARNING
    )


def get_logger(name: str) -> StructuredLogger:
    """
    Structured logger for `name`.

    Usage:
        logger = get_logger(__name__)
        logger.warning("Entity not found", model="Customer", entity_id=42)
        logger.error("Commit failed", model="Customer", exc_info=True)
    """
    logger = logging.getLogger(name)
    if not isinstance(logger, StructuredLogger):
        # Created before this module was imported; rebind to the structured class
        logger.__class__ = StructuredLogger
    return logger  # type: ignore[return-value]


uow_logger = get_logger("blaster_base.unit_of_work")
