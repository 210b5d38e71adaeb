"""
Operation hooks for BLL diagnostics.

Applications can register process-wide callbacks that fire around every
public BLL operation (timing, tracing) and on handled errors. Every hook is
optional; an unset hook is a no-op.

Usage:
    from blaster_base.services.crud.hooks import OperationHooks, LogLevel

    def on_end(caller, started_at, method_name):
        elapsed = datetime.now(timezone.utc) - started_at
        print(f"{type(caller).__name__}.{method_name} took {elapsed}")

    OperationHooks.on_method_end = on_end
"""

from __future__ import annotations

import functools
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional, TypeVar

from shared.config.logging import get_logger
from shared.infrastructure.correlation import operation_scope
from shared.utils.exceptions import AppException

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

MethodStartHook = Callable[[Any, str], datetime]
MethodEndHook = Callable[[Any, Optional[datetime], str], None]
LogHook = Callable[["LogLevel", str, Optional[BaseException]], None]


class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    ERROR = "error"


class OperationHooks:
    """Process-wide hook slots. Assign a callable to enable a hook."""

    on_method_start: Optional[MethodStartHook] = None
    on_method_end: Optional[MethodEndHook] = None
    on_log: Optional[LogHook] = None

    @classmethod
    def method_start(cls, caller: Any, method_name: str) -> datetime:
        if cls.on_method_start is not None:
            return cls.on_method_start(caller, method_name)
        return datetime.now(timezone.utc)

    @classmethod
    def method_end(cls, caller: Any, started_at: Optional[datetime], method_name: str) -> None:
        if cls.on_method_end is not None:
            cls.on_method_end(caller, started_at, method_name)

    @classmethod
    def log(cls, level: LogLevel, message: str, exception: Optional[BaseException] = None) -> None:
        if cls.on_log is not None:
            cls.on_log(level, message, exception)

    @classmethod
    def clear(cls) -> None:
        """Unregister every hook."""
        cls.on_method_start = None
        cls.on_method_end = None
        cls.on_log = None


def tracked_operation(func: F) -> F:
    """
    Wrap a BLL method with start/end hooks and error reporting.

    Exceptions are reported to the on_log hook and re-raised unchanged.
    The outermost call of a nested chain also writes the failure to the
    library logger, unless it is an AppException, which logged itself
    when raised.
    """
    method_name = func.__name__

    @functools.wraps(func)
    def wrapper(self, *args: Any, **kwargs: Any) -> Any:
        with operation_scope() as outermost:
            started_at = OperationHooks.method_start(self, method_name)
            clock = time.perf_counter()
            try:
                result = func(self, *args, **kwargs)
            except Exception as exc:
                OperationHooks.log(LogLevel.ERROR, str(exc), exc)
                if outermost and not isinstance(exc, AppException):
                    logger.error(
                        "BLL operation failed",
                        bll=type(self).__name__,
                        operation=method_name,
                        exc_info=True,
                    )
                raise

            OperationHooks.method_end(self, started_at, method_name)
            logger.debug(
                "BLL operation completed",
                bll=type(self).__name__,
                operation=method_name,
                duration_ms=round((time.perf_counter() - clock) * 1000, 3),
            )
            return result

    return wrapper  # type: ignore[return-value]
