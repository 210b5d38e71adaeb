"""
Operation correlation for BLL calls.

The outermost BLL operation gets a fresh operation ID; nested operations
(cascade saves, delete-by-entity delegating to delete-by-id) reuse it, so
their log records can be grouped together.
"""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

# Context variable for operation ID (thread-safe)
operation_id_var: ContextVar[str] = ContextVar("operation_id", default="")


def get_operation_id() -> str:
    """Get the current operation ID."""
    return operation_id_var.get()


@contextmanager
def operation_scope() -> Iterator[bool]:
    """
    Enter an operation scope.

    Yields True when this scope is the outermost one (it created the ID),
    False when it joined an enclosing operation.
    """
    if operation_id_var.get():
        yield False
        return

    token = operation_id_var.set(str(uuid.uuid4()))
    try:
        yield True
    finally:
        operation_id_var.reset(token)


class CorrelationIdFilter:
    """
    Logging filter that adds operation_id to log records.

    Usage:
        import logging
        handler = logging.StreamHandler()
        handler.addFilter(CorrelationIdFilter())
    """

    def filter(self, record) -> bool:
        record.operation_id = operation_id_var.get() or "-"
        return True
