"""
Centralized exceptions for consistent error handling.

Usage:
    from shared.utils.exceptions import NotFoundError, PersistenceError

    raise NotFoundError("Customer", customer_id)
    raise PersistenceError("commit", str(exc)) from exc
    raise ResolutionError(Invoice, "no mapped model")
"""

from typing import Any

from shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(Exception):
    """
    Base exception with automatic logging.

    All library exceptions inherit from this class to ensure consistent
    logging and message format.
    """

    def __init__(
        self,
        detail: str,
        log_level: str = "warning",
        **log_context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, error=type(self).__name__, **log_context)

        self.detail = detail
        self.context = log_context
        super().__init__(detail)


class NotFoundError(AppException):
    """
    Single-row lookup found no row.

    Usage:
        raise NotFoundError("Customer", 123)
    """

    def __init__(self, entity: str, entity_id: int | str | None = None, **log_context: Any):
        if entity_id is not None:
            detail = f"{entity} with ID {entity_id} not found"
        else:
            detail = f"{entity} not found"

        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            detail,
            log_level="warning",
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )


class PersistenceError(AppException):
    """
    The database rejected a commit (constraint violation, lost connection,
    timeout). Raised from the original driver/ORM exception.
    """

    def __init__(self, operation: str, detail: str, **log_context: Any):
        self.operation = operation
        super().__init__(
            f"Persistence failure during {operation}: {detail}",
            log_level="error",
            operation=operation,
            **log_context,
        )


class ResolutionError(AppException):
    """
    No usable BLL or model could be determined for an entity type.
    """

    def __init__(self, entity_type: type | str, reason: str, **log_context: Any):
        type_name = entity_type if isinstance(entity_type, str) else entity_type.__name__
        self.entity_type = entity_type
        super().__init__(
            f"Cannot resolve BLL for {type_name}: {reason}",
            log_level="error",
            entity_type=type_name,
            **log_context,
        )
