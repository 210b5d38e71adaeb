"""
Utilities module: Exceptions.
"""

from shared.utils.exceptions import (
    AppException,
    NotFoundError,
    PersistenceError,
    ResolutionError,
)

__all__ = [
    "AppException",
    "NotFoundError",
    "PersistenceError",
    "ResolutionError",
]
