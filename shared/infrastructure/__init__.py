"""
Infrastructure module: Database sessions and log correlation.

Provides:
- Engine and session factories (db.py)
- Operation IDs shared by nested BLL calls (correlation.py)
"""

from shared.infrastructure.db import (
    create_db_engine,
    create_session_factory,
    get_engine,
    get_session_factory,
    get_db_context,
)
from shared.infrastructure.correlation import (
    CorrelationIdFilter,
    get_operation_id,
    operation_scope,
)

__all__ = [
    # db
    "create_db_engine",
    "create_session_factory",
    "get_engine",
    "get_session_factory",
    "get_db_context",
    # correlation
    "CorrelationIdFilter",
    "get_operation_id",
    "operation_scope",
]
