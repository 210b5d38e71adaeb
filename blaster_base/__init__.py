"""
blaster_base - generic Business Logic Layer over SQLAlchemy.

STRUCTURE:
- blaster_base.models: BaseEntity with audit fields, SoftDeleteMixin
- blaster_base.services.crud: BaseBLL, SoftDeleteBLL, BLLRegistry, hooks
- blaster_base.services.unit_of_work: UnitOfWork
"""

from blaster_base.models import Base, BaseEntity, SoftDeleteMixin
from blaster_base.services import (
    AbstractBLL,
    BaseBLL,
    BLLRegistry,
    LogLevel,
    OperationHooks,
    SoftDeleteBLL,
    TrackingState,
    UnitOfWork,
)

__version__ = "1.0.0"

__all__ = [
    "Base",
    "BaseEntity",
    "SoftDeleteMixin",
    "AbstractBLL",
    "BaseBLL",
    "BLLRegistry",
    "LogLevel",
    "OperationHooks",
    "SoftDeleteBLL",
    "TrackingState",
    "UnitOfWork",
]
