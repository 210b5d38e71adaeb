"""
Services module for business logic.

- crud/: Generic BLL, soft delete, registry and operation hooks
- unit_of_work.py: Connection-scoped transaction with lazily created session

Usage:
    from blaster_base.services import BaseBLL, UnitOfWork

    with UnitOfWork.begin(engine, user="alice") as uow:
        customers = uow.bll(Customer)
        customers.save(Customer(name="Bob"))
        uow.commit()
"""

from .crud import (
    AbstractBLL,
    BaseBLL,
    BLLRegistry,
    LogLevel,
    OperationHooks,
    SoftDeleteBLL,
    TrackingState,
)
from .unit_of_work import UnitOfWork

__all__ = [
    "AbstractBLL",
    "BaseBLL",
    "BLLRegistry",
    "LogLevel",
    "OperationHooks",
    "SoftDeleteBLL",
    "TrackingState",
    "UnitOfWork",
]
