"""
CRUD Services - Generic business logic over entity types.

Provides:
- BaseBLL: CRUD plus single-level cascade save for any BaseEntity
- SoftDeleteBLL: Reversible deletes for SoftDeleteMixin entities
- BLLRegistry: Entity type -> BLL class resolution
- OperationHooks: Start/end/log callbacks around every BLL operation
- Tracking helpers: Session state and navigation property discovery
"""

from .hooks import LogLevel, OperationHooks, tracked_operation
from .interfaces import AbstractBLL, EntityT
from .tracking import (
    TrackingState,
    foreign_key_attributes,
    navigation_properties,
    tracking_state,
)
from .registry import BLLRegistry
from .bll import BaseBLL
from .soft_delete import SoftDeleteBLL

__all__ = [
    # Hooks
    "LogLevel",
    "OperationHooks",
    "tracked_operation",
    # Interface
    "AbstractBLL",
    "EntityT",
    # Tracking
    "TrackingState",
    "foreign_key_attributes",
    "navigation_properties",
    "tracking_state",
    # BLLs
    "BLLRegistry",
    "BaseBLL",
    "SoftDeleteBLL",
]
