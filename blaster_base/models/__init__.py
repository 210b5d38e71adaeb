"""
Entity base classes.
"""

from .base import Base, BaseEntity, SoftDeleteMixin, utc_now

__all__ = [
    "Base",
    "BaseEntity",
    "SoftDeleteMixin",
    "utc_now",
]
