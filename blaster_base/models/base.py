"""
Base classes for all entities handled by a BLL.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class BaseEntity(Base):
    """
    Identity and audit metadata shared by every persisted record type.

    Fields:
    - id: surrogate key, unset until the database assigns it on insert
    - created_at: set at construction, reset on insert, never changed by updates
    - modified_at: unset until the first update, then set on every update
    - created_by / modified_by: user identity of the BLL that wrote the row
    """

    __abstract__ = True

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    modified_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    modified_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault("created_at", utc_now())
        super().__init__(**kwargs)

    @property
    def is_new(self) -> bool:
        """True while the entity has no database identity (None or 0)."""
        return not self.id

    def mark_inserted(self, user: str | None = None) -> None:
        self.created_at = utc_now()
        self.modified_at = None
        self.created_by = user
        self.modified_by = None

    def mark_modified(self, user: str | None = None) -> None:
        self.modified_at = utc_now()
        self.modified_by = user

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"


class SoftDeleteMixin:
    """
    Mixin for entities that are marked as deleted instead of removed.

    Methods:
    - soft_delete(user): Mark entity as deleted
    - restore(user): Restore a soft-deleted entity (counts as an update)
    """

    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    deleted_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    def soft_delete(self, user: str | None = None) -> None:
        self.is_deleted = True
        self.deleted_at = utc_now()
        self.deleted_by = user

    def restore(self, user: str | None = None) -> None:
        self.is_deleted = False
        self.deleted_at = None
        self.deleted_by = None
        self.modified_at = utc_now()
        self.modified_by = user
