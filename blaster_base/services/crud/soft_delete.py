"""
Soft delete BLL.

For entities mixing in SoftDeleteMixin, deletes mark rows as deleted
(with audit trail) instead of removing them, and every read skips marked
rows unless the BLL was built with include_deleted=True.
"""

from __future__ import annotations

from typing import Iterable, Sequence, TypeVar

from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from blaster_base.models import BaseEntity, SoftDeleteMixin
from blaster_base.services.crud.bll import BaseBLL
from blaster_base.services.crud.hooks import tracked_operation
from blaster_base.services.crud.registry import BLLRegistry
from shared.config.logging import get_logger
from shared.utils.exceptions import NotFoundError, ResolutionError

logger = get_logger(__name__)

SoftEntityT = TypeVar("SoftEntityT", bound=BaseEntity)


class SoftDeleteBLL(BaseBLL[SoftEntityT]):
    """BLL whose deletes are reversible."""

    def __init__(
        self,
        session: Session,
        model: type[SoftEntityT] | None = None,
        *,
        registry: BLLRegistry | None = None,
        user: str | None = None,
        include_deleted: bool = False,
    ):
        super().__init__(session, model, registry=registry, user=user)
        if not issubclass(self._model, SoftDeleteMixin):
            raise ResolutionError(self._model, "entity does not support soft delete")
        self._include_deleted = include_deleted

    def _base_query(self) -> Select:
        query = super()._base_query()
        if not self._include_deleted:
            query = query.where(self._model.is_deleted.is_(False))
        return query

    def _lookup(self, entity_id: int) -> SoftEntityT | None:
        entity = super()._lookup(entity_id)
        if entity is not None and entity.is_deleted and not self._include_deleted:
            return None
        return entity

    def _prepare_insert(self, entity: SoftEntityT) -> None:
        entity.is_deleted = False
        entity.deleted_at = None
        entity.deleted_by = None

    def _remove(self, entity: SoftEntityT) -> None:
        entity.soft_delete(self._user)
        logger.debug("Entity soft deleted", model=self._model.__name__, entity_id=entity.id)

    @tracked_operation
    def get_deleted(self) -> Sequence[SoftEntityT]:
        """Soft-deleted entities, oldest first."""
        query = self._ordered(
            BaseBLL._base_query(self).where(self._model.is_deleted.is_(True))
        )
        return list(self._session.scalars(query).all())

    @tracked_operation
    def restore(self, entity_id: int, persist: bool = False) -> SoftEntityT:
        """
        Restore a soft-deleted entity.

        Raises:
            NotFoundError: No soft-deleted row has that ID.
        """
        query = BaseBLL._base_query(self).where(
            self._model.id == entity_id,
            self._model.is_deleted.is_(True),
        )
        entity = self._session.scalars(query).one_or_none()
        if entity is None:
            raise NotFoundError(self._model.__name__, entity_id)

        entity.restore(self._user)
        if persist:
            self._commit("restore")
        return entity

    @tracked_operation
    def purge(self, targets: Iterable[int] | int, persist: bool = False) -> int:
        """
        Physically remove rows, whether soft-deleted or not.

        Returns:
            Number of rows submitted, or rows removed when persisted.
        """
        ids = [targets] if isinstance(targets, int) else list(targets)
        if ids:
            query = BaseBLL._base_query(self).where(self._model.id.in_(ids))
            for entity in self._session.scalars(query).all():
                self._session.delete(entity)

        if persist:
            return self._commit("purge")
        return len(ids)
