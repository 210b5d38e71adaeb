"""
BLL capability interface.

Every BLL exposes the same CRUD surface for its entity type, which is what
lets cascade save hand a related entity to whichever BLL is registered for
its type without knowing the concrete class.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Iterable, Sequence, TypeVar

from sqlalchemy.orm import Session

from blaster_base.models import BaseEntity

EntityT = TypeVar("EntityT", bound=BaseEntity)


class AbstractBLL(ABC, Generic[EntityT]):
    """
    Abstract BLL with the operations shared by all implementations.

    Subclasses must implement the CRUD methods below; BaseBLL is the
    generic implementation.
    """

    @property
    @abstractmethod
    def model(self) -> type[EntityT]:
        """The entity class handled by this BLL."""
        ...

    @property
    @abstractmethod
    def session(self) -> Session:
        """The session used as data access layer."""
        ...

    @abstractmethod
    def get_by_id(self, entity_id: int) -> EntityT | None:
        ...

    @abstractmethod
    def get_by_ids(self, entity_ids: Iterable[int]) -> Sequence[EntityT]:
        ...

    @abstractmethod
    def get_all(self) -> Sequence[EntityT]:
        ...

    @abstractmethod
    def insert(self, entity: EntityT, persist: bool = False) -> EntityT:
        ...

    @abstractmethod
    def insert_many(self, entities: Iterable[EntityT], persist: bool = False) -> int:
        ...

    @abstractmethod
    def save(self, entity: EntityT, persist: bool = False, *, cascade: bool = True) -> EntityT:
        ...

    @abstractmethod
    def save_many(self, entities: Iterable[EntityT], persist: bool = False) -> int:
        ...

    @abstractmethod
    def delete(self, target: int | EntityT, persist: bool = False) -> bool:
        ...

    @abstractmethod
    def delete_many(self, targets: Iterable[int | EntityT], persist: bool = False) -> int:
        ...

    @abstractmethod
    def delete_all(self, persist: bool = False) -> int:
        ...

    def __getitem__(self, entity_id: int) -> EntityT | None:
        return self.get_by_id(entity_id)

    def __setitem__(self, entity_id: int, entity: EntityT) -> None:
        """Save `entity`. A new entity is inserted and gets a generated ID."""
        if not entity.is_new and entity.id != entity_id:
            raise ValueError(f"Entity ID {entity.id} does not match key {entity_id}")
        self.save(entity)
