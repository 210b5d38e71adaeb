"""
Generic Business Logic Layer over a SQLAlchemy session.

BaseBLL provides CRUD for any BaseEntity subclass and a single-level
cascade save: related entities reachable through navigation properties are
saved through the BLL registered for their type before the root is staged,
so one commit writes the whole graph. SQLAlchemy's unit of work orders the
INSERTs and fills foreign keys from the generated identities.

Usage:
    from blaster_base.services.crud import BaseBLL, BLLRegistry

    registry = BLLRegistry()

    @registry.register
    class CustomerBLL(BaseBLL[Customer]):
        entity_type = Customer

    orders = BaseBLL(session, Order, registry=registry, user="alice")
    order = orders.save(Order(total=10, customer=Customer(name="Bob")), persist=True)
    assert order.customer_id == order.customer.id

Insert vs update: an entity whose id is unset (None or 0) is inserted,
anything else is updated.
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from sqlalchemy import event, inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from blaster_base.models import BaseEntity
from blaster_base.services.crud.hooks import tracked_operation
from blaster_base.services.crud.interfaces import AbstractBLL, EntityT
from blaster_base.services.crud.registry import BLLRegistry
from blaster_base.services.crud.tracking import (
    TrackingState,
    foreign_key_attributes,
    get_mapper,
    loaded_values,
    navigation_properties,
    tracking_state,
)
from shared.config.logging import get_logger
from shared.config.settings import get_settings
from shared.utils.exceptions import NotFoundError, PersistenceError, ResolutionError

logger = get_logger(__name__)

# Never copied from a caller's detached copy onto the tracked instance
_PRESERVED_ON_UPDATE = frozenset({"id", "created_at", "created_by"})


class _FlushCounter:
    """after_flush listener counting the rows a flush wrote."""

    def __init__(self) -> None:
        self.rows = 0

    def __call__(self, session: Session, flush_context: Any) -> None:
        # new/dirty/deleted still reflect the pre-flush state here
        self.rows += len(session.new) + len(session.deleted)
        self.rows += sum(
            1 for obj in session.dirty if session.is_modified(obj, include_collections=False)
        )


class BaseBLL(AbstractBLL[EntityT]):
    """
    Generic BLL for one entity type.

    Subclass and set `entity_type` for entity-specific business logic, then
    register the subclass so cascade saves route related entities to it.
    """

    entity_type: type[BaseEntity] | None = None

    def __init__(
        self,
        session: Session,
        model: type[EntityT] | None = None,
        *,
        registry: BLLRegistry | None = None,
        user: str | None = None,
    ):
        declared = type(self).entity_type
        if model is None:
            model = declared
        if model is None:
            raise ResolutionError(type(self).__name__, "no entity type declared or given")
        if declared is not None and model is not declared:
            raise ResolutionError(
                model, f"{type(self).__name__} is declared for {declared.__name__}"
            )
        if not isinstance(model, type) or not issubclass(model, BaseEntity):
            raise ResolutionError(repr(model), "not a BaseEntity subclass")
        get_mapper(model)

        self._session = session
        self._model = model
        self._registry = registry if registry is not None else BLLRegistry()
        self._user = user if user is not None else get_settings().default_user
        self._materialized: dict[type, AbstractBLL] = {}

    @property
    def model(self) -> type[EntityT]:
        """The SQLAlchemy model class."""
        return self._model

    @property
    def session(self) -> Session:
        """The database session."""
        return self._session

    @property
    def registry(self) -> BLLRegistry:
        return self._registry

    @property
    def user(self) -> str | None:
        """User identity written to created_by/modified_by."""
        return self._user

    # =========================================================================
    # Read Operations
    # =========================================================================

    def _base_query(self) -> Select:
        """Create base select query."""
        return select(self._model)

    def _ordered(self, query: Select) -> Select:
        return query.order_by(self._model.created_at, self._model.id)

    def _lookup(self, entity_id: int) -> EntityT | None:
        return self._session.get(self._model, entity_id)

    @tracked_operation
    def get_by_id(self, entity_id: int) -> EntityT | None:
        """
        Find entity by primary key.

        Returns:
            Entity or None if not found.
        """
        if entity_id is None:
            return None
        return self._lookup(entity_id)

    @tracked_operation
    def get_by_ids(self, entity_ids: Iterable[int]) -> Sequence[EntityT]:
        """
        Find entities whose ID is in `entity_ids`, oldest first.

        Returns:
            List of found entities (may be shorter than requested).
        """
        ids = list(entity_ids)
        if not ids:
            return []

        query = self._ordered(self._base_query().where(self._model.id.in_(ids)))
        return list(self._session.scalars(query).all())

    @tracked_operation
    def get_all(self) -> Sequence[EntityT]:
        """All entities of the type, oldest first."""
        return list(self._session.scalars(self._ordered(self._base_query())).all())

    # =========================================================================
    # Write Operations
    # =========================================================================

    @tracked_operation
    def insert(self, entity: EntityT, persist: bool = False) -> EntityT:
        """
        Stamp creation audit fields, cascade related entities and stage the
        entity for insertion.

        Args:
            entity: Entity to insert.
            persist: Commit immediately.

        Returns:
            The entity; its ID is guaranteed only after commit.

        Raises:
            ValueError: The entity already has a database identity.
        """
        self._stage_insert(entity, cascade=True)
        if persist:
            self._commit("insert")
        return entity

    @tracked_operation
    def insert_many(self, entities: Iterable[EntityT], persist: bool = False) -> int:
        """
        Insert a range of entities.

        Returns:
            Number of entities submitted, or rows written when persisted.
        """
        items = list(entities)
        for entity in items:
            self._stage_insert(entity, cascade=True)

        if persist:
            return self._commit("insert_many")
        return len(items)

    @tracked_operation
    def save(self, entity: EntityT, persist: bool = False, *, cascade: bool = True) -> EntityT:
        """
        Insert or update an entity.

        Args:
            entity: Entity to save.
            persist: Commit immediately.
            cascade: Save related entities through their BLLs first.

        Returns:
            The instance tracked by the session. For a detached copy this is
            the session's own instance, updated from the copy.
        """
        entity = self._stage_save(entity, cascade)
        if persist:
            self._commit("save")
        return entity

    @tracked_operation
    def save_many(self, entities: Iterable[EntityT], persist: bool = False) -> int:
        """
        Insert or update a range of entities.

        Returns:
            Number of entities submitted, or rows written when persisted.
        """
        items = list(entities)
        for entity in items:
            self._stage_save(entity, cascade=True)

        if persist:
            return self._commit("save_many")
        return len(items)

    @tracked_operation
    def delete(self, target: int | EntityT, persist: bool = False) -> bool:
        """
        Delete an entity by ID or instance.

        Raises:
            NotFoundError: No row has that ID.

        Returns:
            True if a removal was applied.
        """
        if not isinstance(target, int):
            entity_id = self._entity_id(target)
            if entity_id is None:
                raise NotFoundError(self._model.__name__, None)
            return self.delete(entity_id, persist)

        entity = self._find_single(target)
        self._remove(entity)
        if persist:
            return self._commit("delete") > 0
        return True

    @tracked_operation
    def delete_many(self, targets: Iterable[int | EntityT], persist: bool = False) -> int:
        """
        Delete every entity matching the given IDs or instances.

        Returns:
            Number of targets submitted, or rows removed when persisted.
        """
        items = list(targets)
        ids = [t if isinstance(t, int) else self._entity_id(t) for t in items]
        if ids:
            query = self._base_query().where(self._model.id.in_(ids))
            for entity in self._session.scalars(query).all():
                self._remove(entity)

        if persist:
            return self._commit("delete_many")
        return len(items)

    @tracked_operation
    def delete_all(self, persist: bool = False) -> int:
        """
        Delete every entity of the type.

        Returns:
            Number of entities submitted, or rows removed when persisted.
        """
        entities = self._session.scalars(self._base_query()).all()
        for entity in entities:
            self._remove(entity)

        if persist:
            return self._commit("delete_all")
        return len(entities)

    @tracked_operation
    def commit(self) -> int:
        """
        Commit the session's pending change set.

        Returns:
            Number of rows written.
        """
        return self._commit("commit")

    # =========================================================================
    # Cascade and tracking
    # =========================================================================

    def state_of(self, entity: Any) -> TrackingState:
        """Tracking state of `entity` relative to this BLL's session."""
        return tracking_state(self._session, entity)

    def resolve_bll(self, entity_type: type[BaseEntity]) -> AbstractBLL:
        """
        Materialized BLL for `entity_type`, bound to this BLL's session,
        registry and user. Created on first use.
        """
        bll = self._materialized.get(entity_type)
        if bll is None:
            bll = self._registry.create(entity_type, self._session, user=self._user)
            self._materialized[entity_type] = bll
        return bll

    def _save_navigation_properties(self, entity: EntityT) -> None:
        values = loaded_values(entity)
        for rel in navigation_properties(type(entity)):
            related = values.get(rel.key)
            if related is None:
                continue
            if tracking_state(self._session, related) is TrackingState.UNCHANGED:
                continue

            related_bll = self.resolve_bll(type(related))
            saved = related_bll.save(related, persist=False, cascade=False)
            if saved is not related:
                setattr(entity, rel.key, saved)

    # =========================================================================
    # Internals
    # =========================================================================

    def _check_type(self, entity: Any) -> None:
        if not isinstance(entity, self._model):
            raise TypeError(
                f"{type(self).__name__} handles {self._model.__name__}, got {type(entity).__name__}"
            )

    @staticmethod
    def _entity_id(entity: BaseEntity) -> int | None:
        """Identity of an instance without triggering a load."""
        state = inspect(entity)
        if state.key is not None:
            return state.key[1][0]
        return state.dict.get("id")

    def _prepare_insert(self, entity: EntityT) -> None:
        """Hook for subclasses to initialize fields of a new entity."""

    def _stage_insert(self, entity: EntityT, cascade: bool) -> None:
        self._check_type(entity)
        if inspect(entity).key is not None:
            # Persistent or detached with an identity: the row already exists
            raise ValueError(
                f"{self._model.__name__} with ID {self._entity_id(entity)} is already persisted"
            )
        if self._entity_id(entity) == 0:
            entity.id = None
        entity.mark_inserted(self._user)
        self._prepare_insert(entity)

        if cascade:
            self._save_navigation_properties(entity)
        self._session.add(entity)

    def _stage_save(self, entity: EntityT, cascade: bool) -> EntityT:
        self._check_type(entity)
        if not self._entity_id(entity):
            self._stage_insert(entity, cascade)
            return entity

        if cascade:
            self._save_navigation_properties(entity)
        tracked = self._tracked_instance(entity)
        tracked.mark_modified(self._user)
        return tracked

    def _tracked_instance(self, entity: EntityT) -> EntityT:
        """
        The session's own instance for `entity`. A copy the session does not
        track is merged onto the tracked instance loaded by ID.
        """
        if tracking_state(self._session, entity) is not TrackingState.DETACHED:
            return entity

        entity_id = self._entity_id(entity)
        tracked = self._session.get(self._model, entity_id)
        if tracked is None:
            raise NotFoundError(self._model.__name__, entity_id)
        if tracked is not entity:
            self._copy_values(entity, tracked)
        return tracked

    def _copy_values(self, source: EntityT, target: EntityT) -> None:
        """Copy the values `source` actually holds onto `target`."""
        values = loaded_values(source)
        mapper = get_mapper(self._model)

        for attr in mapper.column_attrs:
            if attr.key in _PRESERVED_ON_UPDATE or attr.key not in values:
                continue
            setattr(target, attr.key, values[attr.key])

        for rel in navigation_properties(self._model):
            if rel.key not in values:
                continue
            related = values[rel.key]
            # An unset navigation only clears the link when no foreign key says otherwise
            key_set = any(values.get(key) for key in foreign_key_attributes(rel))
            if related is not None or not key_set:
                setattr(target, rel.key, related)

    def _find_single(self, entity_id: int) -> EntityT:
        query = self._base_query().where(self._model.id == entity_id)
        entity = self._session.scalars(query).one_or_none()
        if entity is None:
            raise NotFoundError(self._model.__name__, entity_id)
        return entity

    def _remove(self, entity: EntityT) -> None:
        self._session.delete(entity)

    def _commit(self, operation: str) -> int:
        counter = _FlushCounter()
        event.listen(self._session, "after_flush", counter)
        try:
            self._session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(
                operation,
                str(getattr(exc, "orig", None) or exc),
                model=self._model.__name__,
            ) from exc
        finally:
            event.remove(self._session, "after_flush", counter)

        logger.debug("Changes committed", model=self._model.__name__, operation=operation, rows=counter.rows)
        return counter.rows
