"""
Registry mapping entity types to the BLL class responsible for them.

Build one registry at start-up, register the entity-specific BLL
subclasses on it and hand it to every BLL. Cascade save asks the registry
which BLL handles a related entity; unregistered types fall back to the
generic BLL (SoftDeleteBLL for soft-deletable entities).

Usage:
    registry = BLLRegistry()

    @registry.register
    class CustomerBLL(BaseBLL[Customer]):
        entity_type = Customer

    registry.register(AuditedOrderBLL, entity_type=Order)
    bll = registry.create(Customer, session, user="alice")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from sqlalchemy.orm import Session

from blaster_base.models import BaseEntity, SoftDeleteMixin
from shared.config.logging import get_logger
from shared.utils.exceptions import ResolutionError

if TYPE_CHECKING:
    from blaster_base.services.crud.interfaces import AbstractBLL

logger = get_logger(__name__)


class BLLRegistry:
    """Explicit entity type -> BLL class mapping."""

    def __init__(self, default_bll: type[AbstractBLL] | None = None):
        self._bll_types: dict[type[BaseEntity], type[AbstractBLL]] = {}
        self._default_bll = default_bll

    def register(
        self,
        bll_type: type[AbstractBLL] | None = None,
        *,
        entity_type: type[BaseEntity] | None = None,
    ) -> type[AbstractBLL] | Callable[[type[AbstractBLL]], type[AbstractBLL]]:
        """
        Register a BLL class for an entity type. Usable as a decorator.

        Raises:
            ResolutionError: The entity type is missing, not an entity, or
                already handled by a different BLL class.
        """

        def decorator(cls: type[AbstractBLL]) -> type[AbstractBLL]:
            target = entity_type or getattr(cls, "entity_type", None)
            if target is None:
                raise ResolutionError(cls.__name__, "BLL declares no entity_type")
            if not isinstance(target, type) or not issubclass(target, BaseEntity):
                raise ResolutionError(repr(target), "not a BaseEntity subclass")

            existing = self._bll_types.get(target)
            if existing is not None and existing is not cls:
                raise ResolutionError(
                    target,
                    f"ambiguous registration: {existing.__name__} and {cls.__name__}",
                )

            self._bll_types[target] = cls
            logger.debug("BLL registered", entity=target.__name__, bll=cls.__name__)
            return cls

        if bll_type is None:
            return decorator
        return decorator(bll_type)

    def unregister(self, entity_type: type[BaseEntity]) -> None:
        self._bll_types.pop(entity_type, None)

    def bll_type_for(self, entity_type: type[BaseEntity]) -> type[AbstractBLL]:
        """Registered BLL class for the exact type, else the fallback."""
        specific = self._bll_types.get(entity_type)
        if specific is not None:
            return specific
        if self._default_bll is not None:
            return self._default_bll

        # Import here to avoid circular imports
        from blaster_base.services.crud.bll import BaseBLL
        from blaster_base.services.crud.soft_delete import SoftDeleteBLL

        if issubclass(entity_type, SoftDeleteMixin):
            return SoftDeleteBLL
        return BaseBLL

    def create(
        self,
        entity_type: type[BaseEntity],
        session: Session,
        *,
        user: str | None = None,
    ) -> AbstractBLL:
        """Materialize the BLL for `entity_type` bound to `session`."""
        bll_type = self.bll_type_for(entity_type)
        return bll_type(session, entity_type, registry=self, user=user)

    @property
    def entity_types(self) -> tuple[type[BaseEntity], ...]:
        return tuple(self._bll_types)

    def __contains__(self, entity_type: object) -> bool:
        return entity_type in self._bll_types

    def __len__(self) -> int:
        return len(self._bll_types)
