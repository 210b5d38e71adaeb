"""
Change tracking and navigation property discovery.

A navigation property is a single-valued relationship whose target is a
BaseEntity subclass. Cascade save walks these, and uses the tracking state
of each related instance to decide whether it needs saving.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from sqlalchemy import inspect
from sqlalchemy.exc import NoInspectionAvailable
from sqlalchemy.orm import Mapper, RelationshipDirection, RelationshipProperty, Session

from blaster_base.models import BaseEntity
from shared.utils.exceptions import ResolutionError


class TrackingState(str, Enum):
    """State of an instance relative to one session."""

    DETACHED = "detached"    # transient, detached, or owned by another session
    ADDED = "added"          # pending insert
    MODIFIED = "modified"    # persistent with unflushed changes
    UNCHANGED = "unchanged"  # persistent and clean
    DELETED = "deleted"      # marked for deletion


def get_mapper(model: type) -> Mapper:
    """Mapper for an entity class; ResolutionError if the class is not mapped."""
    try:
        return inspect(model)
    except NoInspectionAvailable:
        raise ResolutionError(model, "class is not mapped") from None


def tracking_state(session: Session, entity: Any) -> TrackingState:
    state = inspect(entity)
    if state.transient or state.detached or state.session is not session:
        return TrackingState.DETACHED
    if state.pending:
        return TrackingState.ADDED
    if state.deleted or entity in session.deleted:
        return TrackingState.DELETED
    if session.is_modified(entity, include_collections=False):
        return TrackingState.MODIFIED
    return TrackingState.UNCHANGED


def navigation_properties(model: type) -> list[RelationshipProperty]:
    """Single-valued relationships of `model` that point at entity types."""
    return [
        rel
        for rel in get_mapper(model).relationships
        if not rel.uselist and issubclass(rel.mapper.class_, BaseEntity)
    ]


def foreign_key_attributes(rel: RelationshipProperty) -> list[str]:
    """
    Attribute names on the owning class holding the relationship's foreign
    key. Only many-to-one relationships keep the key on the owner.
    """
    if rel.direction is not RelationshipDirection.MANYTOONE:
        return []
    owner = rel.parent
    return [owner.get_property_by_column(column).key for column in rel.local_columns]


def loaded_values(entity: Any) -> dict[str, Any]:
    """Attribute values the instance actually holds, without triggering loads."""
    return dict(inspect(entity).dict)
