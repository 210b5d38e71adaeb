"""
Tests for SoftDeleteBLL - reversible deletes with audit trail.
"""

import pytest

from blaster_base.services.crud import SoftDeleteBLL
from shared.utils.exceptions import NotFoundError, ResolutionError
from tests.conftest import TEST_USER
from tests.entities import FirstEntity, SoftDeletableTestEntity


@pytest.fixture
def seed_soft(soft_bll):
    entities = [SoftDeletableTestEntity(name=name) for name in ("alpha", "beta", "gamma")]
    soft_bll.insert_many(entities, persist=True)
    return entities


class TestSoftDeleteBLL:
    def test_registry_resolves_soft_delete_bll(self, soft_bll):
        assert isinstance(soft_bll, SoftDeleteBLL)

    def test_requires_soft_delete_entity(self, db_session):
        with pytest.raises(ResolutionError):
            SoftDeleteBLL(db_session, FirstEntity)

    def test_insert_clears_deletion_marks(self, soft_bll):
        entity = SoftDeletableTestEntity(name="x", is_deleted=True, deleted_by="someone")

        soft_bll.insert(entity, persist=True)

        assert entity.is_deleted is False
        assert entity.deleted_by is None

    def test_delete_marks_row(self, soft_bll, seed_soft, db_session):
        target = seed_soft[0]
        entity_id = target.id

        assert soft_bll.delete(entity_id, persist=True)

        assert soft_bll.get_by_id(entity_id) is None
        row = db_session.get(SoftDeletableTestEntity, entity_id)
        assert row.is_deleted
        assert row.deleted_by == TEST_USER
        assert row.deleted_at is not None

    def test_reads_exclude_deleted(self, soft_bll, seed_soft):
        soft_bll.delete(seed_soft[1].id, persist=True)

        assert [e.name for e in soft_bll.get_all()] == ["alpha", "gamma"]
        ids = [e.id for e in seed_soft]
        assert [e.name for e in soft_bll.get_by_ids(ids)] == ["alpha", "gamma"]
        assert [e.name for e in soft_bll.get_deleted()] == ["beta"]

    def test_include_deleted(self, soft_bll, seed_soft, db_session):
        soft_bll.delete(seed_soft[1].id, persist=True)

        everything = SoftDeleteBLL(db_session, SoftDeletableTestEntity, include_deleted=True)

        assert len(everything.get_all()) == 3
        assert everything.get_by_id(seed_soft[1].id) is not None

    def test_delete_twice_raises(self, soft_bll, seed_soft):
        entity_id = seed_soft[0].id
        soft_bll.delete(entity_id, persist=True)

        with pytest.raises(NotFoundError):
            soft_bll.delete(entity_id)

    def test_delete_all_marks_every_row(self, soft_bll, seed_soft):
        assert soft_bll.delete_all(persist=True) == 3
        assert soft_bll.get_all() == []
        assert len(soft_bll.get_deleted()) == 3

    def test_restore(self, soft_bll, seed_soft):
        entity_id = seed_soft[2].id
        soft_bll.delete(entity_id, persist=True)

        restored = soft_bll.restore(entity_id, persist=True)

        assert restored.is_deleted is False
        assert restored.modified_by == TEST_USER
        assert soft_bll.get_by_id(entity_id) is restored

    def test_restore_active_row_raises(self, soft_bll, seed_soft):
        with pytest.raises(NotFoundError):
            soft_bll.restore(seed_soft[0].id)

    def test_restore_unknown_id_raises(self, soft_bll):
        with pytest.raises(NotFoundError):
            soft_bll.restore(999)

    def test_purge_removes_rows(self, soft_bll, seed_soft, db_session):
        deleted_id = seed_soft[0].id
        soft_bll.delete(deleted_id, persist=True)

        removed = soft_bll.purge([deleted_id, seed_soft[1].id], persist=True)

        assert removed == 2
        assert db_session.get(SoftDeletableTestEntity, deleted_id) is None
        assert [e.name for e in soft_bll.get_all()] == ["gamma"]
        assert soft_bll.get_deleted() == []
