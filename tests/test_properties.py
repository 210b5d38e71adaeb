"""
Property-based tests with Hypothesis.

Each example builds its own in-memory database; function-scoped pytest
fixtures are not reset between Hypothesis examples.
"""

import string
from contextlib import contextmanager

from hypothesis import given, settings, strategies as st
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from blaster_base.models import Base
from blaster_base.services.crud import BaseBLL
from tests.entities import FirstEntity, SecondEntity


@contextmanager
def fresh_session():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


int_values = st.integers(min_value=-(2**31), max_value=2**31 - 1)
labels = st.one_of(st.none(), st.text(alphabet=string.ascii_letters + string.digits + " -_", max_size=50))


class TestEntityProperties:
    @given(entity_id=st.one_of(st.none(), st.just(0)))
    def test_unset_id_is_new(self, entity_id):
        assert FirstEntity(id=entity_id).is_new

    @given(entity_id=st.integers(min_value=1))
    def test_set_id_is_not_new(self, entity_id):
        assert not FirstEntity(id=entity_id).is_new


class TestBLLProperties:
    @given(values=st.lists(int_values, max_size=10))
    @settings(max_examples=25, deadline=None)
    def test_staged_inserts_count_and_wait_for_commit(self, values):
        """Property: insert_many without persist returns N and writes nothing."""
        with fresh_session() as session:
            bll = BaseBLL(session, FirstEntity)

            assert bll.insert_many([FirstEntity(int_value=v) for v in values]) == len(values)
            assert bll.get_all() == []
            assert bll.commit() == len(values)
            assert [e.int_value for e in bll.get_all()] == values

    @given(value=int_values, label=labels)
    @settings(max_examples=25, deadline=None)
    def test_insert_then_get_round_trips(self, value, label):
        with fresh_session() as session:
            bll = BaseBLL(session, FirstEntity)
            entity = bll.insert(FirstEntity(int_value=value, string_value=label), persist=True)
            entity_id = entity.id
            session.expunge_all()

            loaded = bll.get_by_id(entity_id)

            assert loaded.int_value == value
            assert loaded.string_value == label

    @given(first_value=int_values, second_value=int_values)
    @settings(max_examples=25, deadline=None)
    def test_cascade_links_foreign_key(self, first_value, second_value):
        """Property: one save persists the pair with a matching foreign key."""
        with fresh_session() as session:
            bll = BaseBLL(session, SecondEntity)
            second = SecondEntity(
                int_value=second_value,
                first_entity=FirstEntity(int_value=first_value),
            )

            bll.save(second, persist=True)

            assert second.first_entity_id == second.first_entity.id
            assert second.first_entity.int_value == first_value
