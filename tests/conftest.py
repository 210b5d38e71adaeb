"""
Pytest configuration and fixtures for the BLL tests.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from blaster_base.models import Base
from blaster_base.services.crud import BaseBLL, BLLRegistry, OperationHooks
from tests.entities import EntityDetail, FirstEntity, SecondEntity, SoftDeletableTestEntity


TEST_USER = "test-user"

# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    # Create all tables
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        # Drop all tables after test
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def reset_hooks():
    """Hooks are process-wide; never leak them between tests."""
    OperationHooks.clear()
    yield
    OperationHooks.clear()


@pytest.fixture
def registry():
    return BLLRegistry()


@pytest.fixture
def first_bll(db_session, registry):
    return BaseBLL(db_session, FirstEntity, registry=registry, user=TEST_USER)


@pytest.fixture
def second_bll(db_session, registry):
    return BaseBLL(db_session, SecondEntity, registry=registry, user=TEST_USER)


@pytest.fixture
def detail_bll(db_session, registry):
    return BaseBLL(db_session, EntityDetail, registry=registry, user=TEST_USER)


@pytest.fixture
def soft_bll(db_session, registry):
    return registry.create(SoftDeletableTestEntity, db_session, user=TEST_USER)


@pytest.fixture
def seed_first(db_session):
    """A committed FirstEntity."""
    entity = FirstEntity(int_value=1, string_value="seed")
    db_session.add(entity)
    db_session.commit()
    db_session.refresh(entity)
    return entity
