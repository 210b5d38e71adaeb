"""
Unit of work over one database connection.

Holds a Connection, an optional Transaction and the user identity that
BLLs created through it stamp on audit fields. The ORM session is created
on first use, bound to the connection, and joins whatever transaction the
connection is in, so BLL commits stay inside the unit of work until
UnitOfWork.commit().

Usage:
    with UnitOfWork.begin(engine, user="alice") as uow:
        orders = uow.bll(Order)
        orders.save(order, persist=True)
        uow.execute("UPDATE counters SET value = value + 1")
        uow.commit()
"""

from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy import Connection, Engine, text
from sqlalchemy.engine import CursorResult, Transaction
from sqlalchemy.orm import Session

from blaster_base.models import BaseEntity
from blaster_base.services.crud import AbstractBLL, BLLRegistry
from shared.config.logging import uow_logger as logger


class UnitOfWork:
    """Connection, transaction and user identity for one business operation."""

    def __init__(
        self,
        connection: Connection,
        transaction: Transaction | None = None,
        user: str | None = None,
    ):
        self._connection = connection
        self._transaction = transaction
        self._user = user
        self._session: Session | None = None
        self._closed = False

    @classmethod
    def begin(cls, engine: Engine, user: str | None = None) -> UnitOfWork:
        """Open a connection and begin a transaction on it."""
        connection = engine.connect()
        try:
            transaction = connection.begin()
        except Exception:
            connection.close()
            raise
        logger.debug("Unit of work started", user=user)
        return cls(connection, transaction, user)

    @property
    def connection(self) -> Connection:
        return self._connection

    @property
    def transaction(self) -> Transaction | None:
        return self._transaction

    @property
    def user(self) -> str | None:
        return self._user

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def session(self) -> Session:
        """Session bound to the connection, created on first access."""
        if self._session is None:
            self._session = self.open_session()
        return self._session

    def open_session(self) -> Session:
        """
        New ORM session bound to this connection.

        When the connection is already in a transaction the session joins
        it: session commits do not end it, UnitOfWork.commit() does. Instances
        stay readable after the unit of work commits or rolls back.
        """
        self._ensure_open()
        return Session(bind=self._connection, autoflush=False, expire_on_commit=False)

    def bll(self, entity_type: type[BaseEntity], registry: BLLRegistry | None = None) -> AbstractBLL:
        """BLL for `entity_type` on this unit of work's session and user."""
        registry = registry if registry is not None else BLLRegistry()
        return registry.create(entity_type, self.session, user=self._user)

    def execute(self, statement: Any, params: Mapping[str, Any] | None = None) -> CursorResult:
        """Run SQL text or a SQLAlchemy statement on the connection."""
        self._ensure_open()
        if isinstance(statement, str):
            statement = text(statement)
        if self._session is not None:
            # Make staged ORM changes visible to raw statements
            self._session.flush()
        return self._connection.execute(statement, params or {})

    def commit(self) -> None:
        """Commit the transaction; no-op when there is none."""
        self._ensure_open()
        if self._session is not None:
            # Flushes into the joined transaction without ending it
            self._session.commit()
        if self._transaction is not None:
            if self._transaction.is_active:
                self._transaction.commit()
        elif self._connection.in_transaction():
            self._connection.commit()
        logger.debug("Unit of work committed", user=self._user)

    def rollback(self) -> None:
        """Roll the transaction back; no-op when there is none."""
        self._ensure_open()
        if self._session is not None:
            self._session.rollback()
        if self._transaction is not None:
            if self._transaction.is_active:
                self._transaction.rollback()
        elif self._connection.in_transaction():
            self._connection.rollback()
        logger.debug("Unit of work rolled back", user=self._user)

    def close(self) -> None:
        """Release session, transaction and connection, whatever happened."""
        if self._closed:
            return
        self._closed = True
        try:
            if self._session is not None:
                self._session.close()
        finally:
            try:
                if self._transaction is not None and self._transaction.is_active:
                    self._transaction.rollback()
            finally:
                self._connection.close()
                logger.debug("Unit of work closed", user=self._user)

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Unit of work is closed")

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            logger.warning("Unit of work aborted", user=self._user, error=str(exc))
        self.close()
