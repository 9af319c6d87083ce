"""
SqlSlotStorage -- key-value slots in a SQL database.

Responsibility:
    Implements the StorageAdapter contract on the ``storage_slots`` table,
    giving the desktop build a durable "local storage" (SQLite by default).

Architecture position:
    Kernel > Persistence -- imperative shell.  Owns its engine and session
    factory; no global database state.

Invariants enforced:
    - Each write is its own transaction (commit-or-rollback).
    - Writing an existing key replaces the value and stamps updated_at.

Failure modes:
    - PersistenceUnavailableError wraps every SQLAlchemyError, with the
      driver error chained as ``__cause__``.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from devspace_kernel.db.engine import (
    create_storage_engine,
    create_tables,
    make_session_factory,
    session_scope,
)
from devspace_kernel.domain.clock import Clock, SystemClock
from devspace_kernel.exceptions import PersistenceUnavailableError
from devspace_kernel.logging_config import get_logger
from devspace_kernel.models.storage_slot import StorageSlot

logger = get_logger("persistence.sql_storage")


class SqlSlotStorage:
    """StorageAdapter backed by the storage_slots table."""

    def __init__(self, engine: Engine, clock: Clock | None = None, create: bool = True):
        self._engine = engine
        self._clock = clock or SystemClock()
        self._factory = make_session_factory(engine)
        if create:
            try:
                create_tables(engine)
            except SQLAlchemyError as exc:
                engine.dispose()
                raise PersistenceUnavailableError("*", str(exc)) from exc

    @classmethod
    def from_url(cls, database_url: str, clock: Clock | None = None) -> SqlSlotStorage:
        """Raises PersistenceUnavailableError when the location cannot be opened."""
        try:
            engine = create_storage_engine(database_url)
        except (OSError, SQLAlchemyError) as exc:
            raise PersistenceUnavailableError("*", str(exc)) from exc
        return cls(engine, clock=clock)

    def read(self, key: str) -> str | None:
        try:
            with session_scope(self._factory) as session:
                return session.execute(
                    select(StorageSlot.value).where(StorageSlot.key == key)
                ).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise PersistenceUnavailableError(key, str(exc)) from exc

    def write(self, key: str, value: str) -> None:
        try:
            with session_scope(self._factory) as session:
                session.merge(
                    StorageSlot(key=key, value=value, updated_at=self._clock.now())
                )
        except SQLAlchemyError as exc:
            raise PersistenceUnavailableError(key, str(exc)) from exc
        logger.debug("slot_written", extra={"key": key, "chars": len(value)})

    def keys(self) -> list[str]:
        try:
            with session_scope(self._factory) as session:
                return list(
                    session.execute(select(StorageSlot.key).order_by(StorageSlot.key)).scalars()
                )
        except SQLAlchemyError as exc:
            raise PersistenceUnavailableError("*", str(exc)) from exc

    def dispose(self) -> None:
        self._engine.dispose()
