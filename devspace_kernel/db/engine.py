"""
Module: devspace_kernel.db.engine
Responsibility: SQLAlchemy engine creation, table creation and the
    transactional scope used by the SQL storage backend.
Architecture position: Kernel > DB.  May import from db/base.py and models/.
    MUST NOT import from services/, selectors/ or domain/.

Invariants enforced:
    - No module-level engine: every storage instance owns the engine it is
      given, so two stores in one process never share state.
    - SQLite file databases get their parent directory created on demand.
    - session_scope() commits on success and rolls back on any exception.

Failure modes:
    - OperationalError from the driver when the database cannot be opened;
      the storage adapter maps it to PersistenceUnavailableError.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from devspace_kernel.db.base import Base
from devspace_kernel.logging_config import get_logger

logger = get_logger("db.engine")


def _ensure_sqlite_directory(database_url: str) -> None:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return
    database = url.database
    if not database or database == ":memory:" or database.startswith("file:"):
        return
    Path(database).parent.mkdir(parents=True, exist_ok=True)


def create_storage_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the storage database.

    Args:
        database_url: SQLAlchemy URL, e.g. ``sqlite:////home/me/.devspace/devspace.db``
            or ``sqlite://`` for an in-memory database.
        echo: If True, log all SQL statements.
    """
    _ensure_sqlite_directory(database_url)
    engine = create_engine(database_url, echo=echo, future=True)
    logger.info(
        "engine_initialized",
        extra={"dialect": engine.dialect.name, "echo": echo},
    )
    return engine


def create_tables(engine: Engine) -> None:
    """Create every table registered on Base (idempotent)."""
    import devspace_kernel.models  # noqa: F401  registers StorageSlot

    Base.metadata.create_all(engine)


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """
    Provide a transactional scope around a series of operations.

    Usage:
        with session_scope(factory) as session:
            session.merge(slot)
            # Commits on successful exit, rolls back on exception
    """
    session = factory()
    logger.debug("transaction_started")
    try:
        yield session
        session.commit()
        logger.debug("transaction_committed")
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()
