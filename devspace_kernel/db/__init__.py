"""Database layer - engine, declarative base and transactional scope."""

from devspace_kernel.db.base import Base
from devspace_kernel.db.engine import (
    create_storage_engine,
    create_tables,
    make_session_factory,
    session_scope,
)

__all__ = [
    "Base",
    "create_storage_engine",
    "create_tables",
    "make_session_factory",
    "session_scope",
]
