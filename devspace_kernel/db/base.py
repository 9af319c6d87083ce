"""
Module: devspace_kernel.db.base
Responsibility: Declarative base class for the kernel's SQLAlchemy models.
    Provides the type annotation map so every timestamp column is
    timezone-aware.
Architecture position: Kernel > DB.  This is the lowest-level import target
    within the storage backend.  It MUST NOT import from models/, services/,
    selectors/ or domain/.
"""

from datetime import datetime
from typing import ClassVar

from sqlalchemy import DateTime, Text
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - datetime maps to DateTime(timezone=True).
        - str maps to Text (slot values are unbounded JSON strings).
    """

    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
        str: Text,
    }
