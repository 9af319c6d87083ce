"""
Module: devspace_kernel.models.storage_slot
Responsibility: ORM persistence for the key-value slots that back the
    desktop app's "local storage": one row per key (``app-data``,
    ``use-compression``, ...), value stored as text.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - key is the primary key; writing an existing key replaces its value.
    - updated_at records the last write (supplied by the writer's clock).
"""

from datetime import datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from devspace_kernel.db.base import Base


class StorageSlot(Base):
    """One key-value slot."""

    __tablename__ = "storage_slots"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(nullable=False)
    updated_at: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<StorageSlot {self.key} ({len(self.value)} chars)>"
