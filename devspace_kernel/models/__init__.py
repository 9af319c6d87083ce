"""ORM models for the SQL storage backend."""

from devspace_kernel.models.storage_slot import StorageSlot

__all__ = ["StorageSlot"]
