"""Store-backed services and the DataStore facade."""

from devspace_kernel.services.backup_service import BackupService
from devspace_kernel.services.collection_store import CollectionStore
from devspace_kernel.services.data_store import DataStore, open_data_store
from devspace_kernel.services.integrity_service import FixResult, IntegrityService

__all__ = [
    "BackupService",
    "CollectionStore",
    "DataStore",
    "FixResult",
    "IntegrityService",
    "open_data_store",
]
