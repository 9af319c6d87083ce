"""
Persistence layer.

Storage adapters (memory, SQL) and the DocumentWriter that moves the
encoded Document between the collection store and an adapter.  The
backup sink writes exported files to a directory.
"""

from devspace_kernel.persistence.adapter import MemoryStorage, StorageAdapter
from devspace_kernel.persistence.backup_sink import BackupSink, DirectoryBackupSink
from devspace_kernel.persistence.sql_storage import SqlSlotStorage
from devspace_kernel.persistence.writer import DocumentWriter

__all__ = [
    "BackupSink",
    "DirectoryBackupSink",
    "DocumentWriter",
    "MemoryStorage",
    "SqlSlotStorage",
    "StorageAdapter",
]
