"""
DevSpace Kernel - local-first data store engine.

A single JSON document of projects, tasks, schedules and payments with:
- Immutable in-memory snapshots swapped atomically per mutation
- Tagged (optionally compressed) persistence into a key-value slot
- Referential-integrity checks with orphan repair
- Versioned document migrations
- File backup and restore
"""

__version__ = "1.0.2"

APP_VERSION = __version__
