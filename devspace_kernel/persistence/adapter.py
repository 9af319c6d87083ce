"""
Storage adapter contract and the in-memory implementation.

Responsibility:
    ``StorageAdapter`` is the contract the kernel needs from durable
    key-value storage: read a string slot, write a string slot.  Both calls
    are synchronous from the kernel's point of view.

Failure modes:
    - Adapters raise PersistenceUnavailableError when the backing store
      cannot be reached.  The kernel logs it and keeps working in memory.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from devspace_kernel.exceptions import PersistenceUnavailableError


@runtime_checkable
class StorageAdapter(Protocol):
    def read(self, key: str) -> str | None:
        """Return the slot value, or None if the key was never written."""
        ...

    def write(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...


class MemoryStorage:
    """
    Dict-backed storage for tests and throwaway sessions.

    ``available=False`` makes every call raise PersistenceUnavailableError,
    which is how a host without durable storage looks to the kernel.
    """

    def __init__(self, initial: dict[str, str] | None = None, available: bool = True):
        self._slots: dict[str, str] = dict(initial or {})
        self.available = available
        self.write_count = 0

    def read(self, key: str) -> str | None:
        self._check(key)
        return self._slots.get(key)

    def write(self, key: str, value: str) -> None:
        self._check(key)
        self._slots[key] = value
        self.write_count += 1

    def keys(self) -> list[str]:
        return sorted(self._slots)

    def _check(self, key: str) -> None:
        if not self.available:
            raise PersistenceUnavailableError(key, "memory storage disabled")
