"""
BaseService -- abstract base for services built on the collection store.

Responsibility:
    Provides the common constructor for services that read the live
    Document and commit replacements through the CollectionStore
    (integrity repair, backup/restore).

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    - Services never hold a Document across calls; they read
      ``store.document`` at the start of each operation.
    - Services change state only through ``store.replace_document``, so
      the updatedAt stamp and the persistence effect are applied the same
      way for every writer.
"""

from __future__ import annotations

from abc import ABC
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from devspace_kernel.services.collection_store import CollectionStore


class BaseService(ABC):
    """
    Abstract base class for store-backed services.

    Non-goals:
        - Does NOT provide query-only (read) methods -- those belong in
          ``devspace_kernel/selectors/``.
    """

    def __init__(self, store: CollectionStore):
        self.store = store
        self.clock = store.clock
