"""
Module: devspace_kernel.selectors.base
Responsibility: Abstract base class for read-only selectors over a Document
    snapshot.
Architecture position: Kernel > Selectors.  May import from domain/.
    MUST NOT import from services/ or persistence/.

Invariants enforced:
    - Read-only access: selectors receive an immutable Document and return
      frozen dataclasses; they never swap or persist anything.
    - Time comes from the injected Clock, never from the wall clock.
"""

from abc import ABC

from devspace_kernel.domain.clock import Clock
from devspace_kernel.domain.document import Document


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Non-goals:
        - BaseSelector does NOT define any query methods; subclasses
          implement the concrete aggregations.
    """

    def __init__(self, document: Document, clock: Clock):
        self.document = document
        self.clock = clock
