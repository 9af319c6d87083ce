"""
IntegrityService -- validation and orphan repair against the live store.

Responsibility:
    Runs the pure integrity checks on the current Document and commits the
    orphan repair through the collection store.

Architecture position:
    Kernel > Services -- thin imperative wrapper over
    ``devspace_kernel.domain.integrity``.

Invariants enforced:
    - validate() never changes state.
    - fix_orphaned_records() only nulls dangling projectIds and is
      idempotent: a second call fixes 0 records and swaps nothing.
"""

from __future__ import annotations

from dataclasses import dataclass

from devspace_kernel.domain.integrity import (
    ValidationResult,
    repair_orphans,
    validate_document,
)
from devspace_kernel.logging_config import LogContext, get_logger
from devspace_kernel.services.base import BaseService

logger = get_logger("services.integrity")


@dataclass(frozen=True)
class FixResult:
    fixed: int
    validation: ValidationResult


class IntegrityService(BaseService):
    def validate(self) -> ValidationResult:
        result = validate_document(self.store.document)
        logger.debug(
            "document_validated",
            extra={
                "valid": result.valid,
                "issues": {issue.type.value: issue.count for issue in result.issues},
            },
        )
        return result

    def fix_orphaned_records(self) -> FixResult:
        """
        Null the projectId of every orphaned task, schedule and payment.

        Returns the number of records fixed and a fresh validation of the
        repaired Document.
        """
        with LogContext.bind(operation="fix_orphaned_records"):
            repaired, fixed = repair_orphans(self.store.document, self.clock.now())
            if fixed:
                self.store.replace_document(repaired, "fix_orphaned_records")
                logger.info("orphans_fixed", extra={"fixed": fixed})
            return FixResult(fixed=fixed, validation=self.validate())
