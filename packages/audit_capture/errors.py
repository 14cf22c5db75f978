"""Errors raised by the audit capture pipeline."""

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .models import AuditRecord


class AuditCaptureError(Exception):
    """Base class for audit capture failures."""
    pass


class ReconciliationError(AuditCaptureError):
    """Raised when a store-generated value is still unknown after a confirmed write.

    This signals a broken store contract, not a recoverable condition.
    """
    pass


class AuditWriteError(AuditCaptureError):
    """Raised when the audit-only write fails.

    The primary write has already been committed when this is raised, so the
    records it carries are the audit trail that is now missing.
    """

    def __init__(self, message: str, records: Sequence["AuditRecord"] = ()) -> None:
        super().__init__(message)
        self.records = list(records)
