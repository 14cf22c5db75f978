"""Audit sink persisting finalized records through the audit-only commit."""

from typing import Protocol, Sequence

import structlog

from .errors import AuditWriteError
from .models import AuditRecord

logger = structlog.get_logger(__name__)


class AuditRecordWriter(Protocol):
    """Store capability used by the sink.

    Implementations write only the given records and commit them; they must
    not run the change scanner again.
    """

    def save_audit_records(self, records: Sequence[AuditRecord]) -> int:
        ...


class AuditSink:
    """Persists audit records."""

    def __init__(self, writer: AuditRecordWriter) -> None:
        """Initialize sink.

        Args:
            writer: Store exposing the audit-only commit.
        """
        self._writer = writer

    def persist(self, records: Sequence[AuditRecord]) -> int:
        """Append records to the store and commit them.

        Args:
            records: Finalized audit records

        Returns:
            Number of records written (0 for an empty batch)

        Raises:
            AuditWriteError: If the audit-only write fails
        """
        if not records:
            return 0

        try:
            written = self._writer.save_audit_records(records)
        except Exception as e:
            logger.error("audit_write_failed", count=len(records), error=str(e))
            raise AuditWriteError(f"Failed to persist audit records: {e}", records) from e

        logger.info("audit_records_persisted", count=written)
        return written
