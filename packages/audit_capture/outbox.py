"""Audit outbox.

When the primary write commits but the audit-only write fails, the finalized
records are spooled here as JSON lines so they can be replayed later. This
gives the audit trail at-least-once delivery without rolling back the
primary write.

Usage:
    from packages.audit_capture import AuditOutbox, AuditSink

    outbox = AuditOutbox("data/audit_outbox.jsonl")

    # Replay spooled records once the store is healthy again
    replayed = outbox.drain(AuditSink(unit_of_work))
"""

from pathlib import Path
from threading import Lock
from typing import Sequence

import structlog

from .models import AuditRecord
from .sink import AuditSink

logger = structlog.get_logger(__name__)

__all__ = ["AuditOutbox"]


class AuditOutbox:
    """Append-only JSON-lines spool of undelivered audit records."""

    def __init__(self, path: str | Path = "data/audit_outbox.jsonl") -> None:
        """Initialize outbox.

        Args:
            path: Spool file location (parent directories are created)
        """
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = Lock()

    def spool(self, records: Sequence[AuditRecord]) -> int:
        """Append records to the spool.

        Returns:
            Number of records spooled
        """
        if not records:
            return 0

        with self._lock:
            with open(self.path, "a", encoding="utf-8") as f:
                for record in records:
                    f.write(record.model_dump_json())
                    f.write("\n")

        logger.warning("audit_records_spooled", count=len(records), path=str(self.path))
        return len(records)

    def pending(self) -> list[AuditRecord]:
        """Read every spooled record, oldest first."""
        with self._lock:
            return self._read()

    def drain(self, sink: AuditSink) -> int:
        """Persist all spooled records and empty the spool.

        The spool is left untouched if persisting fails.

        Args:
            sink: Sink to deliver the records to

        Returns:
            Number of records delivered

        Raises:
            AuditWriteError: If the sink cannot persist the records
        """
        with self._lock:
            records = self._read()
            if not records:
                return 0
            delivered = sink.persist(records)
            self.path.write_text("", encoding="utf-8")

        logger.info("audit_outbox_drained", count=delivered)
        return delivered

    def clear(self) -> None:
        """Discard all spooled records."""
        with self._lock:
            if self.path.exists():
                self.path.write_text("", encoding="utf-8")

    def _read(self) -> list[AuditRecord]:
        if not self.path.exists():
            return []
        with open(self.path, "r", encoding="utf-8") as f:
            return [
                AuditRecord.model_validate_json(line)
                for line in f
                if line.strip()
            ]
