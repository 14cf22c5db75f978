"""Post-write reconciliation of deferred change entries."""

from typing import Iterable

import structlog

from .errors import ReconciliationError
from .models import AuditRecord, ChangeEntry, EntryState

logger = structlog.get_logger(__name__)


class AuditReconciler:
    """Fills store-generated values into deferred entries and finalizes them.

    Only call this after the store has confirmed the write. Reconciling after
    a failed write would produce records for changes that never happened.
    """

    def reconcile(self, deferred: Iterable[ChangeEntry]) -> list[AuditRecord]:
        """Resolve and finalize deferred entries.

        Args:
            deferred: Entries returned as deferred by the scanner

        Returns:
            One audit record per entry

        Raises:
            ReconciliationError: If an entry is not deferred or a pending
                value is still unknown
        """
        records: list[AuditRecord] = []

        for entry in deferred:
            if entry.state is not EntryState.DEFERRED or entry.finalized:
                raise ReconciliationError(
                    f"{entry.entity_kind} change entry is not awaiting reconciliation"
                )

            for pending in entry.pending_fields:
                value = entry.mutation.current_value(pending.name)
                if value is None:
                    raise ReconciliationError(
                        f"{entry.entity_kind}.{pending.name} is still unresolved after the write"
                    )
                # a generated field never had a meaningful old value
                if pending.is_key:
                    entry.key_values[pending.name] = value
                else:
                    entry.new_values[pending.name] = value

            entry.pending_fields.clear()
            records.append(entry.finalize())

        if records:
            logger.info("audit_entries_reconciled", count=len(records))
        return records
