"""Change scanner.

Walks the mutations pending in a unit of work, classifies each one and builds
its change entry. Entries whose values are fully known are finalized on the
spot; entries waiting on store-generated values are handed back as deferred.
"""

from dataclasses import dataclass, field
from typing import Optional

import structlog

from . import codec
from .models import (
    ActorContext,
    AuditRecord,
    ChangeEntry,
    EntryState,
    OperationKind,
    PendingField,
)
from .snapshot import EntityState, MutationSnapshot, TrackedMutation

logger = structlog.get_logger(__name__)

AUDIT_ENTITY_KIND = AuditRecord.__name__


@dataclass
class ScanResult:
    """Outcome of one scan.

    Attributes:
        entries: Every change entry built, in mutation order
        ready: Audit records finalized during the scan
        deferred: Entries that need reconciliation after the write
    """

    entries: list[ChangeEntry] = field(default_factory=list)
    ready: list[AuditRecord] = field(default_factory=list)
    deferred: list[ChangeEntry] = field(default_factory=list)


class ChangeScanner:
    """Builds change entries from a snapshot of tracked mutations."""

    def __init__(
        self,
        soft_delete_method: str = "DELETE",
        audit_entity_kind: str = AUDIT_ENTITY_KIND,
    ) -> None:
        """Initialize scanner.

        Args:
            soft_delete_method: Method token that turns a modification into a delete
            audit_entity_kind: Entity kind of audit records, never audited itself
        """
        self.soft_delete_method = soft_delete_method.strip().upper()
        self.audit_entity_kind = audit_entity_kind

    def classify(
        self, state: EntityState, actor: ActorContext
    ) -> Optional[OperationKind]:
        """Map a tracked state to the operation it represents.

        Returns:
            The operation kind, or None when the mutation is not audited
        """
        if state is EntityState.ADDED:
            return OperationKind.CREATE
        if state is EntityState.DELETED:
            return OperationKind.DELETE
        if state is EntityState.MODIFIED:
            if actor.method == self.soft_delete_method:
                return OperationKind.DELETE
            return OperationKind.UPDATE
        return None

    def scan(self, snapshot: MutationSnapshot, actor: ActorContext) -> ScanResult:
        """Scan every pending mutation.

        The snapshot is only read, so scanning the same unchanged snapshot
        twice yields equal entries.

        Args:
            snapshot: Pending mutations of a unit of work
            actor: Caller context copied onto each entry

        Returns:
            Finalized records plus the entries deferred until after the write
        """
        result = ScanResult()

        for mutation in snapshot.mutations():
            if mutation.entity_kind == self.audit_entity_kind:
                logger.debug("audit_scan_skipped", entity_kind=mutation.entity_kind, reason="audit_record")
                continue

            operation = self.classify(mutation.state, actor)
            if operation is None:
                logger.debug(
                    "audit_scan_skipped",
                    entity_kind=mutation.entity_kind,
                    reason=mutation.state.value,
                )
                continue

            entry = self._build_entry(mutation, operation, actor)
            result.entries.append(entry)

            if entry.state is EntryState.READY:
                result.ready.append(entry.finalize())
            else:
                result.deferred.append(entry)

        logger.info(
            "audit_scan_completed",
            entries=len(result.entries),
            ready=len(result.ready),
            deferred=len(result.deferred),
        )
        return result

    def _build_entry(
        self,
        mutation: TrackedMutation,
        operation: OperationKind,
        actor: ActorContext,
    ) -> ChangeEntry:
        entry = ChangeEntry(
            entity_kind=mutation.entity_kind,
            operation_kind=operation,
            actor_id=actor.actor_id,
            method=actor.method,
            mutation=mutation,
        )
        key_fields = set(mutation.key_fields)

        for name in mutation.field_names:
            if mutation.is_generated_pending(name):
                # value is assigned by the store, read it after the write
                entry.pending_fields.append(PendingField(name=name, is_key=name in key_fields))
                continue

            if name in key_fields:
                entry.key_values[name] = mutation.current_value(name)
                continue

            if operation is OperationKind.CREATE:
                entry.new_values[name] = mutation.current_value(name)
            elif operation is OperationKind.DELETE:
                entry.old_values[name] = mutation.original_value(name)
            elif mutation.is_modified(name):
                old = mutation.original_value(name)
                new = mutation.current_value(name)
                entry.old_values[name] = old
                entry.new_values[name] = new
                if not codec.equal(old, new):
                    entry.mark_changed(name)

        return entry
