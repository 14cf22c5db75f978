"""
Audit capture package.

This package turns the pending mutations of a unit of work into immutable
audit records: it scans and classifies changes before the write, reconciles
store-generated values after it, and persists the records through an
audit-only commit.
"""

from .codec import canonicalize, equal, to_jsonable
from .config import AuditCaptureConfig, get_audit_config
from .errors import AuditCaptureError, AuditWriteError, ReconciliationError
from .middleware import (
    ActorContextMiddleware,
    get_actor_context,
    reset_actor_context,
    set_actor_context,
)
from .models import (
    ActorContext,
    AuditRecord,
    AuditStatus,
    ChangeEntry,
    CommitResult,
    EntryState,
    OperationKind,
    PendingField,
)
from .outbox import AuditOutbox
from .reconciler import AuditReconciler
from .scanner import ChangeScanner, ScanResult
from .sink import AuditRecordWriter, AuditSink
from .snapshot import EntityState, MutationSnapshot, TrackedMutation

__all__ = [
    "ActorContext",
    "ActorContextMiddleware",
    "AuditCaptureConfig",
    "AuditCaptureError",
    "AuditOutbox",
    "AuditReconciler",
    "AuditRecord",
    "AuditRecordWriter",
    "AuditSink",
    "AuditStatus",
    "AuditWriteError",
    "ChangeEntry",
    "ChangeScanner",
    "CommitResult",
    "EntityState",
    "EntryState",
    "MutationSnapshot",
    "OperationKind",
    "PendingField",
    "ReconciliationError",
    "ScanResult",
    "TrackedMutation",
    "canonicalize",
    "equal",
    "get_actor_context",
    "get_audit_config",
    "reset_actor_context",
    "set_actor_context",
    "to_jsonable",
]
