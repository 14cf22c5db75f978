"""
Audit capture models.

A ChangeEntry is the mutable, in-progress description of one entity's pending
change. Once every value it needs is known it is finalized into an immutable
AuditRecord, which is what gets persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator

from .errors import AuditCaptureError


class OperationKind(str, Enum):
    """Kind of change recorded by an audit record."""

    CREATE = "Create"
    UPDATE = "Update"
    DELETE = "Delete"


class EntryState(str, Enum):
    """Whether a change entry can be finalized right away."""

    READY = "Ready"
    DEFERRED = "Deferred"


class ActorContext(BaseModel):
    """
    Caller-supplied context copied onto every audit record.

    Both fields are opaque to the pipeline except ``method``, which drives
    the soft-delete classification rule.
    """

    actor_id: Optional[str] = Field(None, description="Identifier of the acting user")
    method: Optional[str] = Field(None, description="Operation token, e.g. HTTP method")

    @field_validator("method")
    @classmethod
    def normalize_method(cls, v: Optional[str]) -> Optional[str]:
        """Strip and upper-case the method token."""
        if v is None:
            return None
        v = v.strip().upper()
        return v or None

    model_config = {"frozen": True}


@dataclass(frozen=True)
class PendingField:
    """A field whose value the store assigns during the write."""

    name: str
    is_key: bool = False


class AuditRecord(BaseModel):
    """
    Immutable audit record describing one committed entity change.

    Records are write-once: they are never updated or deleted after creation.
    """

    id: UUID = Field(default_factory=uuid4, description="Unique record identifier")
    entity_kind: str = Field(..., min_length=1, description="Logical entity type")
    operation_kind: OperationKind
    key_values: dict[str, Any] = Field(default_factory=dict)
    old_values: dict[str, Any] = Field(default_factory=dict)
    new_values: dict[str, Any] = Field(default_factory=dict)
    changed_fields: list[str] = Field(default_factory=list)
    actor_id: Optional[str] = None
    method: Optional[str] = None
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Record creation time in UTC",
    )

    model_config = {"frozen": True}  # Immutable


@dataclass
class ChangeEntry:
    """Audit record under construction for a single tracked mutation."""

    entity_kind: str
    operation_kind: OperationKind
    actor_id: Optional[str] = None
    method: Optional[str] = None
    key_values: dict[str, Any] = field(default_factory=dict)
    old_values: dict[str, Any] = field(default_factory=dict)
    new_values: dict[str, Any] = field(default_factory=dict)
    changed_fields: list[str] = field(default_factory=list)
    pending_fields: list[PendingField] = field(default_factory=list)
    mutation: Any = field(default=None, compare=False, repr=False)
    _finalized: bool = field(default=False, init=False, compare=False, repr=False)

    @property
    def state(self) -> EntryState:
        """Ready when no store-generated value is outstanding."""
        return EntryState.DEFERRED if self.pending_fields else EntryState.READY

    @property
    def finalized(self) -> bool:
        return self._finalized

    def mark_changed(self, name: str) -> None:
        if name not in self.changed_fields:
            self.changed_fields.append(name)

    def finalize(self, timestamp: Optional[datetime] = None) -> AuditRecord:
        """
        Turn this entry into its audit record.

        Args:
            timestamp: Record timestamp (defaults to now, UTC)

        Returns:
            The immutable audit record

        Raises:
            AuditCaptureError: If the entry is still deferred or was already finalized
        """
        if self._finalized:
            raise AuditCaptureError(f"{self.entity_kind} change entry already finalized")
        if self.state is EntryState.DEFERRED:
            pending = ", ".join(p.name for p in self.pending_fields)
            raise AuditCaptureError(
                f"{self.entity_kind} change entry still waiting on: {pending}"
            )

        record = AuditRecord(
            entity_kind=self.entity_kind,
            operation_kind=self.operation_kind,
            key_values=dict(self.key_values),
            old_values=dict(self.old_values),
            new_values=dict(self.new_values),
            changed_fields=list(self.changed_fields),
            actor_id=self.actor_id,
            method=self.method,
            timestamp=timestamp or datetime.now(timezone.utc),
        )
        self._finalized = True
        return record


class AuditStatus(str, Enum):
    """Outcome of the audit side of a commit."""

    NOT_CAPTURED = "NotCaptured"
    RECORDED = "Recorded"
    DEGRADED = "Degraded"


class CommitResult(BaseModel):
    """
    Result of an audited commit.

    A DEGRADED status means the primary write succeeded but the audit trail
    for it is incomplete; callers that need strict audit guarantees should
    treat it as a signal for out-of-band reconciliation.
    """

    rows_affected: int = Field(..., ge=0, description="Entities written by the primary commit")
    audit_status: AuditStatus
    audit_records: list[AuditRecord] = Field(default_factory=list)
    audit_error: Optional[str] = None
    spooled: int = Field(0, ge=0, description="Records placed in the outbox")

    model_config = {"frozen": True}

    @property
    def degraded(self) -> bool:
        return self.audit_status is AuditStatus.DEGRADED
