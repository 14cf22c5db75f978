"""Tests for audit capture models."""

import pytest
from pydantic import ValidationError

from packages.audit_capture import (
    ActorContext,
    AuditCaptureError,
    AuditRecord,
    AuditStatus,
    ChangeEntry,
    CommitResult,
    EntryState,
    OperationKind,
    PendingField,
)


class TestActorContext:
    """Tests for ActorContext."""

    def test_method_is_normalized(self) -> None:
        """Test method token is stripped and upper-cased."""
        ctx = ActorContext(actor_id="u-1", method=" delete ")
        assert ctx.method == "DELETE"

    def test_blank_method_becomes_none(self) -> None:
        """Test an empty method is treated as absent."""
        assert ActorContext(method="  ").method is None

    def test_immutable(self) -> None:
        """Test actor context cannot be changed."""
        ctx = ActorContext(actor_id="u-1", method="POST")
        with pytest.raises(ValidationError):
            ctx.actor_id = "u-2"  # type: ignore


class TestAuditRecord:
    """Tests for AuditRecord."""

    def test_defaults(self) -> None:
        """Test generated id, timestamp and empty value maps."""
        record = AuditRecord(entity_kind="Product", operation_kind=OperationKind.CREATE)

        assert record.id is not None
        assert record.timestamp.tzinfo is not None
        assert record.key_values == {}
        assert record.old_values == {}
        assert record.new_values == {}
        assert record.changed_fields == []

    def test_immutability(self) -> None:
        """Test that audit records are write-once."""
        record = AuditRecord(entity_kind="Product", operation_kind=OperationKind.CREATE)

        with pytest.raises(ValidationError):
            record.operation_kind = OperationKind.DELETE  # type: ignore

    def test_entity_kind_required(self) -> None:
        """Test empty entity kind is rejected."""
        with pytest.raises(ValidationError):
            AuditRecord(entity_kind="", operation_kind=OperationKind.UPDATE)


class TestChangeEntry:
    """Tests for ChangeEntry."""

    def test_state_follows_pending_fields(self) -> None:
        """Test the entry is deferred while a generated value is pending."""
        entry = ChangeEntry(entity_kind="Widget", operation_kind=OperationKind.CREATE)
        assert entry.state is EntryState.READY

        entry.pending_fields.append(PendingField(name="id", is_key=True))
        assert entry.state is EntryState.DEFERRED

    def test_finalize_copies_values(self) -> None:
        """Test finalize builds a record carrying the entry's values."""
        entry = ChangeEntry(
            entity_kind="Widget",
            operation_kind=OperationKind.UPDATE,
            actor_id="u-1",
            method="PUT",
            key_values={"id": 7},
            old_values={"name": "x"},
            new_values={"name": "y"},
            changed_fields=["name"],
        )

        record = entry.finalize()

        assert record.entity_kind == "Widget"
        assert record.operation_kind == OperationKind.UPDATE
        assert record.key_values == {"id": 7}
        assert record.old_values == {"name": "x"}
        assert record.new_values == {"name": "y"}
        assert record.changed_fields == ["name"]
        assert record.actor_id == "u-1"
        assert record.method == "PUT"
        assert entry.finalized is True

        # later edits of the entry don't leak into the record
        entry.new_values["name"] = "z"
        assert record.new_values == {"name": "y"}

    def test_finalize_only_once(self) -> None:
        """Test an entry cannot be finalized twice."""
        entry = ChangeEntry(entity_kind="Widget", operation_kind=OperationKind.DELETE)
        entry.finalize()

        with pytest.raises(AuditCaptureError, match="already finalized"):
            entry.finalize()

    def test_deferred_entry_cannot_finalize(self) -> None:
        """Test a deferred entry refuses to finalize."""
        entry = ChangeEntry(
            entity_kind="Widget",
            operation_kind=OperationKind.CREATE,
            pending_fields=[PendingField(name="id", is_key=True)],
        )

        with pytest.raises(AuditCaptureError, match="waiting on: id"):
            entry.finalize()

    def test_mark_changed_deduplicates(self) -> None:
        """Test a changed field is listed once."""
        entry = ChangeEntry(entity_kind="Widget", operation_kind=OperationKind.UPDATE)
        entry.mark_changed("name")
        entry.mark_changed("name")
        assert entry.changed_fields == ["name"]


class TestCommitResult:
    """Tests for CommitResult."""

    def test_degraded_flag(self) -> None:
        """Test degraded property reflects the audit status."""
        assert CommitResult(rows_affected=1, audit_status=AuditStatus.DEGRADED).degraded is True
        assert CommitResult(rows_affected=1, audit_status=AuditStatus.RECORDED).degraded is False

    def test_rows_cannot_be_negative(self) -> None:
        """Test validation of rows_affected."""
        with pytest.raises(ValidationError):
            CommitResult(rows_affected=-1, audit_status=AuditStatus.RECORDED)
