"""Tests for the audit sink and outbox."""

from typing import Sequence

import pytest

from packages.audit_capture import (
    AuditOutbox,
    AuditRecord,
    AuditSink,
    AuditWriteError,
    OperationKind,
)


class RecordingWriter:
    """Audit writer that remembers what it was given."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[list[AuditRecord]] = []

    def save_audit_records(self, records: Sequence[AuditRecord]) -> int:
        if self.fail:
            raise OSError("disk full")
        self.calls.append(list(records))
        return len(records)


def make_record(name: str = "x") -> AuditRecord:
    return AuditRecord(
        entity_kind="Widget",
        operation_kind=OperationKind.CREATE,
        key_values={"id": 1},
        new_values={"name": name},
        actor_id="u-1",
        method="POST",
    )


class TestAuditSink:
    """Tests for AuditSink."""

    def test_persist_writes_records(self) -> None:
        """Test records are handed to the writer in one batch."""
        writer = RecordingWriter()
        records = [make_record("a"), make_record("b")]

        assert AuditSink(writer).persist(records) == 2
        assert writer.calls == [records]

    def test_empty_batch_is_noop(self) -> None:
        """Test an empty batch never reaches the writer."""
        writer = RecordingWriter(fail=True)

        assert AuditSink(writer).persist([]) == 0
        assert writer.calls == []

    def test_writer_failure_is_wrapped(self) -> None:
        """Test writer errors surface as AuditWriteError carrying the records."""
        records = [make_record()]

        with pytest.raises(AuditWriteError) as exc_info:
            AuditSink(RecordingWriter(fail=True)).persist(records)

        assert exc_info.value.records == records
        assert isinstance(exc_info.value.__cause__, OSError)


class TestAuditOutbox:
    """Tests for AuditOutbox."""

    @pytest.fixture
    def outbox(self, tmp_path) -> AuditOutbox:
        """Create outbox in a temporary directory."""
        return AuditOutbox(tmp_path / "spool" / "outbox.jsonl")

    def test_spool_and_read_back(self, outbox: AuditOutbox) -> None:
        """Test spooled records round-trip through the file."""
        record = make_record()

        assert outbox.spool([record]) == 1
        assert outbox.pending() == [record]

    def test_empty_outbox(self, outbox: AuditOutbox) -> None:
        """Test a fresh outbox has nothing pending."""
        assert outbox.pending() == []
        assert outbox.spool([]) == 0
        assert outbox.drain(AuditSink(RecordingWriter())) == 0

    def test_drain_delivers_and_empties(self, outbox: AuditOutbox) -> None:
        """Test draining persists every record once."""
        outbox.spool([make_record("a")])
        outbox.spool([make_record("b")])
        writer = RecordingWriter()

        assert outbox.drain(AuditSink(writer)) == 2
        assert [r.new_values["name"] for r in writer.calls[0]] == ["a", "b"]
        assert outbox.pending() == []

    def test_failed_drain_keeps_records(self, outbox: AuditOutbox) -> None:
        """Test records stay spooled when delivery fails."""
        outbox.spool([make_record()])

        with pytest.raises(AuditWriteError):
            outbox.drain(AuditSink(RecordingWriter(fail=True)))

        assert len(outbox.pending()) == 1

    def test_clear(self, outbox: AuditOutbox) -> None:
        """Test clear discards spooled records."""
        outbox.spool([make_record()])
        outbox.clear()
        assert outbox.pending() == []
