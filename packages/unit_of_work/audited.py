"""Unit of work with audit capture.

This module provides a wrapper around a unit of work whose ``commit`` records
an audit trail for every entity change it writes. The wrapped store's
``save_changes`` stays the plain commit; the audit records are written through
the store's audit-only commit, so persisting them never triggers another scan.
"""

from typing import Optional


from packages.audit_capture import (
    ActorContext,
    AuditCaptureConfig,
    AuditOutbox,
    AuditReconciler,
    AuditRecord,
    AuditSink,
    AuditStatus,
    AuditWriteError,
    ChangeScanner,
    CommitResult,
    get_actor_context,
    get_audit_config,
)
from packages.structured_logging import get_logger

from .adapter import UnitOfWork

logger = get_logger(__name__)


class AuditedUnitOfWork:
    """Wrapper that adds audit capture to any unit of work.

    Failure semantics:
        - A failed primary write propagates unchanged; nothing is audited.
        - A failed audit write does not undo the primary write. The commit
          returns a DEGRADED result and, when an outbox is configured, the
          records are spooled there for later replay. There is no inline retry.
        - If the commit is interrupted after the primary write but before the
          audit write completes, the finalized records are spooled and the
          interruption is re-raised.
    """

    def __init__(
        self,
        unit_of_work: UnitOfWork,
        config: Optional[AuditCaptureConfig] = None,
        outbox: Optional[AuditOutbox] = None,
    ) -> None:
        """Initialize audited unit of work.

        Args:
            unit_of_work: Underlying unit of work.
            config: Audit capture configuration (uses global if None).
            outbox: Spool for undelivered records; built from config.outbox_path if None.
        """
        self._uow = unit_of_work
        self._config = config or get_audit_config()
        if outbox is None and self._config.outbox_enabled:
            outbox = AuditOutbox(self._config.outbox_path)
        self._outbox = outbox
        self._scanner = ChangeScanner(soft_delete_method=self._config.soft_delete_method)
        self._reconciler = AuditReconciler()
        self._sink = AuditSink(unit_of_work)

    @property
    def unit_of_work(self) -> UnitOfWork:
        return self._uow

    @property
    def outbox(self) -> Optional[AuditOutbox]:
        return self._outbox

    def commit(self, actor: Optional[ActorContext] = None) -> CommitResult:
        """Commit pending changes and record their audit trail.

        Args:
            actor: Caller context; falls back to the current request's context.
                Without one the commit is a plain passthrough.

        Returns:
            Commit result with the audit outcome.

        Raises:
            Exception: Primary write failures, unchanged.
            ReconciliationError: If the store did not resolve a generated value.
        """
        actor = actor or get_actor_context()
        if actor is None or not self._config.enabled:
            rows = self._uow.save_changes()
            return CommitResult(rows_affected=rows, audit_status=AuditStatus.NOT_CAPTURED)

        scan = self._scanner.scan(self._uow.tracker, actor)
        rows = self._uow.save_changes()

        records: list[AuditRecord] = list(scan.ready)
        persisted = False
        try:
            records.extend(self._reconciler.reconcile(scan.deferred))
            self._sink.persist(records)
            persisted = True
        except AuditWriteError as e:
            # the outbox gets one attempt; a spool failure must not be retried in finally
            persisted = True
            spooled = self._spool(records)
            logger.error(
                "audit_commit_degraded",
                rows=rows,
                records=len(records),
                spooled=spooled,
                error=str(e),
            )
            return CommitResult(
                rows_affected=rows,
                audit_status=AuditStatus.DEGRADED,
                audit_records=records,
                audit_error=str(e),
                spooled=spooled,
            )
        finally:
            if not persisted:
                self._spool(records)

        logger.info(
            "audit_commit_completed",
            rows=rows,
            records=len(records),
            actor_id=actor.actor_id,
            method=actor.method,
        )
        return CommitResult(
            rows_affected=rows,
            audit_status=AuditStatus.RECORDED,
            audit_records=records,
        )

    def save_changes(self) -> int:
        """Plain commit without audit capture."""
        return self._uow.save_changes()

    def replay_outbox(self) -> int:
        """Deliver records spooled by earlier degraded commits.

        Returns:
            Number of records delivered (0 without an outbox)
        """
        if self._outbox is None:
            return 0
        return self._outbox.drain(self._sink)

    def _spool(self, records: list[AuditRecord]) -> int:
        if self._outbox is None or not records:
            return 0
        return self._outbox.spool(records)
