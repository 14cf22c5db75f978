"""Unit of work protocol.

This module defines the interface every store implementation exposes, plus
the tracking behaviour they share.
"""

from typing import Any, Iterable, Optional, Protocol, Sequence, TypeVar


from packages.audit_capture.models import AuditRecord
from packages.structured_logging import get_logger

from .models import AUDIT_RECORD_MAPPING, EntityMapping
from .tracker import ChangeTracker, TrackedEntry

logger = get_logger(__name__)

T = TypeVar("T")


class UnitOfWork(Protocol):
    """Protocol defining the unit of work interface.

    All stores (SQLite, in-memory fake) must implement this interface.
    ``save_changes`` is the plain commit; it never produces audit records.
    """

    @property
    def tracker(self) -> ChangeTracker:
        """Change tracker holding the pending mutations."""
        ...

    def add(self, entity: Any) -> None:
        """Track a new entity to be inserted on the next commit."""
        ...

    def attach(self, entity: Any) -> None:
        """Track an entity that already exists in the store."""
        ...

    def remove(self, entity: Any) -> None:
        """Mark a tracked entity for deletion."""
        ...

    def mark_modified(self, entity: Any, name: str) -> None:
        """Force a field to be written even if its value looks unchanged."""
        ...

    def get(self, entity_type: type[T], *key: Any) -> Optional[T]:
        """Load an entity by key and start tracking it.

        Returns:
            The tracked entity, or None if no row matches.
        """
        ...

    def save_changes(self) -> int:
        """Write all pending mutations in one transaction.

        Returns:
            Number of entities written.

        Raises:
            Exception: Store failures propagate unchanged and leave the
                tracker as it was.
        """
        ...

    def save_audit_records(self, records: Sequence[AuditRecord]) -> int:
        """Write only the given audit records and commit them.

        Returns:
            Number of records written.
        """
        ...

    def list_audit_records(self) -> list[AuditRecord]:
        """Get all persisted audit records, oldest first."""
        ...


class UnitOfWorkBase:
    """Tracking and commit sequencing shared by the store implementations.

    Subclasses implement ``_write`` and ``_write_audit_records``.
    """

    def __init__(self, mappings: Iterable[EntityMapping] = ()) -> None:
        self._mappings: dict[type, EntityMapping] = {}
        self._tracker = ChangeTracker()
        for mapping in (AUDIT_RECORD_MAPPING, *mappings):
            self.register(mapping)

    @property
    def tracker(self) -> ChangeTracker:
        return self._tracker

    @property
    def mappings(self) -> list[EntityMapping]:
        return list(self._mappings.values())

    def register(self, mapping: EntityMapping) -> None:
        self._mappings[mapping.entity_type] = mapping

    def mapping_for(self, entity_or_type: Any) -> EntityMapping:
        """Get the mapping of an entity instance or type.

        Raises:
            KeyError: If the type is not mapped
        """
        entity_type = entity_or_type if isinstance(entity_or_type, type) else type(entity_or_type)
        try:
            return self._mappings[entity_type]
        except KeyError:
            raise KeyError(f"No mapping registered for {entity_type.__name__}") from None

    def add(self, entity: Any) -> None:
        self._tracker.add(entity, self.mapping_for(entity))

    def attach(self, entity: Any) -> None:
        self._tracker.attach(entity, self.mapping_for(entity))

    def remove(self, entity: Any) -> None:
        self._tracker.remove(entity)

    def mark_modified(self, entity: Any, name: str) -> None:
        self._tracker.mark_modified(entity, name)

    def save_changes(self) -> int:
        pending = self._tracker.pending()
        if not pending:
            return 0

        rows = self._write(pending)
        self._tracker.accept_changes()
        logger.info("unit_of_work_saved", store=type(self).__name__, rows=rows)
        return rows

    def save_audit_records(self, records: Sequence[AuditRecord]) -> int:
        if not records:
            return 0
        return self._write_audit_records(records)

    def _tracked(self, mapping: EntityMapping, key: tuple) -> Optional[TrackedEntry]:
        return self._tracker.find(mapping, key)

    def _write(self, entries: list[TrackedEntry]) -> int:
        raise NotImplementedError

    def _write_audit_records(self, records: Sequence[AuditRecord]) -> int:
        raise NotImplementedError
