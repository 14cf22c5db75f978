"""In-memory unit of work for testing.

Behaves like a store with auto-increment keys and column defaults, without
touching disk. Failures of either commit path can be injected.
"""

import copy
import threading
from typing import Any, Iterable, Mapping, Optional, Sequence, TypeVar

from packages.audit_capture.models import AuditRecord
from packages.audit_capture.snapshot import EntityState

from .adapter import UnitOfWorkBase
from .models import AUDIT_RECORD_MAPPING, EntityMapping, StoreWriteError
from .tracker import TrackedEntry

T = TypeVar("T")


class InMemoryDatabase:
    """Tables shared by every in-memory unit of work attached to them.

    A unit of work stages its writes on copies and swaps them in on commit,
    so separate units of work see each other's committed rows only.
    """

    def __init__(self, start_ids: Optional[Mapping[str, int]] = None) -> None:
        self.tables: dict[str, dict[tuple, dict[str, Any]]] = {}
        self.next_ids: dict[str, int] = dict(start_ids or {})
        self.lock = threading.Lock()


class InMemoryUnitOfWork(UnitOfWorkBase):
    """Fake unit of work backed by dictionaries.

    Useful for unit tests and development.
    """

    def __init__(
        self,
        mappings: Iterable[EntityMapping] = (),
        start_ids: Optional[Mapping[str, int]] = None,
        database: Optional[InMemoryDatabase] = None,
    ) -> None:
        """Initialize fake store.

        Args:
            mappings: Entity mappings to register
            start_ids: First auto-increment key per entity kind (default 1)
            database: Shared tables to commit into (private tables if None)
        """
        super().__init__(mappings)
        self._db = database or InMemoryDatabase(start_ids)
        self.fail_next_save: Optional[Exception] = None
        self.fail_audit_writes: bool = False
        self.save_count = 0
        self.audit_save_count = 0

    def rows(self, entity_type: type) -> list[dict[str, Any]]:
        """Get copies of the stored rows of an entity type."""
        mapping = self.mapping_for(entity_type)
        return copy.deepcopy(list(self._db.tables.get(mapping.entity_kind, {}).values()))

    def get(self, entity_type: type[T], *key: Any) -> Optional[T]:
        mapping = self.mapping_for(entity_type)
        tracked = self._tracked(mapping, key)
        if tracked is not None:
            return tracked.entity

        row = self._db.tables.get(mapping.entity_kind, {}).get(key)
        if row is None:
            return None

        entity = mapping.entity_type.model_validate(copy.deepcopy(row))
        self.attach(entity)
        return entity

    def list_audit_records(self) -> list[AuditRecord]:
        table = self._db.tables.get(AUDIT_RECORD_MAPPING.entity_kind, {})
        return [AuditRecord.model_validate(row) for row in table.values()]

    def _write(self, entries: list[TrackedEntry]) -> int:
        if self.fail_next_save is not None:
            error, self.fail_next_save = self.fail_next_save, None
            raise error

        # stage on copies so a failure leaves the tables untouched
        with self._db.lock:
            tables = {kind: dict(rows) for kind, rows in self._db.tables.items()}
            next_ids = dict(self._db.next_ids)
            assigned: list[tuple[Any, str, Any]] = []

            for entry in entries:
                mapping = entry.mapping
                table = tables.setdefault(mapping.entity_kind, {})
                state = entry.state

                if state is EntityState.ADDED:
                    values = {name: entry.current_value(name) for name in mapping.field_names}
                    for name in mapping.field_names:
                        if not entry.is_generated_pending(name):
                            continue
                        if name == mapping.generated_key:
                            value = next_ids.get(mapping.entity_kind, 1)
                            next_ids[mapping.entity_kind] = value + 1
                        elif name in mapping.server_defaults:
                            value = mapping.server_defaults[name]()
                        else:
                            continue
                        values[name] = value
                        assigned.append((entry.entity, name, value))

                    key = tuple(values[name] for name in mapping.key_fields)
                    if key in table:
                        raise StoreWriteError(f"Duplicate key for {mapping.entity_kind}: {key}")
                    generated_key = mapping.generated_key
                    if generated_key and isinstance(values[generated_key], int):
                        next_ids[mapping.entity_kind] = max(
                            next_ids.get(mapping.entity_kind, 1), values[generated_key] + 1
                        )
                    table[key] = copy.deepcopy(values)

                elif state is EntityState.MODIFIED:
                    key = entry.original_key()
                    if key not in table:
                        raise StoreWriteError(f"{mapping.entity_kind} {key} no longer exists")
                    row = dict(table[key])
                    for name in entry.modified_fields():
                        row[name] = copy.deepcopy(entry.current_value(name))
                    del table[key]
                    table[tuple(row[name] for name in mapping.key_fields)] = row

                elif state is EntityState.DELETED:
                    key = entry.original_key()
                    if key not in table:
                        raise StoreWriteError(f"{mapping.entity_kind} {key} no longer exists")
                    del table[key]

            self._db.tables = tables
            self._db.next_ids = next_ids

        for entity, name, value in assigned:
            setattr(entity, name, value)

        self.save_count += 1
        return len(entries)

    def _write_audit_records(self, records: Sequence[AuditRecord]) -> int:
        if self.fail_audit_writes:
            raise StoreWriteError("Audit table is unavailable")

        with self._db.lock:
            table = self._db.tables.setdefault(AUDIT_RECORD_MAPPING.entity_kind, {})
            for record in records:
                table[(record.id,)] = record.model_dump()

        self.audit_save_count += 1
        return len(records)
