"""
Unit of work implementation using SQLite.

Each ``save_changes`` call runs in a single transaction on a fresh
connection. Store-generated values are read back inside the transaction and
applied to the entities only after it commits.
"""

import json
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional, Sequence, TypeVar
from uuid import UUID

from packages.audit_capture.codec import to_jsonable
from packages.audit_capture.models import AuditRecord
from packages.audit_capture.snapshot import EntityState

from .adapter import UnitOfWorkBase
from .models import AUDIT_RECORD_MAPPING, EntityMapping, StoreWriteError
from .tracker import TrackedEntry

T = TypeVar("T")


class SqliteUnitOfWork(UnitOfWorkBase):
    """
    Unit of work over a SQLite database.

    Entity tables are created from each mapping's DDL. Audit records live in
    the ``audit_records`` table and are only ever inserted.
    """

    def __init__(
        self,
        db_path: str | Path = "data/app.db",
        mappings: Iterable[EntityMapping] = (),
    ) -> None:
        """
        Initialize unit of work.

        Args:
            db_path: Path to SQLite database file
            mappings: Entity mappings to register
        """
        super().__init__(mappings)
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self) -> None:
        """Create database schema if it doesn't exist."""
        with self._get_connection() as conn:
            for mapping in self._mappings.values():
                if mapping.ddl:
                    conn.execute(mapping.ddl)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_audit_entity_kind
                ON audit_records(entity_kind)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_audit_timestamp
                ON audit_records(timestamp)
            """)

            conn.commit()

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Get database connection with proper error handling."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
        finally:
            conn.close()

    def get(self, entity_type: type[T], *key: Any) -> Optional[T]:
        mapping = self.mapping_for(entity_type)
        tracked = self._tracked(mapping, key)
        if tracked is not None:
            return tracked.entity

        where = " AND ".join(f"{name} = ?" for name in mapping.key_fields)
        with self._get_connection() as conn:
            row = conn.execute(
                f"SELECT * FROM {mapping.table} WHERE {where}",
                [self._to_db(mapping, name, value) for name, value in zip(mapping.key_fields, key)],
            ).fetchone()

        if not row:
            return None

        entity = self._row_to_entity(mapping, row)
        self.attach(entity)
        return entity

    def list_audit_records(self) -> list[AuditRecord]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM audit_records ORDER BY timestamp, rowid"
            ).fetchall()
            return [self._row_to_entity(AUDIT_RECORD_MAPPING, row) for row in rows]

    def _write(self, entries: list[TrackedEntry]) -> int:
        assigned: list[tuple[Any, str, Any]] = []

        with self._get_connection() as conn:
            try:
                for entry in entries:
                    state = entry.state
                    if state is EntityState.ADDED:
                        assigned.extend(self._insert(conn, entry))
                    elif state is EntityState.MODIFIED:
                        self._update(conn, entry)
                    elif state is EntityState.DELETED:
                        self._delete(conn, entry)
                conn.commit()
            except Exception:
                conn.rollback()
                raise

        for entity, name, value in assigned:
            setattr(entity, name, value)

        return len(entries)

    def _write_audit_records(self, records: Sequence[AuditRecord]) -> int:
        mapping = AUDIT_RECORD_MAPPING
        columns = mapping.field_names
        sql = (
            f"INSERT INTO {mapping.table} ({', '.join(columns)}) "
            f"VALUES ({', '.join('?' * len(columns))})"
        )

        with self._get_connection() as conn:
            try:
                conn.executemany(
                    sql,
                    [
                        [self._to_db(mapping, name, getattr(record, name)) for name in columns]
                        for record in records
                    ],
                )
                conn.commit()
            except Exception:
                conn.rollback()
                raise

        return len(records)

    def _insert(
        self, conn: sqlite3.Connection, entry: TrackedEntry
    ) -> list[tuple[Any, str, Any]]:
        mapping = entry.mapping
        columns = [name for name in mapping.field_names if not entry.is_generated_pending(name)]
        pending = [name for name in mapping.field_names if entry.is_generated_pending(name)]

        if columns:
            cursor = conn.execute(
                f"INSERT INTO {mapping.table} ({', '.join(columns)}) "
                f"VALUES ({', '.join('?' * len(columns))})",
                [self._to_db(mapping, name, entry.current_value(name)) for name in columns],
            )
        else:
            cursor = conn.execute(f"INSERT INTO {mapping.table} DEFAULT VALUES")

        assigned = []
        if pending:
            row = conn.execute(
                f"SELECT {', '.join(pending)} FROM {mapping.table} WHERE rowid = ?",
                (cursor.lastrowid,),
            ).fetchone()
            for name in pending:
                assigned.append((entry.entity, name, self._from_db(mapping, name, row[name])))
        return assigned

    def _update(self, conn: sqlite3.Connection, entry: TrackedEntry) -> None:
        mapping = entry.mapping
        modified = entry.modified_fields()
        assignments = ", ".join(f"{name} = ?" for name in modified)
        where = " AND ".join(f"{name} = ?" for name in mapping.key_fields)

        cursor = conn.execute(
            f"UPDATE {mapping.table} SET {assignments} WHERE {where}",
            [self._to_db(mapping, name, entry.current_value(name)) for name in modified]
            + [self._to_db(mapping, name, value) for name, value in zip(mapping.key_fields, entry.original_key())],
        )
        if cursor.rowcount == 0:
            raise StoreWriteError(f"{mapping.entity_kind} {entry.original_key()} no longer exists")

    def _delete(self, conn: sqlite3.Connection, entry: TrackedEntry) -> None:
        mapping = entry.mapping
        where = " AND ".join(f"{name} = ?" for name in mapping.key_fields)

        cursor = conn.execute(
            f"DELETE FROM {mapping.table} WHERE {where}",
            [self._to_db(mapping, name, value) for name, value in zip(mapping.key_fields, entry.original_key())],
        )
        if cursor.rowcount == 0:
            raise StoreWriteError(f"{mapping.entity_kind} {entry.original_key()} no longer exists")

    def _to_db(self, mapping: EntityMapping, name: str, value: Any) -> Any:
        """Convert a field value to a SQLite parameter."""
        if value is None:
            return None
        if name in mapping.json_fields:
            return json.dumps(to_jsonable(value))
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, (UUID, Decimal)):
            return str(value)
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        return value

    def _from_db(self, mapping: EntityMapping, name: str, value: Any) -> Any:
        if value is not None and name in mapping.json_fields:
            return json.loads(value)
        return value

    def _row_to_entity(self, mapping: EntityMapping, row: sqlite3.Row) -> Any:
        """Convert database row to an entity instance."""
        data = {
            name: self._from_db(mapping, name, row[name])
            for name in row.keys()
            if name in mapping.entity_type.model_fields
        }
        return mapping.entity_type.model_validate(data)
