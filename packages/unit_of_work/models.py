"""Entity mappings for the unit of work.

A mapping tells the store how an entity type is persisted: its table, its
identity key, which fields the store generates and which fields hold
composite values stored as JSON.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from pydantic import BaseModel

from packages.audit_capture.models import AuditRecord


class StoreWriteError(Exception):
    """Raised when the store cannot apply a commit."""
    pass


@dataclass(frozen=True)
class EntityMapping:
    """Persistence metadata for one entity type.

    Attributes:
        entity_type: Pydantic model class of the entity
        table: Table (or collection) name
        key_fields: Identity-key field names
        generated_fields: Fields assigned by the store on insert when left as None
        json_fields: Composite fields serialized as JSON by the SQLite store
        server_defaults: Factories the in-memory store uses for generated non-key fields
        ddl: CREATE TABLE statement run by the SQLite store
    """

    entity_type: type[BaseModel]
    table: str
    key_fields: tuple[str, ...] = ("id",)
    generated_fields: tuple[str, ...] = ()
    json_fields: tuple[str, ...] = ()
    server_defaults: Mapping[str, Callable[[], Any]] = field(default_factory=dict)
    ddl: Optional[str] = None

    @property
    def entity_kind(self) -> str:
        return self.entity_type.__name__

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(self.entity_type.model_fields)

    @property
    def generated_key(self) -> Optional[str]:
        """Single store-generated key field, if the key is auto-assigned."""
        for name in self.key_fields:
            if name in self.generated_fields:
                return name
        return None

    def key_of(self, entity: Any) -> tuple:
        return tuple(getattr(entity, name) for name in self.key_fields)


AUDIT_RECORD_MAPPING = EntityMapping(
    entity_type=AuditRecord,
    table="audit_records",
    key_fields=("id",),
    json_fields=("key_values", "old_values", "new_values", "changed_fields"),
    ddl="""
        CREATE TABLE IF NOT EXISTS audit_records (
            id TEXT PRIMARY KEY,
            entity_kind TEXT NOT NULL,
            operation_kind TEXT NOT NULL,
            key_values TEXT NOT NULL,
            old_values TEXT NOT NULL,
            new_values TEXT NOT NULL,
            changed_fields TEXT NOT NULL,
            actor_id TEXT,
            method TEXT,
            timestamp TEXT NOT NULL
        )
    """,
)
