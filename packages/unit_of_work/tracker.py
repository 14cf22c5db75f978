"""Change tracker.

Keeps every entity instance a unit of work knows about together with a deep
copy of its original field values. Whether an unchanged entity has become
modified is derived on demand by structural comparison, so reading the
tracker never changes it.
"""

import copy
from typing import Any, Iterator, Optional

from packages.audit_capture import codec
from packages.audit_capture.snapshot import EntityState

from .models import EntityMapping


class TrackedEntry:
    """Tracking record for one entity instance."""

    def __init__(self, entity: Any, mapping: EntityMapping, state: EntityState) -> None:
        self.entity = entity
        self.mapping = mapping
        self._state = state
        self._marked: set[str] = set()
        self._original = self._snapshot()

    def __repr__(self) -> str:
        return f"TrackedEntry({self.entity_kind}, state={self.state.value})"

    @property
    def entity_kind(self) -> str:
        return self.mapping.entity_kind

    @property
    def key_fields(self) -> tuple[str, ...]:
        return self.mapping.key_fields

    @property
    def field_names(self) -> tuple[str, ...]:
        return self.mapping.field_names

    @property
    def state(self) -> EntityState:
        if self._state is EntityState.UNCHANGED and self.modified_fields():
            return EntityState.MODIFIED
        return self._state

    def original_value(self, name: str) -> Any:
        return copy.deepcopy(self._original[name])

    def current_value(self, name: str) -> Any:
        return getattr(self.entity, name)

    def is_modified(self, name: str) -> bool:
        if self._state is not EntityState.UNCHANGED:
            return False
        if name in self._marked:
            return True
        return not codec.equal(self._original[name], getattr(self.entity, name))

    def is_generated_pending(self, name: str) -> bool:
        return (
            self._state is EntityState.ADDED
            and name in self.mapping.generated_fields
            and getattr(self.entity, name) is None
        )

    def modified_fields(self) -> list[str]:
        return [name for name in self.field_names if self.is_modified(name)]

    def original_key(self) -> tuple:
        return tuple(self._original[name] for name in self.key_fields)

    def mark_modified(self, name: str) -> None:
        if name not in self.field_names:
            raise ValueError(f"{self.entity_kind} has no field {name!r}")
        self._marked.add(name)

    def set_state(self, state: EntityState) -> None:
        self._state = state

    def accept(self) -> None:
        """Make current values the new originals."""
        self._state = EntityState.UNCHANGED
        self._marked.clear()
        self._original = self._snapshot()

    def _snapshot(self) -> dict[str, Any]:
        return {
            name: copy.deepcopy(getattr(self.entity, name))
            for name in self.field_names
        }


class ChangeTracker:
    """Tracks entity instances of a single unit of work.

    Implements the read-only mutation snapshot consumed by the change
    scanner through ``mutations()``.
    """

    def __init__(self) -> None:
        self._entries: dict[int, TrackedEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def is_tracked(self, entity: Any) -> bool:
        return id(entity) in self._entries

    def entry(self, entity: Any) -> Optional[TrackedEntry]:
        return self._entries.get(id(entity))

    def add(self, entity: Any, mapping: EntityMapping) -> TrackedEntry:
        """Start tracking a new entity to be inserted.

        Raises:
            ValueError: If the instance is already tracked
        """
        if self.is_tracked(entity):
            raise ValueError(f"{mapping.entity_kind} instance is already tracked")
        entry = TrackedEntry(entity, mapping, EntityState.ADDED)
        self._entries[id(entity)] = entry
        return entry

    def attach(self, entity: Any, mapping: EntityMapping) -> TrackedEntry:
        """Start tracking an entity that already exists in the store."""
        existing = self.entry(entity)
        if existing is not None:
            return existing
        entry = TrackedEntry(entity, mapping, EntityState.UNCHANGED)
        self._entries[id(entity)] = entry
        return entry

    def remove(self, entity: Any) -> None:
        """Mark an entity for deletion.

        Removing an entity that was only added drops it without a write.

        Raises:
            ValueError: If the instance is not tracked
        """
        entry = self.entry(entity)
        if entry is None:
            raise ValueError("Entity instance is not tracked")
        if entry.state is EntityState.ADDED:
            self.detach(entity)
        else:
            entry.set_state(EntityState.DELETED)

    def detach(self, entity: Any) -> None:
        entry = self._entries.pop(id(entity), None)
        if entry is not None:
            entry.set_state(EntityState.DETACHED)

    def mark_modified(self, entity: Any, name: str) -> None:
        entry = self.entry(entity)
        if entry is None:
            raise ValueError("Entity instance is not tracked")
        entry.mark_modified(name)

    def find(self, mapping: EntityMapping, key: tuple) -> Optional[TrackedEntry]:
        for entry in self._entries.values():
            if entry.mapping is mapping and entry.original_key() == key:
                return entry
        return None

    def mutations(self) -> Iterator[TrackedEntry]:
        return iter(list(self._entries.values()))

    def pending(self) -> list[TrackedEntry]:
        """Entries with a write outstanding, in tracking order."""
        return [
            entry for entry in self._entries.values()
            if entry.state in (EntityState.ADDED, EntityState.MODIFIED, EntityState.DELETED)
        ]

    def accept_changes(self) -> None:
        """Reset tracking after a successful write."""
        for entry in list(self._entries.values()):
            if entry.state is EntityState.DELETED:
                self.detach(entry.entity)
            else:
                entry.accept()
