"""Read-only view of a store's pending mutations.

The scanner and reconciler only depend on these protocols, never on a
concrete store, so any change tracker exposing this capability set can be
audited.
"""

from enum import Enum
from typing import Any, Iterable, Protocol


class EntityState(str, Enum):
    """Lifecycle state of a tracked entity instance."""

    ADDED = "Added"
    MODIFIED = "Modified"
    DELETED = "Deleted"
    UNCHANGED = "Unchanged"
    DETACHED = "Detached"


class TrackedMutation(Protocol):
    """One entity instance plus its pending change, as seen by the store."""

    @property
    def entity(self) -> Any:
        ...

    @property
    def entity_kind(self) -> str:
        """Logical type name of the entity."""
        ...

    @property
    def state(self) -> EntityState:
        ...

    @property
    def key_fields(self) -> tuple[str, ...]:
        """Names of the identity-key fields."""
        ...

    @property
    def field_names(self) -> tuple[str, ...]:
        """All persisted field names, in declaration order."""
        ...

    def original_value(self, name: str) -> Any:
        """Value of a field as last loaded from or written to the store."""
        ...

    def current_value(self, name: str) -> Any:
        """Value of a field as currently held by the entity."""
        ...

    def is_modified(self, name: str) -> bool:
        """Whether the field is dirty and will be written."""
        ...

    def is_generated_pending(self, name: str) -> bool:
        """Whether the field's final value will only be known after the write."""
        ...


class MutationSnapshot(Protocol):
    """Enumerable view over every mutation tracked by a unit of work."""

    def mutations(self) -> Iterable[TrackedMutation]:
        ...
