"""Unit of work package.

This package provides the change-tracking store interface, its SQLite and
in-memory implementations, and the audited commit wrapper.
"""

from .adapter import UnitOfWork, UnitOfWorkBase
from .audited import AuditedUnitOfWork
from .fake import InMemoryDatabase, InMemoryUnitOfWork
from .models import AUDIT_RECORD_MAPPING, EntityMapping, StoreWriteError
from .sqlite import SqliteUnitOfWork
from .tracker import ChangeTracker, TrackedEntry

__all__ = [
    "AUDIT_RECORD_MAPPING",
    "AuditedUnitOfWork",
    "ChangeTracker",
    "EntityMapping",
    "InMemoryDatabase",
    "InMemoryUnitOfWork",
    "SqliteUnitOfWork",
    "StoreWriteError",
    "TrackedEntry",
    "UnitOfWork",
    "UnitOfWorkBase",
]
