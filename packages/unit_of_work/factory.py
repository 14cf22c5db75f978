"""
Unit of work factory for selecting the store implementation.

Provides selection between the SQLite store and the in-memory fake based on
configuration.
"""

from typing import Iterable, Optional

from packages.audit_capture.config import AuditCaptureConfig, get_audit_config
from packages.structured_logging import get_logger
from packages.unit_of_work.adapter import UnitOfWorkBase
from packages.unit_of_work.fake import InMemoryDatabase, InMemoryUnitOfWork
from packages.unit_of_work.models import EntityMapping
from packages.unit_of_work.sqlite import SqliteUnitOfWork


logger = get_logger(__name__)


class StoreBackend:
    """Store backend constants."""
    SQLITE = "sqlite"
    MEMORY = "memory"


def create_unit_of_work(
    backend: str = "sqlite",
    mappings: Iterable[EntityMapping] = (),
    db_path: Optional[str] = None,
    config: Optional[AuditCaptureConfig] = None,
    database: Optional[InMemoryDatabase] = None,
) -> UnitOfWorkBase:
    """
    Create unit of work instance.

    Args:
        backend: Store backend ("sqlite" or "memory")
        mappings: Entity mappings to register
        db_path: SQLite database file (uses config if None)
        config: Audit capture configuration (uses global if None)
        database: Shared tables for the memory backend

    Returns:
        Unit of work instance

    Raises:
        ValueError: If backend is invalid
    """
    if backend == StoreBackend.MEMORY:
        logger.debug("unit_of_work_created", backend="memory")
        return InMemoryUnitOfWork(mappings, database=database)

    if backend == StoreBackend.SQLITE:
        config = config or get_audit_config()
        path = db_path or config.db_path
        logger.debug("unit_of_work_created", backend="sqlite", db_path=path)
        return SqliteUnitOfWork(path, mappings)

    raise ValueError(f"Invalid backend: {backend}. Use 'sqlite' or 'memory'")


def get_unit_of_work(
    mappings: Iterable[EntityMapping] = (),
    config: Optional[AuditCaptureConfig] = None,
) -> UnitOfWorkBase:
    """
    Get unit of work with environment variable support.

    Uses AUDIT_STORE_BACKEND / AUDIT_DB_PATH through the audit configuration.

    Args:
        mappings: Entity mappings to register
        config: Audit capture configuration (uses global if None)

    Returns:
        Unit of work instance
    """
    config = config or get_audit_config()

    return create_unit_of_work(
        backend=config.store_backend,
        mappings=mappings,
        db_path=config.db_path,
        config=config,
    )
