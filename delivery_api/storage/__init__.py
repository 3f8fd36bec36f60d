"""
Storage Package for the BebCom Delivery API
===========================================

Interchangeable implementations of the availability store contract:

- **memory.py**: MemoryAvailabilityStore, dicts in the process (demo/tests)
- **file.py**: JsonFileAvailabilityStore, a single JSON document on disk
- **database.py**: SqlAvailabilityStore, one row per key through SQLAlchemy

Use build_store() to construct the backend selected by configuration:

    from delivery_api.storage import build_store

    store = build_store("file", data_file="data.json")
"""

import logging

from .base import (
    AvailabilityKind,
    AvailabilityStore,
    StoreConnectionError,
    StoreError,
    StoreTimeoutError,
)
from .database import SqlAvailabilityStore
from .file import JsonFileAvailabilityStore
from .memory import MemoryAvailabilityStore

logger = logging.getLogger(__name__)


def build_store(
    backend: str,
    data_file: str = None,
    database_url: str = None,
    connect_timeout: float = None,
) -> AvailabilityStore:
    """
    Create the availability store for ``backend``.

    Raises:
        ValueError: If the backend name is unknown or its required setting
                    (data file path, database URL) is missing.
    """
    backend = (backend or "").lower()

    if backend == "memory":
        store = MemoryAvailabilityStore()
    elif backend == "file":
        if not data_file:
            raise ValueError("DATA_FILE is required for the file storage backend")
        store = JsonFileAvailabilityStore(data_file)
    elif backend == "database":
        if not database_url:
            raise ValueError("DATABASE_URL is required for the database storage backend")
        store = SqlAvailabilityStore(database_url, connect_timeout=connect_timeout)
    else:
        raise ValueError(f"Unknown storage backend: {backend!r}")

    logger.info("Using %s availability store", store.backend_name)
    return store


__all__ = [
    "AvailabilityKind",
    "AvailabilityStore",
    "StoreError",
    "StoreConnectionError",
    "StoreTimeoutError",
    "MemoryAvailabilityStore",
    "JsonFileAvailabilityStore",
    "SqlAvailabilityStore",
    "build_store",
]
