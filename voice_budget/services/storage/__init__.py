"""
Storage Services Package

Provides the snapshot storage interface and its implementations:
a local JSON file (default), Google Sheets, and an in-memory store.
"""

from voice_budget.services.storage.interface import (
    ConnectionError,
    PersistenceError,
    SnapshotStoreInterface,
    StorageError,
)
from voice_budget.services.storage.local import (
    InMemorySnapshotStore,
    JsonFileSnapshotStore,
)
from voice_budget.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsSnapshotStore,
)

__all__ = [
    # Interfaces
    "SnapshotStoreInterface",
    # Exceptions
    "ConnectionError",
    "PersistenceError",
    "StorageError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsSnapshotStore",
    "InMemorySnapshotStore",
    "JsonFileSnapshotStore",
]
