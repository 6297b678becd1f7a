"""
Abstract Snapshot Storage Interface

The ledger is persisted as one opaque snapshot: written wholesale after
every mutation, read once at startup. There is no schema versioning and
no partial write.

Keeping this behind an interface lets us:
1. Use a local JSON file by default
2. Mirror the ledger into Google Sheets for users who want to see it there
3. Use in-memory storage for testing
"""

from abc import ABC, abstractmethod
from typing import Optional

from voice_budget.models.ledger import LedgerSnapshot


class SnapshotStoreInterface(ABC):
    """
    Abstract interface for ledger snapshot storage.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def load(self) -> Optional[LedgerSnapshot]:
        """
        Read the stored snapshot.

        Returns:
            The snapshot, or None if nothing has been stored yet

        Raises:
            PersistenceError: If stored data exists but cannot be read
        """
        pass

    @abstractmethod
    def save(self, snapshot: LedgerSnapshot) -> None:
        """
        Replace the stored snapshot.

        Args:
            snapshot: The complete ledger to persist

        Raises:
            PersistenceError: If the write fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class PersistenceError(StorageError):
    """A snapshot could not be written or read back."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
