"""Services package."""

from voice_budget.services.gemini import (
    GeminiExtractionService,
    GeminiTranscriptionService,
    MalformedResponseError,
    RemoteServiceError,
    RemoteUnavailableError,
)
from voice_budget.services.storage import (
    ConnectionError,
    GoogleSheetsClient,
    GoogleSheetsSnapshotStore,
    InMemorySnapshotStore,
    JsonFileSnapshotStore,
    PersistenceError,
    SnapshotStoreInterface,
    StorageError,
)

__all__ = [
    # Gemini services
    "GeminiExtractionService",
    "GeminiTranscriptionService",
    "MalformedResponseError",
    "RemoteServiceError",
    "RemoteUnavailableError",
    # Storage services
    "ConnectionError",
    "GoogleSheetsClient",
    "GoogleSheetsSnapshotStore",
    "InMemorySnapshotStore",
    "JsonFileSnapshotStore",
    "PersistenceError",
    "SnapshotStoreInterface",
    "StorageError",
]
