"""
Local snapshot stores: a JSON file on disk, and an in-memory store.
"""

import os
import tempfile
import threading
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from voice_budget.models.ledger import LedgerSnapshot
from voice_budget.services.storage.interface import (
    PersistenceError,
    SnapshotStoreInterface,
)


class JsonFileSnapshotStore(SnapshotStoreInterface):
    """
    Stores the snapshot as a single JSON document.

    Writes go to a temp file in the same directory and are then renamed
    over the target, so a crash mid-write never leaves a truncated file.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[LedgerSnapshot]:
        if not self._path.exists():
            return None
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Could not read snapshot {self._path}: {e}") from e
        if not raw.strip():
            return None
        try:
            return LedgerSnapshot.from_json(raw)
        except ValidationError as e:
            raise PersistenceError(f"Snapshot {self._path} is corrupt: {e}") from e

    def save(self, snapshot: LedgerSnapshot) -> None:
        payload = snapshot.to_json()
        tmp_name = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                dir=self._path.parent,
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self._path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(f"Could not write snapshot {self._path}: {e}") from e


class InMemorySnapshotStore(SnapshotStoreInterface):
    """
    Keeps the last snapshot in memory (as JSON, so saved data is detached
    from the live ledger). Used by tests and offline demos.
    """

    def __init__(self, initial: Optional[LedgerSnapshot] = None):
        self._lock = threading.Lock()
        self._raw: Optional[str] = initial.to_json() if initial is not None else None
        self.save_count = 0

    def load(self) -> Optional[LedgerSnapshot]:
        with self._lock:
            raw = self._raw
        return LedgerSnapshot.from_json(raw) if raw is not None else None

    def save(self, snapshot: LedgerSnapshot) -> None:
        raw = snapshot.to_json()
        with self._lock:
            self._raw = raw
            self.save_count += 1
