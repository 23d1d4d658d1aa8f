"""JSON-file storage adapter."""

import json
import logging
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Any

from tinycms.errors import StorageError
from tinycms.metadata.loader import CollectionDefinition
from tinycms.persistence.memory import MemoryAdapter

logger = logging.getLogger(__name__)


def _json_default(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class JSONFileAdapter(MemoryAdapter):
    """MemoryAdapter persisted to a single JSON file.

    The file is read on connect and rewritten atomically after every write.
    File layout: ``{"<storage name>": {"<id>": {...document...}}}``.
    """

    def __init__(self, path: Path | str):
        super().__init__()
        self.path = Path(path)

    def connect(self) -> None:
        """Load the file, or start empty if it doesn't exist yet."""
        if not self.path.exists():
            self._store = {}
            return

        try:
            with self.path.open() as fh:
                self._store = json.load(fh)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to load {self.path}: {e}") from e
        logger.info("Loaded %d collection(s) from %s", len(self._store), self.path)

    def initialize_collection(self, collection: CollectionDefinition) -> None:
        with self._transaction(collection):
            super().initialize_collection(collection)

    def create(self, collection: CollectionDefinition, data: dict[str, Any]) -> dict[str, Any]:
        with self._transaction(collection):
            return super().create(collection, data)

    def update(
        self, collection: CollectionDefinition, id: str, data: dict[str, Any]
    ) -> dict[str, Any]:
        with self._transaction(collection):
            return super().update(collection, id, data)

    def delete(self, collection: CollectionDefinition, id: str) -> None:
        with self._transaction(collection):
            super().delete(collection, id)

    @contextmanager
    def _transaction(self, collection: CollectionDefinition) -> Iterator[None]:
        """Apply an in-memory write, then flush it; undo the write if either fails.

        Documents are replaced on write, never mutated in place, so a
        shallow copy of the collection's id map is a complete snapshot.
        """
        store = self._require_store()
        name = collection.storage_name
        snapshot = dict(store[name]) if name in store else None
        try:
            yield
            self._flush()
        except StorageError:
            if snapshot is None:
                store.pop(name, None)
            else:
                store[name] = snapshot
            raise

    def _flush(self) -> None:
        """Write the store to a temp file, then swap it into place."""
        store = self._require_store()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w") as fh:
                json.dump(store, fh, indent=2, default=_json_default)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError) as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StorageError(f"Failed to write {self.path}: {e}") from e
