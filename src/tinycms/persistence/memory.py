"""In-memory storage adapter."""

import copy
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from tinycms.access.where import matches, validate_where
from tinycms.errors import StorageError
from tinycms.metadata.loader import CollectionDefinition
from tinycms.persistence.adapter import FindOptions

logger = logging.getLogger(__name__)


class MemoryAdapter:
    """Dict-backed storage adapter.

    Documents are deep-copied on the way in and out, so callers never hold
    references to stored state.
    """

    def __init__(self) -> None:
        self._store: dict[str, dict[str, dict[str, Any]]] | None = None

    def connect(self) -> None:
        """Prepare the store. Existing data survives reconnects."""
        if self._store is None:
            self._store = {}

    def close(self) -> None:
        """Nothing to release; data stays until the adapter is discarded."""
        pass

    def initialize_collection(self, collection: CollectionDefinition) -> None:
        """Create the collection's document map if it doesn't exist."""
        store = self._require_store()
        store.setdefault(collection.storage_name, {})
        logger.debug("Initialized collection %s", collection.storage_name)

    def create(self, collection: CollectionDefinition, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a new document.

        Returns:
            The stored document with generated id and timestamps
        """
        docs = self._docs(collection)
        doc = copy.deepcopy(data)

        doc_id = doc.get("id") or str(uuid.uuid4())
        if doc_id in docs:
            raise StorageError(f"Document '{doc_id}' already exists in {collection.name}")
        doc["id"] = doc_id

        if collection.timestamps:
            now = self._now()
            doc["createdAt"] = now
            doc["updatedAt"] = now

        self._check_unique(collection, doc)
        docs[doc_id] = doc
        return copy.deepcopy(doc)

    def find(self, collection: CollectionDefinition, options: FindOptions) -> dict[str, Any]:
        """Filter, sort and paginate documents."""
        matching = self._matching(collection, options.where)

        # Sort by the last key first so earlier keys take precedence
        for field, direction in reversed(list((options.order_by or {}).items())):
            matching.sort(
                key=lambda d, f=field: self._sort_key(d.get(f)),
                reverse=direction == "desc",
            )

        page = matching[options.offset:options.offset + options.limit]
        return {
            "docs": [copy.deepcopy(d) for d in page],
            "totalDocs": len(matching),
        }

    def find_by_id(self, collection: CollectionDefinition, id: str) -> dict[str, Any] | None:
        """Fetch a single document by ID."""
        doc = self._docs(collection).get(str(id))
        if doc is None:
            return None
        return copy.deepcopy(doc)

    def update(
        self, collection: CollectionDefinition, id: str, data: dict[str, Any]
    ) -> dict[str, Any]:
        """Write the given keys onto an existing document."""
        docs = self._docs(collection)
        existing = docs.get(str(id))
        if existing is None:
            raise StorageError(f"Document '{id}' not found in {collection.name}")

        # Don't update system fields
        changes = {
            k: copy.deepcopy(v)
            for k, v in data.items()
            if k not in ("id", "createdAt", "updatedAt")
        }
        updated = {**existing, **changes}
        if collection.timestamps:
            updated["updatedAt"] = self._now()

        self._check_unique(collection, updated)
        docs[str(id)] = updated
        return copy.deepcopy(updated)

    def delete(self, collection: CollectionDefinition, id: str) -> None:
        """Delete a document."""
        docs = self._docs(collection)
        if str(id) not in docs:
            raise StorageError(f"Document '{id}' not found in {collection.name}")
        del docs[str(id)]

    def count(self, collection: CollectionDefinition, where: dict[str, Any] | None = None) -> int:
        """Count documents matching a filter."""
        return len(self._matching(collection, where))

    def _require_store(self) -> dict[str, dict[str, dict[str, Any]]]:
        if self._store is None:
            raise RuntimeError("Storage not connected")
        return self._store

    def _docs(self, collection: CollectionDefinition) -> dict[str, dict[str, Any]]:
        store = self._require_store()
        if collection.storage_name not in store:
            raise StorageError(f"Collection '{collection.name}' is not initialized")
        return store[collection.storage_name]

    def _matching(
        self, collection: CollectionDefinition, where: dict[str, Any] | None
    ) -> list[dict[str, Any]]:
        if where:
            try:
                validate_where(where)
            except ValueError as e:
                raise StorageError(f"Invalid filter: {e}") from e
        return [d for d in self._docs(collection).values() if matches(where, d)]

    def _check_unique(self, collection: CollectionDefinition, doc: dict[str, Any]) -> None:
        for field in collection.fields:
            if not field.unique or doc.get(field.name) is None:
                continue
            for other in self._docs(collection).values():
                if other["id"] != doc["id"] and other.get(field.name) == doc[field.name]:
                    raise StorageError(
                        f"Unique constraint violated: {collection.name}.{field.name} "
                        f"= {doc[field.name]!r}"
                    )

    @staticmethod
    def _sort_key(value: Any) -> tuple:
        if value is None:
            return (2, "")
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return (0, value)
        return (1, str(value))

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()
