"""StorageAdapter Protocol: shared interface for all storage adapters."""

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from tinycms.metadata.loader import CollectionDefinition


@dataclass
class FindOptions:
    """Query options for find().

    Attributes:
        where: Where filter (see tinycms.access.where)
        order_by: Field name -> "asc" | "desc", applied in key order
        limit: Page size, at least 1
        offset: Number of documents to skip
    """

    where: dict[str, Any] | None = None
    order_by: dict[str, str] | None = None
    limit: int = 10
    offset: int = 0

    def __post_init__(self) -> None:
        if self.limit < 1:
            raise ValueError(f"limit must be at least 1, got {self.limit}")
        if self.offset < 0:
            raise ValueError(f"offset must not be negative, got {self.offset}")
        for field, direction in (self.order_by or {}).items():
            if direction not in ("asc", "desc"):
                raise ValueError(
                    f"orderBy.{field}: expected 'asc' or 'desc', got {direction!r}"
                )


@runtime_checkable
class StorageAdapter(Protocol):
    """Interface all storage adapters must implement.

    Adapters are synchronous. Failures are raised as StorageError.
    ``find`` returns ``{"docs": [...], "totalDocs": n}`` where ``totalDocs``
    counts every matching document, ignoring limit and offset.
    """

    def connect(self) -> None: ...

    def close(self) -> None: ...

    def initialize_collection(self, collection: CollectionDefinition) -> None: ...

    def create(
        self, collection: CollectionDefinition, data: dict[str, Any]
    ) -> dict[str, Any]: ...

    def find(
        self, collection: CollectionDefinition, options: FindOptions
    ) -> dict[str, Any]: ...

    def find_by_id(
        self, collection: CollectionDefinition, id: str
    ) -> dict[str, Any] | None: ...

    def update(
        self, collection: CollectionDefinition, id: str, data: dict[str, Any]
    ) -> dict[str, Any]: ...

    def delete(self, collection: CollectionDefinition, id: str) -> None: ...

    def count(
        self, collection: CollectionDefinition, where: dict[str, Any] | None = None
    ) -> int: ...
