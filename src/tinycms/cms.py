"""The TinyCMS operation orchestrator.

Every document operation runs through TinyCMS, which threads access
control, lifecycle hooks, and validation around the storage adapter:

    create:     access(create) -> beforeChange -> validate -> store -> afterChange
    find/count: access(read) -> merge residual filter -> store -> beforeRead
    findById:   access(read) -> store -> beforeRead
    update:     fetch -> access(update) -> beforeChange -> validate(merged) -> store -> afterChange
    delete:     fetch -> access(delete) -> store

Usage:
    cms = await create_cms(Config(collections=[posts]))
    post = await cms.create("posts", {"title": "Hello"}, user=user)
    page = await cms.find("posts", FindOptions(where={"published": True}))
    await cms.shutdown()
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any

from tinycms.access.evaluator import (
    apply_to_where,
    document_permitted,
    evaluate,
    is_denied,
)
from tinycms.access.types import AccessContext, AccessDecision, AllowWithFilter
from tinycms.auth.types import User
from tinycms.config import Config, build_config
from tinycms.core.types import Operation
from tinycms.errors import (
    AccessDeniedError,
    AfterChangeError,
    NotFoundError,
    ValidationFailedError,
)
from tinycms.hooks.service import HookService
from tinycms.hooks.types import Document, HookContext
from tinycms.metadata.loader import CollectionDefinition
from tinycms.persistence.adapter import FindOptions, StorageAdapter
from tinycms.persistence.config import DatabaseConfig, create_adapter
from tinycms.validation.field_constraints import validate_data

logger = logging.getLogger(__name__)


@dataclass
class FindResult:
    """One page of a find() call."""

    docs: list[Document] = field(default_factory=list)
    total_docs: int = 0
    limit: int = 10
    offset: int = 0
    page: int = 1
    total_pages: int = 0
    has_next_page: bool = False
    has_prev_page: bool = False

    @classmethod
    def paginate(cls, docs: list[Document], total_docs: int, limit: int, offset: int) -> "FindResult":
        total_pages = math.ceil(total_docs / limit)
        page = offset // limit + 1
        return cls(
            docs=docs,
            total_docs=total_docs,
            limit=limit,
            offset=offset,
            page=page,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "docs": self.docs,
            "totalDocs": self.total_docs,
            "limit": self.limit,
            "offset": self.offset,
            "page": self.page,
            "totalPages": self.total_pages,
            "hasNextPage": self.has_next_page,
            "hasPrevPage": self.has_prev_page,
        }


class TinyCMS:
    """Runs document operations for a fixed set of collections.

    The config's plugins are applied once, on construction. Call
    ``await init()`` before any operation and ``await shutdown()`` when done.
    """

    def __init__(self, config: Config, hook_service: HookService | None = None):
        self._config = build_config(config)
        self._collections: dict[str, CollectionDefinition] = {
            c.name: c for c in self._config.collections
        }
        self.hooks = hook_service or HookService()
        self.storage: StorageAdapter = (
            create_adapter(self._config.db)
            if isinstance(self._config.db, DatabaseConfig)
            else self._config.db
        )
        self._initialized = False

    @property
    def config(self) -> Config:
        return self._config

    @property
    def initialized(self) -> bool:
        return self._initialized

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def init(self) -> None:
        """Connect storage and set up every collection."""
        if self._initialized:
            return
        self.storage.connect()
        for collection in self._collections.values():
            self.storage.initialize_collection(collection)
        self._initialized = True
        logger.info("TinyCMS initialized with %d collection(s)", len(self._collections))

    async def shutdown(self) -> None:
        """Close storage. The instance can be initialized again afterwards."""
        if not self._initialized:
            return
        self.storage.close()
        self._initialized = False
        logger.info("TinyCMS shut down")

    # =========================================================================
    # Collections
    # =========================================================================

    def get_collection(self, name: str) -> CollectionDefinition:
        """Get a collection by name.

        Raises:
            NotFoundError: If no such collection is configured
        """
        collection = self._collections.get(name)
        if collection is None:
            raise NotFoundError(f"Collection '{name}' not found", collection=name)
        return collection

    def list_collections(self) -> list[str]:
        return list(self._collections.keys())

    # =========================================================================
    # Operations
    # =========================================================================

    async def create(
        self,
        collection_name: str,
        data: dict[str, Any],
        user: User | None = None,
    ) -> Document:
        """Create a document.

        Raises:
            NotFoundError: Unknown collection
            AccessDeniedError: The create rule denied the request
            ValidationFailedError: The (hook-processed) data is invalid
            AfterChangeError: afterChange failed; the document was saved
        """
        collection = self._resolve(collection_name)
        context = HookContext(collection=collection_name, operation=Operation.CREATE, user=user)

        decision = await self._check_access(
            collection, Operation.CREATE, AccessContext(user=user, data=data)
        )
        self._deny_if_needed(decision, Operation.CREATE, collection, user)

        processed = await self.hooks.before_change(collection.hooks, dict(data), context)

        result = validate_data(collection.fields, processed)
        if not result.valid:
            raise ValidationFailedError(result.messages)

        doc = self.storage.create(collection, result.data)
        logger.debug("Created %s/%s", collection_name, doc.get("id"))

        await self._after_change(collection, doc, context)
        return doc

    async def find(
        self,
        collection_name: str,
        options: FindOptions | None = None,
        user: User | None = None,
    ) -> FindResult:
        """Find documents, with the read rule's residual filter ANDed in."""
        collection = self._resolve(collection_name)
        options = options or FindOptions()

        decision = await self._check_access(collection, Operation.FIND, AccessContext(user=user))
        self._deny_if_needed(decision, Operation.FIND, collection, user)

        query = FindOptions(
            where=apply_to_where(decision, options.where),
            order_by=options.order_by,
            limit=options.limit,
            offset=options.offset,
        )
        raw = self.storage.find(collection, query)

        context = HookContext(collection=collection_name, operation=Operation.FIND, user=user)
        docs = await self.hooks.before_read_many(collection.hooks, raw["docs"], context)

        return FindResult.paginate(docs, raw["totalDocs"], query.limit, query.offset)

    async def find_by_id(
        self,
        collection_name: str,
        id: str,
        user: User | None = None,
    ) -> Document | None:
        """Find a single document. Returns None if it doesn't exist."""
        collection = self._resolve(collection_name)

        decision = await self._check_access(
            collection, Operation.FIND_BY_ID, AccessContext(user=user)
        )
        self._deny_if_needed(decision, Operation.FIND_BY_ID, collection, user)

        doc = self.storage.find_by_id(collection, id)
        if doc is None:
            return None

        if not self._residual_permits(decision, doc, Operation.FIND_BY_ID, collection):
            # A hidden document looks exactly like a missing one
            return None

        context = HookContext(
            collection=collection_name, operation=Operation.FIND_BY_ID, user=user
        )
        return await self.hooks.before_read(collection.hooks, doc, context)

    async def update(
        self,
        collection_name: str,
        id: str,
        data: dict[str, Any],
        user: User | None = None,
    ) -> Document:
        """Apply a partial update. The merged document is re-validated.

        Raises:
            NotFoundError: Unknown collection or document
            AccessDeniedError: The update rule denied the request
            ValidationFailedError: The merged document is invalid
            AfterChangeError: afterChange failed; the update was saved
        """
        collection = self._resolve(collection_name)
        existing = self._fetch_existing(collection, id)

        decision = await self._check_access(
            collection, Operation.UPDATE, AccessContext(user=user, data=data, doc=existing)
        )
        self._deny_if_needed(decision, Operation.UPDATE, collection, user)
        if not self._residual_permits(decision, existing, Operation.UPDATE, collection):
            self._deny(Operation.UPDATE, collection, user)

        context = HookContext(
            collection=collection_name,
            operation=Operation.UPDATE,
            user=user,
            original_doc=existing,
        )
        processed = await self.hooks.before_change(collection.hooks, dict(data), context)

        result = validate_data(collection.fields, {**existing, **processed})
        if not result.valid:
            raise ValidationFailedError(result.messages)

        doc = self.storage.update(collection, id, processed)
        logger.debug("Updated %s/%s", collection_name, id)

        await self._after_change(collection, doc, context, previous_doc=existing)
        return doc

    async def delete(
        self,
        collection_name: str,
        id: str,
        user: User | None = None,
    ) -> None:
        """Delete a document. No hooks run on delete.

        Raises:
            NotFoundError: Unknown collection or document
            AccessDeniedError: The delete rule denied the request
        """
        collection = self._resolve(collection_name)
        existing = self._fetch_existing(collection, id)

        decision = await self._check_access(
            collection, Operation.DELETE, AccessContext(user=user, doc=existing)
        )
        self._deny_if_needed(decision, Operation.DELETE, collection, user)
        if not self._residual_permits(decision, existing, Operation.DELETE, collection):
            self._deny(Operation.DELETE, collection, user)

        self.storage.delete(collection, id)
        logger.debug("Deleted %s/%s", collection_name, id)

    async def count(
        self,
        collection_name: str,
        options: FindOptions | None = None,
        user: User | None = None,
    ) -> int:
        """Count documents visible to the user that match the filter."""
        collection = self._resolve(collection_name)
        where = options.where if options else None

        decision = await self._check_access(collection, Operation.COUNT, AccessContext(user=user))
        self._deny_if_needed(decision, Operation.COUNT, collection, user)

        return self.storage.count(collection, apply_to_where(decision, where))

    # =========================================================================
    # Internals
    # =========================================================================

    def _resolve(self, name: str) -> CollectionDefinition:
        if not self._initialized:
            raise RuntimeError("TinyCMS is not initialized; call 'await cms.init()' first")
        return self.get_collection(name)

    def _fetch_existing(self, collection: CollectionDefinition, id: str) -> Document:
        existing = self.storage.find_by_id(collection, id)
        if existing is None:
            raise NotFoundError(
                f"Document '{id}' not found in collection '{collection.name}'",
                collection=collection.name,
                id=id,
            )
        return existing

    async def _check_access(
        self,
        collection: CollectionDefinition,
        operation: Operation,
        context: AccessContext,
    ) -> AccessDecision:
        rule = collection.access.rule_for(operation.access_key)
        return await evaluate(rule, context, operation.access_key)

    def _deny_if_needed(
        self,
        decision: AccessDecision,
        operation: Operation,
        collection: CollectionDefinition,
        user: User | None,
    ) -> None:
        if is_denied(decision):
            self._deny(operation, collection, user)

    def _deny(
        self, operation: Operation, collection: CollectionDefinition, user: User | None
    ) -> None:
        logger.warning(
            "Access denied for %s on %s (user=%s)",
            operation.value,
            collection.name,
            user.id if user else "anonymous",
        )
        raise AccessDeniedError(operation.value, collection.name, authenticated=user is not None)

    def _residual_permits(
        self,
        decision: AccessDecision,
        doc: Document,
        operation: Operation,
        collection: CollectionDefinition,
    ) -> bool:
        """Check a single document against a residual filter.

        Only enforced with ``strict_access``; otherwise the filter is logged
        and the document is allowed.
        """
        if not isinstance(decision, AllowWithFilter):
            return True
        if not self._config.strict_access:
            logger.debug(
                "Residual filter %s not applied to %s on %s/%s (strict_access is off)",
                decision.where,
                operation.value,
                collection.name,
                doc.get("id"),
            )
            return True
        return document_permitted(decision, doc)

    async def _after_change(
        self,
        collection: CollectionDefinition,
        doc: Document,
        context: HookContext,
        previous_doc: Document | None = None,
    ) -> None:
        try:
            await self.hooks.after_change(collection.hooks, doc, context, previous_doc)
        except Exception as e:
            logger.exception(
                "afterChange hook failed for %s/%s after commit", collection.name, doc.get("id")
            )
            raise AfterChangeError(collection.name, doc, e) from e


async def create_cms(config: Config) -> TinyCMS:
    """Build a TinyCMS from config and initialize it."""
    cms = TinyCMS(config)
    await cms.init()
    return cms
