"""Audit-log plugin.

Wraps the afterChange hook of the selected collections to record every
committed create/update, and exposes the recent entries over HTTP.

Usage:
    audit = AuditLogPlugin(collections=["posts"])
    config = Config(collections=[posts], plugins=[audit])
    ...
    register_plugin_routes(app, config.plugins)  # GET /api/audit
"""

import logging
from collections import deque
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, FastAPI, Query

from tinycms.config import Config
from tinycms.hooks.types import HookContext, chain_hooks

logger = logging.getLogger(__name__)


class AuditLogPlugin:
    """Records committed writes for the given collections (all when None)."""

    def __init__(self, collections: Iterable[str] | None = None, max_entries: int = 100):
        self.collections = set(collections) if collections is not None else None
        self.entries: deque[dict[str, Any]] = deque(maxlen=max_entries)

    def __call__(self, config: Config) -> Config:
        result = config
        for collection in config.collections:
            if self.collections is not None and collection.name not in self.collections:
                continue
            hooks = replace(
                collection.hooks,
                after_change=chain_hooks(collection.hooks.after_change, self.record),
            )
            result = result.replace_collection(replace(collection, hooks=hooks))
        return result

    def record(
        self,
        doc: dict[str, Any],
        context: HookContext,
        previous_doc: dict[str, Any] | None = None,
    ) -> None:
        entry = {
            "collection": context.collection,
            "operation": context.operation.value,
            "id": doc.get("id"),
            "userId": context.user.id if context.user else None,
            "at": datetime.now(timezone.utc).isoformat(),
        }
        self.entries.append(entry)
        logger.info(
            "[audit] %s %s/%s by %s",
            entry["operation"],
            entry["collection"],
            entry["id"],
            entry["userId"] or "anonymous",
        )

    def register_routes(self, app: FastAPI, prefix: str = "/api") -> None:
        router = APIRouter()

        @router.get("/audit")
        async def list_audit_entries(limit: int = Query(20, ge=1)):
            return {"entries": list(self.entries)[-limit:]}

        app.include_router(router, prefix=prefix)
