"""TinyCMS hook system.

Collection lifecycle hooks run around writes and reads:
- beforeChange: transform the payload before validation (create/update)
- afterChange: react to a committed write (create/update)
- beforeRead: transform each document before it is returned

Usage:
    from tinycms.hooks import hook, CollectionHooks

    @hook("slugify")
    def slugify(data, context):
        return {**data, "slug": data["title"].lower().replace(" ", "-")}

    hooks = CollectionHooks(before_change=slugify)
"""

from tinycms.hooks.registry import hook, hook_registry
from tinycms.hooks.service import HookService
from tinycms.hooks.types import (
    CollectionHooks,
    Document,
    HookContext,
    chain_hooks,
)

__all__ = [
    "CollectionHooks",
    "Document",
    "HookContext",
    "HookService",
    "chain_hooks",
    "hook",
    "hook_registry",
]
