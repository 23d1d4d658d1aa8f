"""Named hooks, so collection metadata can refer to hooks by string."""

from collections.abc import Callable
from typing import Any

from tinycms.core.registry import NamedRegistry

HookFn = Callable[..., Any]

hook_registry: NamedRegistry[HookFn] = NamedRegistry("Hook")


def hook(name: str) -> Callable[[HookFn], HookFn]:
    """Register a hook function under ``name``.

    Usage:
        @hook("stampAuthor")
        async def stamp_author(data, context):
            ...
    """
    return hook_registry.decorator(name)
