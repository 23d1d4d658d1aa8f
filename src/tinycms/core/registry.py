"""Name -> callable registries.

Collection metadata loaded from YAML refers to hooks and access rules by
name. Each kind of callable gets its own NamedRegistry instance, which must
be populated (usually with its decorator) before metadata is loaded.
"""

import logging
from collections.abc import Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable)


class NamedRegistry(Generic[F]):
    """Registry of named callables of one kind.

    Args:
        kind: Human-readable label used in log and error messages,
            e.g. "Hook" or "Access rule"

    Example:
        hooks = NamedRegistry("Hook")

        @hooks.decorator("slugify")
        def slugify(data, context):
            ...
    """

    def __init__(self, kind: str):
        self.kind = kind
        self._entries: dict[str, F] = {}

    def register(self, name: str, fn: F) -> None:
        """Register a callable by name.

        Idempotent: re-registering a name keeps the first registration.

        Raises:
            TypeError: If ``fn`` is not callable
        """
        if not callable(fn):
            raise TypeError(f"{self.kind} '{name}' must be callable, got {type(fn).__name__}")
        if name in self._entries:
            return
        self._entries[name] = fn
        logger.debug("Registered %s '%s'", self.kind.lower(), name)

    def get(self, name: str) -> F:
        """Get a registered callable.

        Raises:
            ValueError: If nothing is registered under ``name``
        """
        if name not in self._entries:
            raise ValueError(
                f"{self.kind} '{name}' is not registered. "
                f"{self.kind}s must be explicitly registered at application startup."
            )
        return self._entries[name]

    def is_registered(self, name: str) -> bool:
        return name in self._entries

    def list_registered(self) -> list[str]:
        return sorted(self._entries.keys())

    def clear(self) -> None:
        """Clear all registrations. Primarily for testing."""
        self._entries.clear()

    def decorator(self, name: str) -> Callable[[F], F]:
        """Return a decorator that registers the decorated function as ``name``."""

        def register(fn: F) -> F:
            self.register(name, fn)
            return fn

        return register

    def __repr__(self) -> str:
        return f"NamedRegistry({self.kind!r}, {self.list_registered()!r})"
