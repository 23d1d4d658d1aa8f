"""Hook system types for TinyCMS.

Defines the data structures for the collection lifecycle hooks:
- HookContext: runtime state passed to hook functions
- CollectionHooks: the three hook slots of a collection
- chain_hooks: composes two hooks into one slot
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Union

from tinycms.auth.types import User
from tinycms.core.awaitables import maybe_await
from tinycms.core.types import Operation


@dataclass(frozen=True)
class HookContext:
    """Runtime context passed to every hook function.

    Attributes:
        collection: Name of the collection being operated on
        operation: The current operation (create, update, find, findById)
        user: The acting user (None when anonymous)
        original_doc: Document before the change (update only)
    """

    collection: str
    operation: Operation
    user: User | None = None
    original_doc: dict[str, Any] | None = None


Document = dict[str, Any]

# Hooks may be plain functions or coroutines; both are awaited uniformly.
BeforeChangeHook = Callable[..., Union[Document, Awaitable[Document]]]
AfterChangeHook = Callable[..., Union[None, Awaitable[None]]]
BeforeReadHook = Callable[..., Union[Document, Awaitable[Document]]]


@dataclass(frozen=True)
class CollectionHooks:
    """Lifecycle hooks for a collection. One function per slot.

    Signatures (keyword arguments):
        before_change(data, context) -> data
        after_change(doc, context, previous_doc) -> None
        before_read(doc, context) -> doc
    """

    before_change: BeforeChangeHook | None = None
    after_change: AfterChangeHook | None = None
    before_read: BeforeReadHook | None = None


def chain_hooks(first: Callable | None, second: Callable, *, passes_value: str | None = None) -> Callable:
    """Compose two hooks into a single slot.

    For value-returning hooks (before_change/before_read) pass the name of
    the keyword that carries the value (``"data"`` or ``"doc"``); the
    output of ``first`` is fed into ``second``. Without ``passes_value`` both
    hooks are called with the same arguments and the result is ignored.
    """
    if first is None:
        return second

    async def chained(**kwargs: Any) -> Any:
        result = await maybe_await(first(**kwargs))
        if passes_value is not None:
            kwargs[passes_value] = result
        return await maybe_await(second(**kwargs))

    return chained
