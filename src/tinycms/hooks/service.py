"""Hook execution service for TinyCMS.

Runs the collection's hook for each lifecycle point. Hooks may be sync or
async; both are awaited. Exceptions raised by hooks propagate unchanged.
"""

import logging
from typing import Any

from tinycms.core.awaitables import maybe_await
from tinycms.errors import HookError
from tinycms.hooks.types import CollectionHooks, Document, HookContext

logger = logging.getLogger(__name__)


class HookService:
    """Runs collection lifecycle hooks.

    - before_change: transforms the write payload before validation
    - after_change: observes the committed document; its return is ignored
    - before_read: transforms each document before it is returned
    """

    async def before_change(
        self,
        hooks: CollectionHooks,
        data: dict[str, Any],
        context: HookContext,
    ) -> dict[str, Any]:
        """Run beforeChange. Returns ``data`` unchanged when no hook is set.

        Raises:
            HookError: If the hook returns None instead of the payload
        """
        if hooks.before_change is None:
            return data

        result = await maybe_await(hooks.before_change(data=data, context=context))
        if result is None:
            raise HookError(
                f"beforeChange hook for {context.collection} returned None; "
                "it must return the (possibly modified) data"
            )
        return result

    async def after_change(
        self,
        hooks: CollectionHooks,
        doc: Document,
        context: HookContext,
        previous_doc: Document | None = None,
    ) -> None:
        """Run afterChange once the write has been committed."""
        if hooks.after_change is None:
            return

        await maybe_await(
            hooks.after_change(doc=doc, context=context, previous_doc=previous_doc)
        )

    async def before_read(
        self,
        hooks: CollectionHooks,
        doc: Document,
        context: HookContext,
    ) -> Document:
        """Run beforeRead on a single document."""
        if hooks.before_read is None:
            return doc

        result = await maybe_await(hooks.before_read(doc=doc, context=context))
        if result is None:
            raise HookError(
                f"beforeRead hook for {context.collection} returned None; "
                "it must return the document"
            )
        return result

    async def before_read_many(
        self,
        hooks: CollectionHooks,
        docs: list[Document],
        context: HookContext,
    ) -> list[Document]:
        """Run beforeRead on each document in order, one at a time."""
        if hooks.before_read is None:
            return docs

        result = []
        for doc in docs:
            result.append(await self.before_read(hooks, doc, context))
        logger.debug(
            "beforeRead applied to %d %s document(s)", len(result), context.collection
        )
        return result
