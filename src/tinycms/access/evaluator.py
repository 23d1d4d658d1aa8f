"""Access rule evaluation.

Turns the raw return value of an access rule into an AccessDecision and
applies decisions to queries and single documents.
"""

import logging
from collections.abc import Mapping
from typing import Any

from tinycms.access.types import (
    ALLOW,
    DENY,
    AccessContext,
    AccessDecision,
    AccessRule,
    AllowWithFilter,
    Deny,
    Where,
)
from tinycms.access.where import matches, merge_where, validate_where
from tinycms.core.awaitables import maybe_await
from tinycms.errors import AccessRuleError

logger = logging.getLogger(__name__)


async def evaluate(
    rule: AccessRule | None,
    context: AccessContext,
    operation: str = "read",
) -> AccessDecision:
    """Run an access rule and normalize its result.

    Args:
        rule: The configured rule, or None when the collection has none
        context: User, candidate data and existing document
        operation: "create", "read", "update" or "delete"

    Returns:
        ALLOW, DENY, or AllowWithFilter(where)

    Raises:
        AccessRuleError: If a create rule returns a filter, or a rule returns
            a value that is neither a bool nor a mapping
        Exception: Whatever the rule itself raises, unchanged
    """
    if rule is None:
        return ALLOW

    result = await maybe_await(rule(context))

    if result is True:
        return ALLOW
    if result is False or result is None:
        return DENY
    if isinstance(result, Mapping):
        if operation == "create":
            raise AccessRuleError(
                "A create access rule must return True or False, not a filter"
            )
        where = dict(result)
        try:
            validate_where(where)
        except ValueError as e:
            raise AccessRuleError(f"Access rule returned an invalid filter: {e}") from e
        logger.debug("Access rule for %s returned residual filter %s", operation, where)
        return AllowWithFilter(where)

    raise AccessRuleError(
        f"Access rule returned unsupported value of type {type(result).__name__}; "
        "expected True, False or a where filter"
    )


def is_denied(decision: AccessDecision) -> bool:
    return isinstance(decision, Deny)


def apply_to_where(decision: AccessDecision, where: Where | None) -> Where | None:
    """Merge a read decision's residual filter into a caller's where clause.

    Deny is not handled here; callers check is_denied() first.
    """
    if isinstance(decision, AllowWithFilter):
        return merge_where(where, decision.where)
    return where


def document_permitted(decision: AccessDecision, doc: Mapping[str, Any]) -> bool:
    """Check a single document against a decision's residual filter."""
    if isinstance(decision, Deny):
        return False
    if isinstance(decision, AllowWithFilter):
        return matches(decision.where, doc)
    return True
