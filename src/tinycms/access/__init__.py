"""TinyCMS access control.

Access rules decide, per operation, whether a request is allowed, denied,
or allowed against a residual filter.

Usage:
    from tinycms.access import AccessControl, rules

    access = AccessControl(
        read=rules.published_or_authenticated(),
        create=rules.authenticated,
        update=rules.owner("authorId"),
        delete=rules.role_at_least("admin"),
    )
"""

from tinycms.access import rules
from tinycms.access.evaluator import (
    apply_to_where,
    document_permitted,
    evaluate,
    is_denied,
)
from tinycms.access.registry import (
    access_rule,
    access_rule_registry,
    resolve_access_rule,
)
from tinycms.access.types import (
    ALLOW,
    DENY,
    AccessContext,
    AccessControl,
    AccessDecision,
    AccessRule,
    Allow,
    AllowWithFilter,
    Deny,
    Where,
)
from tinycms.access.where import WHERE_OPERATORS, matches, merge_where, validate_where

__all__ = [
    "ALLOW",
    "DENY",
    "AccessContext",
    "AccessControl",
    "AccessDecision",
    "AccessRule",
    "Allow",
    "AllowWithFilter",
    "Deny",
    "WHERE_OPERATORS",
    "Where",
    "access_rule",
    "access_rule_registry",
    "apply_to_where",
    "document_permitted",
    "evaluate",
    "is_denied",
    "matches",
    "merge_where",
    "resolve_access_rule",
    "rules",
    "validate_where",
]
