"""Ready-made access rules.

Each factory returns an AccessRule usable in AccessControl or by name
from YAML metadata (see access.registry.resolve_access_rule).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from tinycms.access.types import AccessContext, AccessRule, RuleResult
from tinycms.core.awaitables import maybe_await
from tinycms.errors import AccessRuleError

if TYPE_CHECKING:
    from tinycms.auth.types import User


# Role hierarchy - higher number = more permissions
# Higher roles automatically have all permissions of lower roles
ROLE_HIERARCHY = {
    "readonly": 1,
    "user": 2,
    "editor": 3,
    "admin": 4,
}


def _role_level(role: str | None) -> int:
    """Return numeric level for a role name, 0 if unknown/None."""
    return ROLE_HIERARCHY.get(role or "", 0)


def has_role_or_higher(user: User | None, required_role: str) -> bool:
    """Check if user has the required role or a higher one.

    Unknown required roles can never be satisfied.
    """
    if not user or not user.role:
        return False
    return _role_level(user.role) >= ROLE_HIERARCHY.get(required_role, 999)


def public(ctx: AccessContext) -> RuleResult:
    return True


def nobody(ctx: AccessContext) -> RuleResult:
    return False


def authenticated(ctx: AccessContext) -> RuleResult:
    return ctx.user is not None


def has_role(*roles: str) -> AccessRule:
    """Allow users whose role is exactly one of ``roles``."""
    allowed = frozenset(roles)

    def rule(ctx: AccessContext) -> RuleResult:
        return ctx.user is not None and ctx.user.role in allowed

    rule.__name__ = f"has_role({', '.join(roles)})"
    return rule


def role_at_least(required_role: str) -> AccessRule:
    """Allow users at or above ``required_role`` in ROLE_HIERARCHY."""
    if required_role not in ROLE_HIERARCHY:
        raise ValueError(
            f"Unknown role '{required_role}'. "
            f"Expected one of: {', '.join(ROLE_HIERARCHY)}"
        )

    def rule(ctx: AccessContext) -> RuleResult:
        return has_role_or_higher(ctx.user, required_role)

    rule.__name__ = f"role_at_least({required_role})"
    return rule


def owner(field_name: str = "authorId") -> AccessRule:
    """Restrict to documents whose ``field_name`` equals the user's id.

    Returns a residual filter, so it is only meaningful for read, update
    and delete rules. Anonymous users are denied.
    """

    def rule(ctx: AccessContext) -> RuleResult:
        if ctx.user is None:
            return False
        return {field_name: {"equals": ctx.user.id}}

    rule.__name__ = f"owner({field_name})"
    return rule


def published_or_authenticated(field_name: str = "published") -> AccessRule:
    """Authenticated users see everything, anonymous users only published docs."""

    def rule(ctx: AccessContext) -> RuleResult:
        if ctx.user is not None:
            return True
        return {field_name: True}

    rule.__name__ = f"published_or_authenticated({field_name})"
    return rule


def any_of(*rules: AccessRule) -> AccessRule:
    """Combine rules with OR semantics.

    The first rule returning True wins. Filters from the remaining rules are
    OR-ed together; if every rule denies, the result is a denial.

    Raises:
        AccessRuleError: If a combined rule returns something other than a
            bool, None or a mapping
    """

    async def rule(ctx: AccessContext) -> RuleResult:
        filters = []
        for candidate in rules:
            result = await maybe_await(candidate(ctx))
            if result is True:
                return True
            if result is False or result is None:
                continue
            if not isinstance(result, Mapping):
                raise AccessRuleError(
                    f"Access rule {_rule_name(candidate)} returned unsupported "
                    f"type {type(result).__name__}"
                )
            filters.append(dict(result))
        if not filters:
            return False
        if len(filters) == 1:
            return filters[0]
        return {"OR": filters}

    rule.__name__ = f"any_of({', '.join(_rule_name(r) for r in rules)})"
    return rule


def _rule_name(rule: AccessRule) -> str:
    return getattr(rule, "__name__", repr(rule))
