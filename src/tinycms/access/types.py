"""Access control types.

An access rule is a callable taking an AccessContext and returning
True, False, or a Where filter (optionally via an awaitable). The
evaluator normalizes that return into an AccessDecision:

- Allow: the operation proceeds unrestricted
- Deny: the operation fails with AccessDeniedError
- AllowWithFilter: only documents matching ``where`` are visible/actionable
"""

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from tinycms.auth.types import User

# Field name -> literal or operator object, plus optional AND / OR lists.
Where = dict[str, Any]

RuleResult = Union[bool, Mapping[str, Any], None]


@dataclass(frozen=True)
class AccessContext:
    """Per-request input to an access rule. Never persisted.

    Attributes:
        user: The acting user (None when anonymous)
        data: Candidate write payload (create/update)
        doc: Existing document (update/delete)
    """

    user: User | None = None
    data: dict[str, Any] | None = None
    doc: dict[str, Any] | None = None


AccessRule = Callable[[AccessContext], Union[RuleResult, Awaitable[RuleResult]]]


@dataclass(frozen=True)
class Allow:
    pass


@dataclass(frozen=True)
class Deny:
    pass


@dataclass(frozen=True)
class AllowWithFilter:
    where: Where


AccessDecision = Union[Allow, Deny, AllowWithFilter]

ALLOW = Allow()
DENY = Deny()


@dataclass(frozen=True)
class AccessControl:
    """Per-operation access rules for a collection.

    A missing rule means the operation is allowed unconditionally.
    """

    create: AccessRule | None = None
    read: AccessRule | None = None
    update: AccessRule | None = None
    delete: AccessRule | None = None

    def rule_for(self, access_key: str) -> AccessRule | None:
        """Return the rule for "create", "read", "update" or "delete"."""
        if access_key not in ("create", "read", "update", "delete"):
            raise ValueError(f"Unknown access operation '{access_key}'")
        return getattr(self, access_key)
