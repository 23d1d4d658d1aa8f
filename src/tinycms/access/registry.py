"""Named access rules for YAML metadata.

YAML collection files refer to access rules by string. Strings resolve as:
- "public", "nobody", "authenticated": the built-in rules
- "role:<name>": has_role(name)
- "minRole:<name>": role_at_least(name)
- "owner:<field>": owner(field)
- "publishedOrAuthenticated[:<field>]": published_or_authenticated(field)
- anything else: a rule registered with @access_rule
"""

from collections.abc import Callable

from tinycms.access import rules
from tinycms.access.types import AccessRule
from tinycms.core.registry import NamedRegistry

access_rule_registry: NamedRegistry[AccessRule] = NamedRegistry("Access rule")


def access_rule(name: str) -> Callable[[AccessRule], AccessRule]:
    """Register an access rule under ``name``.

    Usage:
        @access_rule("sameTenant")
        def same_tenant(ctx):
            return {"tenantId": ctx.user.get("tenantId")}
    """
    return access_rule_registry.decorator(name)


_BUILTINS: dict[str, AccessRule] = {
    "public": rules.public,
    "nobody": rules.nobody,
    "authenticated": rules.authenticated,
}


def resolve_access_rule(spec: str) -> AccessRule:
    """Resolve a YAML access rule string to a callable.

    Raises:
        ValueError: If the string names no built-in or registered rule
    """
    if spec in _BUILTINS:
        return _BUILTINS[spec]

    prefix, _, argument = spec.partition(":")
    if prefix == "role" and argument:
        return rules.has_role(*[r.strip() for r in argument.split(",")])
    if prefix == "minRole" and argument:
        return rules.role_at_least(argument)
    if prefix == "owner" and argument:
        return rules.owner(argument)
    if prefix == "publishedOrAuthenticated":
        return rules.published_or_authenticated(argument or "published")

    return access_rule_registry.get(spec)
