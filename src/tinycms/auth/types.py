"""Type definitions for the acting user."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class User:
    """The user on whose behalf an operation runs.

    Attributes:
        id: The user's unique ID
        email: User's email address, if known
        role: The user's role name (e.g. "admin", "editor")
        attributes: Any additional claims, reachable via get()
    """

    id: str
    email: str | None = None
    role: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a named attribute, including id/email/role."""
        if key in ("id", "email", "role"):
            return getattr(self, key)
        return self.attributes.get(key, default)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        """Create a User from a plain dict such as decoded token claims."""
        extra = {k: v for k, v in data.items() if k not in ("id", "email", "role")}
        return cls(
            id=str(data["id"]),
            email=data.get("email"),
            role=data.get("role"),
            attributes=extra,
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"id": self.id, **self.attributes}
        if self.email is not None:
            result["email"] = self.email
        if self.role is not None:
            result["role"] = self.role
        return result
