"""Field type registry and operation names."""

from dataclasses import dataclass
from enum import Enum


class Operation(Enum):
    """A document operation exposed by the CMS."""

    CREATE = "create"
    FIND = "find"
    FIND_BY_ID = "findById"
    UPDATE = "update"
    DELETE = "delete"
    COUNT = "count"

    @property
    def access_key(self) -> str:
        """Name of the access rule that governs this operation."""
        if self in (Operation.FIND, Operation.FIND_BY_ID, Operation.COUNT):
            return "read"
        return self.value


ACCESS_OPERATIONS = ("create", "read", "update", "delete")


@dataclass(frozen=True)
class FieldType:
    name: str
    supports_multiple: bool = False


# Built-in field types
FIELD_TYPES: dict[str, FieldType] = {
    "text": FieldType(name="text"),
    "number": FieldType(name="number"),
    "email": FieldType(name="email"),
    "select": FieldType(name="select", supports_multiple=True),
    "checkbox": FieldType(name="checkbox"),
    "date": FieldType(name="date"),
    "relation": FieldType(name="relation", supports_multiple=True),
    "richtext": FieldType(name="richtext"),
}


def get_field_type(name: str) -> FieldType:
    """Get a field type by name.

    Raises:
        ValueError: If the type is not registered
    """
    if name not in FIELD_TYPES:
        raise ValueError(
            f"Unknown field type '{name}'. "
            f"Expected one of: {', '.join(sorted(FIELD_TYPES))}"
        )
    return FIELD_TYPES[name]
