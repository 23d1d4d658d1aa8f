"""Core types shared across TinyCMS."""

from tinycms.core.types import (
    ACCESS_OPERATIONS,
    FIELD_TYPES,
    FieldType,
    Operation,
    get_field_type,
)

__all__ = [
    "ACCESS_OPERATIONS",
    "FIELD_TYPES",
    "FieldType",
    "Operation",
    "get_field_type",
]
