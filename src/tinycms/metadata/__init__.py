"""Collection metadata: definitions, YAML loading, and schema validation."""

from tinycms.metadata.loader import (
    SYSTEM_FIELDS,
    CollectionDefinition,
    CollectionLabels,
    FieldDefinition,
    MetadataLoader,
    SelectOption,
    validate_relations,
)

__all__ = [
    "SYSTEM_FIELDS",
    "CollectionDefinition",
    "CollectionLabels",
    "FieldDefinition",
    "MetadataLoader",
    "SelectOption",
    "validate_relations",
]
