"""Collection definitions and loading them from YAML files."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from tinycms.access.registry import resolve_access_rule
from tinycms.access.types import AccessControl
from tinycms.core.types import ACCESS_OPERATIONS, get_field_type
from tinycms.hooks.registry import hook_registry
from tinycms.hooks.types import CollectionHooks

logger = logging.getLogger(__name__)

SYSTEM_FIELDS = ("id", "createdAt", "updatedAt", "deletedAt")

# YAML hook keys -> CollectionHooks attribute
HOOK_POINTS = {
    "beforeChange": "before_change",
    "afterChange": "after_change",
    "beforeRead": "before_read",
}


@dataclass(frozen=True)
class SelectOption:
    value: str
    label: str


@dataclass(frozen=True)
class FieldDefinition:
    """A single field of a collection.

    Constraint attributes only apply to the kinds that use them:
    min_length/max_length to text and email, min/max to number,
    options to select, relation_to to relation, multiple to select and
    relation, time to date (display only).
    """

    name: str
    type: str
    label: str | None = None
    required: bool = False
    unique: bool = False
    default_value: Any = None
    min_length: int | None = None
    max_length: int | None = None
    min: float | None = None
    max: float | None = None
    options: tuple[SelectOption, ...] = ()
    relation_to: str | None = None
    multiple: bool = False
    time: bool = False

    def __post_init__(self) -> None:
        field_type = get_field_type(self.type)
        if self.multiple and not field_type.supports_multiple:
            raise ValueError(f"Field '{self.name}': type '{self.type}' does not support multiple")
        if self.type == "select" and not self.options:
            raise ValueError(f"Field '{self.name}': select fields require options")
        if self.type == "relation" and not self.relation_to:
            raise ValueError(f"Field '{self.name}': relation fields require a target collection")
        # Accept plain strings and {label, value} dicts as options
        object.__setattr__(
            self, "options", tuple(_coerce_option(o) for o in self.options)
        )

    @property
    def display_name(self) -> str:
        return self.label or _to_display_name(self.name)

    @property
    def option_values(self) -> list[str]:
        return [o.value for o in self.options]

    @property
    def has_default(self) -> bool:
        return self.default_value is not None


@dataclass(frozen=True)
class CollectionLabels:
    singular: str | None = None
    plural: str | None = None


@dataclass(frozen=True)
class CollectionDefinition:
    """A named, schema-described set of documents. Immutable once built."""

    name: str
    fields: tuple[FieldDefinition, ...]
    access: AccessControl = field(default_factory=AccessControl)
    hooks: CollectionHooks = field(default_factory=CollectionHooks)
    timestamps: bool = True
    table_name: str | None = None
    labels: CollectionLabels = field(default_factory=CollectionLabels)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(self.fields))
        if not self.name:
            raise ValueError("Collection name must not be empty")
        seen: set[str] = set()
        for f in self.fields:
            if f.name in SYSTEM_FIELDS:
                raise ValueError(
                    f"Collection '{self.name}': field name '{f.name}' is reserved"
                )
            if f.name in seen:
                raise ValueError(
                    f"Collection '{self.name}': duplicate field '{f.name}'"
                )
            seen.add(f.name)

    @property
    def storage_name(self) -> str:
        return self.table_name or self.name

    def get_field(self, name: str) -> FieldDefinition | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None


def _coerce_option(option: Any) -> SelectOption:
    if isinstance(option, SelectOption):
        return option
    if isinstance(option, str):
        return SelectOption(value=option, label=option)
    if isinstance(option, dict) and "value" in option:
        value = str(option["value"])
        return SelectOption(value=value, label=str(option.get("label", value)))
    raise ValueError(f"Invalid select option: {option!r}")


def _to_display_name(name: str) -> str:
    """Convert camelCase to Title Case."""
    result = []
    for i, char in enumerate(name):
        if char.isupper() and i > 0:
            result.append(" ")
        result.append(char)
    return "".join(result).title()


def validate_relations(collections: list[CollectionDefinition]) -> None:
    """Check every relation field targets a known collection.

    Raises:
        ValueError: On a dangling relation target
    """
    names = {c.name for c in collections}
    for collection in collections:
        for f in collection.fields:
            if f.type == "relation" and f.relation_to not in names:
                raise ValueError(
                    f"Collection '{collection.name}': relation field '{f.name}' "
                    f"targets unknown collection '{f.relation_to}'"
                )


class MetadataLoader:
    """Loads collection definitions from YAML files.

    Layout: ``<metadata_path>/collections/*.yaml``, one collection per file.
    Access rules and hooks are referenced by name and resolved through
    access_rule_registry and hook_registry, so those must be populated first.
    """

    def __init__(self, metadata_path: Path):
        self.metadata_path = Path(metadata_path)
        self.collections: dict[str, CollectionDefinition] = {}

    def load_all(self) -> None:
        """Load all collections and check cross-collection references."""
        collections_path = self.metadata_path / "collections"
        if not collections_path.exists():
            logger.warning("No collections directory at %s", collections_path)
            return

        for yaml_file in sorted(collections_path.glob("*.yaml")):
            collection = self.load_file(yaml_file)
            if collection is None:
                continue
            if collection.name in self.collections:
                raise ValueError(
                    f"Duplicate collection '{collection.name}' in {yaml_file}"
                )
            self.collections[collection.name] = collection

        validate_relations(list(self.collections.values()))
        logger.info(
            "Loaded %d collection(s) from %s", len(self.collections), collections_path
        )

    def load_file(self, yaml_file: Path) -> CollectionDefinition | None:
        """Load a single collection file. Returns None for empty files."""
        with open(yaml_file) as f:
            data = yaml.safe_load(f)
        if not data or "collection" not in data:
            return None
        return self._resolve_collection(data)

    def _resolve_collection(self, data: dict) -> CollectionDefinition:
        name = data["collection"]
        labels_data = data.get("labels") or {}

        return CollectionDefinition(
            name=name,
            fields=tuple(self._resolve_field(f) for f in data.get("fields", [])),
            access=self._resolve_access(data.get("access") or {}),
            hooks=self._resolve_hooks(data.get("hooks") or {}),
            timestamps=data.get("timestamps", True),
            table_name=data.get("tableName"),
            labels=CollectionLabels(
                singular=labels_data.get("singular"),
                plural=labels_data.get("plural"),
            ),
        )

    def _resolve_field(self, data: dict) -> FieldDefinition:
        """Convert field dict to FieldDefinition."""
        return FieldDefinition(
            name=data["name"],
            type=data.get("type", "text"),
            label=data.get("label"),
            required=data.get("required", False),
            unique=data.get("unique", False),
            default_value=data.get("defaultValue"),
            min_length=data.get("minLength"),
            max_length=data.get("maxLength"),
            min=data.get("min"),
            max=data.get("max"),
            options=tuple(data.get("options", [])),
            relation_to=data.get("to"),
            multiple=data.get("multiple", False),
            time=data.get("time", False),
        )

    def _resolve_access(self, data: dict) -> AccessControl:
        rules = {}
        for operation, spec in data.items():
            if operation not in ACCESS_OPERATIONS:
                raise ValueError(f"Unknown access operation '{operation}'")
            rules[operation] = resolve_access_rule(str(spec))
        return AccessControl(**rules)

    def _resolve_hooks(self, data: dict) -> CollectionHooks:
        hooks = {}
        for point, hook_name in data.items():
            if point not in HOOK_POINTS:
                raise ValueError(f"Unknown hook point '{point}'")
            hooks[HOOK_POINTS[point]] = hook_registry.get(hook_name)
        return CollectionHooks(**hooks)

    def get_collection(self, name: str) -> CollectionDefinition | None:
        """Get a resolved collection by name."""
        return self.collections.get(name)

    def list_collections(self) -> list[str]:
        """List all collection names."""
        return list(self.collections.keys())
