"""
Validation of TinyCMS collection YAML files.

Two passes per metadata directory:
1. JSON Schema: each ``collections/*.yaml`` file against collection.schema.json
2. Semantic: checks a schema cannot express (duplicate collection and field
   names, reserved field names, relation targets, access rule strings)

Usage:
    from tinycms.metadata.validator import validate_metadata_dir

    issues = validate_metadata_dir(Path("metadata"))
    for issue in issues:
        print(issue)
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError
from referencing import Registry, Resource
from referencing.jsonschema import DRAFT202012

from tinycms.access.rules import ROLE_HIERARCHY
from tinycms.core.types import get_field_type
from tinycms.metadata.loader import SYSTEM_FIELDS

logger = logging.getLogger(__name__)

_SCHEMAS_DIR = Path(__file__).parent / "schemas"

COLLECTION_SCHEMA = "collection.schema.json"

_BUILTIN_RULES = ("public", "nobody", "authenticated")
_RULE_PREFIXES = ("role", "minRole", "owner", "publishedOrAuthenticated")


@dataclass
class ValidationIssue:
    """A single validation finding for a metadata YAML file."""

    file: Path
    message: str
    path: str = ""  # location within the document, e.g. "fields[0]/type"
    severity: str = "error"  # "error" | "warning"

    def __str__(self) -> str:
        loc = f" at {self.path}" if self.path else ""
        return f"[{self.severity.upper()}] {self.file}{loc}: {self.message}"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_schema(name: str) -> dict[str, Any]:
    schema_path = _SCHEMAS_DIR / name
    with schema_path.open() as fh:
        return json.load(fh)


def _load_registry() -> Registry:
    """Build a jsonschema Registry containing all TinyCMS schemas."""
    resources = []
    for name in ("_defs.schema.json", COLLECTION_SCHEMA):
        schema = _load_schema(name)
        resources.append(
            (schema["$id"], Resource(contents=schema, specification=DRAFT202012))
        )
    return Registry().with_resources(resources)


def _json_path(error: ValidationError) -> str:
    """Convert a jsonschema ValidationError path to a readable string."""
    parts = []
    for p in error.absolute_path:
        if isinstance(p, int):
            parts.append(f"[{p}]")
        else:
            parts.append(str(p))
    return "/".join(parts).replace("/[", "[")


def _load_yaml(yaml_path: Path) -> tuple[Any, list[ValidationIssue]]:
    try:
        with yaml_path.open() as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        return None, [ValidationIssue(file=yaml_path, message=f"YAML parse error: {exc}")]

    if raw is None:
        return None, [
            ValidationIssue(file=yaml_path, message="File is empty or contains only whitespace")
        ]
    return raw, []


def _check_access_rule(yaml_path: Path, operation: str, spec: str) -> ValidationIssue | None:
    path = f"access/{operation}"
    if spec in _BUILTIN_RULES:
        return None

    prefix, sep, argument = spec.partition(":")
    if prefix in _RULE_PREFIXES:
        if prefix == "publishedOrAuthenticated":
            return None
        if not argument:
            return ValidationIssue(
                file=yaml_path, path=path, message=f"'{prefix}:' requires an argument"
            )
        if prefix == "minRole" and argument not in ROLE_HIERARCHY:
            return ValidationIssue(
                file=yaml_path,
                path=path,
                message=f"Unknown role '{argument}'. "
                f"Expected one of: {', '.join(ROLE_HIERARCHY)}",
            )
        return None

    return ValidationIssue(
        file=yaml_path,
        path=path,
        message=f"'{spec}' is not a built-in rule; it must be registered with @access_rule",
        severity="warning",
    )


def _semantic_issues(yaml_path: Path, doc: dict[str, Any]) -> list[ValidationIssue]:
    """Checks on a schema-valid document that JSON Schema cannot express."""
    issues: list[ValidationIssue] = []

    seen: set[str] = set()
    for i, field in enumerate(doc.get("fields", [])):
        name = field["name"]
        path = f"fields[{i}]"
        if name in SYSTEM_FIELDS:
            issues.append(
                ValidationIssue(file=yaml_path, path=path, message=f"Field name '{name}' is reserved")
            )
        if name in seen:
            issues.append(
                ValidationIssue(file=yaml_path, path=path, message=f"Duplicate field '{name}'")
            )
        seen.add(name)

        if field.get("multiple") and not get_field_type(field["type"]).supports_multiple:
            issues.append(
                ValidationIssue(
                    file=yaml_path,
                    path=path,
                    message=f"Field type '{field['type']}' does not support multiple",
                )
            )

    for operation, spec in (doc.get("access") or {}).items():
        issue = _check_access_rule(yaml_path, operation, spec)
        if issue:
            issues.append(issue)

    for point, hook_name in (doc.get("hooks") or {}).items():
        issues.append(
            ValidationIssue(
                file=yaml_path,
                path=f"hooks/{point}",
                message=f"Hook '{hook_name}' must be registered with @hook before loading",
                severity="warning",
            )
        )

    return issues


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_yaml_file(
    yaml_path: Path,
    *,
    registry: Registry | None = None,
) -> list[ValidationIssue]:
    """
    Validate a single collection YAML file against the schema and the
    single-file semantic checks.

    Returns:
        A list of :class:`ValidationIssue` objects (empty on success).
    """
    doc, issues = _load_yaml(yaml_path)
    if issues:
        return issues

    if registry is None:
        registry = _load_registry()

    validator = Draft202012Validator(_load_schema(COLLECTION_SCHEMA), registry=registry)

    for error in sorted(validator.iter_errors(doc), key=lambda e: list(e.path)):
        issues.append(
            ValidationIssue(
                file=yaml_path,
                message=error.message,
                path=_json_path(error),
            )
        )

    # Semantic checks assume the document has the right shape
    if not issues:
        issues.extend(_semantic_issues(yaml_path, doc))

    return issues


def validate_metadata_dir(
    metadata_dir: Path,
    *,
    strict: bool = False,
) -> list[ValidationIssue]:
    """
    Validate all collection YAML files under *metadata_dir*.

    Args:
        metadata_dir: Root metadata directory (contains ``collections/``).
        strict:       If ``True``, warnings are escalated to errors.

    Returns:
        A flat list of :class:`ValidationIssue` objects across all files.
        Empty list means all files are valid.
    """
    if not metadata_dir.is_dir():
        return [
            ValidationIssue(
                file=metadata_dir,
                message=f"Metadata directory does not exist: {metadata_dir}",
            )
        ]

    # Build registry once, shared across all file validations
    try:
        registry = _load_registry()
    except (FileNotFoundError, json.JSONDecodeError) as exc:
        return [
            ValidationIssue(
                file=_SCHEMAS_DIR,
                message=f"Failed to load JSON Schema files: {exc}",
            )
        ]

    all_issues: list[ValidationIssue] = []
    collections: dict[str, Path] = {}
    relations: list[tuple[Path, str, str]] = []

    target = metadata_dir / "collections"
    yaml_files = sorted(target.glob("*.yaml")) if target.is_dir() else []
    if not yaml_files:
        logger.warning("No collection files found under %s", target)

    for yaml_file in yaml_files:
        file_issues = validate_yaml_file(yaml_file, registry=registry)
        all_issues.extend(file_issues)
        if any(issue.severity == "error" for issue in file_issues):
            continue

        doc, _ = _load_yaml(yaml_file)
        name = doc["collection"]
        if name in collections:
            all_issues.append(
                ValidationIssue(
                    file=yaml_file,
                    path="collection",
                    message=f"Duplicate collection '{name}' (also in {collections[name]})",
                )
            )
        collections[name] = yaml_file
        for i, field in enumerate(doc.get("fields", [])):
            if field["type"] == "relation":
                relations.append((yaml_file, f"fields[{i}]/to", field["to"]))

    for yaml_file, path, target_name in relations:
        if target_name not in collections:
            all_issues.append(
                ValidationIssue(
                    file=yaml_file,
                    path=path,
                    message=f"Relation targets unknown collection '{target_name}'",
                )
            )

    if strict:
        for issue in all_issues:
            if issue.severity == "warning":
                issue.severity = "error"

    return all_issues
