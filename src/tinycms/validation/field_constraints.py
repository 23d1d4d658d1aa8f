"""Field-level constraint validation.

Checks a candidate document against a collection's field definitions:
- Type check per field kind
- Kind constraints: min/max length, min/max value, select membership,
  email shape, ISO date
- required, unless satisfied by a default
- Default substitution for omitted fields

Every field is checked; errors accumulate rather than stopping at the
first failure. Keys with no field definition pass through unchanged.
"""

import re
from collections.abc import Iterable
from datetime import date, datetime
from typing import Any

from tinycms.metadata.loader import FieldDefinition
from tinycms.validation.types import ValidationError, ValidationResult


# =============================================================================
# Format Patterns
# =============================================================================

EMAIL_PATTERN = re.compile(
    r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
)

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}([T ]\d{2}:\d{2}.*)?$")


# =============================================================================
# Field Constraint Validator
# =============================================================================


class FieldConstraintValidator:
    """Validates a single field against its definition."""

    def __init__(self, field: FieldDefinition):
        self.field = field

    def validate(self, candidate: dict[str, Any], data: dict[str, Any]) -> list[ValidationError]:
        """Validate the field's value in ``candidate``.

        Writes the default value into ``data`` when the field is omitted
        and a default is configured.
        """
        name = self.field.name
        value = candidate.get(name)

        if value is None:
            if self.field.has_default:
                value = self.field.default_value
                data[name] = value
            elif self.field.required:
                return [self._error(name, "Field is required", "REQUIRED")]
            else:
                return []

        if self._is_empty(value):
            if self.field.required:
                return [self._error(name, "Field is required", "REQUIRED")]
            return []

        if self.field.multiple:
            if not isinstance(value, list):
                return [self._error(name, "Expected array", "INVALID_TYPE")]
            errors = []
            for i, item in enumerate(value):
                errors.extend(self._validate_value(f"{name}.{i}", item))
            return errors

        return self._validate_value(name, value)

    def _is_empty(self, value: Any) -> bool:
        """Check if a value is considered empty."""
        if isinstance(value, str) and value.strip() == "":
            return True
        if isinstance(value, list) and len(value) == 0:
            return True
        return False

    def _validate_value(self, path: str, value: Any) -> list[ValidationError]:
        """Type check followed by kind-specific constraints for one value."""
        field_type = self.field.type

        if field_type in ("text", "email", "richtext"):
            if not isinstance(value, str):
                return [self._error(path, "Expected string", "INVALID_TYPE")]
            errors = []
            if field_type == "email" and not EMAIL_PATTERN.match(value):
                errors.append(self._error(path, "Invalid email address", "INVALID_EMAIL"))
            errors.extend(self._validate_string_length(path, value))
            return errors

        if field_type == "number":
            # bool is an int subclass but never a number here
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return [self._error(path, "Expected number", "INVALID_TYPE")]
            return self._validate_numeric_bounds(path, value)

        if field_type == "checkbox":
            if not isinstance(value, bool):
                return [self._error(path, "Expected boolean", "INVALID_TYPE")]
            return []

        if field_type == "date":
            if isinstance(value, (date, datetime)):
                return []
            if not isinstance(value, str) or not self._is_iso_date(value):
                return [
                    self._error(
                        path,
                        "Invalid date. Expected an ISO 8601 date or datetime",
                        "INVALID_DATE",
                    )
                ]
            return []

        if field_type == "select":
            if not isinstance(value, str):
                return [self._error(path, "Expected string", "INVALID_TYPE")]
            options = self.field.option_values
            if value not in options:
                return [
                    self._error(
                        path,
                        f"Invalid option '{value}'. Expected one of: {', '.join(options)}",
                        "INVALID_OPTION",
                    )
                ]
            return []

        if field_type == "relation":
            if isinstance(value, bool) or not isinstance(value, (str, int)):
                return [
                    self._error(path, "Expected a document id", "INVALID_TYPE")
                ]
            return []

        return []

    def _validate_string_length(self, path: str, value: str) -> list[ValidationError]:
        errors = []
        if self.field.min_length is not None and len(value) < self.field.min_length:
            errors.append(
                self._error(path, f"Minimum length is {self.field.min_length}", "MIN_LENGTH")
            )
        if self.field.max_length is not None and len(value) > self.field.max_length:
            errors.append(
                self._error(path, f"Maximum length is {self.field.max_length}", "MAX_LENGTH")
            )
        return errors

    def _validate_numeric_bounds(self, path: str, value: float) -> list[ValidationError]:
        errors = []
        if self.field.min is not None and value < self.field.min:
            errors.append(
                self._error(path, f"Minimum value is {self.field.min}", "MIN_VALUE")
            )
        if self.field.max is not None and value > self.field.max:
            errors.append(
                self._error(path, f"Maximum value is {self.field.max}", "MAX_VALUE")
            )
        return errors

    def _is_iso_date(self, value: str) -> bool:
        if not ISO_DATE_PATTERN.match(value):
            return False
        # fromisoformat only accepts a trailing "Z" on 3.11+
        text = value[:-1] + "+00:00" if value.endswith("Z") else value
        try:
            datetime.fromisoformat(text)
        except ValueError:
            return False
        return True

    def _error(self, path: str, message: str, code: str) -> ValidationError:
        return ValidationError(field=path, message=message, code=code)


def validate_data(
    fields: Iterable[FieldDefinition],
    candidate: dict[str, Any],
) -> ValidationResult:
    """Validate a candidate document against field definitions.

    Args:
        fields: The collection's field definitions
        candidate: The document to check (for updates, existing merged with patch)

    Returns:
        ValidationResult with the defaulted data on success, or every error
    """
    data = dict(candidate)
    errors: list[ValidationError] = []

    for field in fields:
        errors.extend(FieldConstraintValidator(field).validate(candidate, data))

    if errors:
        return ValidationResult(valid=False, data=data, errors=errors)
    return ValidationResult(valid=True, data=data)
