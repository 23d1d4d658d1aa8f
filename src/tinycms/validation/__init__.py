"""Field validation for TinyCMS documents.

Usage:
    from tinycms.validation import validate_data

    result = validate_data(collection.fields, {"title": "Hello"})
    if not result.valid:
        print(result.messages)  # ["body: Field is required", ...]
"""

from tinycms.validation.field_constraints import (
    EMAIL_PATTERN,
    FieldConstraintValidator,
    validate_data,
)
from tinycms.validation.types import ValidationError, ValidationResult

__all__ = [
    "EMAIL_PATTERN",
    "FieldConstraintValidator",
    "ValidationError",
    "ValidationResult",
    "validate_data",
]
