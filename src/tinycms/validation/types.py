"""Core types for TinyCMS field validation."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ValidationError:
    """A single field validation failure.

    Attributes:
        field: Field path ("title", or "tags.1" for an item of a multiple field)
        message: Human-readable message
        code: Machine-readable error code (e.g., "REQUIRED", "MAX_LENGTH")
    """

    field: str
    message: str
    code: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "message": self.message,
            "code": self.code,
        }


@dataclass
class ValidationResult:
    """Result of validating a candidate document.

    Attributes:
        valid: True when no errors were found
        data: The candidate with defaults applied (only meaningful when valid)
        errors: Every failure, in field order
    """

    valid: bool
    data: dict[str, Any] = field(default_factory=dict)
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def messages(self) -> list[str]:
        """Errors formatted as "<field>: <message>"."""
        return [str(e) for e in self.errors]
