"""Error kinds surfaced by CMS operations.

Each kind maps to a distinct HTTP status in the API layer:
- NotFoundError: 404
- AccessDeniedError: 401 (anonymous) / 403 (authenticated)
- ValidationFailedError: 400
- StorageError and configuration errors: 500
"""

from typing import Any


class CMSError(Exception):
    """Base exception for all CMS operation failures."""

    pass


class NotFoundError(CMSError):
    """Raised when a collection or document does not exist."""

    def __init__(self, message: str, collection: str | None = None, id: str | None = None):
        super().__init__(message)
        self.collection = collection
        self.id = id


class AccessDeniedError(CMSError):
    """Raised when an access rule denies an operation."""

    def __init__(self, operation: str, collection: str, authenticated: bool = False):
        super().__init__(f"Access denied for {operation} on {collection}")
        self.operation = operation
        self.collection = collection
        self.authenticated = authenticated


class ValidationFailedError(CMSError):
    """Raised when a candidate document fails field validation.

    Attributes:
        errors: Every "<field>: <message>" failure, in field order
    """

    def __init__(self, errors: list[str]):
        super().__init__(f"Validation failed: {', '.join(errors)}")
        self.errors = list(errors)


class StorageError(CMSError):
    """Raised by storage adapters; passed through untouched by the CMS."""

    pass


class AccessRuleError(CMSError):
    """Raised when an access rule returns something it is not allowed to."""

    pass


class HookError(CMSError):
    """Raised when a hook returns an unusable value."""

    pass


class AfterChangeError(CMSError):
    """Raised when afterChange fails after the write was committed.

    The document is persisted; ``doc`` holds it so callers can reconcile.
    The original exception is chained as ``__cause__``.
    """

    def __init__(self, collection: str, doc: dict[str, Any], cause: BaseException):
        super().__init__(
            f"afterChange hook failed for {collection} document "
            f"'{doc.get('id')}' (document was saved): {cause}"
        )
        self.collection = collection
        self.doc = doc
