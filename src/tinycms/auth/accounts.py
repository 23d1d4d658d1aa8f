"""Email/password accounts stored in a CMS collection.

Accounts are ordinary documents of the users collection plus a
``passwordHash`` key. Sign-up writes through the storage adapter directly,
so anonymous visitors can register even though the collection's create
rule is admin-only.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from tinycms.auth.jwt_service import JWTService
from tinycms.auth.password import PasswordService
from tinycms.auth.types import User
from tinycms.errors import ValidationFailedError
from tinycms.persistence.adapter import FindOptions
from tinycms.validation import validate_data

if TYPE_CHECKING:
    from tinycms.cms import TinyCMS
    from tinycms.metadata.loader import CollectionDefinition

logger = logging.getLogger(__name__)

PASSWORD_HASH_FIELD = "passwordHash"
MIN_PASSWORD_LENGTH = 8


class AuthenticationError(Exception):
    """Base class for sign-in and sign-up failures."""

    pass


class InvalidCredentialsError(AuthenticationError):
    def __init__(self) -> None:
        super().__init__("Invalid email or password")


class EmailInUseError(AuthenticationError):
    def __init__(self) -> None:
        super().__init__("A user with this email already exists")


def public_user(doc: dict[str, Any]) -> dict[str, Any]:
    """The user document without its password hash."""
    return {k: v for k, v in doc.items() if k != PASSWORD_HASH_FIELD}


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class AccountService:
    """Sign-up, sign-in and session lookup against a users collection."""

    def __init__(
        self,
        cms: TinyCMS,
        jwt_service: JWTService,
        password_service: PasswordService | None = None,
        collection: str = "users",
    ):
        self.cms = cms
        self.jwt_service = jwt_service
        self.password_service = password_service or PasswordService()
        self.collection = collection

    @property
    def users(self) -> CollectionDefinition:
        return self.cms.get_collection(self.collection)

    def sign_up(self, email: str, password: str, name: str) -> dict[str, Any]:
        """Create an account and sign it in.

        The role always comes from the collection's default, never the caller.

        Raises:
            EmailInUseError: An account with this email exists
            ValidationFailedError: The email or name is invalid, or the
                password is too short
        """
        email = _normalize_email(email)
        if self._find_by_email(email) is not None:
            raise EmailInUseError()

        result = validate_data(self.users.fields, {"email": email, "name": name})
        errors = list(result.messages)
        if len(password) < MIN_PASSWORD_LENGTH:
            errors.append(f"password: Minimum length is {MIN_PASSWORD_LENGTH}")
        if errors:
            raise ValidationFailedError(errors)

        doc = self.cms.storage.create(
            self.users,
            {**result.data, PASSWORD_HASH_FIELD: self.password_service.hash(password)},
        )
        logger.info("Registered user %s", doc["id"])
        return self._issue(doc)

    def sign_in(self, email: str, password: str) -> dict[str, Any]:
        """Check credentials and issue a token.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password
        """
        doc = self._find_by_email(_normalize_email(email))
        password_hash = doc.get(PASSWORD_HASH_FIELD) if doc else None
        if not password_hash or not self.password_service.verify(password, password_hash):
            raise InvalidCredentialsError()

        if self.password_service.needs_rehash(password_hash):
            self.cms.storage.update(
                self.users, doc["id"], {PASSWORD_HASH_FIELD: self.password_service.hash(password)}
            )
        return self._issue(doc)

    def session(self, user: User | None) -> dict[str, Any] | None:
        """The signed-in user's current document, or None."""
        if user is None:
            return None
        doc = self.cms.storage.find_by_id(self.users, user.id)
        return public_user(doc) if doc else None

    def _find_by_email(self, email: str) -> dict[str, Any] | None:
        docs = self.cms.storage.find(self.users, FindOptions(where={"email": email}, limit=1))["docs"]
        return docs[0] if docs else None

    def _issue(self, doc: dict[str, Any]) -> dict[str, Any]:
        user = User(id=doc["id"], email=doc.get("email"), role=doc.get("role"))
        return {
            "user": public_user(doc),
            "token": self.jwt_service.generate_token(user),
            "tokenType": "Bearer",
            "expiresIn": self.jwt_service.ACCESS_TOKEN_TTL,
        }
