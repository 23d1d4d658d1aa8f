"""JWT token generation and validation service."""

import time
from typing import Any

import jwt

from tinycms.auth.types import User

# Claims that describe the token rather than the user
_REGISTERED_CLAIMS = ("sub", "iat", "exp", "type")


class JWTError(Exception):
    """Base exception for JWT-related errors."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is invalid or malformed."""

    pass


class JWTService:
    """Service for issuing and validating bearer tokens.

    Uses HS256 algorithm with a shared secret key. The user's id is the
    ``sub`` claim; email, role and any extra attributes ride along as
    top-level claims.
    """

    ACCESS_TOKEN_TTL = 60 * 60  # 1 hour

    def __init__(self, secret_key: str, algorithm: str = "HS256"):
        """Initialize the JWT service.

        Args:
            secret_key: Secret key for signing tokens (should be at least 32 chars)
            algorithm: JWT algorithm (default HS256)
        """
        self._secret_key = secret_key
        self._algorithm = algorithm

    def generate_token(self, user: User, ttl: int | None = None) -> str:
        """Issue an access token for a user.

        Args:
            user: The user the token identifies
            ttl: Lifetime in seconds (default ACCESS_TOKEN_TTL)
        """
        now = int(time.time())
        claims: dict[str, Any] = {
            k: v for k, v in user.to_dict().items() if k not in _REGISTERED_CLAIMS
        }
        claims.pop("id", None)
        claims.update({
            "sub": user.id,
            "iat": now,
            "exp": now + (ttl if ttl is not None else self.ACCESS_TOKEN_TTL),
            "type": "access",
        })
        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

    def decode_token(self, token: str) -> User:
        """Decode and validate an access token.

        Returns:
            The User the token identifies

        Raises:
            TokenExpiredError: If the token has expired
            InvalidTokenError: If the token is invalid, malformed, or not an
                access token
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

        if payload.get("type", "access") != "access":
            raise InvalidTokenError("Not an access token")
        if not payload.get("sub"):
            raise InvalidTokenError("Token has no subject")

        data = {k: v for k, v in payload.items() if k not in _REGISTERED_CLAIMS}
        data["id"] = payload["sub"]
        return User.from_dict(data)
