"""Authentication module for TinyCMS."""

from tinycms.auth.jwt_service import (
    InvalidTokenError,
    JWTError,
    JWTService,
    TokenExpiredError,
)
from tinycms.auth.middleware import AuthMiddleware, get_current_user
from tinycms.auth.password import PasswordService
from tinycms.auth.types import User

__all__ = [
    "AuthMiddleware",
    "InvalidTokenError",
    "JWTError",
    "JWTService",
    "PasswordService",
    "TokenExpiredError",
    "User",
    "get_current_user",
]
