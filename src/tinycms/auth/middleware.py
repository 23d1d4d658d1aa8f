"""Authentication middleware for FastAPI."""

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from tinycms.auth.jwt_service import JWTError, JWTService
from tinycms.auth.types import User

logger = logging.getLogger(__name__)


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that resolves the acting user from a Bearer token.

    Sets ``request.state.user`` to a User, or None when the header is
    missing or the token is invalid. It never rejects a request; routes
    decide whether anonymous access is acceptable.
    """

    def __init__(self, app, jwt_service: JWTService):
        super().__init__(app)
        self._jwt_service = jwt_service

    async def dispatch(self, request: Request, call_next) -> Response:
        request.state.user = None

        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            token = auth_header[7:]  # Remove "Bearer " prefix
            try:
                request.state.user = self._jwt_service.decode_token(token)
            except JWTError as e:
                logger.debug("Ignoring bearer token: %s", e)

        return await call_next(request)


def get_current_user(request: Request) -> User | None:
    """Get the acting user from the request state.

    Returns:
        User if authenticated, None otherwise
    """
    return getattr(request.state, "user", None)
