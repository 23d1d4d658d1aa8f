"""Authentication API endpoints."""

from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from tinycms.auth.accounts import AccountService, EmailInUseError, InvalidCredentialsError
from tinycms.auth.middleware import get_current_user


class SignInRequest(BaseModel):
    """Request body for sign-in."""

    email: str = ""
    password: str = ""


class SignUpRequest(BaseModel):
    """Request body for sign-up."""

    email: str = ""
    password: str = ""
    name: str = ""


def create_auth_router(accounts: AccountService) -> APIRouter:
    """Create the ``/auth`` router around an AccountService.

    Tokens are returned in the response body; the caller sends them back
    as ``Authorization: Bearer <token>``.
    """
    router = APIRouter(prefix="/auth", tags=["auth"])

    @router.post("/sign-up")
    async def sign_up(request: SignUpRequest) -> dict[str, Any]:
        if not request.email or not request.password or not request.name:
            raise HTTPException(400, "Missing email, password or name")
        try:
            return accounts.sign_up(request.email, request.password, request.name)
        except EmailInUseError as e:
            raise HTTPException(400, str(e)) from e

    @router.post("/sign-in")
    async def sign_in(request: SignInRequest) -> dict[str, Any]:
        if not request.email or not request.password:
            raise HTTPException(400, "Missing email or password")
        try:
            return accounts.sign_in(request.email, request.password)
        except InvalidCredentialsError as e:
            raise HTTPException(401, str(e)) from e

    @router.get("/session")
    async def session(request: Request) -> dict[str, Any]:
        return {"user": accounts.session(get_current_user(request))}

    return router
