"""Email/password sign-in plugin.

Adds ``POST /auth/sign-up``, ``POST /auth/sign-in`` and ``GET /auth/session``
backed by a users collection, and keeps password hashes out of every read
and every client write on that collection.

Usage:
    auth = PasswordAuthPlugin(jwt_service)
    config = Config(collections=[users, ...], plugins=[auth])
    ...
    register_plugin_routes(app, config.plugins)
"""

import logging
from dataclasses import replace
from typing import Any

from fastapi import FastAPI

from tinycms.auth.accounts import PASSWORD_HASH_FIELD, AccountService, public_user
from tinycms.auth.endpoints import create_auth_router
from tinycms.auth.jwt_service import JWTService
from tinycms.auth.password import PasswordService
from tinycms.config import Config
from tinycms.hooks.types import HookContext, chain_hooks

logger = logging.getLogger(__name__)


def strip_password_hash(doc: dict[str, Any], context: HookContext) -> dict[str, Any]:
    """beforeRead: never return the stored hash."""
    return public_user(doc)


def drop_password_hash(data: dict[str, Any], context: HookContext) -> dict[str, Any]:
    """beforeChange: clients cannot set the hash through the collection routes."""
    return {k: v for k, v in data.items() if k != PASSWORD_HASH_FIELD}


class PasswordAuthPlugin:
    def __init__(
        self,
        jwt_service: JWTService,
        password_service: PasswordService | None = None,
        collection: str = "users",
    ):
        self.jwt_service = jwt_service
        self.password_service = password_service or PasswordService()
        self.collection = collection

    def __call__(self, config: Config) -> Config:
        users = config.get_collection(self.collection)
        if users is None:
            raise ValueError(f"Password auth requires a '{self.collection}' collection")
        if users.get_field("email") is None:
            raise ValueError(f"Collection '{self.collection}' has no 'email' field")

        hooks = replace(
            users.hooks,
            before_change=chain_hooks(
                users.hooks.before_change, drop_password_hash, passes_value="data"
            ),
            before_read=chain_hooks(
                users.hooks.before_read, strip_password_hash, passes_value="doc"
            ),
        )
        return config.replace_collection(replace(users, hooks=hooks))

    def register_routes(self, app: FastAPI, prefix: str = "/api") -> None:
        accounts = AccountService(
            app.state.cms,
            self.jwt_service,
            password_service=self.password_service,
            collection=self.collection,
        )
        app.include_router(create_auth_router(accounts), prefix=prefix)
        logger.info("Password sign-in enabled for collection %s", self.collection)
