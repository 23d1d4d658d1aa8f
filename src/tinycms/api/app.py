"""FastAPI application exposing the CMS operations over HTTP."""

import json
import logging
from collections.abc import Iterable
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import Any

from fastapi import APIRouter, FastAPI, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from tinycms import __version__
from tinycms.access.where import validate_where
from tinycms.auth import AuthMiddleware, JWTService, User, get_current_user
from tinycms.cms import TinyCMS
from tinycms.config import Plugin, Settings, load_config
from tinycms.core.types import Operation
from tinycms.errors import (
    AccessDeniedError,
    AfterChangeError,
    CMSError,
    NotFoundError,
    ValidationFailedError,
)
from tinycms.hooks.types import HookContext
from tinycms.persistence.adapter import FindOptions
from tinycms.plugins.password_auth import PasswordAuthPlugin

logger = logging.getLogger(__name__)


def _parse_json_param(name: str, raw: str | None) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise HTTPException(400, f"Invalid JSON in '{name}' parameter: {e.msg}") from e


async def _read_view(cms: TinyCMS, collection_name: str, doc: dict[str, Any], user: User | None):
    """The document as reading it back would return it (beforeRead applied)."""
    collection = cms.get_collection(collection_name)
    context = HookContext(collection=collection_name, operation=Operation.FIND_BY_ID, user=user)
    return await cms.hooks.before_read(collection.hooks, doc, context)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"error": str(exc)})

    @app.exception_handler(AccessDeniedError)
    async def access_denied(request: Request, exc: AccessDeniedError):
        status = 403 if exc.authenticated else 401
        return JSONResponse(status_code=status, content={"error": str(exc)})

    @app.exception_handler(ValidationFailedError)
    async def validation_failed(request: Request, exc: ValidationFailedError):
        return JSONResponse(
            status_code=400,
            content={"error": "Validation failed", "errors": exc.errors},
        )

    @app.exception_handler(AfterChangeError)
    async def after_change_failed(request: Request, exc: AfterChangeError):
        doc = await _read_view(
            request.app.state.cms, exc.collection, exc.doc, get_current_user(request)
        )
        return JSONResponse(
            status_code=500,
            content={"error": str(exc), "doc": jsonable_encoder(doc)},
        )

    @app.exception_handler(CMSError)
    async def cms_error(request: Request, exc: CMSError):
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})


def _create_router(cms: TinyCMS, auth_required: bool) -> APIRouter:
    router = APIRouter()

    def writer(request: Request) -> User | None:
        user = get_current_user(request)
        if auth_required and user is None:
            raise HTTPException(401, "Authentication required")
        return user

    @router.get("/health")
    async def health() -> dict[str, Any]:
        return {"status": "ok", "version": __version__}

    @router.get("/collections")
    async def list_collections() -> dict[str, Any]:
        return {"collections": cms.list_collections()}

    @router.get("/collections/{collection}")
    async def find_documents(
        collection: str,
        request: Request,
        where: str | None = None,
        order_by: str | None = Query(None, alias="orderBy"),
        limit: int = 10,
        offset: int = 0,
    ):
        where_filter = _parse_json_param("where", where)
        order = _parse_json_param("orderBy", order_by)
        try:
            if where_filter is not None:
                validate_where(where_filter)
            options = FindOptions(where=where_filter, order_by=order, limit=limit, offset=offset)
        except ValueError as e:
            raise HTTPException(400, str(e)) from e

        result = await cms.find(collection, options, user=get_current_user(request))
        return jsonable_encoder(result.to_dict())

    @router.get("/collections/{collection}/count")
    async def count_documents(collection: str, request: Request, where: str | None = None):
        where_filter = _parse_json_param("where", where)
        if where_filter is not None:
            try:
                validate_where(where_filter)
            except ValueError as e:
                raise HTTPException(400, str(e)) from e

        total = await cms.count(
            collection, FindOptions(where=where_filter), user=get_current_user(request)
        )
        return {"count": total}

    @router.get("/collections/{collection}/{id}")
    async def get_document(collection: str, id: str, request: Request):
        doc = await cms.find_by_id(collection, id, user=get_current_user(request))
        if doc is None:
            raise HTTPException(404, "Document not found")
        return jsonable_encoder(doc)

    @router.post("/collections/{collection}", status_code=201)
    async def create_document(collection: str, data: dict[str, Any], request: Request):
        user = writer(request)
        doc = await cms.create(collection, data, user=user)
        return jsonable_encoder(await _read_view(cms, collection, doc, user))

    @router.patch("/collections/{collection}/{id}")
    async def update_document(collection: str, id: str, data: dict[str, Any], request: Request):
        user = writer(request)
        doc = await cms.update(collection, id, data, user=user)
        return jsonable_encoder(await _read_view(cms, collection, doc, user))

    @router.delete("/collections/{collection}/{id}")
    async def delete_document(collection: str, id: str, request: Request):
        await cms.delete(collection, id, user=writer(request))
        return {"success": True}

    return router


def create_app(cms: TinyCMS, jwt_service: JWTService | None = None) -> FastAPI:
    """Build the FastAPI app for a CMS instance.

    The app's lifespan initializes and shuts down the CMS. When
    ``jwt_service`` is given, Bearer tokens identify the user and writes
    require one; without it every request is anonymous.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await cms.init()
        yield
        await cms.shutdown()

    app = FastAPI(title="TinyCMS API", version=__version__, lifespan=lifespan)
    app.state.cms = cms

    if jwt_service is not None:
        app.add_middleware(AuthMiddleware, jwt_service=jwt_service)

    _register_error_handlers(app)
    app.include_router(
        _create_router(cms, auth_required=jwt_service is not None),
        prefix=cms.config.base_api_path,
    )
    return app


def register_plugin_routes(app: FastAPI, plugins: Iterable[Plugin], prefix: str = "/api") -> None:
    """Let each plugin that has ``register_routes(app, prefix)`` add its routes."""
    for plugin in plugins:
        register = getattr(plugin, "register_routes", None)
        if callable(register):
            register(app, prefix)
            logger.info("Registered routes for plugin %s", type(plugin).__name__)


def create_app_from_env(plugins: Iterable[Plugin] = ()) -> FastAPI:
    """App factory driven by TINYCMS_* environment variables (used by ``tinycms serve``).

    With authentication enabled and a ``users`` collection configured, the
    email/password routes are mounted under ``<base path>/auth``.
    """
    settings = Settings.from_env()
    config = load_config(settings, plugins=tuple(plugins))

    jwt_service = None if settings.disable_auth else JWTService(settings.secret_key)
    if jwt_service is None:
        logger.warning("Authentication is disabled (TINYCMS_DISABLE_AUTH)")
    elif config.get_collection("users") is not None:
        config = replace(config, plugins=config.plugins + (PasswordAuthPlugin(jwt_service),))

    cms = TinyCMS(config)
    app = create_app(cms, jwt_service=jwt_service)
    register_plugin_routes(app, cms.config.plugins, prefix=cms.config.base_api_path)
    return app
