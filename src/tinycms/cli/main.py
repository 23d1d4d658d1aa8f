"""TinyCMS CLI entry point."""

import logging

import click
import uvicorn

from tinycms.auth.jwt_service import JWTService
from tinycms.auth.types import User
from tinycms.config import Settings


@click.group()
def cli():
    """TinyCMS headless content management CLI."""
    logging.basicConfig(
        level=Settings.from_env().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option("--user-id", required=True, help="User id (token subject).")
@click.option("--role", default=None, help="Role claim, e.g. editor or admin.")
@click.option("--email", default=None, help="Email claim.")
@click.option("--ttl", default=JWTService.ACCESS_TOKEN_TTL, show_default=True, help="Lifetime in seconds.")
def token(user_id: str, role: str | None, email: str | None, ttl: int):
    """Mint a development access token signed with $TINYCMS_SECRET_KEY."""
    settings = Settings.from_env()
    service = JWTService(settings.secret_key)
    click.echo(service.generate_token(User(id=user_id, email=email, role=role), ttl=ttl))


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=None, type=int, help="Port (default: $TINYCMS_PORT or 8000).")
@click.option("--reload", is_flag=True, default=False, help="Reload on code changes.")
def serve(host: str, port: int | None, reload: bool):
    """Run the HTTP API."""
    settings = Settings.from_env()
    uvicorn.run(
        "tinycms.api.app:create_app_from_env",
        factory=True,
        host=host,
        port=port or settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


# Register subcommand groups
from tinycms.cli.metadata_cmd import metadata  # noqa: E402

cli.add_command(metadata)
