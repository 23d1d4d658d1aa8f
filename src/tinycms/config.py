"""CMS configuration, plugins, and environment settings."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING, Union

from tinycms.metadata.loader import CollectionDefinition, MetadataLoader
from tinycms.persistence.config import DatabaseConfig

if TYPE_CHECKING:
    from tinycms.persistence.adapter import StorageAdapter

logger = logging.getLogger(__name__)

DEFAULT_SECRET_KEY = "dev-secret-key-change-in-production"

# A plugin transforms a Config into a new Config. It may also expose
# register_routes(app) to add HTTP endpoints; see api.app.register_plugin_routes.
Plugin = Callable[["Config"], "Config"]


@dataclass(frozen=True)
class Config:
    """Everything a TinyCMS instance needs.

    Attributes:
        collections: Collection definitions, names must be unique
        db: A DatabaseConfig (adapter built from its URL) or a ready adapter
        plugins: Config transforms applied in order by build_config
        strict_access: Check single-document operations against the read
            or write rule's residual filter
        base_api_path: Prefix for the HTTP routes
    """

    collections: tuple[CollectionDefinition, ...] = ()
    db: Union[DatabaseConfig, StorageAdapter] = field(default_factory=DatabaseConfig)
    plugins: tuple[Plugin, ...] = ()
    strict_access: bool = False
    base_api_path: str = "/api"

    def __post_init__(self) -> None:
        object.__setattr__(self, "collections", tuple(self.collections))
        object.__setattr__(self, "plugins", tuple(self.plugins))
        names = [c.name for c in self.collections]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate collection name(s): {', '.join(duplicates)}")

    def get_collection(self, name: str) -> CollectionDefinition | None:
        for collection in self.collections:
            if collection.name == name:
                return collection
        return None

    def replace_collection(self, collection: CollectionDefinition) -> Config:
        """Return a copy with the same-named collection swapped out."""
        return replace(
            self,
            collections=tuple(
                collection if c.name == collection.name else c
                for c in self.collections
            ),
        )


def build_config(config: Config) -> Config:
    """Apply the config's plugins in order.

    Each plugin receives the previous plugin's output. The input config is
    never modified; the result keeps the plugin list for route registration.
    """
    result = config
    for plugin in config.plugins:
        transformed = plugin(result)
        if not isinstance(transformed, Config):
            raise TypeError(
                f"Plugin {getattr(plugin, '__name__', plugin)!r} returned "
                f"{type(transformed).__name__}, expected Config"
            )
        result = transformed
        logger.debug("Applied plugin %s", getattr(plugin, "__name__", type(plugin).__name__))
    return replace(result, plugins=config.plugins)


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Process settings read from the environment."""

    database_url: str = "memory://"
    metadata_path: Path = Path("./metadata")
    secret_key: str = DEFAULT_SECRET_KEY
    disable_auth: bool = False
    strict_access: bool = False
    log_level: str = "INFO"
    port: int = 8000

    @classmethod
    def from_env(cls) -> Settings:
        """Create settings from TINYCMS_* environment variables."""
        return cls(
            database_url=os.environ.get("TINYCMS_DATABASE_URL", "memory://"),
            metadata_path=Path(os.environ.get("TINYCMS_METADATA_PATH", "./metadata")),
            secret_key=os.environ.get("TINYCMS_SECRET_KEY", DEFAULT_SECRET_KEY),
            disable_auth=_env_flag("TINYCMS_DISABLE_AUTH"),
            strict_access=_env_flag("TINYCMS_STRICT_ACCESS"),
            log_level=os.environ.get("TINYCMS_LOG_LEVEL", "INFO").upper(),
            port=int(os.environ.get("TINYCMS_PORT", "8000")),
        )


def load_config(settings: Settings, plugins: Sequence[Plugin] = ()) -> Config:
    """Build a Config from settings, loading collections from YAML metadata."""
    loader = MetadataLoader(settings.metadata_path)
    loader.load_all()

    if settings.secret_key == DEFAULT_SECRET_KEY and not settings.disable_auth:
        logger.warning("Using the default secret key; set TINYCMS_SECRET_KEY")

    return Config(
        collections=tuple(loader.collections.values()),
        db=DatabaseConfig(url=settings.database_url),
        plugins=tuple(plugins),
        strict_access=settings.strict_access,
    )
