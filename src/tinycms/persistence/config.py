"""Storage configuration and adapter factory."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tinycms.persistence.adapter import StorageAdapter


@dataclass(frozen=True)
class DatabaseConfig:
    """Storage connection configuration.

    Supports memory:// and file:///path/to/db.json URL schemes.
    """

    url: str = "memory://"

    @classmethod
    def from_env(cls) -> DatabaseConfig:
        """Create config from TINYCMS_DATABASE_URL (default: memory://)."""
        return cls(url=os.environ.get("TINYCMS_DATABASE_URL", "memory://"))

    @property
    def is_memory(self) -> bool:
        return self.url.startswith("memory://")

    @property
    def is_file(self) -> bool:
        return self.url.startswith("file://")

    @property
    def file_path(self) -> str:
        """Filesystem path of a file:// URL."""
        return self.url[len("file://"):]


def create_adapter(config: DatabaseConfig) -> StorageAdapter:
    """Create a storage adapter based on the URL scheme.

    Args:
        config: Database configuration with URL.

    Returns:
        A StorageAdapter instance (not yet connected).

    Raises:
        ValueError: For unsupported URL schemes.
    """
    if config.is_memory:
        from tinycms.persistence.memory import MemoryAdapter

        return MemoryAdapter()

    if config.is_file:
        from tinycms.persistence.jsonfile import JSONFileAdapter

        if not config.file_path:
            raise ValueError(f"Missing file path in database URL: {config.url}")
        return JSONFileAdapter(config.file_path)

    raise ValueError(f"Unsupported database URL scheme: {config.url}")
