"""Persistence layer - storage adapters."""

from tinycms.persistence.adapter import FindOptions, StorageAdapter
from tinycms.persistence.config import DatabaseConfig, create_adapter
from tinycms.persistence.jsonfile import JSONFileAdapter
from tinycms.persistence.memory import MemoryAdapter

__all__ = [
    "DatabaseConfig",
    "FindOptions",
    "JSONFileAdapter",
    "MemoryAdapter",
    "StorageAdapter",
    "create_adapter",
]
