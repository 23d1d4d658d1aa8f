"""Bundled plugins."""

from tinycms.plugins.audit import AuditLogPlugin
from tinycms.plugins.password_auth import PasswordAuthPlugin

__all__ = ["AuditLogPlugin", "PasswordAuthPlugin"]
