"""HTTP API for TinyCMS."""

from tinycms.api.app import create_app, create_app_from_env, register_plugin_routes

__all__ = ["create_app", "create_app_from_env", "register_plugin_routes"]
