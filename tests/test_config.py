"""Tests for Config, plugins, and environment settings."""

from dataclasses import replace
from pathlib import Path

import pytest

from tinycms import Config, TinyCMS, build_config, create_cms
from tinycms.auth.types import User
from tinycms.config import DEFAULT_SECRET_KEY, Settings, load_config
from tinycms.hooks import CollectionHooks
from tinycms.metadata.loader import CollectionDefinition, FieldDefinition
from tinycms.persistence import DatabaseConfig
from tinycms.plugins import AuditLogPlugin

_METADATA_DIR = Path(__file__).resolve().parents[1] / "metadata"


def _collection(name: str) -> CollectionDefinition:
    return CollectionDefinition(name=name, fields=(FieldDefinition(name="title", type="text"),))


def add_collection(name: str):
    def plugin(config: Config) -> Config:
        return replace(config, collections=config.collections + (_collection(name),))

    plugin.__name__ = f"add_{name}"
    return plugin


# =============================================================================
# Config
# =============================================================================


class TestConfig:
    def test_defaults(self):
        config = Config()
        assert config.collections == ()
        assert config.db == DatabaseConfig("memory://")
        assert not config.strict_access
        assert config.base_api_path == "/api"

    def test_lists_become_tuples(self):
        config = Config(collections=[_collection("posts")], plugins=[add_collection("tags")])
        assert isinstance(config.collections, tuple)
        assert isinstance(config.plugins, tuple)

    def test_duplicate_collection_names(self):
        with pytest.raises(ValueError, match="Duplicate collection name"):
            Config(collections=[_collection("posts"), _collection("posts")])

    def test_replace_collection(self):
        config = Config(collections=[_collection("posts"), _collection("pages")])
        renamed = replace(_collection("posts"), table_name="cms_posts")
        updated = config.replace_collection(renamed)
        assert updated.get_collection("posts").table_name == "cms_posts"
        assert config.get_collection("posts").table_name is None
        assert [c.name for c in updated.collections] == ["posts", "pages"]


# =============================================================================
# build_config
# =============================================================================


class TestBuildConfig:
    def test_plugins_applied_in_order(self):
        config = Config(plugins=[add_collection("a"), add_collection("b")])
        built = build_config(config)
        assert [c.name for c in built.collections] == ["a", "b"]

    def test_plugin_sees_previous_output(self):
        seen = []

        def observer(config):
            seen.append([c.name for c in config.collections])
            return config

        build_config(Config(plugins=[add_collection("a"), observer]))
        assert seen == [["a"]]

    def test_input_not_mutated(self):
        config = Config(collections=[_collection("posts")], plugins=[add_collection("tags")])
        built = build_config(config)
        assert [c.name for c in config.collections] == ["posts"]
        assert [c.name for c in built.collections] == ["posts", "tags"]
        assert built.plugins == config.plugins

    def test_no_plugins(self):
        config = Config(collections=[_collection("posts")])
        assert build_config(config) == config

    def test_plugin_must_return_config(self):
        def broken(config):
            return None

        with pytest.raises(TypeError, match="expected Config"):
            build_config(Config(plugins=[broken]))

    def test_tinycms_applies_plugins_once(self):
        calls = []

        def counting(config):
            calls.append(1)
            return config

        cms = TinyCMS(Config(plugins=[counting, add_collection("notes")]))
        assert calls == [1]
        assert cms.list_collections() == ["notes"]
        assert cms.config.get_collection("notes") is not None


# =============================================================================
# AuditLogPlugin
# =============================================================================


class TestAuditLogPlugin:
    @pytest.mark.asyncio
    async def test_records_writes(self):
        audit = AuditLogPlugin()
        cms = await create_cms(Config(collections=[_collection("posts")], plugins=[audit]))
        user = User(id="u1", role="editor")

        doc = await cms.create("posts", {"title": "One"}, user=user)
        await cms.update("posts", doc["id"], {"title": "Two"})

        entries = list(audit.entries)
        assert [(e["operation"], e["id"], e["userId"]) for e in entries] == [
            ("create", doc["id"], "u1"),
            ("update", doc["id"], None),
        ]
        assert all(e["collection"] == "posts" for e in entries)

    @pytest.mark.asyncio
    async def test_keeps_existing_after_change(self):
        calls = []
        posts = replace(
            _collection("posts"),
            hooks=CollectionHooks(after_change=lambda doc, context, previous_doc: calls.append(doc["id"])),
        )
        audit = AuditLogPlugin()
        cms = await create_cms(Config(collections=[posts], plugins=[audit]))

        doc = await cms.create("posts", {"title": "One"})
        assert calls == [doc["id"]]
        assert len(audit.entries) == 1

    @pytest.mark.asyncio
    async def test_only_selected_collections(self):
        audit = AuditLogPlugin(collections=["posts"])
        cms = await create_cms(
            Config(collections=[_collection("posts"), _collection("pages")], plugins=[audit])
        )
        await cms.create("pages", {"title": "About"})
        assert len(audit.entries) == 0
        await cms.create("posts", {"title": "Hello"})
        assert len(audit.entries) == 1

    def test_does_not_mutate_input(self):
        posts = _collection("posts")
        config = Config(collections=[posts])
        AuditLogPlugin()(config)
        assert config.collections[0] is posts
        assert posts.hooks.after_change is None

    @pytest.mark.asyncio
    async def test_max_entries(self):
        audit = AuditLogPlugin(max_entries=2)
        cms = await create_cms(Config(collections=[_collection("posts")], plugins=[audit]))
        for i in range(3):
            await cms.create("posts", {"title": str(i)})
        assert len(audit.entries) == 2


# =============================================================================
# Settings
# =============================================================================


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in (
            "TINYCMS_DATABASE_URL",
            "TINYCMS_METADATA_PATH",
            "TINYCMS_SECRET_KEY",
            "TINYCMS_DISABLE_AUTH",
            "TINYCMS_STRICT_ACCESS",
            "TINYCMS_LOG_LEVEL",
            "TINYCMS_PORT",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = Settings.from_env()
        assert settings.database_url == "memory://"
        assert settings.metadata_path == Path("./metadata")
        assert settings.secret_key == DEFAULT_SECRET_KEY
        assert not settings.disable_auth
        assert not settings.strict_access
        assert settings.log_level == "INFO"
        assert settings.port == 8000

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("TINYCMS_DATABASE_URL", "file:///tmp/cms.json")
        monkeypatch.setenv("TINYCMS_SECRET_KEY", "s3cret")
        monkeypatch.setenv("TINYCMS_DISABLE_AUTH", "true")
        monkeypatch.setenv("TINYCMS_STRICT_ACCESS", "1")
        monkeypatch.setenv("TINYCMS_LOG_LEVEL", "debug")
        monkeypatch.setenv("TINYCMS_PORT", "9000")

        settings = Settings.from_env()
        assert settings.database_url == "file:///tmp/cms.json"
        assert settings.secret_key == "s3cret"
        assert settings.disable_auth
        assert settings.strict_access
        assert settings.log_level == "DEBUG"
        assert settings.port == 9000

    def test_load_config(self):
        audit = AuditLogPlugin()
        settings = Settings(metadata_path=_METADATA_DIR, strict_access=True)
        config = load_config(settings, plugins=[audit])
        assert sorted(c.name for c in config.collections) == ["categories", "posts", "users"]
        assert config.strict_access
        assert config.plugins == (audit,)
        assert config.db.is_memory
