"""Tests for storage adapters and the adapter factory."""

import json

import pytest

from tinycms.errors import StorageError
from tinycms.metadata.loader import CollectionDefinition, FieldDefinition
from tinycms.persistence import (
    DatabaseConfig,
    FindOptions,
    JSONFileAdapter,
    MemoryAdapter,
    StorageAdapter,
    create_adapter,
)


@pytest.fixture
def posts():
    return CollectionDefinition(
        name="posts",
        fields=(
            FieldDefinition(name="title", type="text"),
            FieldDefinition(name="slug", type="text", unique=True),
            FieldDefinition(name="views", type="number"),
        ),
    )


@pytest.fixture
def adapter(posts):
    adapter = MemoryAdapter()
    adapter.connect()
    adapter.initialize_collection(posts)
    return adapter


def _seed(adapter, collection, count):
    return [
        adapter.create(collection, {"title": f"Post {i}", "slug": f"post-{i}", "views": i})
        for i in range(count)
    ]


# =============================================================================
# Protocol conformance
# =============================================================================


class TestProtocol:
    def test_memory_adapter_conforms(self):
        assert isinstance(MemoryAdapter(), StorageAdapter)

    def test_json_adapter_conforms(self, tmp_path):
        assert isinstance(JSONFileAdapter(tmp_path / "db.json"), StorageAdapter)


# =============================================================================
# MemoryAdapter
# =============================================================================


class TestMemoryCreate:
    def test_generates_id_and_timestamps(self, adapter, posts):
        doc = adapter.create(posts, {"title": "Hello"})
        assert doc["id"]
        assert doc["createdAt"] == doc["updatedAt"]
        assert doc["createdAt"].endswith("+00:00")

    def test_no_timestamps_when_disabled(self):
        notes = CollectionDefinition(name="notes", fields=(), timestamps=False)
        adapter = MemoryAdapter()
        adapter.connect()
        adapter.initialize_collection(notes)
        doc = adapter.create(notes, {"text": "x"})
        assert "createdAt" not in doc

    def test_returned_doc_is_a_copy(self, adapter, posts):
        data = {"title": "Hello", "tags": ["a"]}
        doc = adapter.create(posts, data)
        data["tags"].append("b")
        doc["title"] = "changed"
        assert adapter.find_by_id(posts, doc["id"]) == {**doc, "title": "Hello", "tags": ["a"]}

    def test_unique_violation(self, adapter, posts):
        adapter.create(posts, {"slug": "same"})
        with pytest.raises(StorageError, match="Unique constraint"):
            adapter.create(posts, {"slug": "same"})

    def test_unique_ignores_none(self, adapter, posts):
        adapter.create(posts, {"title": "a"})
        adapter.create(posts, {"title": "b"})
        assert adapter.count(posts) == 2

    def test_uninitialized_collection(self, adapter):
        other = CollectionDefinition(name="other", fields=())
        with pytest.raises(StorageError, match="not initialized"):
            adapter.create(other, {})

    def test_not_connected(self, posts):
        with pytest.raises(RuntimeError, match="not connected"):
            MemoryAdapter().create(posts, {})


class TestMemoryFind:
    def test_pagination_and_total(self, adapter, posts):
        _seed(adapter, posts, 25)
        result = adapter.find(posts, FindOptions(limit=10, offset=20, order_by={"views": "asc"}))
        assert result["totalDocs"] == 25
        assert [d["views"] for d in result["docs"]] == [20, 21, 22, 23, 24]

    def test_where_filter(self, adapter, posts):
        _seed(adapter, posts, 5)
        result = adapter.find(posts, FindOptions(where={"views": {"gte": 3}}))
        assert result["totalDocs"] == 2

    def test_order_desc_and_multi_key(self, adapter, posts):
        adapter.create(posts, {"title": "b", "views": 1})
        adapter.create(posts, {"title": "a", "views": 1})
        adapter.create(posts, {"title": "c", "views": 2})
        result = adapter.find(posts, FindOptions(order_by={"views": "desc", "title": "asc"}))
        assert [d["title"] for d in result["docs"]] == ["c", "a", "b"]

    def test_none_sorts_last_ascending(self, adapter, posts):
        adapter.create(posts, {"title": "x"})
        adapter.create(posts, {"title": "y", "views": 3})
        result = adapter.find(posts, FindOptions(order_by={"views": "asc"}))
        assert [d["title"] for d in result["docs"]] == ["y", "x"]

    def test_invalid_filter(self, adapter, posts):
        with pytest.raises(StorageError, match="Invalid filter"):
            adapter.find(posts, FindOptions(where={"views": {"near": 1}}))

    def test_count_with_where(self, adapter, posts):
        _seed(adapter, posts, 4)
        assert adapter.count(posts, {"views": {"in": [0, 1]}}) == 2


class TestFindOptions:
    def test_defaults(self):
        options = FindOptions()
        assert options.limit == 10
        assert options.offset == 0

    @pytest.mark.parametrize("kwargs", [{"limit": 0}, {"offset": -1}, {"order_by": {"a": "up"}}])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            FindOptions(**kwargs)


class TestMemoryUpdateDelete:
    def test_update_writes_only_given_keys(self, adapter, posts):
        doc = adapter.create(posts, {"title": "a", "views": 1})
        updated = adapter.update(posts, doc["id"], {"views": 2, "id": "hijack", "createdAt": "x"})
        assert updated["id"] == doc["id"]
        assert updated["title"] == "a"
        assert updated["views"] == 2
        assert updated["createdAt"] == doc["createdAt"]
        assert updated["updatedAt"] >= doc["updatedAt"]

    def test_update_unknown_id(self, adapter, posts):
        with pytest.raises(StorageError, match="not found"):
            adapter.update(posts, "missing", {"title": "x"})

    def test_update_unique_allows_own_value(self, adapter, posts):
        doc = adapter.create(posts, {"slug": "s"})
        adapter.update(posts, doc["id"], {"slug": "s", "title": "t"})

    def test_update_unique_violation(self, adapter, posts):
        adapter.create(posts, {"slug": "taken"})
        doc = adapter.create(posts, {"slug": "free"})
        with pytest.raises(StorageError):
            adapter.update(posts, doc["id"], {"slug": "taken"})
        assert adapter.find_by_id(posts, doc["id"])["slug"] == "free"

    def test_delete(self, adapter, posts):
        doc = adapter.create(posts, {"title": "a"})
        adapter.delete(posts, doc["id"])
        assert adapter.find_by_id(posts, doc["id"]) is None

    def test_delete_unknown_id(self, adapter, posts):
        with pytest.raises(StorageError):
            adapter.delete(posts, "missing")


# =============================================================================
# JSONFileAdapter
# =============================================================================


class TestJSONFileAdapter:
    def test_persists_across_instances(self, tmp_path, posts):
        path = tmp_path / "data" / "db.json"
        first = JSONFileAdapter(path)
        first.connect()
        first.initialize_collection(posts)
        doc = first.create(posts, {"title": "Saved"})
        first.close()

        second = JSONFileAdapter(path)
        second.connect()
        second.initialize_collection(posts)
        assert second.find_by_id(posts, doc["id"])["title"] == "Saved"

    def test_file_layout(self, tmp_path, posts):
        path = tmp_path / "db.json"
        adapter = JSONFileAdapter(path)
        adapter.connect()
        adapter.initialize_collection(posts)
        doc = adapter.create(posts, {"title": "x"})
        stored = json.loads(path.read_text())
        assert stored["posts"][doc["id"]]["title"] == "x"
        assert not list(tmp_path.glob("*.tmp"))

    def test_delete_is_flushed(self, tmp_path, posts):
        path = tmp_path / "db.json"
        adapter = JSONFileAdapter(path)
        adapter.connect()
        adapter.initialize_collection(posts)
        doc = adapter.create(posts, {"title": "x"})
        adapter.delete(posts, doc["id"])
        assert json.loads(path.read_text())["posts"] == {}

    def test_failed_write_leaves_store_unchanged(self, tmp_path, posts):
        path = tmp_path / "db.json"
        adapter = JSONFileAdapter(path)
        adapter.connect()
        adapter.initialize_collection(posts)

        with pytest.raises(StorageError, match="Failed to write"):
            adapter.create(posts, {"title": "x", "attachment": b"\x89PNG"})

        assert adapter.count(posts) == 0
        assert adapter.find(posts)["docs"] == []
        doc = adapter.create(posts, {"title": "y", "slug": "y"})
        assert json.loads(path.read_text())["posts"] == {doc["id"]: doc}

    def test_failed_update_is_rolled_back(self, tmp_path, posts):
        path = tmp_path / "db.json"
        adapter = JSONFileAdapter(path)
        adapter.connect()
        adapter.initialize_collection(posts)
        doc = adapter.create(posts, {"title": "Original"})
        on_disk = path.read_text()

        with pytest.raises(StorageError):
            adapter.update(posts, doc["id"], {"title": "Changed", "thumbnail": object()})

        assert adapter.find_by_id(posts, doc["id"]) == doc
        assert path.read_text() == on_disk
        assert not list(tmp_path.glob("*.tmp"))

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "db.json"
        path.write_text("{not json")
        with pytest.raises(StorageError, match="Failed to load"):
            JSONFileAdapter(path).connect()

    def test_uses_table_name(self, tmp_path):
        users = CollectionDefinition(name="users", fields=(), table_name="cms_users")
        path = tmp_path / "db.json"
        adapter = JSONFileAdapter(path)
        adapter.connect()
        adapter.initialize_collection(users)
        assert "cms_users" in json.loads(path.read_text())


# =============================================================================
# DatabaseConfig / create_adapter
# =============================================================================


class TestCreateAdapter:
    def test_memory(self):
        assert isinstance(create_adapter(DatabaseConfig("memory://")), MemoryAdapter)

    def test_file(self, tmp_path):
        adapter = create_adapter(DatabaseConfig(f"file://{tmp_path}/db.json"))
        assert isinstance(adapter, JSONFileAdapter)
        assert adapter.path == tmp_path / "db.json"

    def test_unsupported_scheme(self):
        with pytest.raises(ValueError, match="Unsupported"):
            create_adapter(DatabaseConfig("postgresql://localhost/db"))

    def test_from_env(self, monkeypatch):
        monkeypatch.delenv("TINYCMS_DATABASE_URL", raising=False)
        assert DatabaseConfig.from_env().url == "memory://"
        monkeypatch.setenv("TINYCMS_DATABASE_URL", "file:///tmp/x.json")
        assert DatabaseConfig.from_env().is_file
