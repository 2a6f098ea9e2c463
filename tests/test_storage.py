"""
Tests for storage backends.
"""

import os
import shutil
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from docstore.errors import (
    DecodeError,
    EncodeError,
    InvalidKeyError,
    MethodDeniedError,
    NotFoundError,
    StorageError,
)
from docstore.storage import (
    DenyStorage,
    JSONStorage,
    MemoryStorage,
    NamespaceRegistry,
    YAMLStorage,
    create_storage,
    escape_identifier,
    unescape_identifier,
)


@pytest.fixture
def temp_dir():
    """Temporary directory removed after the test."""
    path = tempfile.mkdtemp()
    yield Path(path)
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture(params=["memory", "json", "yaml"])
def storage(request, temp_dir):
    """Each backend in turn."""
    return create_storage(request.param, path=temp_dir / "store")


class TestContract:
    """Behaviour every backend shares."""

    def test_write_read(self, storage):
        doc = {"title": "Ünïcode", "tags": ["a", "b"], "n": 1.5, "ok": True, "none": None,
               "nested": {"x": [1, {"y": 2}]}}
        storage.write("book", doc)
        assert storage.read("book") == doc

    def test_read_missing(self, storage):
        with pytest.raises(NotFoundError) as exc_info:
            storage.read("missing")
        assert exc_info.value.identifier == "missing"

    def test_write_replaces(self, storage):
        storage.write("book", {"v": 1})
        storage.write("book", {"v": 2})
        assert storage.read("book") == {"v": 2}
        assert storage.index() == ["book"]

    def test_erase(self, storage):
        storage.write("book", {"v": 1})
        storage.erase("book")
        assert not storage.exist("book")
        with pytest.raises(NotFoundError):
            storage.erase("book")

    def test_exist(self, storage):
        assert not storage.exist("book")
        storage.write("book", {})
        assert storage.exist("book")

    def test_index(self, storage):
        for identifier in ["a", "b/c", "d.e", "f g", "ü"]:
            storage.write(identifier, {"id": identifier})
        assert sorted(storage.index()) == sorted(["a", "b/c", "d.e", "f g", "ü"])

    def test_read_returns_copy(self, storage):
        storage.write("book", {"tags": ["a"]})
        storage.read("book")["tags"].append("b")
        assert storage.read("book") == {"tags": ["a"]}

    def test_unserializable_document(self, storage):
        with pytest.raises(EncodeError):
            storage.write("book", {"obj": object()})
        assert not storage.exist("book")


class TestEscaping:
    """Identifier escaping for file backends."""

    @pytest.mark.parametrize("identifier", [
        "plain", "with space", "a/b", "..", ".", "100%", "%41", "~user", "ü", "a.b.c", "-_-",
    ])
    def test_round_trip(self, identifier):
        key = escape_identifier(identifier)
        assert unescape_identifier(key) == identifier
        assert "/" not in key
        assert not key.startswith(".")

    def test_no_collisions(self):
        identifiers = ["a.b", "a%2Eb", "a%2eb", "A.b", "a b", "a+b", "a%20b"]
        keys = [escape_identifier(i) for i in identifiers]
        assert len(set(keys)) == len(identifiers)

    @pytest.mark.parametrize("key", ["a.b", "a%2eb", "%FF", "a b", "%zz"])
    def test_foreign_keys_rejected(self, key):
        with pytest.raises(InvalidKeyError):
            unescape_identifier(key)

    def test_empty_identifier(self):
        with pytest.raises(ValueError):
            escape_identifier("")


class TestFileStorage:
    """File backend specifics."""

    def test_file_layout(self, temp_dir):
        storage = JSONStorage(temp_dir)
        storage.write("a/b", {"v": 1})
        assert (temp_dir / "a%2Fb.json").is_file()

    def test_index_skips_foreign_files(self, temp_dir):
        storage = JSONStorage(temp_dir)
        storage.write("good", {"v": 1})
        (temp_dir / "bad name.json").write_text("{}")
        (temp_dir / "notes.txt").write_text("hello")
        assert storage.index() == ["good"]

    def test_corrupt_json(self, temp_dir):
        storage = JSONStorage(temp_dir)
        (temp_dir / "broken.json").write_text("{not json")
        with pytest.raises(DecodeError):
            storage.read("broken")

    def test_yaml_non_document(self, temp_dir):
        storage = YAMLStorage(temp_dir)
        (temp_dir / "list.yaml").write_text("- a\n- b\n")
        with pytest.raises(DecodeError):
            storage.read("list")

    def test_yaml_is_human_readable(self, temp_dir):
        storage = YAMLStorage(temp_dir)
        storage.write("book", {"title": "SICP", "year": 1985})
        assert (temp_dir / "book.yaml").read_text() == "title: SICP\nyear: 1985\n"

    def test_unencodable_text_leaves_no_temp_file(self, temp_dir):
        storage = JSONStorage(temp_dir)
        with pytest.raises(EncodeError):
            storage.write("x", {"bad": "\ud800"})
        assert os.listdir(temp_dir) == []
        assert storage.index() == []

    def test_failed_replace_leaves_no_temp_file(self, temp_dir):
        storage = JSONStorage(temp_dir)
        with patch("docstore.storage.file.os.replace", side_effect=PermissionError("denied")):
            with pytest.raises(StorageError):
                storage.write("x", {"v": 1})
        assert os.listdir(temp_dir) == []

    def test_missing_directory_without_create(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            JSONStorage(temp_dir / "nope", create=False)


class TestMemoryNamespaces:
    """Shared memory namespaces."""

    def test_private_by_default(self):
        a, b = MemoryStorage(), MemoryStorage()
        a.write("x", {"v": 1})
        assert not b.exist("x")

    def test_shared_through_registry(self):
        registry = NamespaceRegistry()
        a = MemoryStorage(namespace="books", registry=registry)
        b = MemoryStorage(namespace="books", registry=registry)
        c = MemoryStorage(namespace="notes", registry=registry)
        a.write("x", {"v": 1})
        assert b.read("x") == {"v": 1}
        assert not c.exist("x")
        assert registry.namespaces() == ["books", "notes"]
        assert "books" in registry
        assert len(registry) == 2

    def test_separate_registries_do_not_share(self):
        a = MemoryStorage(namespace="books", registry=NamespaceRegistry())
        b = MemoryStorage(namespace="books", registry=NamespaceRegistry())
        a.write("x", {"v": 1})
        assert not b.exist("x")

    def test_drop(self):
        registry = NamespaceRegistry()
        MemoryStorage(namespace="books", registry=registry).write("x", {})
        assert registry.drop("books")
        assert not registry.drop("books")
        assert not MemoryStorage(namespace="books", registry=registry).exist("x")

    def test_namespace_requires_registry(self):
        with pytest.raises(ValueError):
            MemoryStorage(namespace="books")


class TestDenyStorage:
    """Method denial."""

    def test_denied_methods(self):
        inner = MemoryStorage()
        inner.write("x", {"v": 1})
        readonly = DenyStorage(inner, ["write", "erase"])
        assert readonly.read("x") == {"v": 1}
        assert readonly.index() == ["x"]
        with pytest.raises(MethodDeniedError, match="method denied: write"):
            readonly.write("y", {})
        with pytest.raises(MethodDeniedError):
            readonly.erase("x")
        assert inner.exist("x")

    def test_unknown_method(self):
        with pytest.raises(ValueError):
            DenyStorage(MemoryStorage(), ["drop"])


class TestFactory:
    """create_storage."""

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_storage("sqlite")

    def test_file_backend_needs_path(self):
        with pytest.raises(ValueError):
            create_storage("json")

    def test_backends(self, temp_dir):
        assert isinstance(create_storage("json", path=temp_dir), JSONStorage)
        assert isinstance(create_storage("yaml", path=temp_dir), YAMLStorage)
        assert isinstance(create_storage("memory"), MemoryStorage)
