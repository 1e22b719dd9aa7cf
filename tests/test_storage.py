"""Tests for the blob store backends and factory."""

import pytest

from nomination_desk.storage import (
    BlobStoreError,
    FileBlobStore,
    MemoryBlobStore,
    create_blob_store,
)


@pytest.fixture(params=["file", "memory"])
def store(request, tmp_path):
    if request.param == "file":
        return FileBlobStore(tmp_path / "blobs")
    return MemoryBlobStore("unit")


class TestBlobStore:
    def test_put_read_remove(self, store):
        path = "user-1/nom-1/cv_resume/1_cv.pdf"
        assert store.put(path, b"%PDF") == path
        assert store.exists(path)
        assert store.read(path) == b"%PDF"

        store.remove([path])

        assert not store.exists(path)

    def test_remove_missing_is_ignored(self, store):
        store.remove(["never/written.txt"])

    @pytest.mark.parametrize(
        "path", ["", "/abs/path", "a/../b", "./a", "a/./b", "a//b", "a/b/", "a\\b"]
    )
    def test_rejects_unsafe_keys(self, store, path):
        with pytest.raises(BlobStoreError):
            store.put(path, b"x")

    def test_read_missing_raises(self, store):
        with pytest.raises(BlobStoreError):
            store.read("nothing/here")


def test_file_store_writes_under_root(tmp_path):
    store = FileBlobStore(tmp_path)
    store.put("a/b/c.txt", b"hello")
    assert (tmp_path / "a" / "b" / "c.txt").read_bytes() == b"hello"
    assert store.get_uri() == f"file://{tmp_path}"


def test_public_url():
    store = MemoryBlobStore("unit", public_base_url="https://cdn.example.org/files/")
    assert store.get_public_url("u/n/photo_media/1_my photo.jpg") == (
        "https://cdn.example.org/files/u/n/photo_media/1_my%20photo.jpg"
    )
    assert MemoryBlobStore("unit").get_public_url("a.txt") == "memory://unit/a.txt"


class TestCreateBlobStore:
    def test_file_uri(self, tmp_path):
        store = create_blob_store(f"file://{tmp_path}/uploads")
        assert isinstance(store, FileBlobStore)
        assert store.root == tmp_path / "uploads"
        assert store.root.is_dir()

    def test_memory_uri(self):
        store = create_blob_store("memory://scratch", public_base_url="https://x.test")
        assert isinstance(store, MemoryBlobStore)
        assert store.name == "scratch"
        assert store.public_base_url == "https://x.test"

    def test_unsupported_scheme(self):
        with pytest.raises(ValueError, match="Unsupported storage scheme"):
            create_blob_store("s3://bucket")
