import os

import pytest

from bucketfs.client.exceptions import ObjectError, StoreOperationFailed
from bucketfs.fs.filesystem import FileSystem
from bucketfs.fs.handle import HandleMode
from bucketfs.testing import InMemoryObjectStore

BUCKET = "test-bucket"

class FailingDeleteStore(InMemoryObjectStore):
    def delete_object(self, bucket, key):
        raise ObjectError("simulated delete failure", operation="DELETE")

@pytest.mark.parametrize("flags,mode", [
    (os.O_RDONLY, HandleMode.READ),
    (os.O_WRONLY, HandleMode.WRITE),
    (os.O_RDWR, HandleMode.WRITE),
    (os.O_CREAT, HandleMode.WRITE),
    (os.O_WRONLY | os.O_CREAT | os.O_TRUNC, HandleMode.WRITE),
    (os.O_RDONLY | os.O_TRUNC, HandleMode.READ),
])
def test_open_file_mode_from_flags(fs, flags, mode):
    assert fs.open_file("file.txt", flags).mode is mode

def test_create_then_open_round_trip(fs):
    with fs.create("/notes/today.txt") as handle:
        handle.write(b"buy milk")
    with fs.open("notes/today.txt") as handle:
        assert handle.read() == b"buy milk"

def test_leading_separator_addresses_same_object(fs, store):
    with fs.create("/a/b.txt") as handle:
        handle.write(b"x")
    assert store.keys() == ["a/b.txt"]
    assert fs.exists("a/b.txt")
    assert fs.exists("/a/b.txt")

def test_mkdir_writes_marker(fs, store):
    fs.mkdir("photos")
    assert store.keys() == ["photos/"]
    assert store.get_object(BUCKET, "photos/") == b""
    assert fs.is_dir("photos")
    assert fs.stat("photos/").is_dir

def test_mkdir_all(fs, store):
    fs.mkdir_all("/a/b/c")
    assert store.keys() == ["a/", "a/b/", "a/b/c/"]

def test_remove(fs, store):
    store.put_object(BUCKET, "gone.txt", b"x")
    fs.remove("gone.txt")
    fs.remove("gone.txt")
    assert store.keys() == []

def test_remove_failure():
    fs = FileSystem(FailingDeleteStore(buckets=(BUCKET,)), BUCKET)
    with pytest.raises(StoreOperationFailed) as excinfo:
        fs.remove("x")
    assert excinfo.value.operation == "Remove"

def test_remove_all(fs, store):
    for key in ["d/", "d/x", "d/sub/y", "e"]:
        store.put_object(BUCKET, key, b"")
    fs.remove_all("d")
    assert store.keys() == ["e"]

def test_rename_file(fs, store):
    store.put_object(BUCKET, "old.txt", b"content")
    assert fs.rename("/old.txt", "/new.txt") == 1
    assert store.keys() == ["new.txt"]
    assert store.get_object(BUCKET, "new.txt") == b"content"

def test_rename_directory(paged_fs, paged_store):
    for key in ["src/", "src/a", "src/sub/b", "srcx"]:
        paged_store.put_object(BUCKET, key, key.encode())
    assert paged_fs.rename("src", "dst") == 3
    assert paged_store.keys() == ["dst/", "dst/a", "dst/sub/b", "srcx"]
    assert paged_store.get_object(BUCKET, "dst/sub/b") == b"src/sub/b"

def test_rename_missing(fs):
    with pytest.raises(StoreOperationFailed) as excinfo:
        fs.rename("missing", "elsewhere")
    assert excinfo.value.operation == "Rename"
    assert excinfo.value.is_not_found

def test_rename_root_rejected(fs):
    with pytest.raises(ValueError):
        fs.rename("/", "x")

def test_stat(fs, store):
    store.put_object(BUCKET, "a/b.txt", b"12345")
    info = fs.stat("/a/b.txt")
    assert info.name == "b.txt"
    assert info.key == "a/b.txt"
    assert info.size == 5
    assert info.is_file

def test_stat_missing(fs):
    with pytest.raises(StoreOperationFailed) as excinfo:
        fs.stat("nope")
    assert excinfo.value.is_not_found

def test_is_dir(fs, store):
    store.put_object(BUCKET, "implicit/child.txt", b"")
    store.put_object(BUCKET, "marker/", b"")
    store.put_object(BUCKET, "file", b"")
    assert fs.is_dir("implicit")
    assert fs.is_dir("marker")
    assert fs.is_dir("marker/")
    assert fs.is_dir("/")
    assert not fs.is_dir("file")
    assert not fs.is_dir("missing")

def test_listdir(paged_fs, paged_store):
    for key in ["d/", "d/a.txt", "d/b.txt", "d/sub/", "d/sub/c.txt", "d/deep/x/y", "other"]:
        paged_store.put_object(BUCKET, key, b"")
    assert paged_fs.listdir("d") == ["a.txt", "b.txt", "deep", "sub"]
    assert paged_fs.listdir("/") == ["d", "other"]
    assert paged_fs.listdir("missing") == []

def test_walk(fs, store):
    for key in ["w/1", "w/2"]:
        store.put_object(BUCKET, key, b"")
    seen = []
    fs.walk("w", lambda path, info, error: seen.append(path))
    assert seen == ["w/1", "w/2"]

@pytest.mark.parametrize("call", [
    lambda fs: fs.chmod("a", 0o600),
    lambda fs: fs.chown("a", 0, 0),
    lambda fs: fs.chtimes("a", None, None),
])
def test_posix_metadata_not_implemented(fs, call):
    with pytest.raises(NotImplementedError):
        call(fs)

def test_from_session_builds_client():
    from bucketfs.client.client import ObjectStoreClient
    from bucketfs.client.session import Session

    fs = FileSystem.from_session("my-bucket", Session(region="us-east-1", access_key_id="x", secret_access_key="y"))
    assert isinstance(fs.client, ObjectStoreClient)
    assert fs.bucket == "my-bucket"
