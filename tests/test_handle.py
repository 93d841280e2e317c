import os
from concurrent.futures import ThreadPoolExecutor

import pytest

from bucketfs.client.exceptions import (
    HandleClosedError,
    InvalidSeekError,
    ModeMismatchError,
    ObjectError,
    StoreOperationFailed,
    UnsupportedSeekError,
)
from bucketfs.fs.handle import Handle, HandleMode
from bucketfs.testing import InMemoryObjectStore

BUCKET = "test-bucket"

class FailingPutStore(InMemoryObjectStore):
    """Store whose uploads always fail."""
    def put_object(self, bucket, key, data):
        self._record("put_object", key)
        raise ObjectError("simulated outage", operation="PUT")

def test_sequential_writes_are_uploaded_once_on_close(fs, store):
    handle = fs.create("logs/app.log")
    handle.write(b"first line\n")
    handle.write(b"second line\n")
    assert store.count_calls("put_object") == 0, "write must not touch the store"
    assert "logs/app.log" not in store.keys()

    handle.close()
    assert store.get_object(BUCKET, "logs/app.log") == b"first line\nsecond line\n"
    assert store.count_calls("put_object") == 1

def test_write_string(fs, store):
    with fs.create("greeting.txt") as handle:
        assert handle.write_string("héllo") == len("héllo".encode("utf-8"))
    assert store.get_object(BUCKET, "greeting.txt") == "héllo".encode("utf-8")

def test_write_at_past_end_zero_fills(fs):
    handle = fs.create("sparse.bin")
    handle.write(b"abc")
    assert handle.write_at(b"xyz", 6) == 3
    assert handle.getvalue() == b"abc\x00\x00\x00xyz"
    assert handle.tell() == 3, "write_at must not move the position"

def test_write_at_overlays_without_shrinking(fs):
    handle = fs.create("overlay.bin")
    handle.write(b"0123456789")
    handle.write_at(b"ab", 2)
    assert handle.getvalue() == b"01ab456789"

def test_write_after_seek_overlays(fs):
    handle = fs.create("seek-write.bin")
    handle.write(b"hello world")
    handle.seek(0)
    handle.write(b"J")
    assert handle.getvalue() == b"Jello world"

def test_truncate_shrinks_then_zero_extends(fs):
    handle = fs.create("trunc.bin")
    handle.write(b"abcdefgh")
    handle.truncate(3)
    handle.truncate(6)
    assert handle.getvalue() == b"abc\x00\x00\x00"

def test_truncate_negative_size_rejected(fs):
    handle = fs.create("trunc.bin")
    with pytest.raises(ValueError):
        handle.truncate(-1)

def test_read_is_lazy_and_sequential(fs, store):
    store.put_object(BUCKET, "data.txt", b"0123456789")
    handle = fs.open("data.txt")
    assert store.count_calls("get_object_stream") == 0

    assert handle.read(4) == b"0123"
    assert handle.read(4) == b"4567"
    assert handle.read(4) == b"89"
    assert handle.read(4) == b""
    assert store.count_calls("get_object_stream") == 1
    assert handle.tell() == 10

def test_read_all(fs, store):
    store.put_object(BUCKET, "data.txt", b"whole object")
    with fs.open("/data.txt") as handle:
        assert handle.read() == b"whole object"

def test_readinto(fs, store):
    store.put_object(BUCKET, "data.txt", b"abcdef")
    handle = fs.open("data.txt")
    buffer = bytearray(4)
    assert handle.readinto(buffer) == 4
    assert bytes(buffer) == b"abcd"
    assert handle.readinto(buffer) == 2
    assert bytes(buffer[:2]) == b"ef"
    assert handle.readinto(buffer) == 0

def test_seek_reopens_stream_at_new_position(fs, store):
    store.put_object(BUCKET, "data.txt", b"0123456789")
    handle = fs.open("data.txt")
    assert handle.read(2) == b"01"

    handle.seek(0, os.SEEK_CUR)
    assert handle.read(1) == b"2"
    assert store.count_calls("get_object_stream") == 1, "seek to the current offset keeps the stream"

    handle.seek(7)
    assert handle.read(2) == b"78"
    assert store.count_calls("get_object_stream") == 2

def test_read_at_is_independent_of_position(fs, store):
    store.put_object(BUCKET, "data.txt", b"0123456789")
    handle = fs.open("data.txt")
    assert handle.read_at(3, 4) == b"456"
    assert handle.read_at(5, 8) == b"89"
    assert handle.read_at(5, 20) == b""
    assert handle.tell() == 0
    assert handle.read(2) == b"01"

def test_read_at_concurrent(fs, store):
    data = bytes(range(256)) * 64
    store.put_object(BUCKET, "blob.bin", data)
    handle = fs.open("blob.bin")
    offsets = list(range(0, len(data), 512))

    with ThreadPoolExecutor(max_workers=8) as executor:
        chunks = list(executor.map(lambda offset: handle.read_at(512, offset), offsets))

    assert b"".join(chunks) == data

def test_read_missing_object(fs):
    handle = fs.open("missing.txt")
    with pytest.raises(StoreOperationFailed) as excinfo:
        handle.read()
    assert excinfo.value.operation == "Read"
    assert excinfo.value.is_not_found

def test_read_at_missing_object(fs):
    handle = fs.open("missing.txt")
    with pytest.raises(StoreOperationFailed) as excinfo:
        handle.read_at(10, 0)
    assert excinfo.value.operation == "ReadAt"

@pytest.mark.parametrize("operation", [
    lambda h: h.read(),
    lambda h: h.read_at(1, 0),
    lambda h: h.readinto(bytearray(1)),
])
def test_read_operations_on_write_handle(fs, operation):
    handle = fs.create("out.txt")
    with pytest.raises(ModeMismatchError):
        operation(handle)

@pytest.mark.parametrize("operation", [
    lambda h: h.write(b"x"),
    lambda h: h.write_at(b"x", 0),
    lambda h: h.write_string("x"),
    lambda h: h.truncate(0),
])
def test_write_operations_on_read_handle(fs, store, operation):
    store.put_object(BUCKET, "in.txt", b"data")
    handle = fs.open("in.txt")
    with pytest.raises(ModeMismatchError):
        operation(handle)
    assert store.get_object(BUCKET, "in.txt") == b"data"

def test_seek_set_and_cur(fs):
    handle = fs.create("seek.bin")
    assert handle.seek(10, os.SEEK_SET) == 10
    assert handle.seek(5, os.SEEK_CUR) == 15
    assert handle.tell() == 15

def test_seek_end_unsupported(fs):
    handle = fs.create("seek.bin")
    with pytest.raises(UnsupportedSeekError):
        handle.seek(0, os.SEEK_END)

def test_seek_invalid(fs):
    handle = fs.create("seek.bin")
    with pytest.raises(InvalidSeekError):
        handle.seek(-1)
    with pytest.raises(InvalidSeekError):
        handle.seek(0, 42)
    assert handle.tell() == 0

def test_unsupported_and_invalid_seek_are_distinct():
    assert not issubclass(UnsupportedSeekError, InvalidSeekError)
    assert not issubclass(InvalidSeekError, UnsupportedSeekError)

def test_close_twice_uploads_once(fs, store):
    handle = fs.create("once.txt")
    handle.write(b"x")
    handle.close()
    handle.close()
    assert store.count_calls("put_object") == 1

def test_close_failure_is_not_retried():
    store = FailingPutStore(buckets=(BUCKET,))
    handle = Handle(store, BUCKET, "broken.txt", HandleMode.WRITE)
    handle.write(b"payload")

    with pytest.raises(StoreOperationFailed) as excinfo:
        handle.close()
    assert excinfo.value.operation == "Close"
    assert isinstance(excinfo.value.__cause__, ObjectError)

    handle.close()
    assert store.count_calls("put_object") == 1
    assert handle.closed

def test_operations_after_close(fs, store):
    handle = fs.create("closed.txt")
    handle.close()
    with pytest.raises(HandleClosedError):
        handle.write(b"late")
    with pytest.raises(HandleClosedError):
        handle.seek(0)

    store.put_object(BUCKET, "in.txt", b"data")
    reader = fs.open("in.txt")
    reader.read(1)
    reader.close()
    with pytest.raises(HandleClosedError):
        reader.read()

def test_empty_write_handle_creates_empty_object(fs, store):
    with fs.create("empty.txt"):
        pass
    assert store.get_object(BUCKET, "empty.txt") == b""

def test_sync_is_noop(fs, store):
    handle = fs.create("sync.txt")
    handle.write(b"pending")
    handle.sync()
    assert store.count_calls("put_object") == 0

def test_stat(fs, store):
    store.put_object(BUCKET, "docs/readme.md", b"# readme")
    info = fs.open("docs/readme.md").stat()
    assert info.name == "readme.md"
    assert info.size == 8
    assert not info.is_dir
    assert info.mode == 0o644

def test_stat_missing(fs):
    with pytest.raises(StoreOperationFailed) as excinfo:
        fs.open("nope").stat()
    assert excinfo.value.operation == "Stat"
    assert excinfo.value.is_not_found

def test_readdir(paged_fs, paged_store):
    for key in ["dir/", "dir/a.txt", "dir/b.txt", "dir/sub/c.txt", "dirx/d.txt"]:
        paged_store.put_object(BUCKET, key, b"")
    handle = paged_fs.open("dir")

    assert handle.readdirnames() == ["dir/", "dir/a.txt", "dir/b.txt", "dir/sub/c.txt"]
    assert handle.readdirnames(2) == ["dir/", "dir/a.txt"]
    infos = handle.readdir()
    assert infos[0].is_dir
    assert [info.name for info in infos[1:]] == ["a.txt", "b.txt", "c.txt"]

def test_name_strips_leading_separator(fs):
    handle = fs.open("/a/b.txt")
    assert handle.name == "a/b.txt"
    assert handle.key == "a/b.txt"

def test_size_tracks_pending_buffer(fs):
    handle = fs.create("sized.bin")
    assert handle.size == 0
    handle.write(b"abc")
    handle.write_at(b"xy", 10)
    assert handle.size == 12
    handle.truncate(4)
    assert handle.size == 4
    handle.close()

def test_size_of_read_handle_is_zero(fs, store):
    store.put_object(BUCKET, "r.bin", b"data")
    with fs.open("r.bin") as handle:
        assert handle.size == 0
