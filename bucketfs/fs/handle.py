# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Buffered file handles over object storage.

A Handle is opened either for reading or for writing, never both:

- Read handles stream the object. The streaming body is opened lazily on the
  first ``read`` and consumed by later calls; ``read_at`` issues an independent
  ranged fetch per call and never touches the stream.
- Write handles collect every write in an in-memory buffer. Nothing reaches the
  store until ``close``, which uploads the whole buffer with a single put.

Objects too large to hold in memory should be written with
:class:`~bucketfs.fs.multipart.ChunkedUploadSession` instead.
"""

import os
import time
from enum import Enum
from typing import List, Optional

from ..client.exceptions import (
    BucketFSError,
    HandleClosedError,
    InvalidSeekError,
    ModeMismatchError,
    StoreOperationFailed,
    UnsupportedSeekError,
)
from ..utils import logger, time_function, trace_op
from .info import FileInfo
from .paths import clean_key, dir_key
from .tree import iter_objects

class HandleMode(Enum):
    READ = "read"
    WRITE = "write"

class Handle:
    """
    Per-open state for one object.

    Attributes:
        client: The shared object store client.
        bucket (str): Bucket holding the object.
        name (str): Path the handle was opened with, without the leading separator.
        key (str): Object key.
        mode (HandleMode): READ or WRITE, fixed for the life of the handle.
        position (int): Logical offset used by read, write and seek.
        closed (bool): True once close() has been called.
    """

    def __init__(self, client, bucket: str, name: str, mode: HandleMode):
        self.client = client
        self.bucket = bucket
        self.name = clean_key(name)
        self.key = self.name
        self.mode = mode
        self.position = 0
        self.closed = False
        self._stream = None
        self._stream_offset = 0
        self._buffer: Optional[bytearray] = bytearray() if mode is HandleMode.WRITE else None

    def __repr__(self):
        return f"<Handle {self.bucket}/{self.key} mode={self.mode.value} closed={self.closed}>"

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def readable(self) -> bool:
        return self.mode is HandleMode.READ

    @property
    def writable(self) -> bool:
        return self.mode is HandleMode.WRITE

    @property
    def size(self) -> int:
        """Length of the pending write buffer; 0 for a read handle."""
        return len(self._buffer) if self._buffer is not None else 0

    def _check_open(self, operation: str) -> None:
        if self.closed:
            raise HandleClosedError(f"{operation} on closed handle {self.name}")

    def _require_read(self, operation: str) -> None:
        self._check_open(operation)
        if self.mode is not HandleMode.READ:
            raise ModeMismatchError(f"{operation}: {self.name} is open for writing")

    def _require_write(self, operation: str) -> None:
        self._check_open(operation)
        if self.mode is not HandleMode.WRITE:
            raise ModeMismatchError(f"{operation}: {self.name} is open for reading")

    # Read path

    def _open_stream(self) -> None:
        logger.debug(f"Opening stream for {self.key} at offset {self.position}")
        try:
            self._stream = self.client.get_object_stream(self.bucket, self.key, self.position)
        except BucketFSError as e:
            raise StoreOperationFailed("Read", self.name, e) from e
        self._stream_offset = self.position

    def _release_stream(self) -> None:
        if self._stream is None:
            return
        stream, self._stream = self._stream, None
        try:
            stream.close()
        except Exception as e:
            logger.warning(f"Error releasing stream for {self.key}: {e}")

    def read(self, size: int = -1) -> bytes:
        """
        Read up to ``size`` bytes from the current position.

        The first call opens a streaming fetch of the object; later calls keep
        consuming it.

        Args:
            size (int, optional): Maximum bytes to read; negative reads to the end.

        Returns:
            bytes: The data read; ``b""`` at end of data.

        Raises:
            ModeMismatchError: If the handle is open for writing.
            StoreOperationFailed: If the fetch or the stream fails.
        """
        trace_op("read", self.name, size=size, position=self.position)
        self._require_read("Read")
        if self._stream is None:
            self._open_stream()
        try:
            data = self._stream.read() if size is None or size < 0 else self._stream.read(size)
        except Exception as e:
            raise StoreOperationFailed("Read", self.name, e) from e
        self.position += len(data)
        self._stream_offset += len(data)
        return data

    def readinto(self, buffer) -> int:
        """Fill ``buffer`` from the stream; returns the byte count, 0 at end of data."""
        view = memoryview(buffer).cast("B")
        data = self.read(len(view))
        view[:len(data)] = data
        return len(data)

    def read_at(self, size: int, offset: int) -> bytes:
        """
        Read ``size`` bytes at ``offset`` with a dedicated ranged fetch.

        Each call is independent of the stream and of ``position``, so several
        threads may call read_at on the same handle at once.

        Args:
            size (int): Number of bytes wanted.
            offset (int): Offset of the first byte.

        Returns:
            bytes: Up to ``size`` bytes; fewer at the end of the object and
            ``b""`` past it.

        Raises:
            ModeMismatchError: If the handle is open for writing.
            StoreOperationFailed: If the ranged fetch fails.
        """
        trace_op("read_at", self.name, size=size, offset=offset)
        self._require_read("ReadAt")
        if offset < 0:
            raise ValueError(f"negative offset {offset}")
        if size <= 0:
            return b""
        try:
            return self.client.get_object_range(self.bucket, self.key, offset, offset + size)
        except BucketFSError as e:
            raise StoreOperationFailed("ReadAt", self.name, e) from e

    # Write path

    def _overlay(self, data: bytes, offset: int) -> int:
        end = offset + len(data)
        if end > len(self._buffer):
            self._buffer.extend(bytes(end - len(self._buffer)))
        self._buffer[offset:end] = data
        return len(data)

    def write(self, data: bytes) -> int:
        """
        Write ``data`` at the current position and advance it.

        Only the in-memory buffer changes; the store is written on close.

        Returns:
            int: Number of bytes written.

        Raises:
            ModeMismatchError: If the handle is open for reading.
        """
        self._require_write("Write")
        written = self._overlay(data, self.position)
        self.position += written
        return written

    def write_at(self, data: bytes, offset: int) -> int:
        """
        Write ``data`` at ``offset`` without moving the position.

        The buffer is zero-filled up to ``offset`` when it is shorter, and never
        shrinks.

        Returns:
            int: Number of bytes written.

        Raises:
            ModeMismatchError: If the handle is open for reading.
        """
        self._require_write("WriteAt")
        if offset < 0:
            raise ValueError(f"negative offset {offset}")
        return self._overlay(data, offset)

    def write_string(self, text: str, encoding: str = "utf-8") -> int:
        return self.write(text.encode(encoding))

    def truncate(self, size: int) -> int:
        """
        Shrink or zero-extend the write buffer to exactly ``size`` bytes.

        Raises:
            ModeMismatchError: If the handle is open for reading.
        """
        self._require_write("Truncate")
        if size < 0:
            raise ValueError(f"negative size {size}")
        if size < len(self._buffer):
            del self._buffer[size:]
        else:
            self._buffer.extend(bytes(size - len(self._buffer)))
        return size

    def getvalue(self) -> bytes:
        """Current contents of the write buffer."""
        self._require_write("GetValue")
        return bytes(self._buffer)

    # Positioning

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        """
        Move the logical position.

        Args:
            offset (int): Offset relative to ``whence``.
            whence (int, optional): os.SEEK_SET or os.SEEK_CUR.

        Returns:
            int: The new position.

        Raises:
            UnsupportedSeekError: For os.SEEK_END; the object size is not known locally.
            InvalidSeekError: For an unknown whence or a negative result.
        """
        self._check_open("Seek")
        if whence == os.SEEK_END:
            raise UnsupportedSeekError(f"{self.name}: seeking relative to the end is not supported")
        if whence == os.SEEK_SET:
            new_position = offset
        elif whence == os.SEEK_CUR:
            new_position = self.position + offset
        else:
            raise InvalidSeekError(f"{self.name}: invalid whence {whence}")
        if new_position < 0:
            raise InvalidSeekError(f"{self.name}: negative position {new_position}")

        if self._stream is not None and new_position != self._stream_offset:
            # next read reopens the stream at the new position
            self._release_stream()
        self.position = new_position
        return new_position

    def tell(self) -> int:
        return self.position

    # Lifecycle

    def sync(self) -> None:
        """No-op: written data only becomes durable on close()."""

    def close(self) -> None:
        """
        Close the handle.

        Read handles release their stream. Write handles upload the whole
        buffer with one put; this is the only time written data reaches the
        store. Closing twice does nothing.

        Raises:
            StoreOperationFailed: If the upload fails. The handle stays closed.
        """
        if self.closed:
            return
        self.closed = True
        trace_op("close", self.name, mode=self.mode.value)

        if self.mode is HandleMode.READ:
            self._release_stream()
            return

        data, self._buffer = bytes(self._buffer), None
        start_time = time.time()
        try:
            self.client.put_object(self.bucket, self.key, data)
        except BucketFSError as e:
            logger.error(f"Error uploading {self.key} on close: {e}")
            raise StoreOperationFailed("Close", self.name, e) from e
        elapsed = time_function("close", start_time)
        logger.info(f"Uploaded {len(data)/(1024*1024):.2f}MB to {self.key} in {elapsed:.2f}s")

    # Metadata

    def stat(self) -> FileInfo:
        """Head the handle's key."""
        try:
            head = self.client.head_object(self.bucket, self.key)
        except BucketFSError as e:
            raise StoreOperationFailed("Stat", self.name, e) from e
        return FileInfo.from_head(self.key, head)

    def readdir(self, n: int = 0) -> List[FileInfo]:
        """
        List the objects under this handle's key treated as a directory.

        Args:
            n (int, optional): Maximum entries to return; 0 or less returns all.

        Returns:
            list[FileInfo]: One entry per key under the prefix, in listing order.
        """
        infos = []
        for summary in iter_objects(self.client, self.bucket, dir_key(self.key), operation="Readdir"):
            infos.append(FileInfo.from_summary(summary))
            if n > 0 and len(infos) >= n:
                break
        return infos

    def readdirnames(self, n: int = 0) -> List[str]:
        return [info.key for info in self.readdir(n)]
