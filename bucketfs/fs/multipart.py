# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Chunked (multipart) uploads for objects too large to buffer in memory.

A session moves through three states: ACTIVE while parts are being added,
then COMPLETED or ABORTED. Part numbers are assigned by the session, start at
1 and have no gaps; the store stitches the parts together in number order when
the session is completed.

Example:
    >>> with ChunkedUploadSession.start(client, "my-bucket", "big.bin") as upload:
    ...     upload.upload_from_stream(open("big.bin", "rb"))
"""

import threading
import time
from enum import Enum
from typing import BinaryIO, List

from ..client.exceptions import (
    BucketFSError,
    PartSizeTooSmallError,
    StoreOperationFailed,
    UploadStateError,
)
from ..client.types import CompletedPart
from ..utils import logger, time_function
from .paths import clean_key

MIN_PART_SIZE = 5 * 1024 * 1024
DEFAULT_PART_SIZE = 10 * 1024 * 1024

class UploadState(Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ABORTED = "aborted"

class ChunkedUploadSession:
    """
    One multipart upload of one object.

    Create sessions with :meth:`start`. ``upload_part`` may be called from
    several threads, but parts upload strictly one at a time: the session
    lock is held for the whole store call so a failed part never leaves a
    gap in the numbering. Used as a context manager, the session completes
    on a clean exit and is aborted if the block raises or completion fails.

    Attributes:
        client: Object store client.
        bucket (str): Destination bucket.
        key (str): Destination key.
        upload_id (str): Identifier issued by the store.
        part_size (int): Bytes per part used by ``upload_from_stream``.
        next_part_number (int): Number the next accepted part will get.
        state (UploadState): Current lifecycle state.
    """

    def __init__(self, client, bucket: str, key: str, upload_id: str):
        self.client = client
        self.bucket = bucket
        self.key = key
        self.upload_id = upload_id
        self.part_size = DEFAULT_PART_SIZE
        self.next_part_number = 1
        self.state = UploadState.ACTIVE
        self._parts: List[CompletedPart] = []
        self._lock = threading.Lock()

    @classmethod
    def start(cls, client, bucket: str, key: str) -> "ChunkedUploadSession":
        """
        Ask the store for a new upload id.

        Raises:
            StoreOperationFailed: If the store refuses to start the upload.
        """
        key = clean_key(key)
        try:
            upload_id = client.create_multipart_upload(bucket, key)
        except BucketFSError as e:
            raise StoreOperationFailed("NewMultipartUpload", key, e) from e
        logger.info(f"Started multipart upload {upload_id} for {key}")
        return cls(client, bucket, key, upload_id)

    def __repr__(self):
        return (f"<ChunkedUploadSession {self.bucket}/{self.key} id={self.upload_id} "
                f"parts={len(self._parts)} state={self.state.value}>")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if self.state is not UploadState.ACTIVE:
            return False
        if exc_type is None:
            try:
                self.complete()
            except BucketFSError:
                self._abort_quietly()
                raise
            return False
        self._abort_quietly()
        return False

    def _abort_quietly(self) -> None:
        try:
            self.abort()
        except BucketFSError as e:
            logger.error(f"Failed to abort multipart upload {self.upload_id} for {self.key}: {e}")

    @property
    def parts(self) -> List[CompletedPart]:
        """Accepted parts in the order they were accepted."""
        with self._lock:
            return list(self._parts)

    def _require_active(self, operation: str) -> None:
        if self.state is not UploadState.ACTIVE:
            raise UploadStateError(f"{operation}: upload {self.upload_id} for {self.key} is {self.state.value}")

    def set_part_size(self, size: int) -> None:
        """
        Change the chunk size used by ``upload_from_stream``.

        Raises:
            PartSizeTooSmallError: If ``size`` is below MIN_PART_SIZE.
            UploadStateError: Once a part has been accepted, or after
                completion or abort.
        """
        with self._lock:
            self._require_active("SetPartSize")
            if size < MIN_PART_SIZE:
                raise PartSizeTooSmallError(size, MIN_PART_SIZE)
            if self._parts:
                raise UploadStateError(f"SetPartSize: upload for {self.key} already has parts")
            self.part_size = size

    def upload_part(self, data: bytes) -> CompletedPart:
        """
        Upload ``data`` as the next part.

        Returns:
            CompletedPart: The part number and tag recorded for the upload.

        Raises:
            UploadStateError: After completion or abort.
            StoreOperationFailed: If the store rejects the part. The counter is
                not advanced, so a retry reuses the same number.
        """
        with self._lock:
            self._require_active("UploadPart")
            part_number = self.next_part_number
            start_time = time.time()
            try:
                etag = self.client.upload_part(self.bucket, self.key, self.upload_id, part_number, data)
            except BucketFSError as e:
                raise StoreOperationFailed("UploadPart", self.key, e) from e
            part = CompletedPart(part_number=part_number, etag=etag)
            self._parts.append(part)
            self.next_part_number += 1
        time_function(f"upload_part #{part_number}", start_time)
        logger.debug(f"Uploaded part {part_number} ({len(data)} bytes) of {self.key}")
        return part

    def _read_chunk(self, source: BinaryIO) -> bytes:
        chunk = bytearray()
        while len(chunk) < self.part_size:
            try:
                data = source.read(self.part_size - len(chunk))
            except Exception as e:
                raise StoreOperationFailed("UploadFromStream", self.key, e) from e
            if not data:
                break
            chunk += data
        return bytes(chunk)

    def upload_from_stream(self, source: BinaryIO) -> int:
        """
        Split ``source`` into ``part_size`` chunks and upload each one.

        Short reads are filled until a chunk is full or the stream ends, so
        every part except the last is exactly ``part_size`` bytes.

        Args:
            source: Binary stream with a ``read(n)`` method.

        Returns:
            int: Number of parts uploaded.

        Raises:
            StoreOperationFailed: If reading the stream or uploading a part fails.
        """
        self._require_active("UploadFromStream")
        uploaded = 0
        while True:
            chunk = self._read_chunk(source)
            if not chunk:
                break
            self.upload_part(chunk)
            uploaded += 1
            if len(chunk) < self.part_size:
                break
        return uploaded

    def complete(self) -> None:
        """
        Assemble the accepted parts into the final object.

        Raises:
            UploadStateError: After completion or abort.
            StoreOperationFailed: If the store rejects the completion. The
                session stays ACTIVE so it can still be aborted.
        """
        with self._lock:
            self._require_active("Complete")
            parts = sorted(self._parts, key=lambda part: part.part_number)
            start_time = time.time()
            try:
                self.client.complete_multipart_upload(self.bucket, self.key, self.upload_id, parts)
            except BucketFSError as e:
                logger.error(f"Completing multipart upload {self.upload_id} for {self.key} failed: {e}")
                raise StoreOperationFailed("Complete", self.key, e) from e
            self.state = UploadState.COMPLETED
        elapsed = time_function("complete", start_time)
        logger.info(f"Completed multipart upload of {self.key}: {len(parts)} parts in {elapsed:.2f}s")

    def abort(self) -> None:
        """
        Discard every uploaded part. Allowed before any part was uploaded.

        Raises:
            UploadStateError: After completion or abort.
            StoreOperationFailed: If the store fails to abort.
        """
        with self._lock:
            self._require_active("Abort")
            try:
                self.client.abort_multipart_upload(self.bucket, self.key, self.upload_id)
            except BucketFSError as e:
                raise StoreOperationFailed("Abort", self.key, e) from e
            self.state = UploadState.ABORTED
        logger.info(f"Aborted multipart upload {self.upload_id} for {self.key}")
