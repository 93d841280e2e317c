# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
In-memory object store.

InMemoryObjectStore implements the full :class:`~bucketfs.client.store.ObjectStore`
surface inside the process: lexicographic, paginated listings with opaque
continuation tokens, multipart uploads validated the way S3 validates them,
and S3's delete semantics (deleting an absent key succeeds). It is used by the
test suite and the examples, and is handy for exercising code that depends on
bucketfs without a network.
"""

import hashlib
import io
import itertools
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Tuple

from ..client.exceptions import BucketError, ObjectError, ObjectNotFoundError
from ..client.types import CompletedPart, HeadObjectOutput, ListObjectsOptions, ListObjectsPage, ObjectSummary

DEFAULT_PAGE_SIZE = 1000

def _etag(data: bytes) -> str:
    return '"' + hashlib.md5(data).hexdigest() + '"'

@dataclass
class _StoredObject:
    data: bytes
    etag: str
    last_modified: datetime

@dataclass
class _PendingUpload:
    bucket: str
    key: str
    parts: Dict[int, Tuple[str, bytes]]

class InMemoryObjectStore:
    """
    Thread-safe, process-local object store.

    Attributes:
        page_size (int): Maximum number of keys returned per listing page.
        calls (list): ``(operation, key)`` for every call made, in order.
    """

    def __init__(self, buckets: Iterable[str] = ("test-bucket",), page_size: int = DEFAULT_PAGE_SIZE):
        self.page_size = page_size
        self.calls: List[Tuple[str, str]] = []
        self._buckets: Dict[str, Dict[str, _StoredObject]] = {name: {} for name in buckets}
        self._uploads: Dict[str, _PendingUpload] = {}
        self._upload_ids = itertools.count(1)
        self._lock = threading.RLock()

    def create_bucket(self, bucket: str) -> None:
        with self._lock:
            self._buckets.setdefault(bucket, {})

    def _objects(self, bucket: str) -> Dict[str, _StoredObject]:
        try:
            return self._buckets[bucket]
        except KeyError:
            raise BucketError("Bucket does not exist", operation="ACCESS")

    def _get(self, bucket: str, key: str, operation: str) -> _StoredObject:
        stored = self._objects(bucket).get(key)
        if stored is None:
            raise ObjectNotFoundError("Object does not exist", operation=operation)
        return stored

    def _record(self, operation: str, key: str) -> None:
        self.calls.append((operation, key))

    def count_calls(self, operation: str) -> int:
        """Number of recorded calls for ``operation`` (e.g. "put_object")."""
        return sum(1 for op, _ in self.calls if op == operation)

    def keys(self, bucket: str = "test-bucket") -> List[str]:
        """All keys currently stored in ``bucket``, sorted."""
        with self._lock:
            return sorted(self._objects(bucket))

    def head_object(self, bucket: str, key: str) -> HeadObjectOutput:
        with self._lock:
            self._record("head_object", key)
            stored = self._get(bucket, key, "HEAD")
            return HeadObjectOutput(
                content_length=len(stored.data),
                last_modified=stored.last_modified,
                etag=stored.etag,
                content_type="application/octet-stream",
            )

    def get_object(self, bucket: str, key: str) -> bytes:
        with self._lock:
            self._record("get_object", key)
            return self._get(bucket, key, "GET").data

    def get_object_stream(self, bucket: str, key: str, start: int = 0) -> io.BytesIO:
        with self._lock:
            self._record("get_object_stream", key)
            return io.BytesIO(self._get(bucket, key, "GET").data[start:])

    def get_object_range(self, bucket: str, key: str, start: int, end: int) -> bytes:
        with self._lock:
            self._record("get_object_range", key)
            data = self._get(bucket, key, "GET").data
            if end <= start or start >= len(data):
                return b""
            return data[start:end]

    def put_object(self, bucket: str, key: str, data: bytes) -> None:
        data = bytes(data)
        with self._lock:
            self._record("put_object", key)
            self._objects(bucket)[key] = _StoredObject(data, _etag(data), datetime.now(timezone.utc))

    def delete_object(self, bucket: str, key: str) -> None:
        with self._lock:
            self._record("delete_object", key)
            self._objects(bucket).pop(key, None)

    def copy_object(self, bucket: str, copy_source: str, key: str) -> None:
        source_bucket, _, source_key = copy_source.lstrip('/').partition('/')
        with self._lock:
            self._record("copy_object", key)
            source = self._get(source_bucket, source_key, "COPY")
            self._objects(bucket)[key] = _StoredObject(source.data, source.etag, datetime.now(timezone.utc))

    def list_objects_page(self, bucket: str, options: ListObjectsOptions) -> ListObjectsPage:
        prefix = options.prefix or ""
        limit = self.page_size
        if options.max_keys:
            limit = min(limit, options.max_keys)
        with self._lock:
            self._record("list_objects_page", prefix)
            matching = sorted(k for k in self._objects(bucket) if k.startswith(prefix))
            if options.continuation_token:
                matching = [k for k in matching if k > options.continuation_token]
            page_keys = matching[:limit]
            objects = []
            for key in page_keys:
                stored = self._objects(bucket)[key]
                objects.append(ObjectSummary(key, len(stored.data), stored.last_modified, stored.etag))
        truncated = len(matching) > limit
        return ListObjectsPage(
            objects=objects,
            is_truncated=truncated,
            next_continuation_token=page_keys[-1] if truncated else None,
        )

    def create_multipart_upload(self, bucket: str, key: str) -> str:
        with self._lock:
            self._record("create_multipart_upload", key)
            if not key:
                raise ObjectError("Invalid key", operation="CREATE")
            self._objects(bucket)
            upload_id = f"upload-{next(self._upload_ids)}"
            self._uploads[upload_id] = _PendingUpload(bucket, key, {})
            return upload_id

    def _pending(self, bucket: str, key: str, upload_id: str, operation: str) -> _PendingUpload:
        pending = self._uploads.get(upload_id)
        if pending is None or pending.bucket != bucket or pending.key != key:
            raise ObjectError("Multipart upload does not exist", operation=operation)
        return pending

    def upload_part(self, bucket: str, key: str, upload_id: str, part_number: int, data: bytes) -> str:
        data = bytes(data)
        with self._lock:
            self._record("upload_part", key)
            pending = self._pending(bucket, key, upload_id, "UPLOAD")
            if not 1 <= part_number <= 10000:
                raise ObjectError(f"Invalid part number {part_number}", operation="UPLOAD")
            etag = _etag(data)
            pending.parts[part_number] = (etag, data)
            return etag

    def complete_multipart_upload(self, bucket: str, key: str, upload_id: str, parts: List[CompletedPart]) -> None:
        with self._lock:
            self._record("complete_multipart_upload", key)
            pending = self._pending(bucket, key, upload_id, "COMPLETE")
            if not parts:
                raise ObjectError("Invalid part list: no parts", operation="COMPLETE")
            numbers = [part.part_number for part in parts]
            if numbers != list(range(1, len(parts) + 1)):
                raise ObjectError(f"Invalid part list: parts out of order or missing: {numbers}", operation="COMPLETE")
            chunks = []
            for part in parts:
                uploaded = pending.parts.get(part.part_number)
                if uploaded is None or uploaded[0] != part.etag:
                    raise ObjectError(f"Invalid part list: stale tag for part {part.part_number}", operation="COMPLETE")
                chunks.append(uploaded[1])
            data = b"".join(chunks)
            self._objects(bucket)[key] = _StoredObject(data, _etag(data), datetime.now(timezone.utc))
            del self._uploads[upload_id]

    def abort_multipart_upload(self, bucket: str, key: str, upload_id: str) -> None:
        with self._lock:
            self._record("abort_multipart_upload", key)
            self._pending(bucket, key, upload_id, "ABORT")
            del self._uploads[upload_id]

    def pending_uploads(self) -> int:
        """Number of multipart uploads neither completed nor aborted."""
        with self._lock:
            return len(self._uploads)
