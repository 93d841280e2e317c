# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Object store collaborator interface.

Everything in ``bucketfs.fs`` talks to storage through this surface. Two
implementations ship with the package: :class:`bucketfs.client.client.ObjectStoreClient`
(boto3, any S3-compatible endpoint) and
:class:`bucketfs.testing.memory_store.InMemoryObjectStore`.

Implementations raise :class:`~bucketfs.client.exceptions.ObjectNotFoundError` for
missing objects and another :class:`~bucketfs.client.exceptions.BucketFSError`
subclass for every other failure.
"""

from typing import BinaryIO, List, Protocol

from .types import CompletedPart, HeadObjectOutput, ListObjectsOptions, ListObjectsPage


class ObjectStore(Protocol):
    """Key-addressed object operations within a bucket."""

    def head_object(self, bucket: str, key: str) -> HeadObjectOutput:
        """Return object metadata, or raise ObjectNotFoundError."""

    def get_object(self, bucket: str, key: str) -> bytes:
        """Return the full object body."""

    def get_object_stream(self, bucket: str, key: str, start: int = 0) -> BinaryIO:
        """Open a streaming body starting at byte ``start``; caller must close it."""

    def get_object_range(self, bucket: str, key: str, start: int, end: int) -> bytes:
        """Return bytes ``[start, end)``; ``b""`` when ``start`` is past the end."""

    def put_object(self, bucket: str, key: str, data: bytes) -> None:
        """Store ``data`` as the whole object (overwrite)."""

    def delete_object(self, bucket: str, key: str) -> None:
        """Delete one object. Deleting an absent object succeeds."""

    def copy_object(self, bucket: str, copy_source: str, key: str) -> None:
        """Server-side copy of ``"source-bucket/source-key"`` to ``key`` in ``bucket``."""

    def list_objects_page(self, bucket: str, options: ListObjectsOptions) -> ListObjectsPage:
        """Return one page of keys under ``options.prefix``, in lexicographic order."""

    def create_multipart_upload(self, bucket: str, key: str) -> str:
        """Start a multipart upload and return its upload id."""

    def upload_part(self, bucket: str, key: str, upload_id: str, part_number: int, data: bytes) -> str:
        """Upload one part and return its ETag."""

    def complete_multipart_upload(self, bucket: str, key: str, upload_id: str, parts: List[CompletedPart]) -> None:
        """Assemble the uploaded parts into the final object."""

    def abort_multipart_upload(self, bucket: str, key: str, upload_id: str) -> None:
        """Discard all parts of the upload."""
