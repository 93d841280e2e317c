# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
bucketfs: a POSIX-like filesystem over S3-compatible object storage.

Example:
    >>> from bucketfs import FileSystem
    >>> fs = FileSystem.from_session("my-bucket")
    >>> with fs.create("reports/2025.csv") as f:
    ...     f.write(b"id,total\\n")
    >>> fs.open("reports/2025.csv").read()
    b'id,total\\n'
"""

from .client.client import ObjectStoreClient
from .client.exceptions import (
    AuthenticationError,
    BucketError,
    BucketFSError,
    ConfigurationError,
    HandleClosedError,
    InvalidSeekError,
    ModeMismatchError,
    ObjectError,
    ObjectNotFoundError,
    PartSizeTooSmallError,
    StoreOperationFailed,
    UnsupportedSeekError,
    UploadStateError,
)
from .client.session import Session
from .fs import (
    DEFAULT_PART_SIZE,
    MIN_PART_SIZE,
    ChunkedUploadSession,
    FileInfo,
    FileSystem,
    Handle,
    HandleMode,
    UploadState,
)
from .testing import InMemoryObjectStore

__version__ = "0.1.0"

__all__ = [
    "FileSystem",
    "Handle",
    "HandleMode",
    "FileInfo",
    "ChunkedUploadSession",
    "UploadState",
    "MIN_PART_SIZE",
    "DEFAULT_PART_SIZE",
    "ObjectStoreClient",
    "Session",
    "InMemoryObjectStore",
    "BucketFSError",
    "AuthenticationError",
    "BucketError",
    "ObjectError",
    "ObjectNotFoundError",
    "ConfigurationError",
    "ModeMismatchError",
    "HandleClosedError",
    "UnsupportedSeekError",
    "InvalidSeekError",
    "PartSizeTooSmallError",
    "UploadStateError",
    "StoreOperationFailed",
]
