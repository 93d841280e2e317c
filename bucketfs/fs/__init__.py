# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
from .filesystem import FileSystem
from .handle import Handle, HandleMode
from .info import FileInfo
from .multipart import DEFAULT_PART_SIZE, MIN_PART_SIZE, ChunkedUploadSession, UploadState

__all__ = [
    "FileSystem",
    "Handle",
    "HandleMode",
    "FileInfo",
    "ChunkedUploadSession",
    "UploadState",
    "MIN_PART_SIZE",
    "DEFAULT_PART_SIZE",
]
