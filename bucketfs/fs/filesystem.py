# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Filesystem façade.

FileSystem binds one shared object store client to one bucket and exposes
path-style operations on top of it: opening handles, directory creation and
removal, rename, stat and traversal. Paths may carry a leading separator;
``"/a/b"`` and ``"a/b"`` address the same object.
"""

import os
from typing import List

from ..client.client import ObjectStoreClient
from ..client.exceptions import BucketFSError, StoreOperationFailed
from ..utils import logger, trace_op
from . import tree
from .handle import Handle, HandleMode
from .info import FileInfo
from .multipart import ChunkedUploadSession
from .paths import SEPARATOR, clean_key, dir_key, is_dir_key

WRITE_FLAGS = os.O_WRONLY | os.O_RDWR | os.O_CREAT

class FileSystem:
    """
    A bucket seen as a hierarchical filesystem.

    Attributes:
        client: The shared object store client.
        bucket (str): Bucket every path resolves into.
    """

    def __init__(self, client, bucket: str):
        self.client = client
        self.bucket = bucket

    @classmethod
    def from_session(cls, bucket: str, session=None) -> "FileSystem":
        """
        Build a FileSystem backed by a new boto3 client.

        Args:
            bucket (str): Bucket name.
            session (Session, optional): Connection settings. Defaults to
                Session.from_env().
        """
        return cls(ObjectStoreClient(session), bucket)

    def __repr__(self):
        return f"<FileSystem bucket={self.bucket}>"

    # Handles

    def open(self, name: str) -> Handle:
        """Open ``name`` for reading. Nothing is fetched until the first read."""
        return Handle(self.client, self.bucket, name, HandleMode.READ)

    def create(self, name: str) -> Handle:
        """Open ``name`` for writing. The object is written when the handle closes."""
        return Handle(self.client, self.bucket, name, HandleMode.WRITE)

    def open_file(self, name: str, flags: int = os.O_RDONLY) -> Handle:
        """
        Open ``name`` with ``os.open``-style flags.

        Any of O_WRONLY, O_RDWR or O_CREAT selects write mode; everything else
        opens for reading. A write-mode handle always starts empty.
        """
        mode = HandleMode.WRITE if flags & WRITE_FLAGS else HandleMode.READ
        trace_op("open_file", name, flags=flags, mode=mode.value)
        return Handle(self.client, self.bucket, name, mode)

    def new_multipart_upload(self, name: str) -> ChunkedUploadSession:
        return ChunkedUploadSession.start(self.client, self.bucket, name)

    # Directories

    def mkdir(self, name: str) -> None:
        """Write the zero-byte marker ``name/``."""
        key = dir_key(clean_key(name))
        if not key:
            return
        try:
            self.client.put_object(self.bucket, key, b"")
        except BucketFSError as e:
            raise StoreOperationFailed("Mkdir", key, e) from e

    def mkdir_all(self, name: str) -> None:
        tree.create_recursive(self.client, self.bucket, name)

    def remove(self, name: str) -> None:
        """Delete exactly one object. Deleting an absent object succeeds."""
        key = clean_key(name)
        try:
            self.client.delete_object(self.bucket, key)
        except BucketFSError as e:
            raise StoreOperationFailed("Remove", key, e) from e

    def remove_all(self, name: str) -> int:
        return tree.remove_recursive(self.client, self.bucket, name)

    def rename(self, old: str, new: str) -> int:
        """
        Move ``old`` to ``new`` with a server-side copy followed by a delete.

        The move is not atomic: a failure between the copy and the delete
        leaves both keys in place. A directory (trailing separator, or a key
        with children) is moved one object at a time.

        Returns:
            int: Number of objects moved.

        Raises:
            StoreOperationFailed: On the first failed copy, delete or listing.
        """
        old_key, new_key = clean_key(old), clean_key(new)
        if not old_key or not new_key:
            raise ValueError("cannot rename to or from the bucket root")

        if is_dir_key(old_key) or tree.is_directory(self.client, self.bucket, old_key):
            source_prefix, target_prefix = dir_key(old_key), dir_key(new_key)
            keys = [summary.key for summary in
                    tree.iter_objects(self.client, self.bucket, source_prefix, operation="Rename")]
            for key in keys:
                self._move(key, target_prefix + key[len(source_prefix):])
            logger.info(f"Renamed {len(keys)} objects from {source_prefix} to {target_prefix}")
            return len(keys)

        self._move(old_key, new_key)
        return 1

    def _move(self, source: str, target: str) -> None:
        try:
            self.client.copy_object(self.bucket, f"{self.bucket}/{source}", target)
            self.client.delete_object(self.bucket, source)
        except BucketFSError as e:
            raise StoreOperationFailed("Rename", source, e) from e

    # Metadata

    def stat(self, name: str) -> FileInfo:
        key = clean_key(name)
        try:
            head = self.client.head_object(self.bucket, key)
        except BucketFSError as e:
            raise StoreOperationFailed("Stat", key, e) from e
        return FileInfo.from_head(key, head)

    def exists(self, name: str) -> bool:
        return tree.exists(self.client, self.bucket, name)

    def is_dir(self, name: str) -> bool:
        key = clean_key(name)
        if is_dir_key(key) and tree.exists(self.client, self.bucket, key):
            return True
        return tree.is_directory(self.client, self.bucket, key)

    def walk(self, root: str, visit):
        return tree.walk(self.client, self.bucket, root, visit)

    def listdir(self, name: str = "") -> List[str]:
        """
        Names of the immediate children of directory ``name``, sorted.

        Subdirectories are reported once, by name, whether they exist as
        markers or only through their children.
        """
        prefix = dir_key(clean_key(name))
        names = set()
        for summary in tree.iter_objects(self.client, self.bucket, prefix, operation="Listdir"):
            child = summary.key[len(prefix):].split(SEPARATOR, 1)[0]
            if child:
                names.add(child)
        return sorted(names)

    # POSIX metadata that object stores do not keep

    def chmod(self, name: str, mode: int) -> None:
        raise NotImplementedError("object stores do not keep permission bits")

    def chown(self, name: str, uid: int, gid: int) -> None:
        raise NotImplementedError("object stores do not keep ownership")

    def chtimes(self, name: str, atime, mtime) -> None:
        raise NotImplementedError("modification times are set by the object store")

