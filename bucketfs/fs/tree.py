# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Directory semantics over a flat key space.

Directories are inferred from key prefixes. A directory "exists as a marker"
when a zero-byte ``prefix/`` object is present, and "has children" when a
listing of ``prefix/`` returns at least one key. These functions are stateless;
the client and bucket are passed explicitly.
"""

from typing import Callable, Iterator, List, Optional

from ..client.exceptions import BucketFSError, StoreOperationFailed
from ..client.types import ListObjectsOptions, ObjectSummary
from ..utils import logger
from .info import FileInfo
from .paths import SEPARATOR, clean_key, dir_key, is_dir_key

VisitFunc = Callable[[str, Optional[FileInfo], Optional[Exception]], object]

def iter_objects(client, bucket: str, prefix: str, page_size: Optional[int] = None,
                 operation: str = "List") -> Iterator[ObjectSummary]:
    """
    Yield every object under ``prefix``, following continuation tokens.

    Args:
        client: Object store client.
        bucket (str): Bucket to list.
        prefix (str): Key prefix.
        page_size (int, optional): Maximum keys requested per page.
        operation (str, optional): Operation name used when a listing fails.

    Yields:
        ObjectSummary: Listing entries in store order.

    Raises:
        StoreOperationFailed: On the first listing failure.
    """
    token = None
    while True:
        options = ListObjectsOptions(prefix=prefix, max_keys=page_size, continuation_token=token)
        try:
            page = client.list_objects_page(bucket, options)
        except BucketFSError as e:
            raise StoreOperationFailed(operation, prefix, e) from e
        yield from page.objects
        if not page.is_truncated or not page.next_continuation_token:
            return
        token = page.next_continuation_token

def exists(client, bucket: str, key: str) -> bool:
    """True iff a head request on ``key`` succeeds. Never raises."""
    key = clean_key(key)
    try:
        client.head_object(bucket, key)
    except Exception as e:
        logger.debug(f"exists({key}) -> False: {e}")
        return False
    return True

def is_directory(client, bucket: str, key: str) -> bool:
    """
    True when at least one key lives under ``key`` with a trailing separator.

    The bucket root is always a directory.

    Raises:
        StoreOperationFailed: If the listing fails.
    """
    prefix = dir_key(clean_key(key))
    if not prefix:
        return True
    try:
        page = client.list_objects_page(bucket, ListObjectsOptions(prefix=prefix, max_keys=1))
    except BucketFSError as e:
        raise StoreOperationFailed("IsDirectory", prefix, e) from e
    return len(page.objects) > 0

def directory_levels(key: str) -> List[str]:
    """
    Every ancestor directory key of ``key``, shallowest first, including itself.

    >>> directory_levels("a/b/c")
    ['a/', 'a/b/', 'a/b/c/']
    """
    parts = [part for part in clean_key(key).split(SEPARATOR) if part not in ("", ".")]
    levels = []
    for i in range(1, len(parts) + 1):
        levels.append(SEPARATOR.join(parts[:i]) + SEPARATOR)
    return levels

def create_recursive(client, bucket: str, key: str) -> None:
    """
    Put a zero-byte marker for each level of ``key`` that does not exist yet.

    Raises:
        StoreOperationFailed: If writing a marker fails. Markers already
            written are left in place.
    """
    for level in directory_levels(key):
        if exists(client, bucket, level):
            continue
        logger.debug(f"Creating directory marker {level}")
        try:
            client.put_object(bucket, level, b"")
        except BucketFSError as e:
            raise StoreOperationFailed("MkdirAll", level, e) from e

def remove_recursive(client, bucket: str, key: str) -> int:
    """
    Delete ``key`` and, when it names a directory, everything beneath it.

    A key without a trailing separator is treated as a directory when it has
    children under ``key + "/"``; the object named exactly ``key`` is then left
    alone. If that probe fails the key is treated as a single object. Deleting
    something that does not exist succeeds.

    Args:
        client: Object store client.
        bucket (str): Bucket to delete from.
        key (str): Object or directory key.

    Returns:
        int: Number of delete requests issued.

    Raises:
        ValueError: If ``key`` names the bucket root.
        StoreOperationFailed: On the first listing or delete failure. Objects
            already deleted stay deleted.
    """
    key = clean_key(key)
    if not key:
        raise ValueError("refusing to remove the bucket root")

    if not is_dir_key(key):
        try:
            if is_directory(client, bucket, key):
                key = dir_key(key)
        except StoreOperationFailed as e:
            logger.debug(f"Directory probe for {key} failed, removing it as an object: {e}")

    if not is_dir_key(key):
        _delete(client, bucket, key)
        return 1

    deleted = 0
    for summary in iter_objects(client, bucket, key, operation="RemoveAll"):
        _delete(client, bucket, summary.key)
        deleted += 1
    logger.info(f"Removed {deleted} objects under {key}")
    return deleted

def _delete(client, bucket: str, key: str) -> None:
    try:
        client.delete_object(bucket, key)
    except BucketFSError as e:
        raise StoreOperationFailed("RemoveAll", key, e) from e

def walk(client, bucket: str, root: str, visit: VisitFunc):
    """
    Visit every key under ``root``.

    ``visit(path, info, error)`` is called once per key, in listing order.
    If ``root`` names a single object it is visited once and the walk ends.
    A listing failure is reported as ``visit(root, None, error)``.

    Args:
        client: Object store client.
        bucket (str): Bucket to walk.
        root (str): Directory prefix or object key.
        visit (callable): Callback; an exception it raises stops the walk and
            propagates. Returning anything other than None (typically the
            error that should end the walk) stops the walk at once.

    Returns:
        The first non-None value ``visit`` returned, or what it returned for
        a single-object root or a listing failure, otherwise None.
    """
    root = clean_key(root)

    if root and not is_dir_key(root):
        try:
            is_dir = is_directory(client, bucket, root)
        except StoreOperationFailed as e:
            logger.debug(f"Directory probe for {root} failed: {e}")
            is_dir = False
        if not is_dir:
            try:
                head = client.head_object(bucket, root)
            except BucketFSError:
                head = None
            if head is not None:
                return visit(root, FileInfo.from_head(root, head), None)
        root = dir_key(root)

    visited = set()
    objects = iter_objects(client, bucket, root, operation="Walk")
    while True:
        try:
            summary = next(objects)
        except StopIteration:
            return None
        except StoreOperationFailed as e:
            return visit(root, None, e)
        if summary.key in visited:
            continue
        visited.add(summary.key)
        result = visit(summary.key, FileInfo.from_summary(summary), None)
        if result is not None:
            return result
