# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
FUSE implementation for bucketfs.

This module mounts a bucket as a local filesystem. Every FUSE call is
translated to a FileSystem operation: opens become Handles, reads are served
by ranged fetches and writes collect in the handle's buffer until the file is
released, at which point the whole object is uploaded.

Usage:
    # Create a mount point
    mkdir -p /mnt/my-bucket

    # Mount the bucket
    python -m bucketfs.fuse my-bucket /mnt/my-bucket

    # Now you can work with the files as if they were local
    ls /mnt/my-bucket
    cat /mnt/my-bucket/example.txt
"""

from fuse import FUSE, FuseOSError, Operations
import errno
import itertools
import os
import subprocess
import sys
import time
from datetime import datetime
from threading import Lock

from bucketfs.client.client import ObjectStoreClient
from bucketfs.client.exceptions import (
    BucketFSError,
    HandleClosedError,
    ModeMismatchError,
    ObjectNotFoundError,
    StoreOperationFailed,
)
from bucketfs.client.types import ListObjectsOptions
from bucketfs.fs.filesystem import FileSystem
from bucketfs.fs.handle import HandleMode
from bucketfs.fs.paths import dir_key
from bucketfs import utils
from bucketfs.utils import configure_logging, logger, time_function, trace_op

from .mount_utils import unmount, setup_signal_handlers, get_mount_options

DIR_MODE = 0o40755
FILE_MODE = 0o100644
BLOCK_SIZE = 4096

def to_errno(e: Exception) -> int:
    """
    Map a bucketfs failure to the errno reported to the kernel.

    Missing objects become ENOENT, wrong-mode or closed handles EBADF, and
    everything else EIO.
    """
    if isinstance(e, ObjectNotFoundError):
        return errno.ENOENT
    if isinstance(e, StoreOperationFailed):
        return errno.ENOENT if e.is_not_found else errno.EIO
    if isinstance(e, (ModeMismatchError, HandleClosedError)):
        return errno.EBADF
    return errno.EIO

class BucketFuse(Operations):
    """
    FUSE implementation for a bucket.

    Attributes:
        client: Object store client shared with the FileSystem.
        bucket (str): Name of the bucket being mounted.
        fs (FileSystem): Façade every operation goes through.
    """

    def __init__(self, bucket_name, client=None):
        """
        Initialize the FUSE filesystem.

        Args:
            bucket_name (str): Name of the bucket to mount
            client (optional): Object store client. Defaults to an
                ObjectStoreClient configured from the environment.

        Raises:
            ValueError: If the bucket cannot be accessed
        """
        logger.info(f"Initializing BucketFuse with bucket: {bucket_name}")
        start_time = time.time()

        self.client = client if client is not None else ObjectStoreClient()
        self.bucket = bucket_name
        self.fs = FileSystem(self.client, bucket_name)
        self._handles = {}
        self._fh_counter = itertools.count(1)
        self._lock = Lock()

        try:
            self.client.list_objects_page(bucket_name, ListObjectsOptions(max_keys=1))
        except BucketFSError as e:
            logger.error(f"Failed to access bucket {bucket_name}: {str(e)}")
            raise ValueError(f"Failed to access bucket {bucket_name}: {str(e)}")

        time_function("__init__", start_time)

    def _get_path(self, path):
        """
        Convert FUSE path to object key.

        Args:
            path (str): FUSE path

        Returns:
            str: Object key
        """
        return path.lstrip('/')

    def _register(self, handle):
        with self._lock:
            fh = next(self._fh_counter)
            self._handles[fh] = handle
        return fh

    def _open_writer(self, key):
        """Open write handle for ``key``, if any."""
        with self._lock:
            for handle in self._handles.values():
                if handle.key == key and handle.writable and not handle.closed:
                    return handle
        return None

    def release_all(self):
        """Close every open handle, uploading pending writes."""
        with self._lock:
            handles = list(self._handles.values())
            self._handles.clear()
        for handle in handles:
            try:
                handle.close()
            except BucketFSError as e:
                logger.error(f"Error closing {handle.key}: {e}")

    def _base_stat(self):
        now = datetime.now().timestamp()
        return {
            'st_uid': os.getuid(),
            'st_gid': os.getgid(),
            'st_atime': now,
            'st_mtime': now,
            'st_ctime': now,
            'st_blksize': BLOCK_SIZE,
            'st_rdev': 0,
        }

    def getattr(self, path, fh=None):
        """
        Get file attributes.

        A key is reported as a file when a head on it succeeds, and as a
        directory when its marker exists or it has children. A file that is
        open for writing is reported with the size of its pending buffer.

        Args:
            path (str): Path to the file or directory
            fh (int, optional): File handle

        Returns:
            dict: File attributes

        Raises:
            FuseOSError: If the file or directory does not exist
        """
        trace_op("getattr", path, fh=fh)
        start_time = time.time()
        base_stat = self._base_stat()
        dir_stat = {**base_stat, 'st_mode': DIR_MODE, 'st_nlink': 2, 'st_size': 4096, 'st_blocks': 8}

        if path == '/':
            return dir_stat

        key = self._get_path(path)
        try:
            writer = self._open_writer(key)
            if writer is not None:
                size = writer.size
                return {**base_stat, 'st_mode': FILE_MODE, 'st_size': size, 'st_nlink': 1,
                        'st_blocks': (size + BLOCK_SIZE - 1) // BLOCK_SIZE}

            try:
                info = self.fs.stat(key)
                result = {**base_stat,
                          'st_mode': FILE_MODE,
                          'st_size': info.size,
                          'st_mtime': info.mod_time.timestamp(),
                          'st_nlink': 1,
                          'st_blocks': (info.size + BLOCK_SIZE - 1) // BLOCK_SIZE}
                time_function("getattr (file)", start_time)
                return result
            except StoreOperationFailed as e:
                if not e.is_not_found:
                    raise

            try:
                marker = self.fs.stat(dir_key(key))
                time_function("getattr (directory)", start_time)
                return {**dir_stat, 'st_mtime': marker.mod_time.timestamp()}
            except StoreOperationFailed as e:
                if not e.is_not_found:
                    raise

            if self.fs.is_dir(key):
                time_function("getattr (directory with children)", start_time)
                return dir_stat

            logger.debug(f"getattr: Path {path} does not exist")
            raise FuseOSError(errno.ENOENT)
        except FuseOSError:
            raise
        except Exception as e:
            logger.error(f"getattr error for {path}: {str(e)}", exc_info=True)
            raise FuseOSError(to_errno(e))

    def readdir(self, path, fh):
        """
        List directory contents.

        Args:
            path (str): Path to the directory
            fh (int): File handle

        Returns:
            list: Directory entries, including '.' and '..'

        Raises:
            FuseOSError: If the directory does not exist or listing fails
        """
        trace_op("readdir", path, fh=fh)
        start_time = time.time()
        key = self._get_path(path)
        try:
            names = self.fs.listdir(key)
            if not names and key and not self.fs.is_dir(key):
                raise FuseOSError(errno.ENOENT)
            time_function("readdir", start_time)
            return ['.', '..'] + names
        except FuseOSError:
            raise
        except Exception as e:
            logger.error(f"Error in readdir for {path}: {str(e)}", exc_info=True)
            raise FuseOSError(to_errno(e))

    def open(self, path, flags):
        """
        Open a file.

        Read-only opens verify that the object exists. Opens for writing
        start from an empty buffer.

        Args:
            path (str): Path to the file
            flags (int): Open flags (O_RDONLY, O_WRONLY, etc.)

        Returns:
            int: File handle
        """
        trace_op("open", path, flags=flags)
        key = self._get_path(path)
        handle = self.fs.open_file(key, flags)
        if handle.mode is HandleMode.READ and not self.fs.exists(key):
            logger.debug(f"open: File {key} does not exist")
            raise FuseOSError(errno.ENOENT)
        return self._register(handle)

    def create(self, path, mode, fi=None):
        """
        Create a file open for writing. It appears in the bucket on release.

        Args:
            path (str): Path to the file
            mode (int): File mode (ignored)

        Returns:
            int: File handle
        """
        trace_op("create", path, mode=oct(mode))
        return self._register(self.fs.create(self._get_path(path)))

    def read(self, path, size, offset, fh):
        """
        Read ``size`` bytes at ``offset`` with a ranged fetch.

        Raises:
            FuseOSError: EBADF if ``fh`` is open for writing, ENOENT if the
                object is gone, EIO otherwise
        """
        trace_op("read", path, size=size, offset=offset, fh=fh)
        start_time = time.time()
        handle = self._handles.get(fh)
        try:
            if handle is None:
                with self.fs.open(self._get_path(path)) as temporary:
                    data = temporary.read_at(size, offset)
            else:
                data = handle.read_at(size, offset)
        except BucketFSError as e:
            logger.error(f"read error for {path}: {str(e)}")
            raise FuseOSError(to_errno(e))
        time_function("read", start_time)
        return data

    def write(self, path, data, offset, fh):
        """
        Write ``data`` at ``offset`` into the handle's buffer.

        Returns:
            int: Number of bytes written
        """
        trace_op("write", path, size=len(data), offset=offset, fh=fh)
        handle = self._handles.get(fh) or self._open_writer(self._get_path(path))
        if handle is None:
            raise FuseOSError(errno.EBADF)
        try:
            return handle.write_at(data, offset)
        except BucketFSError as e:
            raise FuseOSError(to_errno(e))

    def truncate(self, path, length, fh=None):
        """
        Truncate file to specified length.

        An open write handle is truncated in memory. Otherwise the object is
        rewritten whole with its new length.
        """
        trace_op("truncate", path, length=length, fh=fh)
        start_time = time.time()
        key = self._get_path(path)
        handle = self._handles.get(fh) if fh else None
        if handle is None or not handle.writable:
            handle = self._open_writer(key)
        try:
            if handle is not None:
                handle.truncate(length)
                return 0

            data = b""
            if self.fs.exists(key):
                with self.fs.open(key) as reader:
                    data = reader.read(length)
            with self.fs.create(key) as writer:
                writer.write(data)
                writer.truncate(length)
            time_function("truncate", start_time)
            return 0
        except BucketFSError as e:
            logger.error(f"truncate error for {path}: {str(e)}")
            raise FuseOSError(to_errno(e))

    def release(self, path, fh):
        """
        Close the handle. For write handles this uploads the file.

        Returns:
            int: 0 on success
        """
        trace_op("release", path, fh=fh)
        start_time = time.time()
        with self._lock:
            handle = self._handles.pop(fh, None)
        if handle is None:
            return 0
        try:
            handle.close()
        except BucketFSError as e:
            logger.error(f"release: Error closing {handle.key}: {e}")
            raise FuseOSError(to_errno(e))
        time_function("release", start_time)
        return 0

    def flush(self, path, fh):
        return 0

    def fsync(self, path, datasync, fh):
        """Written data reaches the bucket on release; nothing to do here."""
        trace_op("fsync", path, datasync=datasync, fh=fh)
        handle = self._handles.get(fh)
        if handle is not None:
            handle.sync()
        return 0

    def mkdir(self, path, mode):
        """
        Create a directory by writing the zero-byte marker ``path/``.

        Raises:
            FuseOSError: EEXIST if the marker already exists
        """
        logger.debug(f"mkdir requested for path: {path}, mode={oct(mode)}")
        key = dir_key(self._get_path(path))
        if self.fs.exists(key):
            raise FuseOSError(errno.EEXIST)
        try:
            self.fs.mkdir(key)
        except BucketFSError as e:
            logger.error(f"Error creating directory {key}: {str(e)}")
            raise FuseOSError(to_errno(e))
        return 0

    def rmdir(self, path):
        """
        Remove an empty directory.

        The directory is empty when the only key under its prefix is its own
        marker.

        Raises:
            FuseOSError: ENOTEMPTY if the directory has children, ENOENT if
                nothing exists under the prefix
        """
        logger.debug(f"rmdir requested for path: {path}")
        key = dir_key(self._get_path(path))
        try:
            page = self.client.list_objects_page(self.bucket, ListObjectsOptions(prefix=key, max_keys=2))
            contents = page.keys
            if not contents:
                raise FuseOSError(errno.ENOENT)
            if contents != [key]:
                logger.warning(f"Directory {key} is not empty, cannot remove.")
                raise FuseOSError(errno.ENOTEMPTY)
            self.fs.remove(key)
            return 0
        except FuseOSError:
            raise
        except BucketFSError as e:
            logger.error(f"Error removing directory {key}: {str(e)}")
            raise FuseOSError(to_errno(e))

    def unlink(self, path):
        """
        Delete a file.

        Raises:
            FuseOSError: ENOENT if the file does not exist
        """
        key = self._get_path(path)
        if not self.fs.exists(key):
            raise FuseOSError(errno.ENOENT)
        try:
            self.fs.remove(key)
        except BucketFSError as e:
            raise FuseOSError(to_errno(e))
        return 0

    def rename(self, old, new):
        """
        Rename a file or directory by copying and deleting every object.

        The operation is not atomic; a failure part way through leaves the
        objects moved so far at the new location.
        """
        trace_op("rename", old, new=new)
        start_time = time.time()
        try:
            moved = self.fs.rename(self._get_path(old), self._get_path(new))
        except BucketFSError as e:
            logger.error(f"rename: {old} -> {new} failed: {str(e)}")
            raise FuseOSError(to_errno(e))
        logger.debug(f"rename: moved {moved} objects from {old} to {new}")
        time_function("rename", start_time)
        return 0

    def chmod(self, path, mode):
        """Object storage keeps no POSIX modes; accepted and ignored."""
        logger.debug(f"chmod requested for path: {path}, mode={oct(mode)} - NO-OP")
        return 0

    def chown(self, path, uid, gid):
        logger.debug(f"chown requested for path: {path}, uid={uid}, gid={gid} - NO-OP")
        return 0

    def statfs(self, path):
        """
        Get filesystem statistics.

        Buckets have no fixed capacity, so a large, empty filesystem is
        reported.

        Returns:
            dict: Filesystem statistics
        """
        total_blocks = 1250000000
        return {
            'f_bsize': BLOCK_SIZE,
            'f_frsize': BLOCK_SIZE,
            'f_blocks': total_blocks,
            'f_bfree': total_blocks,
            'f_bavail': total_blocks,
            'f_files': 1000000000,
            'f_ffree': 999999999,
            'f_favail': 999999999,
            'f_flag': 0,
            'f_namemax': 255,
        }

def mount(bucket: str, mountpoint: str, foreground: bool = True, allow_other: bool = False, client=None):
    """
    Mount a bucket at the specified mountpoint.

    Args:
        bucket (str): Name of the bucket to mount
        mountpoint (str): Local path where the filesystem should be mounted
        foreground (bool, optional): Run in foreground. Defaults to True.
        allow_other (bool, optional): Allow other users to access the mount.
            Requires 'user_allow_other' in /etc/fuse.conf. Defaults to False.
        client (optional): Object store client. Defaults to one configured
            from the environment.
    """
    logger.info(f"Mounting bucket {bucket} at {mountpoint}")
    start_time = time.time()

    if os.path.exists(mountpoint):
        if not os.path.isdir(mountpoint):
            logger.error(f"Mountpoint path exists but is not a directory: {mountpoint}")
            print(f"Error: {mountpoint} exists but is not a directory. Please specify a directory path.")
            return
    else:
        logger.info(f"Mountpoint {mountpoint} does not exist, creating it...")
        try:
            os.makedirs(mountpoint, mode=0o755)
        except OSError as e:
            logger.error(f"Failed to create mountpoint {mountpoint}: {str(e)}")
            print(f"Error: Failed to create mountpoint directory {mountpoint}: {str(e)}")
            return

    try:
        process = subprocess.run(["mountpoint", "-q", mountpoint], check=False)
        if process.returncode == 0:
            logger.warning(f"Mountpoint {mountpoint} is already mounted")
            print(f"Warning: {mountpoint} is already mounted. Unmounting first...")
            unmount(mountpoint)
    except OSError as e:
        logger.warning(f"Could not check if {mountpoint} is mounted: {str(e)}")

    operations = BucketFuse(bucket, client)
    options = get_mount_options(foreground, allow_other)
    setup_signal_handlers(mountpoint, lambda mp: unmount(mp, operations))

    try:
        logger.info(f"Starting FUSE mount with options: {options}")
        FUSE(operations, mountpoint, nothreads=False, **options)
        time_function("mount", start_time)
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received, unmounting...")
        unmount(mountpoint, operations)
    except RuntimeError as e:
        logger.error(f"Error during mount: {type(e).__name__}: {str(e)}")
        print(f"Error: {type(e).__name__}: {str(e)}")
        print(f"Try unmounting any existing mounts: fusermount -u {mountpoint}")
        unmount(mountpoint, operations)

def main(argv=None):
    """
    CLI entry point for mounting buckets.

    Usage:
        python -m bucketfs.fuse <bucket> <mountpoint>

    Options:
        --allow-other: Allow other users to access the mount
            (requires user_allow_other in /etc/fuse.conf)
        --trace: Enable detailed tracing of file operations for debugging
    """
    import argparse
    parser = argparse.ArgumentParser(description='Mount a bucket as a local filesystem')
    parser.add_argument('bucket', help='The name of the bucket to mount')
    parser.add_argument('mountpoint', help='The directory to mount the bucket on')
    parser.add_argument('--allow-other', action='store_true',
                        help='Allow other users to access the mount (requires user_allow_other in /etc/fuse.conf)')
    parser.add_argument('--trace', action='store_true',
                        help='Enable detailed tracing of file operations for debugging')

    args = parser.parse_args(argv)

    if args.trace:
        os.environ['BUCKETFS_TRACE_OPS'] = 'true'
        utils.TRACE_OPERATIONS = True
        configure_logging('DEBUG')
        print("Detailed operation tracing enabled")
    else:
        configure_logging()

    logger.info(f"Starting bucketfs FUSE CLI with arguments: {sys.argv}")
    mount(args.bucket, args.mountpoint, allow_other=args.allow_other)

if __name__ == '__main__':
    main()
