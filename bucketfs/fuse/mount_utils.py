# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Mount utilities for the bucketfs FUSE filesystem.

This module provides the helpers used around a mount: unmounting, signal
handling and the option set passed to FUSE.
"""

import signal
import subprocess
import sys
import time

from bucketfs.utils import logger, time_function

def unmount(mountpoint, operations=None):
    """
    Unmount the filesystem using fusermount (Linux).

    Open handles are closed first so that pending writes are uploaded.

    Args:
        mountpoint (str): Path where the filesystem is mounted
        operations (BucketFuse, optional): The mounted operations object
    """
    logger.info(f"Unmounting filesystem at {mountpoint}")
    start_time = time.time()

    mountpoint = mountpoint.rstrip('/')
    if operations is not None:
        operations.release_all()
    try:
        cp = subprocess.run(["mountpoint", "-q", mountpoint])
        if cp.returncode != 0:
            logger.warning(f"{mountpoint} is not mounted, nothing to unmount.")
            time_function("unmount", start_time)
            return

        subprocess.run(["fusermount", "-u", mountpoint], check=True)
        logger.info(f"Unmounted {mountpoint} gracefully.")
        print(f"Unmounted {mountpoint} gracefully.")
    except (OSError, subprocess.CalledProcessError) as e:
        logger.error(f"Error during unmounting: {e}")
        print(f"Error during unmounting: {e}")
    time_function("unmount", start_time)

def setup_signal_handlers(mountpoint, unmount_func):
    """
    Set up signal handlers for graceful unmounting.

    Args:
        mountpoint (str): Path where the filesystem is mounted
        unmount_func (callable): Function to call for unmounting

    Returns:
        callable: The signal handler function
    """
    def signal_handler(sig, frame):
        logger.info(f"Signal {sig} received, unmounting...")
        unmount_func(mountpoint)
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    return signal_handler

def get_mount_options(foreground=True, allow_other=False):
    """
    Get mount options for FUSE.

    Attribute caching is kept short because other clients may change the
    bucket behind the mount. Direct I/O stays off so that files can be
    memory mapped.

    Args:
        foreground (bool, optional): Run in foreground. Defaults to True.
        allow_other (bool, optional): Allow other users to access the mount.
            Requires 'user_allow_other' in /etc/fuse.conf. Defaults to False.

    Returns:
        dict: Dictionary of mount options
    """
    ATTR_TIMEOUT = 5

    options = {
        'foreground': foreground,
        'default_permissions': True,
        'direct_io': False,
        'rw': True,
        'big_writes': True,
        'hard_remove': True,
        'max_read': 1024 * 1024,
        'max_write': 1024 * 1024,
        'entry_timeout': ATTR_TIMEOUT,
        'attr_timeout': ATTR_TIMEOUT,
    }

    if allow_other:
        options['allow_other'] = True

    return options
