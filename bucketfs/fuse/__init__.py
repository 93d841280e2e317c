# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
FUSE mount for bucketfs.

Requires libfuse and the ``fusepy`` package::

    python -m bucketfs.fuse my-bucket /mnt/my-bucket
"""
