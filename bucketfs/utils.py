# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Utility functions for bucketfs.

This module provides the shared logger, logging configuration and the timing
and tracing helpers used by the filesystem layer and the FUSE mount.
"""

import logging
import time
import os

# Enable a debug trace for all file operations if requested
TRACE_OPERATIONS = os.environ.get('BUCKETFS_TRACE_OPS', '').lower() in ('true', '1', 'yes')

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s] - %(message)s'

logger = logging.getLogger('BucketFS')

def configure_logging(level=None):
    """
    Configure root logging for command-line use.

    Args:
        level (str or int, optional): Log level. Defaults to the BUCKETFS_LOG_LEVEL
            environment variable, or INFO.
    """
    if level is None:
        level = os.environ.get('BUCKETFS_LOG_LEVEL', 'INFO').upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logger.setLevel(level)

def time_function(func_name, start_time):
    """
    Helper function for timing operations.

    Calculates and logs the elapsed time for a function call.

    Args:
        func_name (str): Name of the function being timed
        start_time (float): Start time from time.time()

    Returns:
        float: Elapsed time in seconds
    """
    elapsed = time.time() - start_time
    logger.debug(f"{func_name} completed in {elapsed:.4f} seconds")
    return elapsed

def trace_op(operation, path, **details):
    """
    Trace a file operation for debugging purposes.

    This function logs detailed information about file operations
    when the BUCKETFS_TRACE_OPS environment variable is set.

    Args:
        operation (str): The file operation being performed
        path (str): The path of the file being operated on
        **details: Additional details to log
    """
    if TRACE_OPERATIONS:
        detail_str = ', '.join(f"{k}={v}" for k, v in details.items())
        logger.debug(f"TRACE: {operation} on {path} {detail_str}")
