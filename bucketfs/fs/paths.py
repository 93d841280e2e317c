# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""Key helpers shared by the filesystem layer."""

import posixpath

SEPARATOR = '/'

def clean_key(name: str) -> str:
    """Convert a path to an object key by removing the leading separator."""
    return name.lstrip(SEPARATOR)

def dir_key(key: str) -> str:
    """Return ``key`` with exactly one trailing separator ("" stays "")."""
    if not key or key.endswith(SEPARATOR):
        return key
    return key + SEPARATOR

def is_dir_key(key: str) -> bool:
    return key.endswith(SEPARATOR)

def base_name(key: str) -> str:
    """Last path component of a key, ignoring a trailing separator."""
    return posixpath.basename(key.rstrip(SEPARATOR))
