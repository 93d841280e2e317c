# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
from .memory_store import InMemoryObjectStore

__all__ = ["InMemoryObjectStore"]
