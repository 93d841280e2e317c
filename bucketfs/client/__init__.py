# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
from .client import ObjectStoreClient
from .session import Session
from .store import ObjectStore

__all__ = ["ObjectStoreClient", "Session", "ObjectStore"]
