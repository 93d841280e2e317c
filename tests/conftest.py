import os

import pytest

from bucketfs.fs.filesystem import FileSystem
from bucketfs.testing import InMemoryObjectStore

BUCKET = "test-bucket"

def pytest_configure(config):
    """Configure test environment."""
    # Keep tests independent of any real credentials on the machine
    os.environ.setdefault("BUCKETFS_REGION", "us-east-1")
    os.environ.pop("BUCKETFS_TRACE_OPS", None)

@pytest.fixture
def store():
    """In-memory store with the default (large) page size."""
    return InMemoryObjectStore(buckets=(BUCKET,))

@pytest.fixture
def paged_store():
    """In-memory store returning one key per listing page."""
    return InMemoryObjectStore(buckets=(BUCKET,), page_size=1)

@pytest.fixture
def fs(store):
    return FileSystem(store, BUCKET)

@pytest.fixture
def paged_fs(paged_store):
    return FileSystem(paged_store, BUCKET)
