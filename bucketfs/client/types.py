# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

@dataclass
class HeadObjectOutput:
    """Metadata for an object."""
    content_length: int
    last_modified: datetime
    etag: str
    content_type: Optional[str] = None

@dataclass
class ObjectSummary:
    """One entry of a listing page."""
    key: str
    size: int
    last_modified: datetime
    etag: str = ""

@dataclass
class ListObjectsOptions:
    """Options for listing objects."""
    prefix: Optional[str] = None
    max_keys: Optional[int] = None
    continuation_token: Optional[str] = None

@dataclass
class ListObjectsPage:
    """A single page of a prefix listing."""
    objects: List[ObjectSummary] = field(default_factory=list)
    is_truncated: bool = False
    next_continuation_token: Optional[str] = None

    @property
    def keys(self) -> List[str]:
        return [obj.key for obj in self.objects]

@dataclass(frozen=True)
class CompletedPart:
    """An accepted multipart part and the integrity tag the store issued for it."""
    part_number: int
    etag: str
