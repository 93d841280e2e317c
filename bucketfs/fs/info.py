# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
import stat
from dataclasses import dataclass
from datetime import datetime

from ..client.types import HeadObjectOutput, ObjectSummary
from .paths import base_name, is_dir_key

FILE_MODE = 0o644
DIR_MODE = stat.S_IFDIR | 0o755

@dataclass(frozen=True)
class FileInfo:
    """
    What is known about one key: taken from a head request or a listing entry.

    A key is a directory when it carries a trailing separator; there is no
    other signal.
    """
    name: str
    key: str
    size: int
    mod_time: datetime
    is_dir: bool

    @property
    def mode(self) -> int:
        return DIR_MODE if self.is_dir else FILE_MODE

    @property
    def is_file(self) -> bool:
        return not self.is_dir

    @classmethod
    def from_head(cls, key: str, head: HeadObjectOutput) -> "FileInfo":
        return cls(
            name=base_name(key),
            key=key,
            size=head.content_length,
            mod_time=head.last_modified,
            is_dir=is_dir_key(key),
        )

    @classmethod
    def from_summary(cls, summary: ObjectSummary) -> "FileInfo":
        return cls(
            name=base_name(summary.key),
            key=summary.key,
            size=summary.size,
            mod_time=summary.last_modified,
            is_dir=is_dir_key(summary.key),
        )
