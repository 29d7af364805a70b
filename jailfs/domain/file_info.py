"""File metadata returned by jailed stat and directory listings."""

import os
import stat as stat_module
from dataclasses import dataclass


@dataclass(frozen=True)
class FileInfo:
    """Metadata for a single file or directory."""

    name: str
    size: int
    mode: int
    modified: float
    is_dir: bool

    @classmethod
    def from_stat(cls, name: str, result: os.stat_result) -> "FileInfo":
        """Build a FileInfo from an ``os.stat_result``."""
        return cls(
            name=name,
            size=result.st_size,
            mode=stat_module.S_IMODE(result.st_mode),
            modified=result.st_mtime,
            is_dir=stat_module.S_ISDIR(result.st_mode),
        )
