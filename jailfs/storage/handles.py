"""Read handles for directories opened through a jailed filesystem."""

import errno
import os
from typing import Optional, Union

from jailfs.domain.file_info import FileInfo


def list_directory(target: Union[str, int]) -> list[FileInfo]:
    """Return the entries of a directory path or descriptor sorted by name."""
    with os.scandir(target) as entries:
        infos = [
            FileInfo.from_stat(entry.name, entry.stat(follow_symlinks=False))
            for entry in entries
        ]
    return sorted(infos, key=lambda info: info.name)


class DirectoryHandle:
    """An open directory that can be listed, stat'ed and closed.

    Reading bytes from it fails with ``IsADirectoryError`` the same way
    reading a directory descriptor does.
    """

    def __init__(self, descriptor: int, path: str) -> None:
        self._descriptor: Optional[int] = descriptor
        self.name = path

    def __enter__(self) -> "DirectoryHandle":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"

    @property
    def closed(self) -> bool:
        return self._descriptor is None

    def fileno(self) -> int:
        if self._descriptor is None:
            raise ValueError("I/O operation on closed directory handle")
        return self._descriptor

    def read(self, size: int = -1) -> bytes:  # pylint: disable=unused-argument
        raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), self.name)

    def read_dir(self) -> list[FileInfo]:
        """List the directory's entries sorted by name."""
        return list_directory(self.fileno())

    def stat(self) -> FileInfo:
        return FileInfo.from_stat(
            os.path.basename(self.name.rstrip(os.sep)) or self.name,
            os.fstat(self.fileno()),
        )

    def close(self) -> None:
        if self._descriptor is not None:
            descriptor, self._descriptor = self._descriptor, None
            os.close(descriptor)
