"""File access confined to a single root directory."""

import logging
import os
import stat as stat_module
from typing import BinaryIO, Union

from jailfs.domain.correlation_id import CorrelationLoggerAdapter
from jailfs.domain.file_info import FileInfo
from jailfs.domain.http_types import HttpRequest, HttpResponse
from jailfs.domain.resolver import join_path, resolve_path
from jailfs.handlers.static_files import serve_file
from jailfs.storage.handles import DirectoryHandle, list_directory

FS_LOGGER = CorrelationLoggerAdapter(logging.getLogger("jailfs.storage.fs"), {})

DEFAULT_FILE_MODE = 0o666
DEFAULT_DIR_MODE = 0o777


def _fdopen_mode(flags: int) -> str:
    """Pick the file object mode matching the access bits of ``os.open`` flags."""
    access = flags & (os.O_RDONLY | os.O_WRONLY | os.O_RDWR)
    if access == os.O_WRONLY:
        return "ab" if flags & os.O_APPEND else "wb"
    if access == os.O_RDWR:
        return "a+b" if flags & os.O_APPEND else "r+b"
    return "rb"


class JailedFileSystem:
    """File operations on names that can never leave ``root``.

    Every method resolves its name with ``resolve_path`` exactly once and
    hands the result to the host file API. Errors from the OS propagate
    unchanged; an attempted escape simply lands on some path under the root.
    The root is neither checked nor normalized here.
    """

    def __init__(self, root: str) -> None:
        if not root:
            raise ValueError("root directory must not be empty")
        self._root = os.fspath(root)

    @property
    def root(self) -> str:
        return self._root

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._root!r})"

    def resolve(self, name: str) -> str:
        """Return the host path for ``name``, always ``root`` or below it."""
        resolved = resolve_path(self._root, name)
        if FS_LOGGER.logger.isEnabledFor(logging.DEBUG):
            FS_LOGGER.debug(
                "Path resolved",
                extra={"event": "path_resolved", "requested_name": name, "path": resolved},
            )
        return resolved

    def join(self, *elements: str) -> str:
        """Join slash-separated elements and resolve them below ``root``."""
        return join_path(self._root, *elements)

    def open(self, name: str) -> Union[BinaryIO, DirectoryHandle]:
        """Open ``name`` for reading.

        Files come back as binary file objects. Directories, including the
        root itself, come back as a ``DirectoryHandle`` that can be listed.
        """
        path = self.resolve(name)
        descriptor = os.open(path, os.O_RDONLY)
        try:
            if stat_module.S_ISDIR(os.fstat(descriptor).st_mode):
                return DirectoryHandle(descriptor, path)
            return os.fdopen(descriptor, "rb")
        except BaseException:
            os.close(descriptor)
            raise

    def open_file(
        self, name: str, flags: int, mode: int = DEFAULT_FILE_MODE
    ) -> BinaryIO:
        """Open ``name`` with raw ``os.open`` flags and permission bits."""
        descriptor = os.open(self.resolve(name), flags, mode)
        try:
            return os.fdopen(descriptor, _fdopen_mode(flags))
        except BaseException:
            os.close(descriptor)
            raise

    def create(self, name: str) -> BinaryIO:
        """Create or truncate ``name`` and open it for reading and writing."""
        return open(self.resolve(name), "w+b")  # pylint: disable=consider-using-with

    def stat(self, name: str) -> FileInfo:
        path = self.resolve(name)
        return FileInfo.from_stat(
            os.path.basename(path.rstrip(os.sep)) or path, os.stat(path)
        )

    def mkdir(self, name: str, mode: int = DEFAULT_DIR_MODE) -> None:
        os.mkdir(self.resolve(name), mode)

    def mkdir_all(self, name: str, mode: int = DEFAULT_DIR_MODE) -> None:
        """Create ``name`` and any missing parents; existing directories are fine."""
        os.makedirs(self.resolve(name), mode, exist_ok=True)

    def remove(self, name: str) -> None:
        """Remove one file or one empty directory."""
        path = self.resolve(name)
        try:
            os.unlink(path)
        except IsADirectoryError:
            os.rmdir(path)
        except PermissionError:
            # Some platforms report EPERM when unlinking a directory.
            if not os.path.isdir(path):
                raise
            os.rmdir(path)

    def read_dir(self, name: str) -> list[FileInfo]:
        """List the entries of directory ``name`` sorted by name."""
        return list_directory(self.resolve(name))

    def serve_http(self, request: HttpRequest, name: str) -> HttpResponse:
        """Answer ``request`` with the static file or directory at ``name``."""
        return serve_file(request, self.resolve(name))
