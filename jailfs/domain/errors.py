"""Classification of pass-through OS errors."""

import errno
from enum import Enum


class ErrorKind(Enum):
    """Condition behind an OS error raised by a jailed file operation."""

    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    ACCESS_DENIED = "access_denied"
    IS_DIRECTORY = "is_directory"
    NOT_A_DIRECTORY = "not_a_directory"
    DIRECTORY_NOT_EMPTY = "directory_not_empty"
    OTHER = "other"


_KIND_BY_TYPE: tuple[tuple[type[OSError], ErrorKind], ...] = (
    (FileNotFoundError, ErrorKind.NOT_FOUND),
    (FileExistsError, ErrorKind.ALREADY_EXISTS),
    (PermissionError, ErrorKind.ACCESS_DENIED),
    (IsADirectoryError, ErrorKind.IS_DIRECTORY),
    (NotADirectoryError, ErrorKind.NOT_A_DIRECTORY),
)

_KIND_BY_ERRNO = {
    errno.ENOTEMPTY: ErrorKind.DIRECTORY_NOT_EMPTY,
}


def error_kind(error: OSError) -> ErrorKind:
    """Return the ErrorKind for an error raised by the host file API."""
    for error_type, kind in _KIND_BY_TYPE:
        if isinstance(error, error_type):
            return kind
    return _KIND_BY_ERRNO.get(error.errno, ErrorKind.OTHER)
