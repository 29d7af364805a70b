"""Generic static-file responder for already resolved host paths."""

import html
import logging
import mimetypes
import os
import stat as stat_module
import urllib.parse
from datetime import timezone
from email.utils import formatdate, parsedate_to_datetime
from typing import BinaryIO, Iterator, Optional

from jailfs.domain.correlation_id import CorrelationLoggerAdapter
from jailfs.domain.errors import ErrorKind, error_kind
from jailfs.domain.http_types import HttpRequest, HttpResponse
from jailfs.domain.response_builders import (
    bad_request_response,
    forbidden_response,
    head_response,
    html_response,
    method_not_allowed_response,
    not_found_response,
    not_modified_response,
    redirect_response,
    server_error_response,
    streaming_response,
)

FILE_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("jailfs.handlers.static"), {}
)

STATIC_METHODS = frozenset({"GET", "HEAD"})
INDEX_DOCUMENT = "index.html"
CHUNK_SIZE = 65536


def stream_handle(file_handle: BinaryIO, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
    """Yield the contents of an open file in fixed-size chunks, then close it."""
    try:
        while True:
            chunk = file_handle.read(chunk_size)
            if not chunk:
                break
            if FILE_LOGGER.logger.isEnabledFor(logging.DEBUG):
                FILE_LOGGER.debug(
                    "File chunk sent",
                    extra={"event": "file_chunk_sent", "bytes": len(chunk)},
                )
            yield chunk
    finally:
        file_handle.close()


def _content_type_for_path(path: str) -> str:
    mime_type, _ = mimetypes.guess_type(path)
    return mime_type or "application/octet-stream"


def _error_response(
    request: HttpRequest, path: str, error: OSError
) -> HttpResponse:
    kind = error_kind(error)
    FILE_LOGGER.info(
        "File access failed",
        extra={
            "event": "file_access_failed",
            "path": path,
            "method": request.method,
            "error_type": type(error).__name__,
            "errno": error.errno,
        },
    )
    if kind in (ErrorKind.NOT_FOUND, ErrorKind.NOT_A_DIRECTORY):
        return not_found_response(request)
    if kind is ErrorKind.ACCESS_DENIED:
        return forbidden_response(request)
    return server_error_response(request)


def _not_modified_since(header: Optional[str], modified: int) -> bool:
    if not header:
        return False
    try:
        since = parsedate_to_datetime(header)
    except (TypeError, ValueError):
        return False
    if since.tzinfo is None:
        since = since.replace(tzinfo=timezone.utc)
    return since.timestamp() >= modified


def _file_response(
    request: HttpRequest, path: str, info: os.stat_result
) -> HttpResponse:
    modified = int(info.st_mtime)
    last_modified = formatdate(modified, usegmt=True)
    if _not_modified_since(request.headers.get("if-modified-since"), modified):
        return not_modified_response(request, {"Last-Modified": last_modified})

    headers = {
        "Content-Type": _content_type_for_path(path),
        "Last-Modified": last_modified,
    }
    if request.method == "HEAD":
        headers["Content-Length"] = str(info.st_size)
        return head_response(request, headers)

    try:
        file_handle = open(path, "rb")  # pylint: disable=consider-using-with
    except OSError as error:
        return _error_response(request, path, error)
    FILE_LOGGER.info(
        "File read operation started",
        extra={
            "event": "file_read_started",
            "path": path,
            "method": request.method,
            "bytes_out": info.st_size,
        },
    )
    return streaming_response(request, headers, stream_handle(file_handle))


def _listing_document(title: str, entries: list[os.DirEntry]) -> str:
    lines = [
        "<!DOCTYPE html>",
        "<html>",
        f"<head><meta charset=\"utf-8\"><title>{html.escape(title)}</title></head>",
        "<body>",
        f"<h1>{html.escape(title)}</h1>",
        "<pre>",
    ]
    for entry in sorted(entries, key=lambda item: item.name):
        name = entry.name
        if entry.is_dir(follow_symlinks=False):
            name += "/"
        href = urllib.parse.quote(name)
        lines.append(f"<a href=\"{href}\">{html.escape(name)}</a>")
    lines.extend(["</pre>", "</body>", "</html>", ""])
    return "\n".join(lines)


def _directory_response(request: HttpRequest, path: str) -> HttpResponse:
    if not request.path.endswith("/"):
        base_name = request.path.rstrip("/").rsplit("/", 1)[-1]
        return redirect_response(request, urllib.parse.quote(base_name) + "/")

    index_path = os.path.join(path, INDEX_DOCUMENT)
    try:
        index_info = os.stat(index_path)
    except OSError:
        index_info = None
    if index_info is not None and stat_module.S_ISREG(index_info.st_mode):
        return _file_response(request, index_path, index_info)

    try:
        with os.scandir(path) as iterator:
            entries = list(iterator)
    except OSError as error:
        return _error_response(request, path, error)
    if FILE_LOGGER.logger.isEnabledFor(logging.DEBUG):
        FILE_LOGGER.debug(
            "Directory listing built",
            extra={"event": "directory_listed", "path": path, "entries": len(entries)},
        )
    return html_response(request, _listing_document(f"Index of {request.path}", entries))


def serve_file(request: HttpRequest, path: str) -> HttpResponse:
    """Answer a GET or HEAD request with the file or directory at ``path``.

    ``path`` is used as given, so callers are responsible for confining it.
    Directories are served through their ``index.html`` when present and as
    an HTML listing otherwise. OS failures map onto 404, 403 or 500.
    """
    if request.method not in STATIC_METHODS:
        FILE_LOGGER.warning(
            "Unsupported method",
            extra={"event": "method_rejected", "path": path, "method": request.method},
        )
        return method_not_allowed_response(request, STATIC_METHODS)

    try:
        info = os.stat(path)
    except OSError as error:
        return _error_response(request, path, error)
    except ValueError:
        FILE_LOGGER.warning(
            "Unusable path rejected",
            extra={"event": "path_rejected", "method": request.method},
        )
        return bad_request_response(request)

    if stat_module.S_ISDIR(info.st_mode):
        return _directory_response(request, path)
    return _file_response(request, path, info)
