"""Reading requests from and writing responses to client sockets."""

import logging
import socket
import urllib.parse
from typing import Optional, Tuple

from jailfs.bootstrap.config import HEADER_DELIMITER, MAX_BODY_BYTES
from jailfs.domain.correlation_id import (
    CorrelationLoggerAdapter,
    get_correlation_id,
    set_correlation_id,
)
from jailfs.domain.http_types import HttpRequest, HttpResponse

IO_LOGGER = CorrelationLoggerAdapter(logging.getLogger("jailfs.pipeline.io"), {})


class RequestEntityTooLarge(Exception):
    """Raised when a request body exceeds configured limits."""


def parse_headers(lines: list[str]) -> dict[str, str]:
    """Convert raw header lines into a lowercase-keyed dictionary."""
    parsed = {}
    for line in lines:
        if ": " in line:
            name, value = line.split(": ", 1)
            parsed[name.lower()] = value
    return parsed


def parse_request_line(request_line: str) -> Tuple[str, str]:
    """Return the method and percent-decoded path of a request line."""
    try:
        method, target, _ = request_line.split(" ", 2)
    except ValueError as exc:
        raise ValueError("Invalid request line") from exc
    path = urllib.parse.unquote(urllib.parse.urlsplit(target).path)
    return method, path


def determine_content_length(headers: dict[str, str], max_body_bytes: int) -> int:
    """Validate and return the declared Content-Length for the request."""
    header_value = headers.get("content-length")
    if header_value is None:
        return 0
    try:
        content_length = int(header_value)
    except ValueError as exc:
        raise ValueError("Invalid Content-Length") from exc
    if content_length < 0:
        raise ValueError("Negative Content-Length")
    if content_length > max_body_bytes:
        raise RequestEntityTooLarge
    return content_length


def receive_request(
    client_socket: socket.socket, buffer: bytes, max_body_bytes: int = MAX_BODY_BYTES
) -> Tuple[Optional[HttpRequest], bytes]:
    """Read bytes from the socket until a complete request is available."""
    while HEADER_DELIMITER not in buffer:
        chunk = client_socket.recv(4096)
        if not chunk:
            return None, b""
        buffer += chunk
        if len(buffer) > max_body_bytes and HEADER_DELIMITER not in buffer:
            raise RequestEntityTooLarge

    header_block, remainder = buffer.split(HEADER_DELIMITER, 1)
    header_lines = header_block.decode().split("\r\n")
    method, path = parse_request_line(header_lines[0])
    headers = parse_headers(header_lines[1:])

    incoming_correlation_id = headers.get("x-request-id")
    if incoming_correlation_id:
        set_correlation_id(incoming_correlation_id)

    content_length = determine_content_length(headers, max_body_bytes)
    while len(remainder) < content_length:
        chunk = client_socket.recv(4096)
        if not chunk:
            return None, b""
        remainder += chunk

    body = remainder[:content_length]
    leftover = remainder[content_length:]
    if IO_LOGGER.logger.isEnabledFor(logging.DEBUG):
        IO_LOGGER.debug(
            "Parsed request",
            extra={"event": "request_parsed", "method": method, "route": path},
        )
    return HttpRequest(method, path, headers, body), leftover


def send_response(client_socket: socket.socket, response: HttpResponse) -> None:
    """Serialize and send the HTTP response over the socket."""
    headers = dict(response.headers)

    correlation_id = get_correlation_id()
    if correlation_id:
        headers["X-Request-ID"] = correlation_id

    if response.use_chunked:
        headers["Transfer-Encoding"] = "chunked"
    else:
        headers.setdefault("Content-Length", str(len(response.body)))
    if response.close_connection:
        headers["Connection"] = "close"
    header_lines = [response.status_line]
    header_lines.extend(f"{name}: {value}" for name, value in headers.items())
    header_block = "\r\n".join(header_lines).encode() + HEADER_DELIMITER
    if response.use_chunked and response.body_iter is not None:
        client_socket.sendall(header_block)
        for chunk in response.body_iter:
            if not chunk:
                continue
            client_socket.sendall(f"{len(chunk):X}\r\n".encode() + chunk + b"\r\n")
        client_socket.sendall(b"0\r\n\r\n")
    else:
        client_socket.sendall(header_block + response.body)
    if IO_LOGGER.logger.isEnabledFor(logging.DEBUG):
        IO_LOGGER.debug(
            "Sent response",
            extra={"event": "response_sent", "status_code": response.status_code},
        )
