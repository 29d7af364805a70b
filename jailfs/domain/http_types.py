"""HTTP request and response records shared by the server layers."""

from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass
class HttpRequest:
    """Represents a parsed HTTP request."""

    method: str
    path: str
    headers: dict[str, str]
    body: bytes


@dataclass
class HttpResponse:
    """Represents an HTTP response to be sent to a client.

    ``body_iter`` is streamed with chunked transfer encoding when
    ``use_chunked`` is set. A ``Content-Length`` already present in
    ``headers`` is sent as-is, which lets HEAD responses advertise the size
    of a body they do not carry.
    """

    status_line: str
    headers: dict[str, str]
    body: bytes
    close_connection: bool
    body_iter: Optional[Iterable[bytes]] = None
    use_chunked: bool = False

    @property
    def status_code(self) -> int:
        return int(self.status_line.split(" ", 2)[1])


def should_close(headers: dict[str, str]) -> bool:
    """Determine whether the connection should be closed after responding."""
    return headers.get("connection", "").lower() == "close"
