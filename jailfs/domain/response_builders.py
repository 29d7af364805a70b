"""Pure HTTP response builders."""

from typing import Iterable, Optional

from jailfs.domain.http_types import HttpRequest, HttpResponse, should_close

SECURITY_HEADERS = {
    "Content-Security-Policy": "default-src 'self'",
    "X-Content-Type-Options": "nosniff",
}


def _close_for(request: Optional[HttpRequest]) -> bool:
    return should_close(request.headers) if request is not None else True


def _status_only(status_line: str, request: Optional[HttpRequest]) -> HttpResponse:
    return HttpResponse(
        status_line, SECURITY_HEADERS.copy(), b"", _close_for(request)
    )


def not_found_response(request: HttpRequest) -> HttpResponse:
    """Return a 404 response reusing the connection preference."""
    return _status_only("HTTP/1.1 404 Not Found", request)


def forbidden_response(request: Optional[HttpRequest]) -> HttpResponse:
    """Produce a 403 response honoring the caller's connection preference."""
    return _status_only("HTTP/1.1 403 Forbidden", request)


def bad_request_response(request: Optional[HttpRequest]) -> HttpResponse:
    """Produce a 400 response; without a parsed request the connection closes."""
    return _status_only("HTTP/1.1 400 Bad Request", request)


def server_error_response(request: HttpRequest) -> HttpResponse:
    return _status_only("HTTP/1.1 500 Internal Server Error", request)


def not_modified_response(
    request: HttpRequest, headers: dict[str, str]
) -> HttpResponse:
    """Return a 304 carrying the validators of the unchanged resource."""
    return HttpResponse(
        "HTTP/1.1 304 Not Modified",
        {**headers, **SECURITY_HEADERS},
        b"",
        should_close(request.headers),
    )


def redirect_response(request: HttpRequest, location: str) -> HttpResponse:
    """Produce a 301 response pointing at ``location``."""
    headers = {"Location": location, **SECURITY_HEADERS}
    return HttpResponse(
        "HTTP/1.1 301 Moved Permanently",
        headers,
        b"",
        should_close(request.headers),
    )


def html_response(request: HttpRequest, document: str) -> HttpResponse:
    """Return a 200 text/html response; HEAD gets the headers only."""
    payload = document.encode()
    headers = {"Content-Type": "text/html; charset=utf-8", **SECURITY_HEADERS}
    if request.method == "HEAD":
        headers["Content-Length"] = str(len(payload))
        payload = b""
    return HttpResponse(
        "HTTP/1.1 200 OK", headers, payload, should_close(request.headers)
    )


def streaming_response(
    request: HttpRequest, headers: dict[str, str], body_iter: Iterable[bytes]
) -> HttpResponse:
    """Return a 200 response whose body is sent with chunked encoding."""
    return HttpResponse(
        "HTTP/1.1 200 OK",
        {**headers, **SECURITY_HEADERS},
        b"",
        should_close(request.headers),
        body_iter=body_iter,
        use_chunked=True,
    )


def head_response(request: HttpRequest, headers: dict[str, str]) -> HttpResponse:
    """Return a 200 response with headers only."""
    return HttpResponse(
        "HTTP/1.1 200 OK",
        {**headers, **SECURITY_HEADERS},
        b"",
        should_close(request.headers),
    )


def entity_too_large_response() -> HttpResponse:
    """Produce a 413 response that always closes the connection."""
    return HttpResponse(
        "HTTP/1.1 413 Payload Too Large", SECURITY_HEADERS.copy(), b"", True
    )


def method_not_allowed_response(
    request: HttpRequest, allowed_methods: Iterable[str]
) -> HttpResponse:
    """Produce a 405 response enumerating the supported HTTP methods."""
    headers = {"Allow": ", ".join(sorted(allowed_methods)), **SECURITY_HEADERS}
    return HttpResponse(
        "HTTP/1.1 405 Method Not Allowed",
        headers,
        b"",
        should_close(request.headers),
    )


def draining_response() -> HttpResponse:
    """Produce a 503 response indicating the server is draining."""
    headers = {"Connection": "close", **SECURITY_HEADERS}
    return HttpResponse("HTTP/1.1 503 Service Unavailable", headers, b"draining", True)


def healthz_response(is_draining: bool) -> HttpResponse:
    """Produce a health check response based on server state."""
    if is_draining:
        return draining_response()
    return HttpResponse("HTTP/1.1 200 OK", SECURITY_HEADERS.copy(), b"", False)
