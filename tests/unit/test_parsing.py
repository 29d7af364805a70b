"""Unit tests covering HTTP request parsing and response serialization."""

import pytest

from jailfs.domain.http_types import HttpRequest, HttpResponse
from jailfs.pipeline.io import (
    RequestEntityTooLarge,
    determine_content_length,
    parse_headers,
    parse_request_line,
    receive_request,
    send_response,
)


class FakeSocket:
    """Minimal socket stub that returns predefined chunks sequentially."""

    def __init__(self, chunks=()):
        self._chunks = [
            chunk if isinstance(chunk, bytes) else chunk.encode() for chunk in chunks
        ]
        self.sent = b""

    def recv(self, _):
        """Return the next chunk or an empty bytes object when exhausted."""
        if self._chunks:
            return self._chunks.pop(0)
        return b""

    def sendall(self, data: bytes) -> None:
        self.sent += data


def test_parse_headers_normalizes_keys_and_skips_invalid_lines():
    """Header parsing should lowercase keys and ignore malformed lines."""
    headers = parse_headers(
        [
            "Content-Length: 10",
            "User-Agent: ExampleClient",
            "x-custom: value",
            "invalid-line",
        ]
    )
    assert headers == {
        "content-length": "10",
        "user-agent": "ExampleClient",
        "x-custom": "value",
    }


def test_parse_request_line_decodes_path_and_drops_query():
    """Percent escapes are decoded so the resolver sees the real name."""
    method, path = parse_request_line("GET /a%20b/..%2F..%2Fetc?x=1 HTTP/1.1")
    assert method == "GET"
    assert path == "/a b/../../etc"


def test_parse_request_line_rejects_garbage():
    with pytest.raises(ValueError):
        parse_request_line("GARBAGE")


@pytest.mark.parametrize("value", ["abc", "-1"])
def test_determine_content_length_rejects_invalid_values(value: str):
    with pytest.raises(ValueError):
        determine_content_length({"content-length": value}, 100)


def test_determine_content_length_enforces_limit():
    with pytest.raises(RequestEntityTooLarge):
        determine_content_length({"content-length": "101"}, 100)
    assert determine_content_length({}, 100) == 0


def test_receive_request_handles_partial_reads_and_leftover_bytes():
    """Receiving a request must tolerate partial socket reads."""
    request_bytes = (
        b"GET /files/hello.txt HTTP/1.1\r\n"
        b"Host: localhost\r\n"
        b"Content-Length: 5\r\n\r\n"
        b"helloEXTRA"
    )
    socket_chunks = [request_bytes[:25], request_bytes[25:50], request_bytes[50:]]
    client = FakeSocket(socket_chunks)
    request, leftover = receive_request(client, b"")
    assert isinstance(request, HttpRequest)
    assert request.path == "/files/hello.txt"
    assert request.body == b"hello"
    assert leftover == b"EXTRA"


def test_receive_request_returns_none_when_socket_closes_early():
    """If the client disconnects early the parser should return nothing."""
    client = FakeSocket([b"GET / HTTP/1.1\r\n"])
    request, buffer = receive_request(client, b"")
    assert request is None
    assert buffer == b""


def test_receive_request_rejects_oversized_header_block():
    client = FakeSocket([b"GET /" + b"a" * 64 + b" HTTP/1.1\r\n"])
    with pytest.raises(RequestEntityTooLarge):
        receive_request(client, b"", max_body_bytes=32)


def test_send_response_uses_content_length_for_plain_bodies():
    client = FakeSocket()
    send_response(client, HttpResponse("HTTP/1.1 200 OK", {}, b"abc", True))
    assert client.sent.startswith(b"HTTP/1.1 200 OK\r\n")
    assert b"Content-Length: 3\r\n" in client.sent
    assert b"Connection: close\r\n" in client.sent
    assert client.sent.endswith(b"\r\n\r\nabc")


def test_send_response_keeps_declared_content_length():
    """HEAD responses advertise a length they do not send."""
    client = FakeSocket()
    response = HttpResponse("HTTP/1.1 200 OK", {"Content-Length": "42"}, b"", False)
    send_response(client, response)
    assert b"Content-Length: 42\r\n" in client.sent
    assert client.sent.endswith(b"\r\n\r\n")


def test_send_response_streams_chunks():
    client = FakeSocket()
    response = HttpResponse(
        "HTTP/1.1 200 OK",
        {},
        b"",
        False,
        body_iter=iter([b"hello", b"", b" world"]),
        use_chunked=True,
    )
    send_response(client, response)
    assert b"Transfer-Encoding: chunked\r\n" in client.sent
    assert client.sent.endswith(b"5\r\nhello\r\n6\r\n world\r\n0\r\n\r\n")
