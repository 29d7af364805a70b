"""Per-connection worker that reads requests and serves responses."""

import logging
import socket
import threading
from dataclasses import dataclass
from typing import Optional

from jailfs.bootstrap.config import ALLOWED_METHODS, MAX_BODY_BYTES, ServerConfig
from jailfs.domain.correlation_id import (
    CorrelationLoggerAdapter,
    clear_correlation_id,
    generate_correlation_id,
    set_correlation_id,
)
from jailfs.domain.http_types import HttpRequest
from jailfs.domain.response_builders import (
    bad_request_response,
    draining_response,
    entity_too_large_response,
)
from jailfs.pipeline.io import RequestEntityTooLarge, receive_request, send_response
from jailfs.pipeline.router import route_request
from jailfs.pipeline.validation import validate_request
from jailfs.storage.filesystem import JailedFileSystem
from jailfs.transport.lifecycle import ServerLifecycle

WORKER_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("jailfs.transport.worker"), {}
)


@dataclass
class WorkerContext:
    """Dependencies shared across handler threads."""

    filesystem: JailedFileSystem
    lifecycle: Optional[ServerLifecycle] = None
    config: Optional[ServerConfig] = None


def _read_request(
    client_socket: socket.socket, buffer: bytes, client: str
) -> tuple[Optional[HttpRequest], bytes, bool]:
    """Read one request, answering framing errors directly.

    Returns the request (or None), the unread buffer and whether the
    connection should be closed.
    """
    try:
        request, buffer = receive_request(client_socket, buffer, MAX_BODY_BYTES)
    except RequestEntityTooLarge:
        WORKER_LOGGER.warning(
            "Request size exceeded limit",
            extra={"event": "body_size_exceeded", "client": client},
        )
        send_response(client_socket, entity_too_large_response())
        return None, b"", True
    except ValueError:
        WORKER_LOGGER.warning(
            "Malformed request received",
            extra={"event": "malformed_request", "client": client},
        )
        send_response(client_socket, bad_request_response(None))
        return None, b"", True

    if request is None:
        if WORKER_LOGGER.logger.isEnabledFor(logging.DEBUG):
            WORKER_LOGGER.debug(
                "Client disconnected",
                extra={"event": "client_disconnected", "client": client},
            )
        return None, buffer, True
    return request, buffer, False


def _process_request(
    request: HttpRequest, context: WorkerContext, client_socket: socket.socket
) -> bool:
    """Validate, route and answer a request; return True to close the connection."""
    response = validate_request(request, ALLOWED_METHODS)
    if response is None:
        response = route_request(request, context.filesystem, context.lifecycle)
    send_response(client_socket, response)
    return response.close_connection


def _serve_connection(
    client_socket: socket.socket, context: WorkerContext, client: str
) -> None:
    buffer = b""
    lifecycle = context.lifecycle
    while True:
        set_correlation_id(generate_correlation_id())
        try:
            if lifecycle is not None and lifecycle.is_draining():
                send_response(client_socket, draining_response())
                return
            request, buffer, should_close = _read_request(
                client_socket, buffer, client
            )
            if should_close or request is None:
                return
            if _process_request(request, context, client_socket):
                return
        finally:
            clear_correlation_id()


def handle_client(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    context: WorkerContext,
) -> None:
    """Process requests on a client socket until the connection is closed."""
    client = f"{client_address[0]}:{client_address[1]}"
    if context.config is not None:
        client_socket.settimeout(context.config.socket_timeout)

    current_thread = threading.current_thread()
    lifecycle = context.lifecycle or ServerLifecycle()
    with lifecycle.track(current_thread):
        try:
            _serve_connection(client_socket, context, client)
        except (ConnectionError, TimeoutError, OSError, UnicodeDecodeError) as error:
            WORKER_LOGGER.error(
                "Error handling client connection",
                extra={
                    "event": "connection_error",
                    "client": client,
                    "error_type": type(error).__name__,
                },
            )
        except Exception as error:  # pylint: disable=broad-except
            WORKER_LOGGER.error(
                "Unexpected error in worker",
                extra={
                    "event": "worker_error",
                    "client": client,
                    "error_type": type(error).__name__,
                },
                exc_info=True,
            )
        finally:
            try:
                client_socket.shutdown(socket.SHUT_WR)
            except OSError:
                pass
            client_socket.close()
            if WORKER_LOGGER.logger.isEnabledFor(logging.DEBUG):
                WORKER_LOGGER.debug(
                    "Socket closed", extra={"event": "socket_closed", "client": client}
                )
