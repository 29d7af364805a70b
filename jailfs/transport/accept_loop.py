"""Main connection acceptance loop."""

import logging
import socket
import threading

from jailfs.bootstrap.config import ServerConfig
from jailfs.domain.correlation_id import CorrelationLoggerAdapter
from jailfs.domain.response_builders import draining_response
from jailfs.pipeline.io import send_response
from jailfs.storage.filesystem import JailedFileSystem
from jailfs.transport.lifecycle import ServerLifecycle
from jailfs.transport.worker import WorkerContext, handle_client

ACCEPT_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("jailfs.transport.accept"), {}
)

ACCEPT_POLL_SECONDS = 0.5


def create_server_socket(host: str, port: int) -> socket.socket:
    """Create the listening socket with a short accept timeout."""
    server_socket = socket.create_server((host, port), reuse_port=True)
    server_socket.settimeout(ACCEPT_POLL_SECONDS)
    return server_socket


def run_server(
    host: str, port: int, config: ServerConfig, lifecycle: ServerLifecycle
) -> None:
    """Accept connections until draining, then wait for workers to finish."""
    server_socket = create_server_socket(host, port)
    context = WorkerContext(
        filesystem=JailedFileSystem(config.directory),
        lifecycle=lifecycle,
        config=config,
    )
    ACCEPT_LOGGER.info(
        "Server listening for connections",
        extra={
            "event": "server_listening",
            "host": host,
            "port": port,
            "directory": config.directory,
        },
    )

    try:
        while not lifecycle.is_draining():
            try:
                client_socket, client_address = server_socket.accept()
            except socket.timeout:
                continue
            except OSError as error:
                if lifecycle.is_draining():
                    break
                ACCEPT_LOGGER.error(
                    "Socket accept failed",
                    extra={"event": "accept_error", "error_type": type(error).__name__},
                )
                continue

            if lifecycle.is_draining():
                send_response(client_socket, draining_response())
                client_socket.close()
                break

            # Workers still busy after the grace period must not keep the
            # process alive.
            thread = threading.Thread(
                target=handle_client,
                args=(client_socket, client_address, context),
                daemon=True,
            )
            thread.start()
    finally:
        server_socket.close()
        ACCEPT_LOGGER.info(
            "Waiting for active connections to complete",
            extra={
                "event": "shutdown_waiting",
                "grace_seconds": config.shutdown_grace_seconds,
            },
        )
        lifecycle.wait_for_workers(config.shutdown_grace_seconds)
        ACCEPT_LOGGER.info("Server shutdown complete", extra={"event": "server_stopped"})
