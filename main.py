"""Serve one directory over HTTP with every request path confined to it."""

import logging
import signal
import sys

from jailfs.bootstrap.config import ServerConfig, parse_cli_args
from jailfs.bootstrap.logging_setup import configure_logging
from jailfs.domain.correlation_id import CorrelationLoggerAdapter
from jailfs.transport.accept_loop import run_server
from jailfs.transport.lifecycle import ServerLifecycle

SERVER_LOGGER = CorrelationLoggerAdapter(logging.getLogger("jailfs.server"), {})


def main(argv: list[str] | None = None) -> None:
    """Parse arguments, install signal handlers and run the accept loop."""
    args = parse_cli_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.log_level, args.log_destination, args.log_format == "json")

    config = ServerConfig.from_args(args)
    lifecycle = ServerLifecycle()

    def shutdown_handler(signum: int, _frame) -> None:
        SERVER_LOGGER.info(
            "Received shutdown signal",
            extra={"event": "shutdown_signal", "signal": signum},
        )
        lifecycle.begin_draining()

    signal.signal(signal.SIGTERM, shutdown_handler)
    signal.signal(signal.SIGINT, shutdown_handler)

    SERVER_LOGGER.info(
        "Starting jailed file server",
        extra={
            "event": "server_starting",
            "host": args.host,
            "port": args.port,
            "directory": config.directory,
            "socket_timeout": config.socket_timeout,
            "shutdown_grace_seconds": config.shutdown_grace_seconds,
        },
    )
    run_server(args.host, args.port, config, lifecycle)


if __name__ == "__main__":
    main()
