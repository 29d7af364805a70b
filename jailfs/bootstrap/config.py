"""Server configuration and CLI argument parsing."""

import argparse
import os
from dataclasses import dataclass


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value is not None else default


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value else default


MAX_BODY_BYTES = _env_int("JAILFS_MAX_BODY_BYTES", 64 * 1024)
DEFAULT_PORT = _env_int("JAILFS_PORT", 4221)
DEFAULT_SOCKET_TIMEOUT = _env_int("JAILFS_SOCKET_TIMEOUT", 60)
DEFAULT_SHUTDOWN_GRACE_SECONDS = _env_int("JAILFS_SHUTDOWN_GRACE_SECONDS", 30)

HEADER_DELIMITER = b"\r\n\r\n"
HEALTHZ_PATH = "/healthz"
ALLOWED_METHODS = frozenset({"GET", "HEAD"})


@dataclass
class ServerConfig:
    """Runtime settings for the jailed file server."""

    directory: str
    socket_timeout: int
    shutdown_grace_seconds: int

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "ServerConfig":
        return cls(
            directory=args.directory,
            socket_timeout=args.socket_timeout,
            shutdown_grace_seconds=args.shutdown_grace_seconds,
        )


def parse_cli_args(argv: list[str]) -> argparse.Namespace:
    """Return parsed CLI arguments for server configuration."""
    parser = argparse.ArgumentParser(
        description="Serve a directory over HTTP without letting requests escape it"
    )
    parser.add_argument(
        "--directory",
        default=_env_str("JAILFS_DIRECTORY", "."),
        help="Root directory that bounds every served path",
    )
    parser.add_argument("--host", default=_env_str("JAILFS_HOST", "localhost"))
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument(
        "--log-level",
        default=os.getenv("JAILFS_LOG_LEVEL", "INFO").upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )
    parser.add_argument(
        "--log-destination",
        default=os.getenv("JAILFS_LOG_DESTINATION", "stdout"),
        help="stdout or a file path",
    )
    parser.add_argument(
        "--log-format",
        default=os.getenv("JAILFS_LOG_FORMAT", "json"),
        choices=["json", "text"],
        type=str.lower,
    )
    parser.add_argument(
        "--socket-timeout",
        type=int,
        default=DEFAULT_SOCKET_TIMEOUT,
        help="Socket timeout in seconds for request processing",
    )
    parser.add_argument(
        "--shutdown-grace-seconds",
        type=int,
        default=DEFAULT_SHUTDOWN_GRACE_SECONDS,
        help="Grace period in seconds for graceful shutdown",
    )
    return parser.parse_args(argv)
