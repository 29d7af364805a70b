"""Shared pytest fixtures for integration and unit tests."""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Generator, TypedDict

import pytest

from tests.utils.http import reserve_port, wait_for_port

if TYPE_CHECKING:
    from _pytest.tmpdir import TempPathFactory

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SERVER_ENTRYPOINT = PROJECT_ROOT / "main.py"


class ServerProcessInfo(TypedDict):
    """Metadata describing a running server fixture instance."""

    base_url: str
    host: str
    port: int
    directory: Path
    outside: Path
    process: subprocess.Popen[str]
    log_file: Path


def _launch_server(
    host: str,
    port: int,
    directory: Path,
    outside: Path,
    log_file: Path,
    extra_args: list[str] | None = None,
) -> Generator[ServerProcessInfo, None, None]:
    args = [
        sys.executable,
        str(SERVER_ENTRYPOINT),
        "--directory",
        str(directory),
        "--host",
        host,
        "--port",
        str(port),
        "--log-destination",
        str(log_file),
    ]
    if extra_args:
        args.extend(extra_args)

    with subprocess.Popen(
        args,
        cwd=PROJECT_ROOT,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
    ) as process:
        try:
            wait_for_port(host, port)
        except Exception:
            # If startup failed, print stdout/stderr to help debug
            process.terminate()
            stdout, stderr = process.communicate(timeout=5)
            print(f"\nServer stdout:\n{stdout}")
            print(f"\nServer stderr:\n{stderr}")
            raise

        yield {
            "base_url": f"http://{host}:{port}",
            "host": host,
            "port": port,
            "directory": directory,
            "outside": outside,
            "process": process,
            "log_file": log_file,
        }

        process.terminate()
        try:
            process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            process.kill()


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Expose the repository root path to tests."""
    return PROJECT_ROOT


@pytest.fixture(name="server_process")
def _server_process(
    tmp_path_factory: "TempPathFactory",
) -> Generator[ServerProcessInfo, None, None]:
    """Launch the server on a jail seeded with files, next to a file it must not serve."""
    base = tmp_path_factory.mktemp("jailfs")
    directory = base / "public"
    (directory / "docs").mkdir(parents=True)
    (directory / "index.html").write_text("<h1>jailed</h1>")
    (directory / "docs" / "guide.txt").write_text("read me")
    (directory / "etc").mkdir()
    (directory / "etc" / "passwd").write_text("decoy")
    outside = base / "secret.txt"
    outside.write_text("top secret")
    log_file = base / "logs" / "server.log"
    yield from _launch_server(
        "127.0.0.1",
        reserve_port("127.0.0.1"),
        directory,
        outside,
        log_file,
        ["--shutdown-grace-seconds", "2"],
    )


@pytest.fixture()
def base_url(server_process: ServerProcessInfo) -> str:
    """Expose the running server base URL to integration tests."""
    return server_process["base_url"]
