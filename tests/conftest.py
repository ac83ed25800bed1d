"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Generator, List, Optional
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from minihttp import Application, ServerConfig


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /echo/hello HTTP/1.1\r\n"
        b"Host: localhost:4221\r\n"
        b"User-Agent: pytest/1.0\r\n"
        b"Accept: */*\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with a one-line body."""
    body = b"hello upload"
    return (
        b"POST /files/note.txt HTTP/1.1\r\n"
        b"Host: localhost:4221\r\n"
        b"Content-Type: application/octet-stream\r\n"
        b"Content-Length: %d\r\n"
        b"\r\n"
    ) % len(body) + body


class FakeConnection:
    """Stands in for core.Connection: records what a Response writes."""

    def __init__(self, accept: bool = True):
        self.accept = accept
        self.writes: List[bytes] = []
        self.closed = False
        self.close_calls = 0

    def send_response(self, data: bytes) -> bool:
        self.writes.append(data)
        return self.accept

    def close(self) -> None:
        self.closed = True
        self.close_calls += 1

    @property
    def data(self) -> bytes:
        return b"".join(self.writes)

    @property
    def status_line(self) -> str:
        return self.data.split(b"\r\n", 1)[0].decode()

    @property
    def headers(self) -> List[tuple]:
        head = self.data.split(b"\r\n\r\n", 1)[0].decode()
        return [tuple(line.split(": ", 1)) for line in head.split("\r\n")[1:]]

    @property
    def body(self) -> bytes:
        return self.data.split(b"\r\n\r\n", 1)[1]


@pytest.fixture
def make_connection():
    return FakeConnection


@pytest.fixture
def connection() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def config() -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        num_workers=2,
        log_level="WARNING",
    )


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False

    def __init__(self, app: Application):
        self.app = app
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.app.port

    def start(self):
        """Start server in background thread."""
        self._thread = threading.Thread(target=self.app.listen, daemon=True)
        self._thread.start()

        if not self.app.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.app.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def request(self, raw: bytes, timeout: float = 5.0) -> bytes:
        """Send raw bytes, return everything the server wrote before closing."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=timeout) as s:
            s.sendall(raw)
            chunks = []
            while True:
                chunk = s.recv(4096)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)



@pytest.fixture
def server_factory() -> Generator:
    """Start any number of applications; all are stopped at teardown."""
    started: List[TestServer] = []

    def _start(app: Application) -> TestServer:
        srv = TestServer(app)
        srv.start()
        started.append(srv)
        return srv

    yield _start

    for srv in started:
        srv.stop()
