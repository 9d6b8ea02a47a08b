"""
pytest configuration and fixtures.
"""

import socket
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Generator, Optional, Tuple
import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from staticserver import StaticFileServer, ServerConfig


# Content of the served tree used by most tests
INDEX_HTML = b"hello"
STYLE_CSS = b"body { color: red; }\n"
APP_JS = b"console.log('hi');\n"
LOGO_PNG = bytes(range(256)) * 4


@dataclass
class RawResponse:
    """A response as the client saw it on the wire."""

    status_line: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def version(self) -> str:
        return self.status_line.split(" ", 1)[0]

    @property
    def status(self) -> int:
        return int(self.status_line.split(" ", 2)[1])


def parse_raw_response(data: bytes) -> RawResponse:
    head, _, body = data.partition(b"\r\n\r\n")
    lines = head.decode("utf-8").split("\r\n")

    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip()] = value.strip()

    return RawResponse(status_line=lines[0], headers=headers, body=body)


class ServerClient:
    """Raw-socket HTTP client for talking to a running test server."""

    def __init__(self, address: Tuple[str, int], timeout: float = 5.0):
        self.address = address
        self.timeout = timeout

    def connect(self) -> socket.socket:
        sock = socket.create_connection(("127.0.0.1", self.address[1]), timeout=self.timeout)
        return sock

    def send(self, raw: bytes, half_close: bool = True) -> RawResponse:
        """Send raw bytes, read until the server closes, parse the result."""
        with self.connect() as sock:
            sock.sendall(raw)
            if half_close:
                sock.shutdown(socket.SHUT_WR)
            return parse_raw_response(self.read_all(sock))

    def get(self, target: str, version: str = "HTTP/1.1") -> RawResponse:
        return self.send(
            f"GET {target} {version}\r\nHost: localhost\r\n\r\n".encode()
        )

    @staticmethod
    def read_all(sock: socket.socket) -> bytes:
        chunks = []
        while True:
            chunk = sock.recv(65536)
            if not chunk:
                break
            chunks.append(chunk)
        return b"".join(chunks)


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


@pytest.fixture
def public_dir(tmp_path: Path) -> Path:
    """A served root with a few typical assets."""
    root = tmp_path / "public"
    (root / "assets").mkdir(parents=True)

    (root / "index.html").write_bytes(INDEX_HTML)
    (root / "assets" / "style.css").write_bytes(STYLE_CSS)
    (root / "assets" / "app.js").write_bytes(APP_JS)
    (root / "logo.png").write_bytes(LOGO_PNG)

    return root


@pytest.fixture
def config(public_dir: Path) -> ServerConfig:
    """Test configuration: loopback, ephemeral port, short timeouts."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        root_dir=str(public_dir),
        read_timeout=5.0,
        log_level="WARNING",
        handle_signals=False,
    )


@pytest.fixture
def server(config: ServerConfig) -> Generator[StaticFileServer, None, None]:
    """A server running on a background thread."""
    srv = StaticFileServer(config)
    srv.start_non_blocking()

    yield srv

    srv.stop()


@pytest.fixture
def client(server: StaticFileServer) -> ServerClient:
    return ServerClient(server.address)


@pytest.fixture
def client_for():
    """Factory for clients of servers started inside a test."""
    def factory(srv: StaticFileServer, timeout: Optional[float] = 5.0) -> ServerClient:
        return ServerClient(srv.address, timeout=timeout)
    return factory
