"""
pytest configuration and fixtures.
"""

import io
import socket
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, Generator, List

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from webserver import ServerConfig, WebServer, RequestDispatcher


INDEX_HTML = b"<html><body><h1>Home</h1></body></html>\n"
LOGIN_HTML = (
    b"<html><body><form method=\"post\" action=\"/login.html\">"
    b"<input name=\"username\"><input name=\"password\" type=\"password\">"
    b"</form></body></html>\n"
)
NESTED_INDEX_HTML = b"<html><body><h1>Fallback</h1></body></html>\n"
CREDENTIALS = "alice=secret\nal@ice=p@ss\nbob=pa=ss\n"

# Larger than the test chunk size so streaming takes several chunks
LOGO_PNG = b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 40


@pytest.fixture
def docroot(tmp_path: Path) -> Path:
    """A document root with the pages the server's routes expect."""
    root = tmp_path / "www"
    (root / "a" / "b").mkdir(parents=True)
    (root / "images").mkdir()

    (root / "index.html").write_bytes(INDEX_HTML)
    (root / "login.html").write_bytes(LOGIN_HTML)
    (root / "a" / "b" / "index.html").write_bytes(NESTED_INDEX_HTML)
    (root / "images" / "logo.png").write_bytes(LOGO_PNG)
    (root / "notes.txt").write_bytes(b"plain notes\n")
    (root / "LoginInfo.txt").write_text(CREDENTIALS)

    return root


@pytest.fixture
def config(docroot: Path) -> ServerConfig:
    """Test server configuration rooted at the temporary document root."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        document_root=str(docroot),
        chunk_size=1024,
        timeout=5.0,
        log_level="WARNING",
    )


@pytest.fixture
def dispatcher(config: ServerConfig) -> RequestDispatcher:
    return RequestDispatcher(config)


# =============================================================================
# DRIVING THE DISPATCHER WITHOUT SOCKETS
# =============================================================================

@dataclass
class ParsedResponse:
    """One response split back out of the bytes the server wrote."""

    status: int
    reason: str
    headers: Dict[str, str] = field(default_factory=dict)  # lowercase names
    body: bytes = b""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")


def parse_responses(data: bytes) -> List[ParsedResponse]:
    """Split a byte stream into responses using each one's Content-Length."""
    responses = []

    while data:
        head_end = data.index(b"\r\n\r\n")
        head = data[:head_end].decode("iso-8859-1").split("\r\n")

        _, status, reason = head[0].split(" ", 2)
        headers = {}
        for line in head[1:]:
            name, _, value = line.partition(":")
            headers[name.strip().lower()] = value.strip()

        body_start = head_end + 4
        length = int(headers.get("content-length", "0"))
        body = data[body_start:body_start + length]
        data = data[body_start + length:]

        responses.append(ParsedResponse(int(status), reason, headers, body))

    return responses


def get(path: str, headers: str = "") -> bytes:
    return f"GET {path} HTTP/1.1\r\nHost: localhost\r\n{headers}\r\n".encode()


def post(path: str, body: bytes, content_type: str = "application/x-www-form-urlencoded") -> bytes:
    return (
        f"POST {path} HTTP/1.1\r\n"
        f"Host: localhost\r\n"
        f"Content-Type: {content_type}\r\n"
        f"Content-Length: {len(body)}\r\n"
        f"\r\n"
    ).encode() + body


@pytest.fixture
def exchange(dispatcher: RequestDispatcher) -> Callable[[bytes], List[ParsedResponse]]:
    """Run raw request bytes through the dispatcher; return the responses."""
    def run(raw: bytes) -> List[ParsedResponse]:
        wfile = io.BytesIO()
        dispatcher.handle(io.BytesIO(raw), wfile, ("127.0.0.1", 50000))
        return parse_responses(wfile.getvalue())
    return run


@pytest.fixture
def sample_login_body() -> bytes:
    return b"username=al%40ice&password=p%40ss"


# =============================================================================
# REAL SERVER
# =============================================================================

class ServerThread:
    """Runs a WebServer in a background thread."""

    def __init__(self, server: WebServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"setup_logging": False},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        self.server.wait_for_shutdown(timeout=5.0)
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def request(self, raw: bytes, timeout: float = 5.0) -> bytes:
        """Send raw bytes and read until the server closes the connection."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=timeout) as s:
            s.sendall(raw)
            chunks = []
            while True:
                chunk = s.recv(65536)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)


@pytest.fixture
def live_server(config: ServerConfig) -> Generator[ServerThread, None, None]:
    """A WebServer listening on a free port."""
    config.timeout = 1.0
    server_thread = ServerThread(WebServer(config))
    server_thread.start()

    yield server_thread

    server_thread.stop()


@pytest.fixture
def make_get() -> Callable[..., bytes]:
    """Build a raw GET request."""
    return get


@pytest.fixture
def make_post() -> Callable[..., bytes]:
    """Build a raw POST request with Content-Length."""
    return post


@pytest.fixture
def split_responses() -> Callable[[bytes], List[ParsedResponse]]:
    return parse_responses
