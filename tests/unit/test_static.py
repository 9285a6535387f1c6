"""
Unit tests for static file streaming.
"""

import io
from pathlib import Path

import pytest

from webserver.handlers import static as static_module
from webserver.handlers.resolver import PathResolver
from webserver.handlers.static import StaticFileHandler
from webserver.http.errors import IOFailure, NotFound
from webserver.http.request import HTTPRequest
from webserver.http.response import ResponseWriter


class CountingStream(io.BytesIO):
    """BytesIO that remembers the size of every write()."""

    def __init__(self):
        super().__init__()
        self.writes = []

    def write(self, data):
        self.writes.append(len(data))
        return super().write(data)


def split(data: bytes):
    head, _, body = data.partition(b"\r\n\r\n")
    headers = {}
    lines = head.decode("iso-8859-1").split("\r\n")
    for line in lines[1:]:
        name, _, value = line.partition(": ")
        headers[name] = value
    return lines[0], headers, body


@pytest.fixture
def static(docroot: Path) -> StaticFileHandler:
    return StaticFileHandler(PathResolver(docroot), chunk_size=1024)


class TestServe:

    def test_serves_html(self, static: StaticFileHandler, docroot: Path):
        stream = io.BytesIO()
        static.serve("/index.html", ResponseWriter(stream))

        status_line, headers, body = split(stream.getvalue())
        assert status_line == "HTTP/1.1 200 OK"
        assert headers["Content-Type"] == "text/html"
        assert body == (docroot / "index.html").read_bytes()
        assert headers["Content-Length"] == str(len(body))

    def test_streams_in_chunks(self, static: StaticFileHandler, docroot: Path):
        """The body goes out chunk by chunk and reassembles byte-identical."""
        stream = CountingStream()
        static.serve("/images/logo.png", ResponseWriter(stream))

        _, headers, body = split(stream.getvalue())
        expected = (docroot / "images" / "logo.png").read_bytes()

        assert headers["Content-Type"] == "image/png"
        assert headers["Content-Length"] == str(len(expected))
        assert body == expected

        body_writes = stream.writes[1:]  # First write is the head
        assert len(body_writes) > 1
        assert max(body_writes) <= 1024

    def test_empty_file(self, static: StaticFileHandler, docroot: Path):
        (docroot / "empty.html").write_bytes(b"")
        stream = io.BytesIO()
        static.serve("/empty.html", ResponseWriter(stream))

        _, headers, body = split(stream.getvalue())
        assert headers["Content-Length"] == "0"
        assert body == b""

    def test_unknown_extension(self, static: StaticFileHandler):
        stream = io.BytesIO()
        static.serve("/notes.txt", ResponseWriter(stream))

        _, headers, _ = split(stream.getvalue())
        assert headers["Content-Type"] == "application/octet-stream"

    def test_handle_uses_request_path(self, static: StaticFileHandler):
        stream = io.BytesIO()
        static.handle(HTTPRequest("GET", "/a/b/"), ResponseWriter(stream))
        assert b"Fallback" in stream.getvalue()

    def test_missing_file_sends_nothing(self, static: StaticFileHandler):
        stream = io.BytesIO()
        with pytest.raises(NotFound):
            static.serve("/missing.html", ResponseWriter(stream))
        assert stream.getvalue() == b""

    def test_custom_not_found_message(self, static: StaticFileHandler):
        with pytest.raises(NotFound) as exc_info:
            static.serve("/missing.html", ResponseWriter(io.BytesIO()), "The login page was not found.")
        assert exc_info.value.message == "The login page was not found."

    def test_unreadable_file(self, static: StaticFileHandler, docroot: Path, monkeypatch):
        def failing_open(*args, **kwargs):
            raise PermissionError("denied")

        monkeypatch.setattr(static_module, "open", failing_open, raising=False)

        stream = io.BytesIO()
        with pytest.raises(IOFailure):
            static.serve("/index.html", ResponseWriter(stream))
        assert stream.getvalue() == b""

    def test_file_shrinks_while_streaming(self, static: StaticFileHandler, docroot: Path):
        """Headers are out, so the failure surfaces as IOFailure after them."""
        path = docroot / "images" / "logo.png"
        original_size = path.stat().st_size

        class TruncatingStream(io.BytesIO):
            def write(self, data):
                if data.startswith(b"HTTP/1.1"):
                    path.write_bytes(b"")  # Truncate once the head is written
                return super().write(data)

        writer = ResponseWriter(TruncatingStream())
        with pytest.raises(IOFailure):
            static.serve("/images/logo.png", writer)

        assert writer.headers_sent
        assert not writer.finished
        assert writer.bytes_written < original_size

    def test_invalid_chunk_size(self, docroot: Path):
        with pytest.raises(ValueError):
            StaticFileHandler(PathResolver(docroot), chunk_size=0)
