"""
=============================================================================
HTTP RESPONSE WRITING
=============================================================================

Builds HTTP/1.1 responses and writes them to the client's byte stream.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    HTTP RESPONSE STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   HTTP/1.1 200 OK\r\n                     ← status line             │
    │   Content-Type: image/png\r\n             ← headers                 │
    │   Content-Length: 5120\r\n                                          │
    │   Date: Sun, 18 Oct 2026 09:00:00 GMT\r\n                           │
    │   Server: SimpleWebServer/1.0\r\n                                   │
    │   Connection: close\r\n                                             │
    │   \r\n                                    ← empty line              │
    │   <5120 bytes of file data>               ← body                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
TWO WAYS TO RESPOND
=============================================================================

1. IN MEMORY (errors, redirects, short messages)

       response = ResponseBuilder().status(HTTPStatus.FOUND).redirect("/x").build()
       writer.send(response)

2. STREAMING (static files)

       writer.start(HTTPStatus.OK, {"Content-Length": str(size), ...})
       for chunk in chunks:
           writer.write(chunk)
       writer.finish()

The ResponseWriter enforces the two invariants of a response on the wire:

    - Once the status line is written, the status cannot change.
      A second start() raises ResponseStateError.
    - If Content-Length was declared, the body must match it exactly.
      Overshooting raises in write(), undershooting raises in finish().

Every response carries "Connection: close". One request, one response (or,
for the redirect route, one redirect followed by one fallback response),
then the connection is closed.

=============================================================================
"""

import html
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import BinaryIO, Dict, List, Optional, Union

from .status_codes import HTTPStatus


DEFAULT_SERVER_NAME = "SimpleWebServer/1.0"


class ResponseStateError(RuntimeError):
    """A ResponseWriter was used out of order or overran Content-Length."""


@dataclass
class HTTPResponse:
    """
    An in-memory HTTP response.

    Attributes:
        status:  HTTP status code
        headers: Ordered header mapping (names as they go on the wire)
        body:    Body bytes (empty for redirects)
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def status_line(self) -> str:
        """The HTTP status line, e.g. "HTTP/1.1 200 OK"."""
        return format_status_line(self.status)

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a header (replaces any existing value). Returns self."""
        self.headers[name] = value
        return self


class ResponseBuilder:
    """
    Fluent builder for in-memory responses.

    Each method returns `self`, enabling chaining:

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .text("Login successful!")
            .build())
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = HTTPStatus(status)
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Set the body; strings are encoded as UTF-8."""
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def text(self, text: str) -> "ResponseBuilder":
        """Set a text/plain body."""
        self._headers["Content-Type"] = "text/plain"
        return self.body(text)

    def html(self, markup: str) -> "ResponseBuilder":
        """Set a text/html body."""
        self._headers["Content-Type"] = "text/html"
        return self.body(markup)

    def redirect(self, location: str) -> "ResponseBuilder":
        """
        Make this a 302 Found redirect.

        302 is a temporary redirect: the browser follows the Location header
        but keeps using the original URL in the future.
        """
        self._status = HTTPStatus.FOUND
        self._headers["Location"] = location
        return self

    def build(self) -> HTTPResponse:
        """Build the HTTPResponse. Content-Length is always set."""
        headers = dict(self._headers)
        headers["Content-Length"] = str(len(self._body))
        return HTTPResponse(status=self._status, headers=headers, body=self._body)


class ResponseWriter:
    """
    Writes exactly one response to a writable byte stream.

    =========================================================================
    LIFECYCLE
    =========================================================================

        ResponseWriter(wfile)
              │
              ▼
        start(status, headers)  ── status line + headers + blank line
              │                    (status is now immutable)
              ▼
        write(chunk) ...        ── body bytes, checked against Content-Length
              │
              ▼
        finish()                ── length check + flush

    =========================================================================

    The writer never closes the stream: the connection owns it.
    """

    def __init__(self, stream: BinaryIO, server_name: str = DEFAULT_SERVER_NAME):
        self._stream = stream
        self.server_name = server_name
        self.status: Optional[HTTPStatus] = None
        self.bytes_written = 0
        self._declared_length: Optional[int] = None
        self._finished = False
        self.follow_on: Optional["ResponseWriter"] = None  # Set by next_response()

    @property
    def headers_sent(self) -> bool:
        """True once the status line has gone out."""
        return self.status is not None

    @property
    def finished(self) -> bool:
        return self._finished

    def start(self, status: HTTPStatus, headers: Optional[Dict[str, str]] = None) -> None:
        """
        Write the status line and headers.

        Date, Server and Connection: close are added when absent.

        Raises:
            ResponseStateError: If headers were already sent.
        """
        if self.headers_sent:
            raise ResponseStateError(f"Headers already sent with status {int(self.status)}")

        status = HTTPStatus(status)
        response_headers = dict(headers or {})
        response_headers.setdefault("Date", format_http_date(datetime.now(timezone.utc)))
        response_headers.setdefault("Server", self.server_name)
        response_headers["Connection"] = "close"

        if "Content-Length" in response_headers:
            self._declared_length = int(response_headers["Content-Length"])

        lines = [format_status_line(status)]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        # Join with CRLF; the trailing "" produces the empty separator line
        head = ("\r\n".join(lines) + "\r\n").encode("iso-8859-1")

        self._stream.write(head)
        self.status = status

    def write(self, chunk: bytes) -> None:
        """
        Write body bytes.

        Raises:
            ResponseStateError: Before start(), after finish(), or if the
                                chunk would overrun Content-Length.
        """
        if not self.headers_sent:
            raise ResponseStateError("write() before start()")
        if self._finished:
            raise ResponseStateError("write() after finish()")
        if not chunk:
            return

        if (self._declared_length is not None
                and self.bytes_written + len(chunk) > self._declared_length):
            raise ResponseStateError(
                f"Body exceeds declared Content-Length of {self._declared_length} bytes"
            )

        self._stream.write(chunk)
        self.bytes_written += len(chunk)

    def finish(self) -> None:
        """
        Complete the response and flush the stream.

        Raises:
            ResponseStateError: If the body is shorter than Content-Length.
        """
        if not self.headers_sent:
            raise ResponseStateError("finish() before start()")

        if self._declared_length is not None and self.bytes_written != self._declared_length:
            raise ResponseStateError(
                f"Body is {self.bytes_written} bytes, "
                f"declared Content-Length is {self._declared_length}"
            )

        self._stream.flush()
        self._finished = True

    def next_response(self) -> "ResponseWriter":
        """
        Get a writer for a second response on the same stream.

        Used where one request is answered with two responses back to back
        (the redirect route, and the optional page served after a login).

        Raises:
            ResponseStateError: If this response is not finished.
        """
        if not self._finished:
            raise ResponseStateError("next_response() before finish()")
        if self.follow_on is not None:
            raise ResponseStateError("next_response() called twice")
        self.follow_on = ResponseWriter(self._stream, self.server_name)
        return self.follow_on

    def chain(self) -> List["ResponseWriter"]:
        """This writer followed by every writer obtained via next_response()."""
        writers = []
        writer: Optional[ResponseWriter] = self
        while writer is not None:
            writers.append(writer)
            writer = writer.follow_on
        return writers

    def send(self, response: HTTPResponse) -> None:
        """Write a complete in-memory response in one go."""
        headers = dict(response.headers)
        headers.setdefault("Content-Length", str(len(response.body)))
        self.start(response.status, headers)
        self.write(response.body)
        self.finish()

    def send_error(self, status: HTTPStatus, message: str) -> None:
        self.send(error_response(status, message))

    def send_redirect(self, location: str) -> None:
        self.send(ResponseBuilder().redirect(location).build())


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def format_status_line(status: HTTPStatus) -> str:
    status = HTTPStatus(status)
    return f"HTTP/1.1 {status.value} {status.phrase}"


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Sun, 18 Oct 2026 09:00:00 GMT

    HTTP dates are ALWAYS in GMT (UTC), never local time.
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


def error_page(status: HTTPStatus, message: str) -> str:
    """
    Render the minimal HTML page sent with every error response.

    The message is HTML-escaped. Callers pass client-safe messages only;
    internal paths and exception text belong in the log.

    Output for error_page(HTTPStatus.NOT_FOUND, "No such file."):

        <html><head><title>404 Not Found</title></head><body>
        <h1>404 Not Found</h1>
        <p>No such file.</p>
        </body></html>
    """
    status = HTTPStatus(status)
    title = f"{status.value} {status.phrase}"
    return (
        f"<html><head><title>{title}</title></head><body>\n"
        f"<h1>{title}</h1>\n"
        f"<p>{html.escape(message)}</p>\n"
        f"</body></html>\n"
    )


def error_response(status: HTTPStatus, message: str) -> HTTPResponse:
    """Create an error response with an HTML body."""
    return ResponseBuilder().status(status).html(error_page(status, message)).build()


def text_response(text: str, status: HTTPStatus = HTTPStatus.OK) -> HTTPResponse:
    """Create a text/plain response."""
    return ResponseBuilder().status(status).text(text).build()
