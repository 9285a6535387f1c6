"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the bytes of one HTTP/1.1 request into an HTTPRequest object.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ REQUEST LINE ─────────────────────────────────────────────────┐ │
    │  │                                                                 │ │
    │  │    POST /login.html HTTP/1.1\r\n                                │ │
    │  │    ─┬── ─────┬───── ────┬───                                    │ │
    │  │     │        │          │                                       │ │
    │  │   Method    Path      Version                                   │ │
    │  │                                                                 │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADERS ──────────────────────────────────────────────────────┐ │
    │  │    Host: localhost:8080\r\n                                     │ │
    │  │    Content-Type: application/x-www-form-urlencoded\r\n          │ │
    │  │    Content-Length: 33\r\n                                       │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ EMPTY LINE (separator) ───────────────────────────────────────┐ │
    │  │    \r\n                                                         │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ BODY (POST only) ─────────────────────────────────────────────┐ │
    │  │    username=alice&password=secret                               │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PARSING RULES
=============================================================================

1. REQUEST LINE: split on whitespace. Fewer than three tokens is a
   MalformedRequest (400) and nothing else on the connection is read.
   Anything after the third token is ignored:

       "GET /a.html HTTP/1.1 trailing junk"  →  GET, /a.html, HTTP/1.1
       "GET /a.html"                         →  MalformedRequest

2. HEADERS: read line by line until the empty line. Both CRLF and bare LF
   are accepted. Names are lower-cased; malformed lines are skipped
   (lenient parsing). Headers never affect routing.

3. BODY: only read for POST routes, and only as many bytes as
   Content-Length declares. No Content-Length means no body.

=============================================================================
INTERVIEW QUESTIONS ABOUT HTTP PARSING
=============================================================================

Q: "How do you know when the HTTP headers end?"
A: "Headers end with an empty line. We read line by line from a buffered
   stream and stop at the first line that is just CRLF."

Q: "Why read the body separately from the head?"
A: "Only POST routes have a body, and Content-Length is only known after
   the headers are parsed. Reading the head first also lets us reject a
   malformed request line without touching the rest of the stream."

=============================================================================
"""

from dataclasses import dataclass, field
from typing import BinaryIO, Dict, List, Optional

from .errors import MalformedRequest, PayloadTooLarge


@dataclass
class HTTPRequest:
    """
    Represents a parsed HTTP request.

    Invariant: method, path and version are non-empty. A request line that
    cannot be split into three tokens never becomes an HTTPRequest; the
    parser raises MalformedRequest instead.

    Attributes:
        method:         The HTTP method token, as sent ("GET", "POST", ...)
        path:           The request target, as sent ("/a/b/index.html")
        version:        The HTTP version token ("HTTP/1.1")
        headers:        Ordered header mapping with LOWERCASE keys
        body:           Request body bytes, or None when no body was read
        client_address: (ip, port) of the client, for logging
    """

    method: str
    path: str
    version: str = "HTTP/1.1"
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    client_address: tuple[str, int] = ("", 0)

    @property
    def content_length(self) -> Optional[int]:
        """
        Get the declared Content-Length.

        Returns:
            The length, or None when the header is absent.

        Raises:
            MalformedRequest: If the header is not a non-negative integer.
        """
        raw = self.headers.get("content-length")
        if raw is None:
            return None
        try:
            length = int(raw.strip())
        except ValueError:
            raise MalformedRequest(detail=f"Invalid Content-Length: {raw!r}")
        if length < 0:
            raise MalformedRequest(detail=f"Negative Content-Length: {length}")
        return length

    @property
    def content_type(self) -> Optional[str]:
        """Get the Content-Type header value without parameters."""
        ct = self.headers.get("content-type", "")
        return ct.split(";")[0].strip().lower() or None

    def get_header(self, name: str, default: str = "") -> str:
        """Get a header value (case-insensitive lookup)."""
        return self.headers.get(name.lower(), default)


class RequestParser:
    """
    Reads and parses an HTTP request from a buffered byte stream.

    ==========================================================================
    PARSER FLOW
    ==========================================================================

        rfile (buffered bytes)
              │
              ▼
        ┌───────────────────────────────────────────────────────────────────┐
        │  1. read_head()         lines until the empty line (or EOF)       │
        │     │  too large? → MalformedRequest                              │
        │     ▼                                                             │
        │  2. parse_request_line() METHOD SP PATH SP VERSION                │
        │     │  < 3 tokens? → MalformedRequest                             │
        │     ▼                                                             │
        │  3. parse_headers()     "Name: Value" → {"name": "Value"}         │
        │     ▼                                                             │
        │  4. read_body()         (caller decides; POST routes only)        │
        └───────────────────────────────────────────────────────────────────┘

    ==========================================================================
    """

    def __init__(
        self,
        max_header_size: int = 64 * 1024,
        max_body_size: int = 10 * 1024 * 1024,
    ):
        """
        Initialize the request parser.

        Args:
            max_header_size: Maximum size of request line + headers in bytes.
            max_body_size: Maximum accepted Content-Length in bytes.
        """
        self.max_header_size = max_header_size
        self.max_body_size = max_body_size

    def read_head(self, rfile: BinaryIO) -> List[str]:
        """
        Read the request line and header lines.

        Stops at the first empty line or at EOF. The terminating empty line
        is consumed but not returned, leaving the stream positioned at the
        first body byte.

        Returns:
            Decoded lines without their line endings.

        Raises:
            MalformedRequest: If the head exceeds max_header_size.
        """
        lines: List[str] = []
        total = 0

        while True:
            raw = rfile.readline(self.max_header_size + 1)
            if not raw:
                break  # EOF

            total += len(raw)
            if total > self.max_header_size:
                raise MalformedRequest(detail=f"Request head exceeds {self.max_header_size} bytes")

            line = raw.rstrip(b"\r\n")
            if not line:
                break  # Header/body separator

            # ISO-8859-1 maps every byte, so decoding never fails
            lines.append(line.decode("iso-8859-1"))

        return lines

    def parse(self, lines: List[str], client_address: tuple[str, int] = ("", 0)) -> HTTPRequest:
        """
        Build an HTTPRequest from the head lines returned by read_head().

        Raises:
            MalformedRequest: If there is no request line or it has fewer
                              than three tokens.
        """
        if not lines:
            raise MalformedRequest(detail="Empty request")

        method, path, version = parse_request_line(lines[0])

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=parse_headers(lines[1:]),
            client_address=client_address,
        )

    def read_body(self, rfile: BinaryIO, request: HTTPRequest) -> Optional[bytes]:
        """
        Read exactly Content-Length body bytes.

        Returns:
            The body, or None when the request declares no Content-Length.

        Raises:
            MalformedRequest: Invalid Content-Length, or the stream ended
                              before the declared length arrived.
            PayloadTooLarge: Declared length exceeds max_body_size.
        """
        length = request.content_length
        if length is None:
            return None

        if length > self.max_body_size:
            raise PayloadTooLarge(detail=f"Content-Length {length} > {self.max_body_size}")

        body = rfile.read(length) if length else b""
        if len(body) < length:
            raise MalformedRequest(detail=f"Incomplete body: expected {length} bytes, got {len(body)}")

        return body


def parse_request_line(line: str) -> tuple[str, str, str]:
    """
    Split a request line into (method, path, version).

    Tokens past the third are ignored.

    Raises:
        MalformedRequest: If the line has fewer than three tokens.

    Example:
        >>> parse_request_line("GET /index.html HTTP/1.1")
        ('GET', '/index.html', 'HTTP/1.1')
    """
    tokens = line.split()
    if len(tokens) < 3:
        raise MalformedRequest(detail=f"Invalid request line: {line!r}")
    return tokens[0], tokens[1], tokens[2]


def parse_headers(lines: List[str]) -> Dict[str, str]:
    """
    Parse header lines into an ordered dict with lowercase names.

    Repeated headers are joined with ", " (RFC 7230 §3.2.2). Lines without
    a colon are skipped.
    """
    headers: Dict[str, str] = {}

    for line in lines:
        name, sep, value = line.partition(":")
        name = name.strip().lower()
        if not sep or not name:
            continue  # Skip malformed headers (lenient parsing)

        value = value.strip()
        if name in headers:
            headers[name] += ", " + value
        else:
            headers[name] = value

    return headers
