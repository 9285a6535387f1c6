"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes this server emits, with their reason phrases.

=============================================================================
WHICH CODES, AND WHEN
=============================================================================

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  200   │ File served, login accepted, upload stored               │
    │  302   │ GET /redirect (Location points at the redirect target)   │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  400   │ Unparsable request line, bad form body, bad length       │
    │  401   │ Wrong credentials, or no credential store at all         │
    │  404   │ No such file, no route, path outside document root       │
    │  408   │ Client stopped sending before the head was complete      │
    │  413   │ Declared body larger than the configured limit           │
    │  415   │ Target exists but is not a regular file (FIFO, device)   │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  500   │ I/O fault while serving, corrupt credential store        │
    └────────┴───────────────────────────────────────────────────────────┘

Note that 415 is sent with the phrase "Unsupported File Type" rather than
the RFC 7231 "Unsupported Media Type": it describes the *target on disk*,
not the request's Content-Type.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    This enum extends IntEnum, so status codes can be used as integers:

        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    # 2xx SUCCESS
    OK = 200

    # 3xx REDIRECTION
    FOUND = 302                         # Temporary redirect

    # 4xx CLIENT ERRORS
    BAD_REQUEST = 400                   # Malformed request syntax
    UNAUTHORIZED = 401                  # Authentication failed
    NOT_FOUND = 404                     # Resource doesn't exist
    REQUEST_TIMEOUT = 408               # Client took too long to send request
    PAYLOAD_TOO_LARGE = 413             # Request body too large
    UNSUPPORTED_MEDIA_TYPE = 415        # Target is not a servable file

    # 5xx SERVER ERRORS
    INTERNAL_SERVER_ERROR = 500         # Unexpected server error (catch-all)

    @property
    def phrase(self) -> str:
        """
        Get the reason phrase for this status code.

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │      │
                      │      └── Reason phrase
                      └───────── Status code
        """
        return _STATUS_PHRASES.get(self, "Unknown")


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.FOUND: "Found",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.UNAUTHORIZED: "Unauthorized",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.UNSUPPORTED_MEDIA_TYPE: "Unsupported File Type",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
}
