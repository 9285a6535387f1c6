"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Everything that knows about the HTTP/1.1 wire format, and nothing that
knows about files or credentials:

    REQUEST:                          RESPONSE:
    ─────────                         ──────────
    GET /path HTTP/1.1\r\n            HTTP/1.1 200 OK\r\n
    Header: Value\r\n                 Header: Value\r\n
    \r\n                              \r\n
    [body]                            [body]

- request.py       parse the request line, headers, body
- response.py      build and write responses
- router.py        ordered (method, path) → handler table
- mime_types.py    file extension → Content-Type
- status_codes.py  HTTPStatus enum with reason phrases
- errors.py        typed failures, each mapped to a status

=============================================================================
"""

from .errors import (
    HTTPError,
    MalformedRequest,
    NotFound,
    CredentialStoreNotFound,
    UnsupportedType,
    PayloadTooLarge,
    MalformedCredentialStore,
    BadCredentials,
    IOFailure,
)
from .request import HTTPRequest, RequestParser, parse_request_line, parse_headers
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ResponseWriter,
    ResponseStateError,
    error_page,
    error_response,
    text_response,
)
from .router import Router, Route
from .status_codes import HTTPStatus
from .mime_types import CONTENT_TYPES, DEFAULT_CONTENT_TYPE, get_content_type, get_file_extension

__all__ = [
    # Errors
    "HTTPError",
    "MalformedRequest",
    "NotFound",
    "CredentialStoreNotFound",
    "UnsupportedType",
    "PayloadTooLarge",
    "MalformedCredentialStore",
    "BadCredentials",
    "IOFailure",

    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "parse_request_line",
    "parse_headers",

    # Response writing
    "HTTPResponse",
    "ResponseBuilder",
    "ResponseWriter",
    "ResponseStateError",
    "error_page",
    "error_response",
    "text_response",

    # Routing
    "Router",
    "Route",

    # Status codes
    "HTTPStatus",

    # Content types
    "CONTENT_TYPES",
    "DEFAULT_CONTENT_TYPE",
    "get_content_type",
    "get_file_extension",
]
