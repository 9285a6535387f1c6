"""
=============================================================================
ERROR TAXONOMY
=============================================================================

Every failure a handler can hit is one of the exceptions below. Each one
carries the HTTP status it maps to and a message that is safe to show to
the client:

    ┌────────────────────────────┬────────┬──────────────────────────────┐
    │ Exception                  │ Status │ Raised by                    │
    ├────────────────────────────┼────────┼──────────────────────────────┤
    │ MalformedRequest           │  400   │ request-line / body parsing  │
    │ NotFound                   │  404   │ path resolver                │
    │   CredentialStoreNotFound  │  401   │ credential store             │
    │ UnsupportedType            │  415   │ path resolver                │
    │ PayloadTooLarge            │  413   │ body reading                 │
    │ MalformedCredentialStore   │  500   │ credential store             │
    │ BadCredentials             │  401   │ login handler                │
    │ IOFailure                  │  500   │ static / upload handlers     │
    └────────────────────────────┴────────┴──────────────────────────────┘

The dispatcher is the only place these are caught. It turns each one into
exactly one error response. Diagnostic detail (paths, errno, tracebacks)
goes to the log, never into `message`.

A missing credential store is a NotFound on disk but a 401 on the wire:
the authentication subsystem being unavailable is a failed login, not a
server fault.

=============================================================================
"""

from typing import Optional

from .status_codes import HTTPStatus


class HTTPError(Exception):
    """
    Base class for failures that map onto an HTTP error response.

    Subclasses set `status` and `default_message` as class attributes;
    instances may override the message.
    """

    status: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message: str = "The server encountered an unexpected condition."

    def __init__(self, message: Optional[str] = None, detail: str = ""):
        self.message = message or self.default_message
        self.detail = detail  # Log-only context, never sent to the client
        super().__init__(detail or self.message)


class MalformedRequest(HTTPError):
    """Request line, head or body could not be parsed."""
    status = HTTPStatus.BAD_REQUEST
    default_message = "Invalid request."


class NotFound(HTTPError):
    """Target does not exist (or resolves outside the document root)."""
    status = HTTPStatus.NOT_FOUND
    default_message = "The requested file was not found."


class CredentialStoreNotFound(NotFound):
    """The configured credential store does not exist."""
    status = HTTPStatus.UNAUTHORIZED
    default_message = "User credentials file not found."


class UnsupportedType(HTTPError):
    """Target exists but is not a regular file."""
    status = HTTPStatus.UNSUPPORTED_MEDIA_TYPE
    default_message = "The requested resource is not a regular file."


class PayloadTooLarge(HTTPError):
    status = HTTPStatus.PAYLOAD_TOO_LARGE
    default_message = "Request body too large."


class MalformedCredentialStore(HTTPError):
    """Credential store exists but its content does not parse."""
    status = HTTPStatus.INTERNAL_SERVER_ERROR


class BadCredentials(HTTPError):
    status = HTTPStatus.UNAUTHORIZED
    default_message = "Incorrect username or password."


class IOFailure(HTTPError):
    """Read or write fault while serving."""
    status = HTTPStatus.INTERNAL_SERVER_ERROR
