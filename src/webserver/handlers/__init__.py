"""
=============================================================================
HANDLERS MODULE
=============================================================================

Request handlers: the parts of the server that touch files and credentials.

=============================================================================
WHAT IS A HANDLER?
=============================================================================

A handler receives the parsed request and the writer for its response. It
either writes a complete response or raises an HTTPError; it never builds
an error page itself.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    REQUEST → HANDLER → RESPONSE                     │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    Request                 Handler                 Writer           │
    │   ┌─────────┐           ┌─────────┐           ┌─────────┐          │
    │   │ GET     │           │         │  success  │ 200 OK  │          │
    │   │ /a/b/   │ ────────▶ │ Logic   │ ────────▶ │ <bytes> │          │
    │   │ x.png   │           │         │           └─────────┘          │
    │   └─────────┘           └────┬────┘                                 │
    │                              │ raise NotFound / IOFailure / ...     │
    │                              ▼                                      │
    │                         dispatcher → error page                     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
BUILT-IN HANDLERS
=============================================================================

1. PathResolver
   - Request path → regular file under the document root
   - Directory index (index.html)
   - Path traversal protection

2. StaticFileHandler
   - Streams files in fixed-size chunks
   - Content-Type from the file extension

3. LoginHandler / CredentialStore
   - application/x-www-form-urlencoded login form
   - username=password credential file, re-read per request

4. UploadHandler
   - Stores the raw request body as a single image file

=============================================================================
"""

from .resolver import PathResolver
from .static import StaticFileHandler
from .login import CredentialRecord, CredentialStore, LoginHandler, parse_form
from .upload import UploadHandler

__all__ = [
    "PathResolver",
    "StaticFileHandler",
    "CredentialRecord",
    "CredentialStore",
    "LoginHandler",
    "parse_form",
    "UploadHandler",
]
