"""
=============================================================================
WEBSERVER - A Small HTTP/1.1 File Server With Form Login
=============================================================================

Serves files from a document root over raw sockets, checks a login form
against a credentials file, and accepts a single image upload.

=============================================================================
PROJECT OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   GET  /                  → /index.html                             │
    │   GET  /a/b/              → /a/b/index.html                         │
    │   GET  /a/b/logo.png      → image/png, streamed in chunks           │
    │   GET  /login.html        → login page                              │
    │   GET  /redirect          → 302, then /a/b/index.html               │
    │   POST /login.html        → check username/password                 │
    │   POST /upload            → store uploads/uploaded_image.jpg        │
    │   anything else           → 404                                     │
    │                                                                      │
    │   One request per connection, always "Connection: close".           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    webserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m webserver)
    ├── server.py            # WebServer: accept loop + thread per connection
    ├── dispatcher.py        # RequestDispatcher: one request, error boundary
    ├── access_log.py        # One structured line per request
    ├── config.py            # ServerConfig dataclass
    ├── core/
    │   ├── socket_server.py # TCP socket handling
    │   └── connection.py    # Connection wrapper (rfile / wfile)
    ├── http/
    │   ├── request.py       # Request parsing
    │   ├── response.py      # ResponseWriter, ResponseBuilder, error pages
    │   ├── router.py        # Ordered route table
    │   ├── errors.py        # HTTPError taxonomy
    │   ├── status_codes.py  # HTTPStatus enum
    │   └── mime_types.py    # Extension → Content-Type
    └── handlers/
        ├── resolver.py      # Request path → file under the root
        ├── static.py        # File streaming
        ├── login.py         # Form login + credential store
        └── upload.py        # Image upload

=============================================================================
QUICK START
=============================================================================

    from webserver import WebServer, ServerConfig

    server = WebServer(ServerConfig(port=8080, document_root="./www"))
    server.run()

Or from the shell:

    python -m webserver 8080 ./www

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .server import WebServer
from .dispatcher import RequestDispatcher
from .http import HTTPStatus, HTTPRequest, ResponseWriter

__all__ = [
    "__version__",
    "ServerConfig",
    "WebServer",
    "RequestDispatcher",
    "HTTPStatus",
    "HTTPRequest",
    "ResponseWriter",
]
