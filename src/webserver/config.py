"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the web server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m webserver 8080 ./www --timeout 10                │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── WEB_PORT=8080 WEB_DOCUMENT_ROOT=./www python -m webserver  │
    │                                                                      │
    │   3. Defaults (below)                                               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
THE ROUTE SETTINGS
=============================================================================

The special paths the server knows about are configuration, not constants:

    login_page          GET  /login.html   → served verbatim
    login_path          POST /login.html   → credential check
    upload_path         POST /upload       → image upload
    redirect_path       GET  /redirect     → 302 to redirect_target,
                                             then fallback_resource
    post_login_resource (optional)         → served after a good login

Every one of them must be an absolute URL path ("/...").

=============================================================================
INTERVIEW QUESTIONS ABOUT CONFIGURATION
=============================================================================

Q: "How do you validate configuration?"
A: "Validate eagerly at startup, not lazily at first use. A document root
   that does not exist should stop the server before it binds a port, not
   produce a 404 for every request."

Q: "Where should the credentials file live?"
A: "Anywhere the server can read it. It defaults to LoginInfo.txt in the
   document root, but pointing it outside the root means it can never be
   fetched with a plain GET."

=============================================================================
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


DEFAULT_CREDENTIALS_FILE = "LoginInfo.txt"


@dataclass
class ServerConfig:
    """
    Configuration for the web server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, timeout

    CONTENT
    - document_root, index_file, chunk_size, credentials_file

    ROUTES
    - login_page, login_path, upload_path, upload_dir, upload_filename,
      redirect_path, redirect_target, fallback_resource, post_login_resource

    LIMITS
    - max_header_size, max_body_size

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    - "127.0.0.1" - Localhost only
    - "0.0.0.0" - All network interfaces
    """

    port: int = 8080
    """Port to listen on. 0 lets the OS pick a free port."""

    backlog: int = 128
    """Maximum number of queued connections."""

    timeout: Optional[float] = 30.0
    """
    Per-connection read deadline in seconds.
    A client that stalls mid-request gets 408 Request Timeout.
    None = wait forever.
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    document_root: str = "."
    """Directory all served files must live under."""

    index_file: str = "index.html"
    """File served for directory requests."""

    chunk_size: int = 8192
    """Bytes per read/write when streaming a file."""

    credentials_file: Optional[str] = None
    """
    Path of the username=password file.
    None = <document_root>/LoginInfo.txt
    """

    # ─────────────────────────────────────────────────────────────────────
    # ROUTES
    # ─────────────────────────────────────────────────────────────────────

    login_page: str = "/login.html"
    login_path: str = "/login.html"
    upload_path: str = "/upload"
    upload_dir: str = "uploads"
    upload_filename: str = "uploaded_image.jpg"
    redirect_path: str = "/redirect"
    redirect_target: str = "/a/b/index.html"
    fallback_resource: str = "/a/b/index.html"
    post_login_resource: Optional[str] = None

    # ─────────────────────────────────────────────────────────────────────
    # LIMITS
    # ─────────────────────────────────────────────────────────────────────

    max_header_size: int = 64 * 1024
    """Maximum size of the request line plus headers."""

    max_body_size: int = 10 * 1024 * 1024  # 10 MB
    """Maximum accepted Content-Length (login forms and uploads)."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    log_format: str = "text"
    """Access log format: 'text' or 'json'."""

    # ─────────────────────────────────────────────────────────────────────
    # SERVER IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    server_name: str = "SimpleWebServer/1.0"
    """Value of the Server response header."""

    @property
    def credentials_path(self) -> Path:
        """The effective credential store path."""
        if self.credentials_file:
            return Path(self.credentials_file)
        return Path(self.document_root) / DEFAULT_CREDENTIALS_FILE

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        WEB_HOST              Server host (default: 127.0.0.1)
        WEB_PORT              Server port (default: 8080)
        WEB_DOCUMENT_ROOT     Document root (default: .)
        WEB_CREDENTIALS_FILE  Credential store (default: <root>/LoginInfo.txt)
        WEB_TIMEOUT           Read deadline in seconds (default: 30)
        WEB_LOG_LEVEL         Logging level (default: INFO)
        WEB_LOG_FORMAT        Access log format (default: text)

        =====================================================================
        """
        return cls(
            host=os.getenv("WEB_HOST", "127.0.0.1"),
            port=int(os.getenv("WEB_PORT", "8080")),
            document_root=os.getenv("WEB_DOCUMENT_ROOT", "."),
            credentials_file=os.getenv("WEB_CREDENTIALS_FILE"),
            timeout=float(os.getenv("WEB_TIMEOUT", "30")),
            log_level=os.getenv("WEB_LOG_LEVEL", "INFO"),
            log_format=os.getenv("WEB_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: On the first invalid setting.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")

        if self.max_header_size < 1 or self.max_body_size < 0:
            raise ValueError("max_header_size must be >= 1 and max_body_size >= 0")

        routes = {
            "login_page": self.login_page,
            "login_path": self.login_path,
            "upload_path": self.upload_path,
            "redirect_path": self.redirect_path,
            "redirect_target": self.redirect_target,
            "fallback_resource": self.fallback_resource,
        }
        if self.post_login_resource is not None:
            routes["post_login_resource"] = self.post_login_resource
        for name, value in routes.items():
            if not value.startswith("/"):
                raise ValueError(f"{name} must start with '/', got {value!r}")

        upload_dir = Path(self.upload_dir)
        if upload_dir.is_absolute() or ".." in upload_dir.parts:
            raise ValueError(f"upload_dir must be a relative path inside the root, got {self.upload_dir!r}")

        if not self.upload_filename or "/" in self.upload_filename:
            raise ValueError(f"upload_filename must be a plain file name, got {self.upload_filename!r}")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"log_format must be 'text' or 'json', got {self.log_format!r}")

        if not Path(self.document_root).is_dir():
            raise ValueError(f"document_root is not a directory: {self.document_root}")


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Type-safe configuration with a dataclass
# 2. Environment variable support (WEB_*)
# 3. Validation at startup (fail-fast)
# 4. Every special route is a setting, not a hard-coded path
# =============================================================================
