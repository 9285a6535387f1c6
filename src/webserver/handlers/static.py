"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

Serves files from the document root, streamed in fixed-size chunks.

=============================================================================
FLOW
=============================================================================

    GET /a/b/logo.png
          │
          ▼
    PathResolver.resolve()        NotFound → 404, UnsupportedType → 415
          │
          ▼
    get_content_type()            "png" → image/png
          │
          ▼
    open() + fstat()              OSError → 500
          │                       size comes from the OPEN handle
          ▼
    read first chunk              OSError → 500 (headers not sent yet)
          │
          ▼
    HTTP/1.1 200 OK
    Content-Type: image/png
    Content-Length: <size>
          │
          ▼
    stream remaining chunks       exactly <size> bytes, never more

=============================================================================
WHY THE LENGTH COMES FROM THE OPEN FILE
=============================================================================

A stat() by path followed by open() races with anyone rewriting the file:
the header could promise 10 KB and the body deliver 12 KB. Here the length
is taken from fstat() on the descriptor we stream from, and we stop after
that many bytes. If the file is truncated underneath us the body comes up
short; the status line is already out by then, so the handler raises
IOFailure and the dispatcher drops the connection instead of sending a
response that lies about its length.

=============================================================================
"""

import logging
import os
from typing import Optional

from ..http.errors import IOFailure, NotFound
from ..http.mime_types import get_content_type
from ..http.request import HTTPRequest
from ..http.response import ResponseWriter
from ..http.status_codes import HTTPStatus
from .resolver import PathResolver


logger = logging.getLogger(__name__)


DEFAULT_CHUNK_SIZE = 8192


class StaticFileHandler:
    """
    Handler for serving static files.

    =========================================================================
    FEATURES
    =========================================================================

    - Serves files from the resolver's document root
    - Content-Type from the file extension
    - Directory index (index.html) via the resolver
    - Path traversal protection via the resolver
    - Chunked streaming: the whole file is never held in memory

    Reads from the filesystem only; never writes.

    =========================================================================
    USAGE
    =========================================================================

        static = StaticFileHandler(PathResolver("/srv/www"))
        router.get(None, static.handle)              # GET <anything>
        static.serve("/login.html", writer)          # serve a fixed resource

    =========================================================================
    """

    def __init__(self, resolver: PathResolver, chunk_size: int = DEFAULT_CHUNK_SIZE):
        """
        Args:
            resolver: Maps request paths to files.
            chunk_size: Bytes read and written per chunk.
        """
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
        self.resolver = resolver
        self.chunk_size = chunk_size

    def handle(self, request: HTTPRequest, writer: ResponseWriter) -> None:
        """Route entry point: serve the file named by the request path."""
        self.serve(request.path, writer)

    def serve(
        self,
        request_path: str,
        writer: ResponseWriter,
        not_found_message: Optional[str] = None,
    ) -> None:
        """
        Serve one file as a 200 response.

        Args:
            request_path: Path as it appeared in the request.
            writer: Writer for this response (headers not yet sent).
            not_found_message: Client message to use instead of the default
                               when the file does not exist.

        Raises:
            NotFound: No servable file at that path.
            UnsupportedType: Target is not a regular file.
            IOFailure: Open/read fault, or the file shrank while streaming.
        """
        try:
            path = self.resolver.resolve(request_path)
        except NotFound as e:
            if not_found_message:
                raise NotFound(not_found_message, detail=e.detail) from e
            raise

        content_type = get_content_type(path)

        try:
            f = open(path, "rb")
        except OSError as e:
            raise IOFailure(detail=f"Cannot open {path}: {e}") from e

        with f:
            try:
                size = os.fstat(f.fileno()).st_size
                first = f.read(min(self.chunk_size, size)) if size else b""
            except OSError as e:
                raise IOFailure(detail=f"Cannot read {path}: {e}") from e

            if size and not first:
                raise IOFailure(detail=f"{path} was truncated before serving")

            logger.info(f"Serving file: {request_path} ({content_type}, {size} bytes)")

            # ─────────────────────────────────────────────────────────────
            # HEADERS (status is fixed from here on)
            # ─────────────────────────────────────────────────────────────
            writer.start(HTTPStatus.OK, {
                "Content-Type": content_type,
                "Content-Length": str(size),
            })
            writer.write(first)

            # ─────────────────────────────────────────────────────────────
            # BODY: exactly `size` bytes from the same handle
            # ─────────────────────────────────────────────────────────────
            remaining = size - len(first)
            while remaining > 0:
                try:
                    chunk = f.read(min(self.chunk_size, remaining))
                except OSError as e:
                    raise IOFailure(detail=f"Read failed mid-stream for {path}: {e}") from e

                if not chunk:
                    raise IOFailure(
                        detail=f"{path} shrank while streaming: {remaining} of {size} bytes missing"
                    )

                writer.write(chunk)
                remaining -= len(chunk)

        writer.finish()
