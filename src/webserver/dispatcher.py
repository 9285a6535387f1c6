"""
=============================================================================
REQUEST DISPATCHER
=============================================================================

Processes exactly one HTTP request from a pair of byte streams. It knows
nothing about sockets, so tests drive it with io.BytesIO.

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    rfile                                                         wfile
      │                                                             ▲
      ▼                                                             │
    1. READ HEAD        lines up to the empty line                  │
      │                 too large / empty → 400                     │
      ▼                                                             │
    2. PARSE            "METHOD PATH VERSION" + headers             │
      │                 < 3 tokens → 400                            │
      ▼                                                             │
    3. NORMALIZE        "/" → "/index.html"                         │
      │                                                             │
      ▼                                                             │
    4. ROUTE            first matching route wins                   │
      │                 no match → 404                              │
      ▼                                                             │
    5. READ BODY        POST only, exactly Content-Length bytes     │
      │                                                             │
      ▼                                                             │
    6. HANDLE           handler writes to a ResponseWriter ─────────┘
      │                 or raises an HTTPError
      ▼
    7. ACCESS LOG       one line, whatever happened

=============================================================================
THE ERROR BOUNDARY
=============================================================================

Handlers never catch their own failures. Everything they raise lands here:

    ┌─────────────────────────────┬─────────────────────────────────────┐
    │ Raised                      │ What the client sees                │
    ├─────────────────────────────┼─────────────────────────────────────┤
    │ HTTPError subclass          │ its status + its message            │
    │ TimeoutError (slow client)  │ 408 Request Timeout                 │
    │ ConnectionError             │ nothing (client is gone)            │
    │ anything else               │ 500, traceback in the log           │
    └─────────────────────────────┴─────────────────────────────────────┘

    ...unless the status line already went out. A response cannot change
    its status half way through, so the fault is logged and the caller
    closes the connection. The client sees a short body and knows.

=============================================================================
TWO RESPONSES, ONE REQUEST
=============================================================================

GET /redirect is answered with a 302 and then, on the same connection, the
fallback page:

    HTTP/1.1 302 Found
    Location: /a/b/index.html
    Content-Length: 0

    HTTP/1.1 200 OK
    Content-Type: text/html
    Content-Length: 123

    <html>...

A successful login may be followed by a configured page the same way. The
second response gets its own error boundary: if the fallback page is
missing, the client receives the 302 followed by a 404.

=============================================================================
"""

import logging
import time
from typing import BinaryIO, Callable

from .access_log import AccessLogger, RequestLog
from .config import ServerConfig
from .handlers.login import CredentialStore, LoginHandler
from .handlers.resolver import PathResolver
from .handlers.static import StaticFileHandler
from .handlers.upload import UploadHandler
from .http.errors import HTTPError, NotFound
from .http.request import HTTPRequest, RequestParser
from .http.response import ResponseWriter
from .http.router import Router
from .http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


LOGIN_PAGE_NOT_FOUND = "The login page was not found."
RESOURCE_NOT_FOUND = "The requested resource was not found."
REQUEST_TIMEOUT = "The server timed out waiting for the request."


class RequestDispatcher:
    """
    Reads one request, routes it, and writes the response.

    Holds no per-request state: one instance is shared by every connection
    thread.

    Usage:
        dispatcher = RequestDispatcher(ServerConfig(document_root="./www"))

        with conn:
            dispatcher.handle(conn.rfile, conn.wfile, conn.address)
    """

    def __init__(self, config: ServerConfig):
        self.config = config

        # ─────────────────────────────────────────────────────────────────
        # HANDLERS
        # ─────────────────────────────────────────────────────────────────
        self.resolver = PathResolver(
            config.document_root,
            config.index_file,
            hidden=[config.credentials_path],
        )
        self.static = StaticFileHandler(self.resolver, config.chunk_size)
        self.login = LoginHandler(CredentialStore(config.credentials_path))
        self.upload = UploadHandler(
            config.document_root,
            upload_dir=config.upload_dir,
            upload_filename=config.upload_filename,
        )

        self.parser = RequestParser(
            max_header_size=config.max_header_size,
            max_body_size=config.max_body_size,
        )
        self.access_log = AccessLogger(config.log_format)

        # ─────────────────────────────────────────────────────────────────
        # ROUTE TABLE (order matters: exact paths before the catch-all)
        # ─────────────────────────────────────────────────────────────────
        self.router = Router()
        self.router.get(config.login_page, self._serve_login_page, name="login_page")
        self.router.get(config.redirect_path, self._redirect, name="redirect")
        self.router.post(config.login_path, self._login, name="login")
        self.router.post(config.upload_path, self.upload.handle, name="upload")
        self.router.get(None, self.static.handle, name="static")
        logger.debug(f"Registered {len(self.router)} routes")

    # =========================================================================
    # ENTRY POINT
    # =========================================================================

    def handle(
        self,
        rfile: BinaryIO,
        wfile: BinaryIO,
        client_address: tuple[str, int] = ("", 0),
    ) -> None:
        """
        Process one request.

        Never raises for request-level failures; those become error
        responses. The caller closes the connection afterwards.

        Args:
            rfile: Readable buffered byte stream (the request).
            wfile: Writable byte stream (the response).
            client_address: (ip, port) of the peer, for logging.
        """
        start_time = time.time()
        request_id = self.access_log.new_request_id()
        writer = ResponseWriter(wfile, self.config.server_name)

        # Filled in as soon as the request line parses, for the access log
        seen = {"method": "-", "path": "-"}

        def process() -> None:
            request = self.parser.parse(self.parser.read_head(rfile), client_address)
            seen["method"], seen["path"] = request.method, request.path
            self._process(request, rfile, writer)

        self._guard(writer, process, request_id)

        writers = writer.chain()
        self.access_log.log(RequestLog(
            request_id=request_id,
            client_ip=client_address[0],
            method=seen["method"],
            path=seen["path"],
            status_code=int(writer.status) if writer.status is not None else 0,
            bytes_sent=sum(w.bytes_written for w in writers),
            duration_ms=(time.time() - start_time) * 1000,
            timestamp=self.access_log.timestamp(),
        ))

    def _process(self, request: HTTPRequest, rfile: BinaryIO, writer: ResponseWriter) -> None:
        if request.path == "/":
            request.path = "/" + self.config.index_file

        route = self.router.match(request.method, request.path)
        if route is None:
            raise NotFound(
                RESOURCE_NOT_FOUND,
                detail=f"No route for {request.method} {request.path}",
            )

        logger.debug(f"{request.method} {request.path} → {route.name}")

        if request.method == "POST":
            request.body = self.parser.read_body(rfile, request)

        route.handler(request, writer)

    # =========================================================================
    # ROUTE HANDLERS THAT NEED THE DISPATCHER
    # =========================================================================

    def _serve_login_page(self, request: HTTPRequest, writer: ResponseWriter) -> None:
        self.static.serve(self.config.login_page, writer, not_found_message=LOGIN_PAGE_NOT_FOUND)

    def _redirect(self, request: HTTPRequest, writer: ResponseWriter) -> None:
        logger.info(f"Redirecting {request.path} → {self.config.redirect_target}")
        writer.send_redirect(self.config.redirect_target)
        self._follow_on(writer, self.config.fallback_resource)

    def _login(self, request: HTTPRequest, writer: ResponseWriter) -> None:
        self.login.handle(request, writer)
        if self.config.post_login_resource and writer.status == HTTPStatus.OK:
            self._follow_on(writer, self.config.post_login_resource)

    def _follow_on(self, writer: ResponseWriter, resource: str) -> None:
        """Serve `resource` as a second response after `writer` finished."""
        follow_on = writer.next_response()
        self._guard(follow_on, lambda: self.static.serve(resource, follow_on), "follow-on")

    # =========================================================================
    # ERROR BOUNDARY
    # =========================================================================

    def _guard(self, writer: ResponseWriter, action: Callable[[], None], context: str) -> None:
        """Run `action`, turning any failure into at most one error response."""
        try:
            action()

        except HTTPError as e:
            if e.status >= 500:
                logger.error(f"[{context}] {type(e).__name__}: {e.detail or e.message}")
            else:
                logger.info(f"[{context}] {int(e.status)} {type(e).__name__}: {e.detail or e.message}")
            self._send_error(writer, e.status, e.message, context)

        except TimeoutError:
            logger.warning(f"[{context}] Timed out reading request")
            self._send_error(writer, HTTPStatus.REQUEST_TIMEOUT, REQUEST_TIMEOUT, context)

        except ConnectionError as e:
            logger.warning(f"[{context}] Client disconnected: {e}")

        except Exception as e:
            logger.exception(f"[{context}] Unhandled error: {e}")
            self._send_error(
                writer,
                HTTPStatus.INTERNAL_SERVER_ERROR,
                HTTPError.default_message,
                context,
            )

    def _send_error(
        self,
        writer: ResponseWriter,
        status: HTTPStatus,
        message: str,
        context: str,
    ) -> None:
        if writer.headers_sent:
            logger.error(
                f"[{context}] Failure after {int(writer.status)} headers were sent; "
                f"closing connection"
            )
            return

        try:
            writer.send_error(status, message)
        except OSError as e:
            logger.warning(f"[{context}] Could not send {int(status)} response: {e}")
