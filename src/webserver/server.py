"""
=============================================================================
WEB SERVER
=============================================================================

Ties the socket layer to the request dispatcher.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │    WebServer    │                          │
    │                        └────────┬────────┘                          │
    │                                 │                                    │
    │            ┌────────────────────┴────────────────────┐              │
    │            ▼                                         ▼              │
    │    ┌──────────────┐                        ┌───────────────────┐    │
    │    │ SocketServer │  accept() ──► thread ─►│ RequestDispatcher │    │
    │    │ (Networking) │        per connection  │ (one request)     │    │
    │    └──────────────┘                        └─────────┬─────────┘    │
    │                                                      │              │
    │                              ┌────────────┬──────────┼──────────┐   │
    │                              ▼            ▼          ▼          ▼   │
    │                           static       login      upload    redirect │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
CONCURRENCY MODEL
=============================================================================

One daemon thread per accepted connection. Each thread reads one request,
writes the response, closes the socket and exits. Threads share the
dispatcher, which holds configuration only, so there is no shared mutable
state to lock.

A slow client only blocks its own thread; its read deadline
(config.timeout) turns a stalled request into 408 Request Timeout.

=============================================================================
INTERVIEW QUESTIONS ABOUT WEB SERVERS
=============================================================================

Q: "Explain how a request flows through your server."
A: "1. The accept loop takes a TCP connection off the listen queue
   2. A new thread wraps it in buffered read/write streams
   3. The dispatcher reads the request line and headers
   4. The route table picks a handler
   5. The handler streams its response, or raises a typed error that
      the dispatcher turns into an error page
   6. One access log line, then the connection is closed"

Q: "Why a thread per connection and not a pool?"
A: "Every connection is one short request. A thread per connection keeps
   the code obvious; a pool only pays off once thread creation shows up
   in profiles or the number of concurrent clients needs a hard cap."

=============================================================================
"""

import logging
import threading
from typing import Optional

from .config import ServerConfig
from .core import SocketServer, Connection
from .dispatcher import RequestDispatcher


logger = logging.getLogger(__name__)


class WebServer:
    """
    A static-file web server with a form login and an upload endpoint.

    Usage:
        server = WebServer(ServerConfig(port=8080, document_root="./www"))
        server.run()   # Blocks until Ctrl+C / SIGTERM / shutdown()
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration. Uses defaults if not provided.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self.dispatcher = RequestDispatcher(self.config)

    @property
    def address(self) -> tuple[str, int]:
        """The bound (host, port); the real port once listening."""
        return self._socket_server.address

    def run(self, setup_logging: bool = True):
        """
        Start the server (blocking).

        Args:
            setup_logging: Configure the root logger from config. Embedders
                           with their own logging setup pass False.
        """
        if setup_logging:
            self._setup_logging()

        logger.info(
            f"Starting {self.config.server_name}: document root "
            f"{self.config.document_root}, credentials {self.config.credentials_path}"
        )

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            logger.info("Server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the server is accepting connections."""
        return self._socket_server.wait_until_ready(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """Block until the accept loop has exited and the socket is closed."""
        return self._socket_server.wait_for_shutdown(timeout)

    def shutdown(self):
        """Stop accepting connections. In-flight requests finish on their own."""
        self._socket_server.shutdown()

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("webserver").setLevel(level)

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Hand the connection to its own thread (called by the accept loop)."""
        thread = threading.Thread(
            target=self._process_connection,
            args=(conn,),
            name=f"conn-{conn.id}",
            daemon=True,
        )
        thread.start()

    def _process_connection(self, conn: Connection):
        """Serve one request on the connection, then close it."""
        with conn:
            try:
                self.dispatcher.handle(conn.rfile, conn.wfile, conn.address)
            except Exception as e:
                # Request failures never get here; the dispatcher answers them
                logger.exception(f"[{conn.id}] Connection error: {e}")


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Validate config, build the socket server and the dispatcher
# 2. Accept loop hands each connection to a new daemon thread
# 3. The thread runs one request through the dispatcher and closes
# 4. SIGINT/SIGTERM or shutdown() stop the accept loop
# =============================================================================
