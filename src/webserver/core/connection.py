"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps an accepted client socket for exactly one request/response exchange.

=============================================================================
WHY WRAP THE SOCKET IN FILE OBJECTS?
=============================================================================

TCP delivers bytes in arbitrary chunks. A single recv() may return half a
request line, or the headers plus part of the body:

    recv() #1:  "GET /a/b/index.ht"
    recv() #2:  "ml HTTP/1.1\r\nHost: localhost\r\n\r\n"

socket.makefile() puts a buffered reader on top of the socket, so the
request parser can simply call readline() and read(n) and never think
about chunk boundaries:

    ┌───────────────┐   makefile("rb")   ┌──────────────────┐
    │  raw socket   │ ─────────────────► │  rfile           │ readline()
    │  recv()/send  │                    │  (BufferedReader)│ read(n)
    │               │   makefile("wb")   ├──────────────────┤
    │               │ ─────────────────► │  wfile           │ write()
    └───────────────┘                    │  (BufferedWriter)│ flush()
                                         └──────────────────┘

The same streams can be replaced by io.BytesIO in tests, which is why the
dispatcher only ever sees rfile and wfile.

=============================================================================
ONE REQUEST PER CONNECTION
=============================================================================

Every response carries "Connection: close". After the dispatcher returns,
the connection is closed:

    accept() → read request → write response(s) → close

=============================================================================
"""

import socket
import time
import logging
import uuid
from dataclasses import dataclass, field
from typing import BinaryIO, Optional


logger = logging.getLogger(__name__)


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        timeout: Read deadline in seconds (None = block forever).
        id: Unique connection identifier (for logging).
        created_at: Timestamp when the connection was accepted.
    """

    socket: socket.socket
    address: tuple[str, int]
    timeout: Optional[float] = 30.0

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    created_at: float = field(default_factory=time.time)

    rfile: BinaryIO = field(init=False, repr=False)
    wfile: BinaryIO = field(init=False, repr=False)
    closed: bool = field(default=False, init=False)

    def __post_init__(self):
        # Blocking mode with a deadline: a stalled read raises TimeoutError
        self.socket.setblocking(True)
        self.socket.settimeout(self.timeout)

        self.rfile = self.socket.makefile("rb")
        self.wfile = self.socket.makefile("wb")

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def age(self) -> float:
        """Connection age in seconds."""
        return time.time() - self.created_at

    def close(self):
        """
        Close the connection gracefully.

        1. Flush anything still buffered in wfile
        2. shutdown(SHUT_WR): send FIN so the client sees end-of-response
        3. Drain what the client sent that we never read
        4. Close the file objects and the socket

        Safe to call more than once.
        """
        if self.closed:
            return
        self.closed = True

        try:
            self.wfile.flush()
        except OSError as e:
            logger.debug(f"[{self.id}] Flush on close failed: {e}")

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass  # Includes the drain timing out

        for stream in (self.wfile, self.rfile):
            try:
                stream.close()
            except OSError:
                pass  # Unflushable after a reset; the socket close below still runs

        try:
            self.socket.close()
        except OSError:
            pass

        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
