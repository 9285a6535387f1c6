"""
=============================================================================
CORE NETWORKING
=============================================================================

The parts of the server that know about sockets:

    SocketServer   listening socket, accept loop, signal-driven shutdown
    Connection     one accepted client, exposed as rfile/wfile streams

Nothing above this package touches a socket directly.

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection

__all__ = [
    "SocketServer",     # TCP accept loop
    "Connection",       # Wrapper for a client socket
]
