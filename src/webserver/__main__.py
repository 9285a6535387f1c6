"""
=============================================================================
WEB SERVER CLI ENTRY POINT
=============================================================================

=============================================================================
USAGE
=============================================================================

    # Serve ./www on port 8080
    python -m webserver 8080 ./www

    # Listen on all interfaces
    python -m webserver 8080 ./www --host 0.0.0.0

    # Keep the credential store outside the document root
    python -m webserver 8080 ./www --credentials /etc/webserver/LoginInfo.txt

    # Show a page after a successful login
    python -m webserver 8080 ./www --post-login /welcome.html

    # JSON access log, debug output
    python -m webserver 8080 ./www --log-format json --log-level DEBUG

The same entry point is installed as the `simple-web-server` command.

=============================================================================
"""

import argparse
import sys

from . import __version__
from .config import ServerConfig
from .server import WebServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="simple-web-server",
        description="Serve static files from a document root, with a form login and an image upload endpoint",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m webserver 8080 ./www                       # Serve ./www
  python -m webserver 8080 ./www --host 0.0.0.0        # All interfaces
  python -m webserver 0 ./www                          # Any free port
        """,
    )

    # ─────────────────────────────────────────────────────────────────────
    # POSITIONAL ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("port", type=int, help="Port to listen on (0 = any free port)")
    parser.add_argument("document_root", help="Directory to serve files from")

    # ─────────────────────────────────────────────────────────────────────
    # OPTIONS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for containers)",
    )

    parser.add_argument(
        "--credentials", "-c",
        default=None,
        help="username=password credentials file (default: <document_root>/LoginInfo.txt)",
    )

    parser.add_argument(
        "--post-login",
        default=None,
        metavar="PATH",
        help="Resource to serve after a successful login (e.g. /welcome.html)",
    )

    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=30.0,
        help="Seconds to wait for a client's request (default: 30)",
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Access log format (default: text)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"simple-web-server {__version__}",
    )

    return parser


def main(argv=None):
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    config = ServerConfig(
        host=args.host,
        port=args.port,
        document_root=args.document_root,
        credentials_file=args.credentials,
        post_login_resource=args.post_login,
        timeout=args.timeout,
        log_level=args.log_level,
        log_format=args.log_format,
    )

    try:
        server = WebServer(config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
