"""
=============================================================================
PATH RESOLVER
=============================================================================

Maps a request path onto a regular file under the document root.

=============================================================================
SECURITY: PATH TRAVERSAL
=============================================================================

    ATTACK ATTEMPT:
    ┌─────────────────────────────────────────────────────────────────────┐
    │  GET /../../../etc/passwd HTTP/1.1                                  │
    │  GET /%2e%2e/%2e%2e/etc/passwd HTTP/1.1                             │
    │                                                                      │
    │  Naively joined, either of these reads:                             │
    │  /var/www/../../../etc/passwd  →  /etc/passwd                       │
    │                                                                      │
    │  Our protection:                                                    │
    │  1. Percent-decode FIRST (so %2e%2e becomes ..)                     │
    │  2. Resolve the full path (follow .. and symlinks)                  │
    │  3. Check it is still inside the document root                      │
    │  4. If not, it does not exist as far as the client is concerned     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    PYTHON PROTECTION:

        full_path = (root_dir / user_input).resolve()
        full_path.relative_to(root_dir)  # Raises if outside root!

=============================================================================
RESOLUTION ORDER
=============================================================================

    "/a/b/"  ──decode──►  a/b  ──join+resolve──►  /srv/www/a/b
                                                       │
                                  directory? ──yes──►  /srv/www/a/b/index.html
                                                       │
                                  exists? ───no───►  NotFound (404)
                                                       │
                                  directory? ─yes──►  NotFound (404)
                                                       │
                                  regular file? ─no─►  UnsupportedType (415)
                                                       │
                                  hidden? ─────yes──►  NotFound (404)
                                                       │
                                                       ▼
                                                  Path to serve

=============================================================================
"""

import logging
from pathlib import Path
from typing import Iterable, Union
from urllib.parse import unquote

from ..http.errors import NotFound, UnsupportedType


logger = logging.getLogger(__name__)


class PathResolver:
    """
    Resolves request paths against a document root.

    Stateless after construction: safe to share between connection threads.

    Usage:
        resolver = PathResolver("/srv/www")
        resolver.resolve("/")            # → /srv/www/index.html
        resolver.resolve("/a/b/")        # → /srv/www/a/b/index.html
        resolver.resolve("/../secret")   # → raises NotFound
    """

    def __init__(
        self,
        document_root: Union[str, Path],
        index_file: str = "index.html",
        hidden: Iterable[Union[str, Path]] = (),
    ):
        """
        Args:
            document_root: Directory all served paths must live under.
            index_file: File substituted for directory requests.
            hidden: Files under the root that are never served (the
                    credential store, for one).
        """
        # Resolve once so the containment check compares canonical paths
        self.document_root = Path(document_root).resolve()
        self.index_file = index_file
        self.hidden = frozenset(Path(p).resolve() for p in hidden)

    def resolve(self, request_path: str) -> Path:
        """
        Resolve a request path to a regular file.

        Args:
            request_path: Path from the request line ("/a/b/index.html").
                          A query string or fragment is ignored.

        Returns:
            Absolute path of a regular file inside the document root.

        Raises:
            NotFound: Missing, unreachable, a directory without an index
                      file, hidden, or outside the document root.
            UnsupportedType: Exists but is not a regular file.
        """
        target = self._to_filesystem_path(request_path)

        # Name too long, permission denied on a parent: all the same 404
        try:
            if target.is_dir():
                target = target / self.index_file

            if not target.exists():
                raise NotFound(detail=f"No such file: {target}")

            if target.is_dir():
                raise NotFound(detail=f"Index is a directory: {target}")

            if not target.is_file():
                raise UnsupportedType(detail=f"Not a regular file: {target}")
        except OSError as e:
            raise NotFound(detail=f"Cannot stat {target}: {e}") from e

        if target in self.hidden:
            logger.warning(f"Refused request for hidden file: {request_path!r}")
            raise NotFound(detail=f"Hidden file: {target}")

        return target

    def contains(self, path: Path) -> bool:
        """Check whether an already-resolved path is inside the document root."""
        try:
            path.relative_to(self.document_root)
        except ValueError:
            return False
        return True

    def _to_filesystem_path(self, request_path: str) -> Path:
        # Drop query string and fragment, then percent-decode
        path = request_path.split("?", 1)[0].split("#", 1)[0]
        path = unquote(path)

        if "\x00" in path:
            logger.warning(f"Rejected path with NUL byte: {request_path!r}")
            raise NotFound(detail="NUL byte in path")

        # resolve() follows symlinks and normalizes .. components
        try:
            full_path = (self.document_root / path.lstrip("/")).resolve()
        except OSError as e:
            raise NotFound(detail=f"Cannot resolve {request_path!r}: {e}") from e

        if not self.contains(full_path):
            logger.warning(f"Path traversal attempt: {request_path!r}")
            raise NotFound(detail=f"Outside document root: {request_path!r}")

        return full_path
