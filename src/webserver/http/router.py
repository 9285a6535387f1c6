"""
=============================================================================
HTTP ROUTER
=============================================================================

An ordered table of (method, path) predicates mapped to handlers.

=============================================================================
MATCHING
=============================================================================

Routes are tried in the order they were added; the first match wins. A
route's path is either an exact path or None, meaning "any path":

    ┌──────────┬───────────────┬────────────────────────────────────────┐
    │  Method  │  Path         │  Handler                               │
    ├──────────┼───────────────┼────────────────────────────────────────┤
    │  GET     │  /login.html  │  login page (served verbatim)          │
    │  GET     │  /redirect    │  302 + fallback resource               │
    │  POST    │  /login.html  │  login handler                         │
    │  POST    │  /upload      │  upload handler                        │
    │  GET     │  (any)        │  static files                          │
    └──────────┴───────────────┴────────────────────────────────────────┘

So the exact-path special cases must be added before the catch-all. A
request that matches nothing gets 404 from the dispatcher.

=============================================================================
"""

from dataclasses import dataclass
from typing import Callable, List, Optional

from .request import HTTPRequest
from .response import ResponseWriter


# A handler receives the request and the writer for its response
Handler = Callable[[HTTPRequest, ResponseWriter], None]


@dataclass(frozen=True)
class Route:
    """
    A registered route.

        Route(method="POST", path="/upload", handler=upload.handle, name="upload")
    """

    method: str                     # HTTP method (exact, case-sensitive)
    path: Optional[str]             # Exact path, or None for any path
    handler: Handler
    name: Optional[str] = None      # For logging and debugging

    def matches(self, method: str, path: str) -> bool:
        """Match on method and path; a query string never affects the match."""
        if self.method != method:
            return False
        return self.path is None or self.path == path.split("?", 1)[0]


class Router:
    """Ordered route table. First-registered, first-matched."""

    def __init__(self):
        self._routes: List[Route] = []

    def add_route(
        self,
        method: str,
        path: Optional[str],
        handler: Handler,
        name: Optional[str] = None,
    ) -> Route:
        """
        Register a route at the lowest priority so far.

        Args:
            method: HTTP method to match
            path: Exact path to match, or None for any path
            handler: Called with (request, writer)
            name: Optional route name

        Returns:
            The registered Route
        """
        route = Route(method=method, path=path, handler=handler, name=name)
        self._routes.append(route)
        return route

    def get(self, path: Optional[str], handler: Handler, name: Optional[str] = None) -> Route:
        return self.add_route("GET", path, handler, name)

    def post(self, path: Optional[str], handler: Handler, name: Optional[str] = None) -> Route:
        return self.add_route("POST", path, handler, name)

    def match(self, method: str, path: str) -> Optional[Route]:
        """Return the first route matching (method, path), or None."""
        for route in self._routes:
            if route.matches(method, path):
                return route
        return None

    @property
    def routes(self) -> List[Route]:
        """A copy of the route table, in priority order."""
        return list(self._routes)

    def __len__(self) -> int:
        return len(self._routes)
