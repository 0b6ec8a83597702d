"""
=============================================================================
URL ROUTER
=============================================================================

The innermost handler of an Application: maps method + path to a handler
function.

    Pattern            Matches                  path_params
    ─────────────────  ───────────────────────  ─────────────────────────
    /users             /users                   {}
    /users/:id         /users/42                {"id": "42"}
    /files/*path       /files/a/b.txt           {"path": "a/b.txt"}

Patterns are compiled to anchored regexes with named groups. First
registered, first matched.

=============================================================================
WHAT THE ROUTER TELLS THE OUTER UNITS
=============================================================================

On a match the router records the PATTERN (not the concrete path) in
``request.route``. MetricsMiddleware labels requests by it, so
/users/1 and /users/2 share one time series instead of one each.

    no match at all                     → 404 {"code": 404, ...}
    path matches, method does not       → 405 with an Allow header

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Dict, List
import re

from .request import HTTPRequest
from .response import HTTPResponse, MethodNotAllowed, NotFound


Handler = Callable[[HTTPRequest], HTTPResponse]

ALL_METHODS = ["DELETE", "GET", "HEAD", "OPTIONS", "PATCH", "POST", "PUT"]


@dataclass
class Route:
    """A URL pattern bound to a handler. ``method`` None accepts any method."""

    path: str
    method: Optional[str]
    handler: Handler
    _pattern: Optional[re.Pattern] = field(default=None, repr=False)


@dataclass
class RouteMatch:
    route: Route
    params: Dict[str, str]


def compile_pattern(path: str) -> re.Pattern:
    """
    Compile a route pattern into an anchored regex.

        "/users/:id/posts/:post_id"
        → ^/users/(?P<id>[^/]+)/posts/(?P<post_id>[^/]+)$

    ``*name`` captures the rest of the path and must come last.
    """
    regex_parts = ["^"]

    for segment in path.split("/"):
        if not segment:
            continue

        regex_parts.append("/")

        if segment.startswith(":"):
            regex_parts.append(f"(?P<{segment[1:]}>[^/]+)")
        elif segment.startswith("*"):
            regex_parts.append(f"(?P<{segment[1:] or 'wildcard'}>.*)")
            break
        else:
            regex_parts.append(re.escape(segment))

    if len(regex_parts) == 1:
        regex_parts.append("/")
    regex_parts.append("$")
    return re.compile("".join(regex_parts))


def _normalize(path: str) -> str:
    return "/" + path.strip("/") if path != "/" else "/"


class Router:
    """
    Decorator-based request router.

        router = Router()

        @router.get("/users/:id")
        def get_user(request):
            return ok({"id": request.path_params["id"]})

        api = router.group("/api/v1")

        @api.post("/users")             # POST /api/v1/users
        def create_user(request):
            ...
    """

    def __init__(self, prefix: str = ""):
        self.prefix = prefix.rstrip("/")
        self._routes: List[Route] = []
        self._groups: List["Router"] = []

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def add_route(self, path: str, handler: Handler, method: Optional[str] = None) -> Route:
        full_path = self.prefix + path
        route = Route(
            path=full_path,
            method=method.upper() if method else None,
            handler=handler,
            _pattern=compile_pattern(full_path),
        )
        self._routes.append(route)
        return route

    def route(self, path: str, method: Optional[str] = None) -> Callable[[Handler], Handler]:
        def decorator(handler: Handler) -> Handler:
            self.add_route(path, handler, method)
            return handler
        return decorator

    def get(self, path: str) -> Callable[[Handler], Handler]:
        return self.route(path, "GET")

    def post(self, path: str) -> Callable[[Handler], Handler]:
        return self.route(path, "POST")

    def put(self, path: str) -> Callable[[Handler], Handler]:
        return self.route(path, "PUT")

    def delete(self, path: str) -> Callable[[Handler], Handler]:
        return self.route(path, "DELETE")

    def patch(self, path: str) -> Callable[[Handler], Handler]:
        return self.route(path, "PATCH")

    def group(self, prefix: str) -> "Router":
        """Create a sub-router whose routes all start with ``prefix``."""
        sub_router = Router(self.prefix + prefix)
        self._groups.append(sub_router)
        return sub_router

    def routes(self) -> List[Route]:
        """All registered routes, groups included, in match order."""
        all_routes = list(self._routes)
        for sub_router in self._groups:
            all_routes.extend(sub_router.routes())
        return all_routes

    # =========================================================================
    # MATCHING
    # =========================================================================

    def match(self, method: str, path: str) -> Optional[RouteMatch]:
        path = _normalize(path)
        method = method.upper()

        for route in self.routes():
            if route.method and route.method != method:
                continue
            found = route._pattern.match(path) if route._pattern else None
            if found:
                return RouteMatch(route=route, params=found.groupdict())

        return None

    def get_allowed_methods(self, path: str) -> List[str]:
        """Methods registered for ``path``; feeds the Allow header of a 405."""
        path = _normalize(path)
        methods = set()

        for route in self.routes():
            if route._pattern and route._pattern.match(path):
                if route.method is None:
                    return list(ALL_METHODS)
                methods.add(route.method)

        return sorted(methods)

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Dispatch ``request`` to the matching handler.

        Sets request.path_params and request.route on a match. Exceptions
        from the handler propagate to the pipeline.
        """
        match = self.match(request.method, request.path)

        if match:
            request.path_params = match.params
            request.route = match.route.path
            return match.route.handler(request)

        allowed = self.get_allowed_methods(request.path)
        if allowed:
            return MethodNotAllowed().to_response({"Allow": ", ".join(allowed)})

        return NotFound(f"No route matches {request.path}").to_response()

    __call__ = handle
