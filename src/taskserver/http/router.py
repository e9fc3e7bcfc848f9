"""
=============================================================================
PREFIX ROUTER
=============================================================================

Routes are matched by literal prefix against the request line, not by
parsing the path. Each route is "<METHOD> <path>" and the first registered
route whose text the request line starts with wins:

    ┌────┬──────────────────┬──────────┐
    │ #  │ Prefix           │ Handler  │
    ├────┼──────────────────┼──────────┤
    │ 1  │ POST /tasks      │ create   │
    │ 2  │ GET /tasks/      │ read_one │
    │ 3  │ GET /tasks       │ read_all │
    │ 4  │ PUT /tasks/      │ update   │
    │ 5  │ DELETE /tasks/   │ delete   │
    │ -  │ (anything else)  │ 404      │
    └────┴──────────────────┴──────────┘

Registration order is priority order, so "GET /tasks/" must be registered
before "GET /tasks" or every single-task read would be routed to the list
handler.

Because matching is by prefix, some odd request lines match too:

    GET /tasksXYZ HTTP/1.1    → read_all   (starts with "GET /tasks")
    POST /tasks/9 HTTP/1.1    → create     (starts with "POST /tasks")
    get /tasks HTTP/1.1       → 404        (case-sensitive)

=============================================================================
USAGE
=============================================================================

    router = Router()

    @router.post("/tasks")
    def create(request):
        return ok("User created")

    router.handle(parse_request(b"POST /tasks HTTP/1.1\\r\\n\\r\\n{...}"))

=============================================================================
"""

from dataclasses import dataclass
from typing import Callable, List, Optional

from .request import HTTPRequest
from .response import HTTPResponse, not_found


Handler = Callable[[HTTPRequest], HTTPResponse]


@dataclass
class Route:
    """
    A single registered route.

    Attributes:
        method: HTTP method, matched case-sensitively.
        path: Path prefix, e.g. "/tasks/".
        handler: Called with the request when this route matches.
        name: Optional name, used in logs.
    """

    method: str
    path: str
    handler: Handler
    name: Optional[str] = None

    @property
    def prefix(self) -> str:
        return f"{self.method} {self.path}"

    def matches(self, request_line: str) -> bool:
        return request_line.startswith(self.prefix)


class Router:
    """Ordered table of prefix routes."""

    def __init__(self):
        self._routes: List[Route] = []

    def add_route(
        self,
        method: str,
        path: str,
        handler: Handler,
        name: Optional[str] = None,
    ) -> Route:
        """
        Register a route after all existing ones.

        Args:
            method: HTTP method, e.g. "GET". Not normalized.
            path: Path prefix, e.g. "/tasks/".
            handler: Function taking a request and returning a response.
            name: Route name for logging. Defaults to the handler's name.

        Returns:
            The registered Route.
        """
        route = Route(
            method=method,
            path=path,
            handler=handler,
            name=name or getattr(handler, "__name__", None),
        )
        self._routes.append(route)
        return route

    def route(self, method: str, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        """Decorator form of add_route. Returns the handler unchanged."""
        def decorator(handler: Handler) -> Handler:
            self.add_route(method, path, handler, name)
            return handler
        return decorator

    def get(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        """Register a GET route."""
        return self.route("GET", path, name)

    def post(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        """Register a POST route."""
        return self.route("POST", path, name)

    def put(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        """Register a PUT route."""
        return self.route("PUT", path, name)

    def delete(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        """Register a DELETE route."""
        return self.route("DELETE", path, name)

    def match(self, request: HTTPRequest) -> Optional[Route]:
        """
        Find the first route whose prefix the request line starts with.

        Returns:
            The matching Route, or None.
        """
        request_line = request.request_line
        for route in self._routes:
            if route.matches(request_line):
                return route
        return None

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Dispatch a request to its handler.

        Unmatched requests get the generic 404. Exceptions raised by the
        handler propagate to the caller.
        """
        route = self.match(request)
        if route is None:
            return not_found()
        return route.handler(request)

    def routes(self) -> List[Route]:
        """All routes in priority order."""
        return list(self._routes)
