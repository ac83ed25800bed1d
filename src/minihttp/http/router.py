"""
=============================================================================
URL ROUTER
=============================================================================

Maps (method, path) to a handler.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ROUTING FLOW                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   Incoming Request                                                  │
    │   GET /echo/hello                                                   │
    │        │                                                            │
    │        ▼                                                            │
    │   1. Keep routes whose method == "GET" (exact, case-sensitive)      │
    │        │                                                            │
    │        ▼                                                            │
    │   2. Try their matchers in REGISTRATION ORDER                       │
    │        │                                                            │
    │        │   GET /               ✗                                    │
    │        │   GET /echo/:str      ✓  → params = {"str": "hello"}       │
    │        │   GET /echo/fixed        (never tried, first match wins)   │
    │        │                                                            │
    │        ▼                                                            │
    │   3. request.params = params; handler(request, response)            │
    │                                                                     │
    │   Nothing matched → 404 with an empty body                          │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

Handlers are plain callables ``handler(request, response) -> None``. Any
callable works: functions, bound methods, or objects with ``__call__``
that carry their own configuration (see handlers.static).

Routes are registered before the server starts listening and are
read-only afterwards, so dispatch needs no locking.

=============================================================================
"""

from dataclasses import dataclass
from typing import Callable, Optional, Dict, List, Tuple
import logging

from .matcher import PathMatcher
from .request import Request
from .response import Response
from .status_codes import HTTPStatus


logger = logging.getLogger(__name__)


# Handler: receives the request and the response it must finish
Handler = Callable[[Request, Response], None]


@dataclass(frozen=True)
class Route:
    """
    A registered (method, pattern, handler) triple.

        Route(
            method="GET",
            pattern="/echo/:str",
            matcher=PathMatcher(...),   # compiled once, at registration
            handler=echo,
        )
    """

    method: str
    pattern: str
    matcher: PathMatcher
    handler: Handler

    def match(self, method: str, path: str) -> Optional[Dict[str, str]]:
        """Params if this route serves (method, path), else None."""
        if method != self.method:
            return None
        return self.matcher.match(path)


class Router:
    """
    Ordered route table.

    Usage:
        router = Router()

        @router.get("/echo/:str")
        def echo(request, response):
            response.send_text(request.params["str"])

        router.register("POST", "/files/:fileName", upload)

        router.dispatch(request, response)
    """

    def __init__(self):
        self._routes: List[Route] = []

    @property
    def routes(self) -> Tuple[Route, ...]:
        """Registered routes, in registration order."""
        return tuple(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def register(self, method: str, pattern: str, handler: Handler) -> Route:
        """
        Append a route.

        The pattern is compiled here so dispatch never recompiles.
        Duplicates are allowed; the earlier registration wins.

        Raises:
            ValueError: The pattern has an invalid capture name.
        """
        route = Route(
            method=method,
            pattern=pattern,
            matcher=PathMatcher.compile(pattern),
            handler=handler,
        )
        self._routes.append(route)
        logger.debug(f"Registered route {method} {pattern}")
        return route

    def route(self, pattern: str, method: str = "GET") -> Callable[[Handler], Handler]:
        """
        Decorator form of register().

        Returns the handler unchanged so decorators can be stacked.
        """
        def decorator(handler: Handler) -> Handler:
            self.register(method, pattern, handler)
            return handler
        return decorator

    def get(self, pattern: str) -> Callable[[Handler], Handler]:
        """Register a GET route."""
        return self.route(pattern, "GET")

    def post(self, pattern: str) -> Callable[[Handler], Handler]:
        """Register a POST route."""
        return self.route(pattern, "POST")

    # =========================================================================
    # MATCHING / DISPATCH
    # =========================================================================

    def match(self, method: str, path: str) -> Optional[Tuple[Route, Dict[str, str]]]:
        """
        Find the first route serving (method, path).

        Returns:
            (route, params) or None
        """
        for route in self._routes:
            params = route.match(method, path)
            if params is not None:
                return route, params
        return None

    def dispatch(self, request: Request, response: Response) -> Optional[Route]:
        """
        Route a request to at most one handler.

        Unknown method and unknown path look the same to the client:
        404, no body, connection closed.

        Returns:
            The route whose handler ran, or None on 404.
        """
        found = self.match(request.method, request.path)

        if found is None:
            logger.debug(f"No route for {request.method} {request.path}")
            response.set_status(HTTPStatus.NOT_FOUND).send()
            return None

        route, params = found
        request.params = params
        route.handler(request, response)
        return route
