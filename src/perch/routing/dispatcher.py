"""Dispatcher — selects one route per request and runs it.

Selection is a linear scan over every registered route. Among the
routes that match, the one whose path template is the longest string
wins; on equal length the first registered wins. Template length is
the ranking, not segment count or placeholder count, so for a request
to ``/users/export`` the route ``/users/export`` (13 chars) beats
``/users/{id}`` (11 chars) only because its template is longer.
"""

import logging

from perch.handlers import HandlerRegistry
from perch.http.request import Request
from perch.http.response import Responder, Response
from perch.middleware.chain import ChainState
from perch.middleware.registry import MiddlewareRegistry
from perch.routing.registry import RouteRegistry
from perch.routing.route import RouteMatch

logger = logging.getLogger("perch.dispatch")


class Dispatcher:
    """Runs one request against a frozen registry.

    Usage::

        dispatcher = Dispatcher(registry, middleware=mw, handlers=handlers)
        response = dispatcher.run(request, Responder(config))
    """

    __slots__ = ("handlers", "middleware", "registry")

    def __init__(
        self,
        registry: RouteRegistry,
        *,
        middleware: MiddlewareRegistry | None = None,
        handlers: HandlerRegistry | None = None,
    ) -> None:
        self.registry = registry
        self.middleware = middleware if middleware is not None else MiddlewareRegistry()
        self.handlers = handlers if handlers is not None else HandlerRegistry()

    def select(self, method: str, uri: str) -> RouteMatch | None:
        """Return the best match for *method* and *uri*, or None."""
        best: RouteMatch | None = None
        longest = -1
        for entry in self.registry:
            match = entry.match(method, uri)
            if match is None:
                continue
            length = len(entry.path)
            if length > longest:
                longest = length
                best = match
        return best

    def execute(self, request: Request, responder: Responder) -> ChainState | None:
        """Select and execute; report NotFound when nothing matches.

        Returns the chain state of the executed route, or None when no
        route matched.
        """
        self.registry.freeze()
        match = self.select(request.method, request.uri)
        if match is None:
            logger.debug("404 %s %s", request.method, request.path)
            responder.not_found()
            return None
        return match.entry.execute(
            request,
            match.params,
            middleware=self.middleware,
            handlers=self.handlers,
            responder=responder,
        )

    def run(self, request: Request, responder: Responder) -> Response:
        """Dispatch *request* and return the response it produced.

        When the matched route finished without sending anything (a
        halting middleware that stayed silent, or a handler returning
        None without responding) the result is an empty 200 with the
        standard headers.
        """
        self.execute(request, responder)
        return responder.final_response()
