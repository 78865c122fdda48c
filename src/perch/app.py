"""Perch application class.

Holds what lives for the whole process: configuration, the route
declaration functions, and the middleware and controller registries.
The route table itself does not: every request runs the declaration
functions against a fresh ``RouteRegistry``, dispatches once, and
throws the registry away.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any, TypeAlias

from perch._internal.asgi import Receive, Scope, Send
from perch.config import AppConfig
from perch.context import request_var, responder_var
from perch.handlers import HandlerRegistry
from perch.http.request import Request
from perch.http.response import Responder, Response
from perch.log import configure_logging
from perch.middleware.registry import MiddlewareRegistry
from perch.routing.dispatcher import Dispatcher
from perch.routing.registry import RouteRegistry
from perch.server.handler import handle_request

logger = logging.getLogger("perch.dispatch")

# A function that declares routes on the registry it is given
RouteDeclaration: TypeAlias = Callable[[RouteRegistry], Any]


class App:
    """The perch application.

    Usage::

        app = App(AppConfig.from_env())

        @app.routes
        def web(routes: RouteRegistry) -> None:
            routes.get("/", lambda request: {"message": "Welcome"})
            routes.group("/api", "auth", api_routes)

        @app.middleware("auth")
        class RequireToken:
            def handle(self, request, proceed): ...

        @app.controller("Users")
        class UserController:
            def show(self, request, user_id): ...

    ``app`` is an ASGI 3.0 application.
    """

    __slots__ = ("_declarations", "_handlers", "_middleware", "config")

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self._declarations: list[RouteDeclaration] = []
        self._middleware = MiddlewareRegistry()
        self._handlers = HandlerRegistry()

    # -- Registration --

    def routes(self, declare: RouteDeclaration) -> RouteDeclaration:
        """Register a route declaration function via decorator.

        Declaration functions run in registration order, once per request.
        """
        self._declarations.append(declare)
        return declare

    def middleware(self, name: str, target: Any = None) -> Any:
        """Register middleware under *name*, directly or as a decorator."""
        if target is not None:
            self._middleware.register(name, target)
            return target
        return self._middleware.middleware(name)

    def controller(self, name: str | None = None, target: Any = None) -> Any:
        """Register a ``"Name@method"`` target, directly or as a decorator."""
        if target is not None:
            self._handlers.register(name or target.__name__, target)
            return target
        return self._handlers.controller(name)

    @property
    def middleware_registry(self) -> MiddlewareRegistry:
        return self._middleware

    @property
    def handler_registry(self) -> HandlerRegistry:
        return self._handlers

    # -- Dispatch --

    def build_registry(self) -> RouteRegistry:
        """Run every declaration function against a new registry."""
        registry = RouteRegistry()
        for declare in self._declarations:
            declare(registry)
        return registry

    def dispatch(self, request: Request) -> Response:
        """Run one full declare-and-dispatch cycle for *request*.

        Synchronous; the ASGI entry point calls this in a worker thread.
        """
        responder = Responder(self.config)
        request_token = request_var.set(request)
        responder_token = responder_var.set(responder)
        try:
            try:
                registry = self.build_registry()
            except Exception as exc:
                logger.exception("Route declaration failed: %s", exc)
                responder.handle_exception(exc)
                return responder.response or Response(status=500)
            dispatcher = Dispatcher(
                registry, middleware=self._middleware, handlers=self._handlers
            )
            return dispatcher.run(request, responder)
        finally:
            responder_var.reset(responder_token)
            request_var.reset(request_token)

    def request(
        self,
        method: str,
        uri: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
        json: Any = None,
    ) -> Response:
        """Build a Request and dispatch it synchronously."""
        return self.dispatch(Request.build(method, uri, headers=headers, body=body, json=json))

    def check(self) -> RouteRegistry:
        """Run the declarations once and return the resulting registry.

        Surfaces declaration errors (``ConfigurationError``) at startup
        instead of on the first request.
        """
        registry = self.build_registry()
        registry.freeze()
        return registry

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        await handle_request(
            scope,
            receive,
            send,
            dispatch=self.dispatch,
            config=self.config,
            max_body_size=self.config.max_content_length,
        )

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Startup configures logging and runs the route declarations once
        so that broken declarations fail the deploy, not the first request.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    configure_logging(self.config)
                    routes = self.check()
                    logger.info("Declared %d routes", len(routes))
                    await send({"type": "lifespan.startup.complete"})
                except Exception as exc:
                    await send(
                        {
                            "type": "lifespan.startup.failed",
                            "message": str(exc),
                        }
                    )
                    return

            elif msg_type == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return
