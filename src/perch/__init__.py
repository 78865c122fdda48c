"""Perch — a small request-dispatch core for JSON APIs.

Declares routes (method, path template, handler, middleware) in nested
groups, picks the best match for each request, runs the route's
middleware chain with explicit continuation, and calls the handler.
Every failure becomes one structured JSON error response.

Basic usage::

    from perch import App, RouteRegistry

    app = App()

    @app.routes
    def web(routes: RouteRegistry) -> None:
        routes.get("/", lambda request: {"message": "Welcome"})
        routes.get("/users/{id}", "Users@show")

``app`` is an ASGI application; ``app.request("GET", "/")`` dispatches
synchronously.
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "HTTPError",
    "HandlerResolutionError",
    "Method",
    "Middleware",
    "MiddlewareConfigError",
    "NotFound",
    "PerchError",
    "Proceed",
    "Request",
    "Responder",
    "Response",
    "RouteRegistry",
    "ValidationError",
    "get_request",
    "get_responder",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import perch`` fast while providing a clean top-level API.
    """
    if name == "App":
        from perch.app import App

        return App

    if name == "AppConfig":
        from perch.config import AppConfig

        return AppConfig

    if name == "Request":
        from perch.http.request import Request

        return Request

    if name in ("Response", "Responder"):
        from perch.http import response

        return getattr(response, name)

    if name in ("RouteRegistry", "Method"):
        from perch.routing import registry, route

        return getattr(registry, name, None) or getattr(route, name)

    if name in ("Middleware", "Proceed"):
        from perch.middleware import protocol

        return getattr(protocol, name)

    if name in ("get_request", "get_responder"):
        from perch import context

        return getattr(context, name)

    if name in (
        "ConfigurationError",
        "HTTPError",
        "HandlerResolutionError",
        "MiddlewareConfigError",
        "NotFound",
        "PerchError",
        "ValidationError",
    ):
        from perch import errors

        return getattr(errors, name)

    msg = f"module 'perch' has no attribute {name!r}"
    raise AttributeError(msg)
