"""Route registry and group context.

A ``RouteRegistry`` collects ``RouteEntry`` values while route
declarations run. Groups never mutate the registry they are declared
on: ``group()`` hands its body a child registry that shares the same
route list but carries a derived ``GroupContext``. When the body
returns (or raises) the outer registry's prefix and middleware are
exactly what they were before.

Usage::

    def declare(routes: RouteRegistry) -> None:
        routes.get("/", index)

        def api(api: RouteRegistry) -> None:
            api.get("/users/{id}", "Users@show")
            api.post("/users", "Users@store", middleware="throttle")

        routes.group("/api", {"middleware": ["auth"]}, api)
"""

import contextlib
import re
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, TypeAlias

from perch.errors import ConfigurationError
from perch.routing.route import HandlerRef, Method, RouteEntry

_SLASHES = re.compile(r"/{2,}")

# A single identifier, a list of them, or nothing
MiddlewareSpec: TypeAlias = str | Sequence[str] | None

# A group's options: middleware shorthand or {"middleware": ...}
GroupOptions: TypeAlias = MiddlewareSpec | Mapping[str, Any]


def _middleware_list(spec: MiddlewareSpec) -> tuple[str, ...]:
    if spec is None or spec == "":
        return ()
    if isinstance(spec, str):
        return (spec,)
    return tuple(spec)


@dataclass(frozen=True, slots=True)
class GroupContext:
    """The prefix and middleware in effect for routes being declared.

    ``prefix`` is empty at the root and otherwise always ends in ``/``.
    """

    prefix: str = ""
    middleware: tuple[str, ...] = ()

    def nested(self, prefix: str, middleware: Sequence[str] = ()) -> "GroupContext":
        """Derive the context for a group declared inside this one."""
        joined = _SLASHES.sub("/", f"{self.prefix}/{prefix.strip('/')}")
        return GroupContext(
            prefix=joined.rstrip("/") + "/",
            middleware=(*self.middleware, *middleware),
        )


class _Table:
    """Route storage shared by a registry and all of its group children."""

    __slots__ = ("frozen", "routes")

    def __init__(self) -> None:
        self.routes: list[RouteEntry] = []
        self.frozen = False


class RouteRegistry:
    """Append-only list of routes plus the active group context.

    Built fresh for every request: route declarations run against a new
    registry, the dispatcher freezes it, and it is discarded once the
    response is out.
    """

    __slots__ = ("_context", "_table")

    def __init__(self) -> None:
        self._table = _Table()
        self._context = GroupContext()

    @classmethod
    def _child(cls, table: _Table, context: GroupContext) -> "RouteRegistry":
        child = cls.__new__(cls)
        child._table = table
        child._context = context
        return child

    # -- Introspection --

    @property
    def context(self) -> GroupContext:
        return self._context

    @property
    def routes(self) -> tuple[RouteEntry, ...]:
        """All registered routes in registration order."""
        return tuple(self._table.routes)

    @property
    def frozen(self) -> bool:
        return self._table.frozen

    def __len__(self) -> int:
        return len(self._table.routes)

    def __iter__(self) -> Iterator[RouteEntry]:
        return iter(tuple(self._table.routes))

    # -- Declaration --

    def add_route(
        self,
        method: str | Method,
        path: str,
        handler: HandlerRef,
        middleware: MiddlewareSpec = None,
    ) -> None:
        """Register one route under the active prefix and group middleware.

        Group middleware always runs before the route's own middleware.
        """
        if self._table.frozen:
            msg = f"Cannot add route {method} {path!r}: the registry is frozen for dispatch."
            raise ConfigurationError(msg)
        if not (callable(handler) or isinstance(handler, str)):
            msg = f"Handler for {path!r} must be a callable or a 'Name@method' string."
            raise ConfigurationError(msg)

        self._table.routes.append(
            RouteEntry(
                method=Method.parse(method),
                path=self._context.prefix + path.lstrip("/"),
                handler=handler,
                middleware=(*self._context.middleware, *_middleware_list(middleware)),
            )
        )

    def get(self, path: str, handler: HandlerRef, middleware: MiddlewareSpec = None) -> None:
        self.add_route(Method.GET, path, handler, middleware)

    def post(self, path: str, handler: HandlerRef, middleware: MiddlewareSpec = None) -> None:
        self.add_route(Method.POST, path, handler, middleware)

    def put(self, path: str, handler: HandlerRef, middleware: MiddlewareSpec = None) -> None:
        self.add_route(Method.PUT, path, handler, middleware)

    def patch(self, path: str, handler: HandlerRef, middleware: MiddlewareSpec = None) -> None:
        self.add_route(Method.PATCH, path, handler, middleware)

    def delete(self, path: str, handler: HandlerRef, middleware: MiddlewareSpec = None) -> None:
        self.add_route(Method.DELETE, path, handler, middleware)

    def options(self, path: str, handler: HandlerRef, middleware: MiddlewareSpec = None) -> None:
        self.add_route(Method.OPTIONS, path, handler, middleware)

    def any(self, path: str, handler: HandlerRef, middleware: MiddlewareSpec = None) -> None:
        self.add_route(Method.ANY, path, handler, middleware)

    # -- Groups --

    def group(
        self,
        prefix: str,
        options: "GroupOptions | Callable[[RouteRegistry], Any]" = None,
        body: "Callable[[RouteRegistry], Any] | None" = None,
    ) -> None:
        """Declare routes under *prefix* with extra group middleware.

        *options* may name one middleware, a list of them, a mapping with
        a ``"middleware"`` key, or be omitted. ``group(prefix, body)`` is
        accepted as a short form. *body* is called synchronously with the
        child registry.
        """
        if body is None and callable(options):
            body, options = options, None
        if body is None:
            msg = f"group({prefix!r}) needs a body to declare its routes."
            raise ConfigurationError(msg)

        if isinstance(options, Mapping):
            spec = options.get("middleware")
        else:
            spec = options
        child = self._child(
            self._table, self._context.nested(prefix, _middleware_list(spec))
        )
        body(child)

    @contextlib.contextmanager
    def scope(self, prefix: str, middleware: MiddlewareSpec = None) -> Iterator["RouteRegistry"]:
        """Context-manager form of ``group``::

            with routes.scope("/admin", middleware="auth") as admin:
                admin.get("/stats", stats)
        """
        yield self._child(self._table, self._context.nested(prefix, _middleware_list(middleware)))

    # -- Lifecycle --

    def freeze(self) -> None:
        """Stop accepting routes. Called once dispatch begins."""
        self._table.frozen = True

    def clear(self) -> None:
        """Drop every route and reset to the root context."""
        self._table.routes.clear()
        self._table.frozen = False
        self._context = GroupContext()
