"""RouteEntry, RouteMatch, and the Method enum."""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, TypeAlias

from perch.errors import ConfigurationError, HTTPError
from perch.handlers import HandlerRegistry
from perch.http.request import Request
from perch.http.response import Responder
from perch.middleware.chain import ChainState, MiddlewareChain
from perch.middleware.registry import MiddlewareRegistry
from perch.routing.pattern import CompiledPath, compile_path

logger = logging.getLogger("perch.dispatch")

_SLASHES = re.compile(r"/{2,}")

# A handler is an inline callable or a "Name@method" reference
HandlerRef: TypeAlias = Callable[..., Any] | str


class Method(StrEnum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"
    ANY = "ANY"

    @classmethod
    def parse(cls, value: "str | Method") -> "Method":
        try:
            return cls(value.upper())
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            msg = f"Unsupported HTTP method {value!r}; expected one of: {allowed}"
            raise ConfigurationError(msg) from None


def normalize_path(path: str) -> str:
    """Absolute, no trailing slash, no runs of slashes. ``""`` becomes ``"/"``."""
    return "/" + _SLASHES.sub("/", path).strip("/")


def request_path(uri: str) -> str:
    """The path portion of *uri* with its ends trimmed to a single leading ``/``.

    Inner runs of slashes are kept, so ``/api//users`` does not match a
    ``/api/users`` template.
    """
    return "/" + uri.partition("?")[0].partition("#")[0].strip("/")


@dataclass(frozen=True, slots=True)
class RouteEntry:
    """A registered route.

    ``path`` is normalized at construction and its compiled pattern is
    taken from the process-wide template cache. The handler is not
    resolved until ``execute``.
    """

    method: Method
    path: str
    handler: HandlerRef
    middleware: tuple[str, ...] = ()
    compiled: CompiledPath = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", Method.parse(self.method))
        object.__setattr__(self, "path", normalize_path(self.path))
        object.__setattr__(self, "middleware", tuple(self.middleware))
        object.__setattr__(self, "compiled", compile_path(self.path))

    @property
    def handler_name(self) -> str:
        if isinstance(self.handler, str):
            return self.handler
        return getattr(self.handler, "__qualname__", repr(self.handler))

    def match(self, method: str, uri: str) -> "RouteMatch | None":
        """Match an inbound method and URI.

        The query string is ignored. Returns the captured parameters as
        a ``RouteMatch`` or None.
        """
        if self.method is not Method.ANY and self.method != method.upper():
            return None
        matched, params = self.compiled.test(request_path(uri))
        if not matched:
            return None
        return RouteMatch(entry=self, params=params)

    def execute(
        self,
        request: Request,
        params: tuple[str, ...],
        *,
        middleware: MiddlewareRegistry,
        handlers: HandlerRegistry,
        responder: Responder,
    ) -> ChainState:
        """Run the middleware chain, then the handler, for one request.

        Never raises: any failure is logged and reported through
        *responder*. Returns the final chain state.
        """
        request = request.with_path_params(dict(zip(self.compiled.param_names, params)))
        chain = MiddlewareChain(self.middleware, middleware)
        try:
            if not chain.run(request):
                logger.debug(
                    "Chain halted at %r for %s %s",
                    chain.identifiers[chain.position],
                    request.method,
                    request.path,
                )
                return chain.state

            handler = self.handler
            if isinstance(handler, str):
                handler = handlers.resolve(handler)
            result = handler(request, *params)
            responder.send_result(result)
        except HTTPError as exc:
            chain.fail()
            logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)
            responder.handle_exception(exc)
            return chain.state
        except Exception as exc:
            chain.fail()
            logger.exception("Route execute error: %s", exc)
            responder.handle_exception(exc)
            return chain.state

        chain.finish()
        return chain.state


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful match: the entry and its captured params."""

    entry: RouteEntry
    params: tuple[str, ...]

    @property
    def path_params(self) -> dict[str, str]:
        return dict(zip(self.entry.compiled.param_names, self.params))
