"""Middleware registry — identifier to middleware.

Routes name their middleware by string. The registry is filled at
startup and looked up per request, when the chain reaches each stage.
"""

import inspect
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any

from perch.errors import MiddlewareConfigError
from perch.http.request import Request
from perch.middleware.protocol import Middleware, Proceed


@dataclass(frozen=True, slots=True)
class FunctionMiddleware:
    """Adapts a ``(request, proceed)`` function to the ``handle`` capability."""

    func: Callable[[Request, Proceed], Any]

    def handle(self, request: Request, proceed: Proceed) -> None:
        self.func(request, proceed)


class MiddlewareRegistry:
    """Map of middleware identifiers to middleware.

    Registered values may be:

    - a class: instantiated with no arguments each time it is resolved
    - an object with a ``handle`` method: used as-is
    - a plain ``(request, proceed)`` function: wrapped

    Usage::

        registry = MiddlewareRegistry()
        registry.register("auth", RequireToken)

        @registry.middleware("timing")
        def timing(request, proceed):
            proceed()
    """

    __slots__ = ("_entries",)

    def __init__(self) -> None:
        self._entries: dict[str, Any] = {}

    def register(self, name: str, target: Any) -> None:
        self._entries[name] = target

    def middleware(self, name: str) -> Callable[[Any], Any]:
        """Register a middleware class or function via decorator."""

        def decorator(target: Any) -> Any:
            self.register(name, target)
            return target

        return decorator

    def resolve(self, name: str) -> Middleware:
        """Return a middleware for *name*.

        Raises ``MiddlewareConfigError`` if *name* is unknown, a class
        cannot be constructed, or the value has no callable ``handle``.
        """
        try:
            target = self._entries[name]
        except KeyError:
            msg = f"Middleware {name!r} not found"
            raise MiddlewareConfigError(msg) from None

        if inspect.isclass(target):
            try:
                target = target()
            except Exception as exc:
                msg = f"Middleware {name!r} could not be constructed: {exc}"
                raise MiddlewareConfigError(msg) from exc

        if callable(getattr(target, "handle", None)):
            return target
        if inspect.isfunction(target) or inspect.ismethod(target):
            return FunctionMiddleware(target)

        msg = f"Middleware {name!r} must have a 'handle' method"
        raise MiddlewareConfigError(msg)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
