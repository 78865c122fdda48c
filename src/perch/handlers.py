"""Handler reference resolution.

Routes may name their handler as ``"Name@method"`` instead of passing a
callable. ``Name`` is looked up in a ``HandlerRegistry`` populated at
startup; the lookup happens at dispatch time, so the target only has to
be registered by the time a request reaches it.

A bare ``"Name"`` resolves to the target's ``handle`` method.
"""

import inspect
from collections.abc import Callable, Iterator
from typing import Any

from perch.errors import HandlerResolutionError

DEFAULT_METHOD = "handle"


def split_reference(reference: str) -> tuple[str, str]:
    """Split ``"Name@method"`` into ``("Name", "method")``."""
    name, sep, method = reference.partition("@")
    if not name or (sep and not method):
        msg = f"Invalid handler reference {reference!r}; expected 'Name@method'"
        raise HandlerResolutionError(msg)
    return name, method or DEFAULT_METHOD


class HandlerRegistry:
    """Map of handler names to controller classes or objects.

    Classes are instantiated with no arguments on every resolution, so
    each request gets a fresh controller. Any other value is used as-is.

    Usage::

        handlers = HandlerRegistry()

        @handlers.controller("Users")
        class UserController:
            def show(self, request, user_id): ...

        handlers.resolve("Users@show")  # bound method
    """

    __slots__ = ("_entries",)

    def __init__(self) -> None:
        self._entries: dict[str, Any] = {}

    def register(self, name: str, target: Any) -> None:
        self._entries[name] = target

    def controller(self, name: str | None = None) -> Callable[[Any], Any]:
        """Register a controller via decorator (defaults to its ``__name__``)."""

        def decorator(target: Any) -> Any:
            self.register(name or target.__name__, target)
            return target

        return decorator

    def resolve(self, reference: str) -> Callable[..., Any]:
        """Resolve *reference* to a callable.

        Raises ``HandlerResolutionError`` if the name is unknown, the
        controller cannot be constructed, or the method does not exist.
        """
        name, method = split_reference(reference)
        try:
            target = self._entries[name]
        except KeyError:
            msg = f"Controller {name!r} not found"
            raise HandlerResolutionError(msg) from None

        if inspect.isclass(target):
            try:
                target = target()
            except Exception as exc:
                msg = f"Controller {name!r} could not be constructed: {exc}"
                raise HandlerResolutionError(msg) from exc

        bound = getattr(target, method, None)
        if method.startswith("_") or not callable(bound):
            msg = f"Method {method!r} not found in controller {name!r}"
            raise HandlerResolutionError(msg)
        return bound

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
