"""Middleware protocol and Proceed type alias.

A middleware is any object with a ``handle`` method::

    class RequireToken:
        def handle(self, request: Request, proceed: Proceed) -> None:
            if request.bearer_token() is None:
                get_responder().error("Unauthorized", 401)
                return
            proceed()

Calling ``proceed()`` lets the chain continue once ``handle`` returns.
Returning without calling it halts the chain: later middleware and the
route handler never run, and the middleware is expected to have sent
its own response.

Plain functions with the same ``(request, proceed)`` signature are
accepted by the registry and adapted.
"""

from collections.abc import Callable
from typing import Protocol, TypeAlias, runtime_checkable

from perch.http.request import Request

# The continuation handed to each middleware
Proceed: TypeAlias = Callable[[], None]


@runtime_checkable
class Middleware(Protocol):
    """Protocol for perch middleware."""

    def handle(self, request: Request, proceed: Proceed) -> None: ...
