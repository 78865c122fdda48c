"""Middleware — ``handle(request, proceed)`` objects resolved by identifier.

A middleware is any object with a ``handle`` method:
    def handle(self, request: Request, proceed: Proceed) -> None

Calling ``proceed()`` lets the chain continue; returning without calling
it halts the chain before the route handler.
"""

from perch.middleware.chain import ChainState, MiddlewareChain
from perch.middleware.protocol import Middleware, Proceed
from perch.middleware.registry import FunctionMiddleware, MiddlewareRegistry

__all__ = [
    "ChainState",
    "FunctionMiddleware",
    "Middleware",
    "MiddlewareChain",
    "MiddlewareRegistry",
    "Proceed",
]
