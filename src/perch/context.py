"""Request-scoped context via ContextVar.

Provides:
- ``request_var``: The current ``Request`` for this dispatch.
- ``responder_var``: The ``Responder`` that owns this request's response.

Both are set by ``App.dispatch`` for the duration of one dispatch cycle
and reset afterwards. Outside a dispatch, the getters raise
``LookupError``.

Thread safety:
    ``ContextVar`` is thread-local, and each request is dispatched on its
    own worker thread. No locks needed.
"""

from contextvars import ContextVar

from perch.http.request import Request
from perch.http.response import Responder

request_var: ContextVar[Request] = ContextVar("perch_request")
"""The current request. Set before dispatch."""

responder_var: ContextVar[Responder] = ContextVar("perch_responder")
"""The current responder. Set before dispatch."""


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` if called outside a dispatch.
    """
    return request_var.get()


def get_responder() -> Responder:
    """Return the responder for the current request.

    Middleware that halts the chain uses this to emit its own response.
    Raises ``LookupError`` if called outside a dispatch.
    """
    return responder_var.get()
