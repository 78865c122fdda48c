"""ASGI handler — translates ASGI scope/messages to perch types.

The only component that touches raw ASGI HTTP messages. Reads the whole
body, builds an immutable Request, runs the synchronous dispatch cycle
in a worker thread, and sends the Response back through ASGI send().
"""

import logging
from collections.abc import Callable

import anyio.to_thread

from perch._internal.asgi import Receive, Scope, Send
from perch.config import AppConfig
from perch.errors import HTTPError
from perch.http.request import Request
from perch.http.response import Responder, Response
from perch.server.sender import send_response

logger = logging.getLogger("perch.server")


class PayloadTooLarge(HTTPError):  # noqa: N818
    """413 — request body exceeds the configured limit."""

    def __init__(self, limit: int) -> None:
        super().__init__(status=413, detail=f"Request body exceeds {limit} bytes")


async def read_body(receive: Receive, limit: int | None = None) -> bytes:
    """Collect the request body from ``http.request`` messages."""
    chunks: list[bytes] = []
    size = 0
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            break
        chunk = message.get("body", b"")
        if chunk:
            size += len(chunk)
            if limit is not None and size > limit:
                raise PayloadTooLarge(limit)
            chunks.append(chunk)
        if not message.get("more_body", False):
            break
    return b"".join(chunks)


def _error_response(config: AppConfig, exc: Exception) -> Response:
    responder = Responder(config)
    responder.handle_exception(exc)
    return responder.final_response()


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    dispatch: Callable[[Request], Response],
    config: AppConfig,
    max_body_size: int | None = None,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    try:
        body = await read_body(receive, max_body_size)
        request = Request.from_asgi(scope, body)
        response = await anyio.to_thread.run_sync(dispatch, request)
    except HTTPError as exc:
        logger.debug("%d %s %s: %s", exc.status, scope.get("method"), scope.get("path"), exc.detail)
        response = _error_response(config, exc)
    except Exception as exc:
        logger.exception("500 %s %s", scope.get("method"), scope.get("path"))
        response = _error_response(config, exc)

    await send_response(response, send)
