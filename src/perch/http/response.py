"""HTTP response and the per-request responder.

``Response`` is an immutable value with a chainable ``.with_*()`` API.
``Responder`` is the single place a response gets emitted for a
request: it builds the standard JSON envelopes and guarantees that at
most one response is sent, whatever calls it afterwards.
"""

import json as json_module
import logging
import math
import traceback
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from perch.config import AppConfig
from perch.errors import HTTPError, ValidationError

logger = logging.getLogger("perch.response")

JSON_CONTENT_TYPE = "application/json; charset=utf-8"
CORS_METHODS = "GET, POST, PUT, PATCH, DELETE, OPTIONS"
CORS_HEADERS = "Content-Type, Authorization, X-Requested-With"


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations."""

    body: str | bytes = b""
    status: int = 200
    content_type: str = JSON_CONTENT_TYPE
    headers: tuple[tuple[str, str], ...] = ()

    # -- Chainable transformations --

    def with_status(self, status: int) -> "Response":
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> "Response":
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> "Response":
        """Return a new Response with additional headers."""
        return replace(self, headers=(*self.headers, *headers.items()))

    # -- Body access --

    @property
    def body_bytes(self) -> bytes:
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        return self.body_bytes.decode("utf-8")

    def json(self) -> Any:
        """Parse the body as JSON."""
        return json_module.loads(self.body_bytes)

    def header(self, name: str) -> str | None:
        """First value of header *name* (case-insensitive), or None."""
        name = name.lower()
        for key, value in self.headers:
            if key.lower() == name:
                return value
        return None


# Sent when a request finished without anything being emitted
EMPTY_RESPONSE = Response(content_type="text/plain; charset=utf-8")


def _timestamp() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def _status_of(exc: BaseException) -> int:
    if isinstance(exc, HTTPError) and 100 <= exc.status < 600:
        return exc.status
    return 500


class Responder:
    """Per-request response sink.

    Every method that emits a response is a no-op once a response has
    been sent. The first emitted response is available as ``response``.

    Usage (inside a handler or middleware)::

        from perch.context import get_responder

        get_responder().error("Unauthorized", 401)
    """

    __slots__ = ("_response", "config")

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self._response: Response | None = None

    @property
    def sent(self) -> bool:
        return self._response is not None

    @property
    def response(self) -> Response | None:
        return self._response

    # -- Emitters --

    def send(self, response: Response) -> Response | None:
        """Emit *response* as-is (plus standard headers).

        Returns the emitted response, or None if one was already sent.
        """
        if self._response is not None:
            logger.debug("Response already sent; dropping %d response", response.status)
            return None
        self._response = self._finish(response)
        if response.status >= 500:
            logger.error("ERROR %d: %s", response.status, _message_of(response))
        return self._response

    def json(
        self,
        data: Any = None,
        status: int = 200,
        message: str = "Success",
        meta: Mapping[str, Any] | None = None,
    ) -> Response | None:
        """Emit the standard success envelope."""
        payload: dict[str, Any] = {
            "status": "success" if status < 400 else "error",
            "message": message,
            "data": [] if data is None else data,
            "timestamp": _timestamp(),
        }
        if meta:
            payload["meta"] = dict(meta)
        return self._send_payload(payload, status)

    def error(
        self,
        message: str,
        status: int = 400,
        errors: Mapping[str, Any] | None = None,
        headers: tuple[tuple[str, str], ...] = (),
    ) -> Response | None:
        """Emit the standard error envelope.

        In development, server errors also carry the current call stack.
        """
        payload: dict[str, Any] = {
            "status": "error",
            "message": message,
            "timestamp": _timestamp(),
        }
        if errors:
            payload["errors"] = dict(errors)
        if self.config.debug and status >= 500:
            payload["trace"] = [line.rstrip() for line in traceback.format_stack()[:-1]]
        return self._send_payload(payload, status, headers)

    def paginate(self, data: list[Any], total: int, page: int, per_page: int) -> Response | None:
        """Emit a success envelope with pagination metadata."""
        meta = {
            "pagination": {
                "total": total,
                "per_page": per_page,
                "current_page": page,
                "last_page": math.ceil(total / per_page) if per_page else 0,
                "from": (page - 1) * per_page + 1,
                "to": min(page * per_page, total),
            }
        }
        return self.json(data, 200, "Success", meta)

    def report_error(self, message: str, status: int) -> Response | None:
        return self.error(message, status)

    def not_found(self, message: str = "Route not found") -> Response | None:
        return self.error(message, 404)

    def handle_exception(self, exc: BaseException) -> Response | None:
        """Emit the error envelope for an uncaught exception.

        ``HTTPError`` keeps its status and detail. Anything else is a 500
        whose detail is only exposed in development.
        """
        status = _status_of(exc)
        if isinstance(exc, HTTPError):
            errors = exc.errors if isinstance(exc, ValidationError) else None
            return self.error(exc.detail or f"Error {exc.status}", status, errors, exc.headers)

        if self.config.debug:
            frames = traceback.extract_tb(exc.__traceback__)
            last = frames[-1] if frames else None
            payload: dict[str, Any] = {
                "status": "error",
                "message": str(exc) or type(exc).__name__,
                "exception": type(exc).__name__,
                "file": last.filename if last else None,
                "line": last.lineno if last else None,
                "trace": [line.rstrip() for line in traceback.format_exception(exc)],
                "timestamp": _timestamp(),
            }
        else:
            payload = {
                "status": "error",
                "message": "Internal Server Error",
                "timestamp": _timestamp(),
            }
        return self._send_payload(payload, status)

    def send_result(self, result: Any) -> Response | None:
        """Emit a handler's return value if nothing was sent yet.

        ``None`` means the handler responded itself (or chose not to).
        A ``Response`` goes out as-is; anything else is wrapped in the
        success envelope.
        """
        if result is None or self.sent:
            return None
        if isinstance(result, Response):
            return self.send(result)
        return self.json(result)

    # -- Internal --

    def _send_payload(
        self,
        payload: dict[str, Any],
        status: int,
        headers: tuple[tuple[str, str], ...] = (),
    ) -> Response | None:
        if self._response is not None:
            logger.debug("Response already sent; dropping %d envelope", status)
            return None
        indent = 4 if self.config.indent_json else None
        body = json_module.dumps(payload, ensure_ascii=False, indent=indent, default=str)
        return self.send(Response(body=body, status=status, headers=headers))

    def final_response(self) -> Response:
        """The response to put on the wire for this request.

        The sent response if there is one, otherwise an empty 200 with the
        same standard headers every other response carries.
        """
        if self._response is not None:
            return self._response
        return self._finish(EMPTY_RESPONSE)

    def _finish(self, response: Response) -> Response:
        extra = {
            "X-Content-Type-Options": "nosniff",
            "X-Frame-Options": "DENY",
        }
        if self.config.app_url:
            extra["Access-Control-Allow-Origin"] = self.config.app_url
            extra["Access-Control-Allow-Methods"] = CORS_METHODS
            extra["Access-Control-Allow-Headers"] = CORS_HEADERS
        present = {name.lower() for name, _ in response.headers}
        missing = {k: v for k, v in extra.items() if k.lower() not in present}
        return response.with_headers(missing)


def _message_of(response: Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return "Unknown"
    if isinstance(data, dict):
        return str(data.get("message", "Unknown"))
    return "Unknown"
