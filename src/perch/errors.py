"""Perch exception hierarchy.

Shared across the registry, dispatcher, middleware chain, and responder
so every module raises and catches the same types.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigurationError(PerchError):
    """Raised when routes or the app are declared incorrectly.

    Typically raised while route declarations run, e.g. adding a route
    to a registry that has already been frozen for dispatch.
    """


class MiddlewareConfigError(PerchError):
    """A middleware identifier does not resolve to a ``handle`` capability."""


class HandlerResolutionError(PerchError):
    """A ``"Name@method"`` handler reference cannot be resolved."""


@dataclass(frozen=True, slots=True)
class HTTPError(PerchError):
    """An error that maps directly to an HTTP status code.

    Raised by middleware or handlers. The route entry catches these and
    reports ``detail`` with ``status`` through the responder.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404 — no route matched the request."""

    def __init__(self, detail: str = "Route not found") -> None:
        super().__init__(status=404, detail=detail)


class BadRequest(HTTPError):  # noqa: N818
    """400 — the request could not be understood."""

    def __init__(self, detail: str = "Bad Request") -> None:
        super().__init__(status=400, detail=detail)


class Unauthorized(HTTPError):  # noqa: N818
    """401 — authentication required."""

    def __init__(self, detail: str = "Unauthorized") -> None:
        super().__init__(status=401, detail=detail)


class Forbidden(HTTPError):  # noqa: N818
    """403 — authenticated but not allowed."""

    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(status=403, detail=detail)


@dataclass(frozen=True, slots=True, init=False, eq=False)
class ValidationError(HTTPError):
    """422 — request input failed validation.

    ``errors`` maps field name to a human readable message and is
    included in the error envelope.
    """

    errors: Mapping[str, Any] = field(default_factory=dict)

    def __init__(self, errors: Mapping[str, Any], detail: str = "Validation failed") -> None:
        object.__setattr__(self, "status", 422)
        object.__setattr__(self, "detail", detail)
        object.__setattr__(self, "headers", ())
        object.__setattr__(self, "errors", dict(errors))
