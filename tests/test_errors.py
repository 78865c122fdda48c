"""Tests for perch.errors — the exception hierarchy."""

import pytest

from perch.errors import (
    BadRequest,
    ConfigurationError,
    Forbidden,
    HandlerResolutionError,
    HTTPError,
    MiddlewareConfigError,
    NotFound,
    PerchError,
    Unauthorized,
    ValidationError,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "cls",
        [ConfigurationError, MiddlewareConfigError, HandlerResolutionError, HTTPError],
    )
    def test_everything_is_a_perch_error(self, cls: type[Exception]) -> None:
        assert issubclass(cls, PerchError)

    @pytest.mark.parametrize(
        ("cls", "status", "detail"),
        [
            (NotFound, 404, "Route not found"),
            (BadRequest, 400, "Bad Request"),
            (Unauthorized, 401, "Unauthorized"),
            (Forbidden, 403, "Forbidden"),
        ],
    )
    def test_status_shortcuts(self, cls: type[HTTPError], status: int, detail: str) -> None:
        exc = cls()
        assert exc.status == status
        assert exc.detail == detail
        assert isinstance(exc, HTTPError)


class TestHTTPError:
    def test_str(self) -> None:
        assert str(HTTPError(status=418, detail="teapot")) == "418: teapot"
        assert str(HTTPError(status=500)) == "500"

    def test_is_raisable(self) -> None:
        with pytest.raises(HTTPError) as exc_info:
            raise HTTPError(status=409, detail="Conflict", headers=(("Retry-After", "5"),))
        assert exc_info.value.headers == (("Retry-After", "5"),)


class TestValidationError:
    def test_fields(self) -> None:
        exc = ValidationError({"email": "required"})
        assert exc.status == 422
        assert exc.detail == "Validation failed"
        assert exc.errors == {"email": "required"}

    def test_custom_detail(self) -> None:
        assert ValidationError({}, detail="Check the form").detail == "Check the form"
