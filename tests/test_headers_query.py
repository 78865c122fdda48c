"""Tests for perch.http.headers and perch.http.query."""

from perch.http.headers import Headers
from perch.http.query import QueryParams


class TestHeaders:
    def test_case_insensitive(self) -> None:
        headers = Headers(((b"content-type", b"application/json"),))
        assert headers["Content-Type"] == "application/json"
        assert "CONTENT-TYPE" in headers
        assert headers.get("x-missing") is None

    def test_multiple_values(self) -> None:
        headers = Headers(((b"accept", b"text/html"), (b"accept", b"application/json")))
        assert headers["accept"] == "text/html"
        assert headers.get_list("Accept") == ["text/html", "application/json"]
        assert len(headers) == 1

    def test_from_mapping(self) -> None:
        headers = Headers.from_mapping({"X-Request-Id": "abc"})
        assert headers["x-request-id"] == "abc"
        assert headers.raw == ((b"x-request-id", b"abc"),)
        assert len(Headers.from_mapping(None)) == 0


class TestQueryParams:
    def test_parse_bytes_and_str(self) -> None:
        assert QueryParams(b"a=1&b=2")["b"] == "2"
        assert QueryParams("a=1&a=2").get_list("a") == ["1", "2"]

    def test_blank_values_kept(self) -> None:
        params = QueryParams("flag=&x=1")
        assert params["flag"] == ""
        assert list(params) == ["flag", "x"]

    def test_get_int(self) -> None:
        params = QueryParams("page=3&size=big")
        assert params.get_int("page") == 3
        assert params.get_int("size", 10) == 10
        assert params.get_int("missing") is None

    def test_raw(self) -> None:
        assert QueryParams("q=perch").raw == b"q=perch"
