"""Tests for perch.cli — app resolution, ``perch routes``, ``perch call``."""

import json
import sys
import types

import pytest

from perch.app import App
from perch.cli import main
from perch.cli._resolve import resolve_app
from perch.http.request import Request
from perch.routing.registry import RouteRegistry


def _build_app() -> App:
    app = App()

    @app.controller("Users")
    class Users:
        def show(self, request: Request, user_id: str) -> dict[str, str]:
            return {"id": user_id}

    @app.routes
    def web(routes: RouteRegistry) -> None:
        routes.get("/", lambda request: {"message": "Welcome"})
        routes.post("/echo", lambda request: request.json())
        routes.group("/api", "auth", lambda api: api.get("/users/{id}", "Users@show"))

    app.middleware("auth", lambda request, proceed: proceed())
    return app


@pytest.fixture
def _fake_app_module(monkeypatch: pytest.MonkeyPatch) -> None:
    """Register a fake module with a perch App on sys.modules."""
    mod = types.ModuleType("_fake_perch_app")
    mod.app = _build_app()  # type: ignore[attr-defined]
    mod.create_app = _build_app  # type: ignore[attr-defined]
    mod.empty = App()  # type: ignore[attr-defined]
    mod.not_an_app = "just a string"  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "_fake_perch_app", mod)


@pytest.mark.usefixtures("_fake_app_module")
class TestResolveApp:
    def test_default_attribute(self) -> None:
        assert isinstance(resolve_app("_fake_perch_app"), App)

    def test_factory_is_called(self) -> None:
        assert isinstance(resolve_app("_fake_perch_app:create_app"), App)

    def test_missing_module(self) -> None:
        with pytest.raises(ModuleNotFoundError):
            resolve_app("nonexistent_module_xyz:app")

    def test_missing_attribute(self) -> None:
        with pytest.raises(AttributeError):
            resolve_app("_fake_perch_app:does_not_exist")

    def test_not_an_app(self) -> None:
        with pytest.raises(TypeError, match="not a perch.App"):
            resolve_app("_fake_perch_app:not_an_app")


@pytest.mark.usefixtures("_fake_app_module")
class TestRoutesCommand:
    def test_lists_routes(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["routes", "_fake_perch_app:app"])
        out = capsys.readouterr().out
        lines = out.splitlines()
        assert lines[0].split() == ["METHOD", "PATH", "MIDDLEWARE", "HANDLER"]
        assert "/api/users/{id}" in out
        assert "Users@show" in out
        assert any(line.startswith("POST") and "/echo" in line for line in lines)

    def test_empty_app(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["routes", "_fake_perch_app:empty"])
        assert "No routes registered." in capsys.readouterr().out

    def test_bad_import(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["routes", "_fake_perch_app:not_an_app"])
        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().err


@pytest.mark.usefixtures("_fake_app_module")
class TestCallCommand:
    def test_get(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["call", "_fake_perch_app:app", "GET", "/api/users/5"])
        out = capsys.readouterr().out
        assert out.startswith("HTTP 200")
        body = out.split("\n\n", 1)[1]
        assert json.loads(body)["data"] == {"id": "5"}

    def test_post_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["call", "_fake_perch_app:app", "POST", "/echo", "--json", '{"a": 1}'])
        body = capsys.readouterr().out.split("\n\n", 1)[1]
        assert json.loads(body)["data"] == {"a": 1}

    def test_error_status_exits_nonzero(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["call", "_fake_perch_app:app", "GET", "/missing"])
        assert exc_info.value.code == 1
        assert "HTTP 404" in capsys.readouterr().out

    def test_malformed_header(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["call", "_fake_perch_app:app", "GET", "/", "-H", "no-colon"])
        assert exc_info.value.code == 2

    def test_invalid_json(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["call", "_fake_perch_app:app", "POST", "/echo", "--json", "{oops"])
        assert exc_info.value.code == 2


class TestMain:
    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0
        assert "perch" in capsys.readouterr().out
