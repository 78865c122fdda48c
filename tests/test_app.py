"""Tests for perch.app — declare-and-dispatch per request."""

import logging

import pytest

from perch import App, AppConfig, RouteRegistry
from perch.context import get_request, get_responder
from perch.errors import ConfigurationError, Unauthorized
from perch.http.request import Request
from perch.middleware import Proceed


def _app() -> App:
    app = App(AppConfig(env="test"))

    @app.middleware("auth")
    class RequireToken:
        def handle(self, request: Request, proceed: Proceed) -> None:
            if request.bearer_token() != "secret":
                get_responder().error("Unauthorized", 401)
                return
            proceed()

    @app.controller("Users")
    class UserController:
        def index(self, request: Request) -> list[dict[str, int]]:
            return [{"id": 1}, {"id": 2}]

        def show(self, request: Request, user_id: str) -> dict[str, str]:
            return {"id": user_id}

        def export(self, request: Request) -> dict[str, str]:
            return {"export": "csv"}

    @app.routes
    def web(routes: RouteRegistry) -> None:
        routes.get("/", lambda request: {"message": "Welcome"})

        def api(api: RouteRegistry) -> None:
            api.get("/users", "Users@index")
            api.get("/users/{id}", "Users@show")
            api.get("/users/export", "Users@export")

        routes.group("/api", {"middleware": "auth"}, api)

    return app


AUTH = {"Authorization": "Bearer secret"}


class TestDispatch:
    def test_inline_handler(self) -> None:
        response = _app().request("GET", "/")
        assert response.status == 200
        assert response.json()["data"] == {"message": "Welcome"}

    def test_group_middleware_allows(self) -> None:
        response = _app().request("GET", "/api/users", headers=AUTH)
        assert response.json()["data"] == [{"id": 1}, {"id": 2}]

    def test_group_middleware_halts(self) -> None:
        response = _app().request("GET", "/api/users")
        assert response.status == 401
        assert response.json()["message"] == "Unauthorized"

    def test_specific_route_wins(self) -> None:
        app = _app()
        assert app.request("GET", "/api/users/export", headers=AUTH).json()["data"] == {
            "export": "csv"
        }
        assert app.request("GET", "/api/users/42", headers=AUTH).json()["data"] == {"id": "42"}

    def test_not_found(self) -> None:
        response = _app().request("GET", "/nowhere")
        assert response.status == 404
        assert response.json()["message"] == "Route not found"

    def test_registry_rebuilt_per_request(self) -> None:
        app = App()
        calls: list[int] = []

        @app.routes
        def count(routes: RouteRegistry) -> None:
            calls.append(len(routes))
            routes.get("/", lambda request: None)

        app.request("GET", "/")
        app.request("GET", "/")
        assert calls == [0, 0]

    def test_context_available_during_dispatch(self) -> None:
        app = App()
        seen: list[str] = []

        @app.routes
        def declare(routes: RouteRegistry) -> None:
            routes.get("/ctx", lambda request: seen.append(get_request().path))

        app.request("GET", "/ctx")
        assert seen == ["/ctx"]
        with pytest.raises(LookupError):
            get_request()

    def test_http_error_from_handler(self) -> None:
        app = App()

        def guarded(request: Request) -> None:
            raise Unauthorized("Token expired")

        app.routes(lambda routes: routes.get("/", guarded))
        response = app.request("GET", "/")
        assert response.status == 401
        assert response.json()["message"] == "Token expired"

    def test_direct_registration(self) -> None:
        app = App()

        class Ping:
            def handle(self, request: Request) -> dict[str, bool]:
                return {"pong": True}

        app.controller("Ping", Ping)
        app.middleware("pass", lambda request, proceed: proceed())
        app.routes(lambda routes: routes.get("/ping", "Ping", middleware="pass"))
        assert app.request("GET", "/ping").json()["data"] == {"pong": True}
        assert "pass" in app.middleware_registry
        assert "Ping" in app.handler_registry


class TestDeclarationFailure:
    def test_broken_declaration_is_500(self, caplog: pytest.LogCaptureFixture) -> None:
        app = App()

        @app.routes
        def broken(routes: RouteRegistry) -> None:
            routes.add_route("TRACE", "/", lambda request: None)

        with caplog.at_level(logging.ERROR, logger="perch"):
            response = app.request("GET", "/")
        assert response.status == 500
        assert any("Route declaration failed" in r.getMessage() for r in caplog.records)

    def test_check_surfaces_errors(self) -> None:
        app = App()
        app.routes(lambda routes: routes.group("/api", "auth"))
        with pytest.raises(ConfigurationError):
            app.check()

    def test_check_returns_frozen_registry(self) -> None:
        registry = _app().check()
        assert registry.frozen is True
        assert [r.path for r in registry] == ["/", "/api/users", "/api/users/{id}", "/api/users/export"]


class TestMiddlewareOrdering:
    @staticmethod
    def _app(halt_at: str | None) -> tuple[App, list[str]]:
        app = App(AppConfig(env="test"))
        calls: list[str] = []

        def stage(name: str):
            def middleware(request: Request, proceed: Proceed) -> None:
                calls.append(name)
                if name == halt_at:
                    get_responder().error(f"Stopped by {name}", 403)
                    return
                proceed()

            return middleware

        for name in ("A", "B", "C"):
            app.middleware(name, stage(name))

        def handler(request: Request) -> dict[str, bool]:
            calls.append("handler")
            return {"reached": True}

        @app.routes
        def web(routes: RouteRegistry) -> None:
            routes.group(
                "/api",
                {"middleware": ["A", "B"]},
                lambda api: api.get("/report", handler, middleware="C"),
            )

        return app, calls

    def test_group_then_route_middleware(self) -> None:
        app, calls = self._app(halt_at=None)
        response = app.request("GET", "/api/report")
        assert calls == ["A", "B", "C", "handler"]
        assert response.json()["data"] == {"reached": True}

    def test_halt_in_group_middleware(self) -> None:
        app, calls = self._app(halt_at="B")
        response = app.request("GET", "/api/report")
        assert calls == ["A", "B"]
        assert response.status == 403
        assert response.json() == {
            "status": "error",
            "message": "Stopped by B",
            "timestamp": response.json()["timestamp"],
        }
