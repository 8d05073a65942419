"""Tests for switchyard.app — registration, groups, dispatch, and error handling."""

import logging
import threading

import pytest

from switchyard.app import App
from switchyard.config import AppConfig
from switchyard.container import FOUND_HANDLER
from switchyard.errors import ConfigurationError, HTTPError
from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.invocation.capture import OutputCapture
from switchyard.invocation.strategies import RequestResponseArgs
from switchyard.testing import SegmentMatcher, TestClient


def _app(**config) -> App:
    return App(AppConfig(**config), matcher=SegmentMatcher())


def _tracer(label: str, log: list[str]):
    def middleware(request, response, next):
        log.append(label)
        return next(request, response)

    return middleware


class TestAppRegistration:
    def test_route_decorator(self) -> None:
        app = _app()

        @app.route("/")
        def index(request, response, args):
            return "hello"

        assert len(app.routes) == 1
        assert app.routes[0].methods == frozenset({"GET"})
        assert app.routes[0].pattern == "/"

    def test_route_decorator_returns_function(self) -> None:
        app = _app()

        def index(request, response, args):
            return "hello"

        assert app.route("/")(index) is index

    def test_route_options(self) -> None:
        app = _app()

        @app.route("/users", methods=["GET", "POST"], name="users", output_capture="prepend")
        def users(request, response, args):
            return "users"

        route = app.named_route("users")
        assert route.methods == frozenset({"GET", "POST"})
        assert route.output_capture is OutputCapture.PREPEND

    def test_method_shortcuts(self) -> None:
        app = _app()
        handler = lambda req, res, args: None  # noqa: E731
        assert app.get("/", handler).methods == frozenset({"GET"})
        assert app.post("/", handler).methods == frozenset({"POST"})
        assert app.put("/", handler).methods == frozenset({"PUT"})
        assert app.patch("/", handler).methods == frozenset({"PATCH"})
        assert app.delete("/", handler).methods == frozenset({"DELETE"})
        assert app.options("/", handler).methods == frozenset({"OPTIONS"})
        assert "DELETE" in app.any("/", handler).methods

    def test_routes_take_app_capture_default(self) -> None:
        app = _app(output_capture="disabled")
        route = app.get("/", lambda req, res, args: None)
        assert route.output_capture is OutputCapture.DISABLED

    def test_error_decorator(self) -> None:
        app = _app()

        @app.error(404)
        def not_found():
            return "Not found"

        assert app._error_handlers[404] is not_found

    def test_named_route_missing(self) -> None:
        with pytest.raises(LookupError):
            _app().named_route("nope")


class TestGroups:
    def test_group_prefixes_routes(self) -> None:
        app = _app()

        def api(app: App) -> None:
            app.get("/users", lambda req, res, args: "users")

        group = app.group("/api", api)
        assert group.pattern == "/api"
        assert app.routes[0].pattern == "/api/users"
        assert app.routes[0].groups == (group,)

    def test_nested_groups(self) -> None:
        app = _app()

        def v1(app: App) -> None:
            app.get("/items/{id}", lambda req, res, args: f"item {args['id']}")

        def api(app: App) -> None:
            app.group("/v1", v1)

        app.group("/api", api)

        with TestClient(app) as client:
            assert client.get("/api/v1/items/5").text == "item 5"

    def test_group_closed_after_definition_error(self) -> None:
        app = _app()

        def broken(app: App) -> None:
            raise RuntimeError("bad group")

        with pytest.raises(RuntimeError, match="bad group"):
            app.group("/broken", broken)

        assert app.get("/ok", lambda req, res, args: None).pattern == "/ok"

    def test_middleware_order_through_app(self) -> None:
        log: list[str] = []
        app = _app()

        def inner(app: App) -> None:
            route = app.get("/x", lambda req, res, args: log.append("handler"))
            route.add(_tracer("route", log))

        def outer(app: App) -> None:
            app.group("/inner", inner).add(_tracer("inner", log))

        app.group("/outer", outer).add(_tracer("outer", log))
        app.add_middleware(_tracer("app1", log))
        app.add_middleware(_tracer("app2", log))

        with TestClient(app) as client:
            assert client.get("/outer/inner/x").status == 200

        assert log == ["app1", "app2", "outer", "inner", "route", "handler"]


class TestDispatch:
    def test_handler_arguments(self) -> None:
        app = _app()
        app.get("/users/{id}", lambda req, res, args: f"user {args['id']}")

        with TestClient(app) as client:
            response = client.get("/users/42")

        assert response.status == 200
        assert response.text == "user 42"

    def test_route_defaults_fill_missing_arguments(self) -> None:
        app = _app()
        app.get("/feed", lambda req, res, args: args["format"]).set_argument("format", "rss")

        with TestClient(app) as client:
            assert client.get("/feed").text == "rss"

    def test_output_capture_end_to_end(self) -> None:
        app = _app()

        @app.route("/hello/{name}")
        def hello(request, response, args):
            print("Hello, ", end="")
            return args["name"]

        @app.route("/greet/{name}", output_capture="prepend")
        def greet(request, response, args):
            print("Hello, ", end="")
            return args["name"]

        with TestClient(app) as client:
            assert client.get("/hello/world").text == "worldHello, "
            assert client.get("/greet/world").text == "Hello, world"

    def test_handler_response_object(self) -> None:
        app = _app()
        app.post("/items", lambda req, res, args: Response("created").with_status(201))

        with TestClient(app) as client:
            response = client.post("/items", body="{}")

        assert response.status == 201
        assert response.text == "created"

    def test_passes_initial_response(self) -> None:
        app = _app()
        app.get("/", lambda req, res, args: "body")
        response = app.handle(Request.build("GET", "/"), Response("<!-- head -->"))
        assert response.text == "<!-- head -->body"

    def test_signature_strategy_from_config(self) -> None:
        app = _app(strategy="signature")

        class Store:
            greeting = "hi"

        app.provide(Store, Store)

        @app.route("/users/{id}")
        def show(id: int, store: Store) -> str:
            return f"{store.greeting} {id + 1}"

        with TestClient(app) as client:
            assert client.get("/users/41").text == "hi 42"

    def test_injected_service_built_from_another_service(self) -> None:
        app = _app(strategy="signature")

        class Db:
            name = "primary"

        class UserStore:
            def __init__(self, db: Db) -> None:
                self.db = db

        app.provide(Db, Db)
        app.provide(UserStore, lambda: UserStore(app.container.get(Db)))

        @app.route("/db")
        def show(store: UserStore) -> str:
            return store.db.name

        with TestClient(app) as client:
            assert client.get("/db").text == "primary"

    def test_explicit_strategy_wins_over_config(self) -> None:
        app = _app(strategy="signature")
        app.container.set(FOUND_HANDLER, RequestResponseArgs())
        app.get("/sum/{a}/{b}", lambda req, res, a, b: str(int(a) + int(b)))

        with TestClient(app) as client:
            assert client.get("/sum/2/3").text == "5"

    def test_string_handler_reference(self) -> None:
        app = _app()

        class Pages:
            def about(self, request, response, args):
                return "about us"

        app.provide("pages", Pages)
        app.get("/about", "pages:about")

        with TestClient(app) as client:
            assert client.get("/about").text == "about us"

    def test_concurrent_requests(self) -> None:
        app = _app()
        barrier = threading.Barrier(4)

        @app.route("/echo/{value}")
        def echo(request, response, args):
            barrier.wait(timeout=5)
            print(args["value"], end="")
            return ""

        app.freeze()
        results: dict[str, str] = {}

        def worker(value: str) -> None:
            results[value] = app.handle(Request.build("GET", f"/echo/{value}")).text

        threads = [threading.Thread(target=worker, args=(str(i),)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results == {str(i): str(i) for i in range(4)}


class TestErrors:
    def test_not_found(self) -> None:
        app = _app()
        with TestClient(app) as client:
            response = client.get("/missing")
        assert response.status == 404
        assert response.content_type.startswith("text/plain")

    def test_method_not_allowed(self) -> None:
        app = _app()
        app.get("/items", lambda req, res, args: "items")
        app.post("/items", lambda req, res, args: "created")

        with TestClient(app) as client:
            response = client.delete("/items")

        assert response.status == 405
        assert response.header("Allow") == "GET, POST"

    def test_custom_404_handler(self) -> None:
        app = _app()

        @app.error(404)
        def not_found(request):
            return f"nothing at {request.path}"

        with TestClient(app) as client:
            response = client.get("/nope")

        assert response.status == 404
        assert response.text == "nothing at /nope"

    def test_error_handler_by_exception_type(self) -> None:
        class Teapot(HTTPError):
            def __init__(self) -> None:
                super().__init__(status=418, detail="short and stout")

        app = _app()

        def brew(request, response, args):
            raise Teapot()

        app.get("/coffee", brew)

        @app.error(Teapot)
        def teapot(request, exc):
            return Response(exc.detail).with_status(418)

        with TestClient(app) as client:
            response = client.get("/coffee")

        assert response.status == 418
        assert response.text == "short and stout"

    def test_handler_exception_becomes_500(self, caplog: pytest.LogCaptureFixture) -> None:
        app = _app()

        def broken(request, response, args):
            print("half a page")
            raise ValueError("kaboom")

        app.get("/broken", broken)

        with caplog.at_level(logging.ERROR, logger="switchyard.app"):
            with TestClient(app) as client:
                response = client.get("/broken")

        assert response.status == 500
        assert response.text == "Internal Server Error"
        assert "half a page" not in response.text
        assert any("500 GET /broken" in r.getMessage() for r in caplog.records)

    def test_debug_500_shows_traceback(self) -> None:
        app = _app(debug=True)

        def broken(request, response, args):
            raise ValueError("kaboom")

        app.get("/broken", broken)

        with TestClient(app) as client:
            response = client.get("/broken")

        assert response.status == 500
        assert "ValueError: kaboom" in response.text

    def test_custom_500_handler(self) -> None:
        app = _app()
        app.get("/broken", lambda req, res, args: 1 / 0)

        @app.error(500)
        def oops(request, exc):
            return f"sorry: {type(exc).__name__}"

        with TestClient(app) as client:
            response = client.get("/broken")

        assert response.status == 500
        assert response.text == "sorry: ZeroDivisionError"

    def test_app_middleware_sees_unmatched_requests(self) -> None:
        log: list[str] = []
        app = _app()
        app.add_middleware(_tracer("app", log))

        with TestClient(app) as client:
            assert client.get("/missing").status == 404

        assert log == ["app"]


class TestFreeze:
    def test_no_matcher(self) -> None:
        app = App()
        with pytest.raises(ConfigurationError, match="No path matcher"):
            app.handle(Request.build("GET", "/"))

    def test_registration_after_freeze(self) -> None:
        app = _app()
        app.freeze()
        with pytest.raises(RuntimeError, match="Cannot modify"):
            app.get("/late", lambda req, res, args: None)
        with pytest.raises(RuntimeError):
            app.add_middleware(_tracer("late", []))

    def test_freeze_is_idempotent(self) -> None:
        app = _app()
        app.get("/", lambda req, res, args: "ok")
        app.freeze()
        app.freeze()
        assert app.handle(Request.build("GET", "/")).text == "ok"

    def test_freeze_finalizes_routes(self) -> None:
        app = _app()
        route = app.get("/", lambda req, res, args: "ok")
        app.freeze()
        assert route.is_finalized
