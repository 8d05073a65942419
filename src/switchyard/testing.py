"""Test helpers for switchyard applications.

``TestClient`` sends requests straight into ``App.handle()`` and returns
the same ``Response`` type used in production. No HTTP involved.

``SegmentMatcher`` is a deliberately small path matcher for tests and
examples: patterns are split on ``/`` and ``{name}`` segments match any
single path segment. Real applications bring their own matcher.
"""

from __future__ import annotations

from switchyard.app import App
from switchyard.errors import MethodNotAllowed, NotFound
from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.routing.matcher import RouteMatch
from switchyard.routing.route import Route


def _segments(path: str) -> list[str]:
    return [part for part in path.strip("/").split("/") if part]


class SegmentMatcher:
    """Match paths segment by segment, in registration order."""

    __slots__ = ("_routes",)

    def __init__(self) -> None:
        self._routes: list[tuple[list[str], Route]] = []

    def add(self, route: Route) -> None:
        self._routes.append((_segments(route.pattern), route))

    def match(self, method: str, path: str) -> RouteMatch:
        parts = _segments(path)
        allowed: set[str] = set()

        for pattern, route in self._routes:
            arguments = self._match_segments(pattern, parts)
            if arguments is None:
                continue
            if method in route.methods:
                return RouteMatch(route=route, arguments=arguments)
            allowed |= route.methods

        if allowed:
            raise MethodNotAllowed(frozenset(allowed))
        raise NotFound(f"No route matches {method} {path!r}")

    @staticmethod
    def _match_segments(pattern: list[str], parts: list[str]) -> dict[str, str] | None:
        if len(pattern) != len(parts):
            return None
        arguments: dict[str, str] = {}
        for expected, actual in zip(pattern, parts, strict=True):
            if expected.startswith("{") and expected.endswith("}"):
                arguments[expected[1:-1]] = actual
            elif expected != actual:
                return None
        return arguments


class TestClient:
    """Synchronous test client for switchyard applications.

    Usage::

        with TestClient(app) as client:
            response = client.get("/")
            assert response.status == 200
    """

    __test__ = False  # Tell pytest this is not a test class

    __slots__ = ("app",)

    def __init__(self, app: App) -> None:
        self.app = app

    def __enter__(self) -> TestClient:
        self.app.freeze()
        return self

    def __exit__(self, *args: object) -> None:
        return None

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | str = b"",
        query_string: str = "",
    ) -> Response:
        """Send a request with any method."""
        request = Request.build(
            method, path, headers=headers, body=body, query_string=query_string
        )
        return self.app.handle(request)

    def get(self, path: str, *, headers: dict[str, str] | None = None) -> Response:
        """Send a GET request."""
        return self.request("GET", path, headers=headers)

    def post(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | str = b"",
    ) -> Response:
        """Send a POST request."""
        return self.request("POST", path, headers=headers, body=body)

    def put(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | str = b"",
    ) -> Response:
        """Send a PUT request."""
        return self.request("PUT", path, headers=headers, body=body)

    def delete(self, path: str, *, headers: dict[str, str] | None = None) -> Response:
        """Send a DELETE request."""
        return self.request("DELETE", path, headers=headers)
