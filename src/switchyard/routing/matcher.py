"""Path matcher protocol and RouteMatch.

Pattern compilation and matching live outside switchyard. A matcher is
anything that, given a method and a path, returns the matched route and
the path parameters it extracted::

    class MyMatcher:
        def add(self, route: Route) -> None: ...
        def match(self, method: str, path: str) -> RouteMatch: ...

``match`` raises ``NotFound`` when no route matches the path and
``MethodNotAllowed`` when the path matches but the method does not.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from switchyard.routing.route import Route


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    arguments: dict[str, str] = field(default_factory=dict)


class PathMatcher(Protocol):
    """Protocol for the external path matcher."""

    def add(self, route: Route) -> None: ...

    def match(self, method: str, path: str) -> RouteMatch: ...
